"""
Foreign references
==================

A record field that points at another record comes back from a query in one
of three shapes: the bare key of the other record, the other record itself
(when the query fetched it), or nothing at all. ``ForeignReference`` keeps
whichever of these it was given:

* ``ForeignReference.loaded(user)``: the full value;
* ``ForeignReference.key_only("user:1")``: only the key;
* ``ForeignReference()``: unloaded.

``key()`` answers in the first two states, deriving the key from a loaded
value. ``value()`` answers only when the value is loaded.

When written back out, a loaded reference is serialized as its key unless
``allow_value_serialize()`` was called on it. The flag lives in a
``threading.Event``, so it can be toggled on a reference held inside an
otherwise shared record; the last toggle wins.

``ForeignReference[V]`` can be used as a pydantic field type::

    class Post(BaseModel):
        author: ForeignReference[User]
        editor: MaybeForeign[User] = Field(default_factory=ForeignReference)
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import (
    Annotated,
    Any,
    Generic,
    Iterable,
    Mapping,
    Optional,
    Protocol,
    TypeVar,
    get_args,
    runtime_checkable,
)

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from mdlquery.exceptions import DeserializationShapeError, KeyDerivationError
from mdlquery.logger import LOGGER

V = TypeVar("V")


@runtime_checkable
class Keyed(Protocol):
    """Anything that can name the record it is stored as."""

    def into_key(self) -> str:
        """Return the key, or raise ``KeyDerivationError`` if there is none."""


class KeyedRecord:
    """Mixin for records whose key is their ``id`` attribute."""

    def into_key(self) -> str:
        key = getattr(self, "id", None)
        if key is None:
            raise KeyDerivationError(f"{type(self).__name__} has no id")
        return str(key)


def derive_key(value: Any) -> Any:
    """Key of a loaded value.

    Uses ``value.into_key()`` when there is one. A string is its own key, a
    mapping is keyed by its ``id`` entry and a list gives the list of its
    items' keys.
    """
    if isinstance(value, Keyed):
        return value.into_key()
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping) and value.get("id") is not None:
        return str(value["id"])
    if isinstance(value, (list, tuple)):
        return [derive_key(item) for item in value]
    raise KeyDerivationError(f"Cannot derive a key from {type(value).__name__}")


class ReferenceState(Enum):
    LOADED = "loaded"
    KEY_ONLY = "key_only"
    UNLOADED = "unloaded"


def _is_key_shaped(raw: Any) -> bool:
    if isinstance(raw, str):
        return True
    return isinstance(raw, list) and bool(raw) and all(isinstance(item, str) for item in raw)


def _check_loaded_items(raw: list, value_type: Optional[type]) -> None:
    """A list that is not all keys must be all objects."""
    for index, item in enumerate(raw):
        if isinstance(item, Mapping):
            continue
        if isinstance(value_type, type) and isinstance(item, value_type):
            continue
        raise DeserializationShapeError(
            f"Foreign reference list mixes keys and objects: item {index} "
            f"is {type(item).__name__}"
        )


class ForeignReference(Generic[V]):
    """A reference to other record(s) that may be loaded, a key, or absent."""

    def __init__(self):
        self._state = ReferenceState.UNLOADED
        self._value: Optional[V] = None
        self._key: Any = None
        self._serialize_value = threading.Event()

    @classmethod
    def loaded(cls, value: V) -> ForeignReference[V]:
        reference = cls()
        reference._state = ReferenceState.LOADED
        reference._value = value
        return reference

    @classmethod
    def key_only(cls, key: Any) -> ForeignReference[V]:
        reference = cls()
        reference._state = ReferenceState.KEY_ONLY
        reference._key = key
        return reference

    @property
    def state(self) -> ReferenceState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state is ReferenceState.LOADED

    @property
    def is_key(self) -> bool:
        return self._state is ReferenceState.KEY_ONLY

    @property
    def is_unloaded(self) -> bool:
        return self._state is ReferenceState.UNLOADED

    def key(self) -> Any:
        """The key, derived from the value if it is loaded; ``None`` if unloaded.

        Raises ``KeyDerivationError`` when a loaded value has no key.
        """
        if self._state is ReferenceState.KEY_ONLY:
            return self._key
        if self._state is ReferenceState.LOADED:
            return derive_key(self._value)
        return None

    def value(self) -> Optional[V]:
        """The loaded value, or ``None`` in any other state."""
        if self._state is ReferenceState.LOADED:
            return self._value
        return None

    def allow_value_serialize(self) -> ForeignReference[V]:
        """Serialize a loaded value in full rather than as its key."""
        self._serialize_value.set()
        return self

    def disallow_value_serialize(self) -> ForeignReference[V]:
        self._serialize_value.clear()
        return self

    @property
    def value_serialize_allowed(self) -> bool:
        return self._serialize_value.is_set()

    @classmethod
    def from_wire(
        cls,
        raw: Any,
        value_type: Optional[type] = None,
        allow_null: bool = False,
    ) -> ForeignReference:
        """Build a reference from its wire form.

        A string (or a list of strings) is a key, a mapping is the value,
        decoded with ``value_type`` when one is given, and ``None`` is an
        unloaded reference if ``allow_null`` is set. Anything else raises
        ``DeserializationShapeError``.
        """
        if isinstance(raw, ForeignReference):
            return raw
        if raw is None:
            if allow_null:
                return cls()
            raise DeserializationShapeError("Foreign reference is null")
        if _is_key_shaped(raw):
            return cls.key_only(raw)
        if isinstance(raw, Mapping):
            if value_type is None:
                return cls.loaded(dict(raw))
            if hasattr(value_type, "model_validate"):
                return cls.loaded(value_type.model_validate(raw))
            return cls.loaded(value_type(**raw))
        if isinstance(raw, list):
            _check_loaded_items(raw, value_type)
            return cls.loaded([cls.from_wire(item, value_type).value() for item in raw])
        if isinstance(value_type, type) and isinstance(raw, value_type):
            return cls.loaded(raw)
        raise DeserializationShapeError(
            f"Foreign reference must be a key or an object, got {type(raw).__name__}"
        )

    def to_wire(self) -> Any:
        """The wire form: the key, the full value when allowed, or ``None``."""
        if self._state is ReferenceState.LOADED:
            if self.value_serialize_allowed:
                return _dump(self._value)
            return derive_key(self._value)
        if self._state is ReferenceState.KEY_ONLY:
            return self._key
        return None

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        args = get_args(source_type)
        value_type = args[0] if args else Any
        value_schema = handler.generate_schema(value_type)
        value_class = value_type if isinstance(value_type, type) else None

        def validate(raw: Any, inner: core_schema.ValidatorFunctionWrapHandler):
            if isinstance(raw, ForeignReference):
                return raw
            if raw is None:
                raise DeserializationShapeError("Foreign reference is null")
            if _is_key_shaped(raw):
                return cls.key_only(raw)
            if isinstance(raw, list):
                _check_loaded_items(raw, value_class)
            if isinstance(raw, (Mapping, list)) or (
                value_class is not None and isinstance(raw, value_class)
            ):
                return cls.loaded(inner(raw))
            raise DeserializationShapeError(
                f"Foreign reference must be a key or an object, got {type(raw).__name__}"
            )

        def serialize(reference: ForeignReference, nxt: core_schema.SerializerFunctionWrapHandler):
            if reference.is_loaded and reference.value_serialize_allowed:
                return nxt(reference.value())
            return reference.to_wire()

        return core_schema.no_info_wrap_validator_function(
            validate,
            value_schema,
            serialization=core_schema.wrap_serializer_function_ser_schema(
                serialize, info_arg=False, schema=value_schema
            ),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, ForeignReference):
            return NotImplemented
        return (self._state, self._key, self._value) == (
            other._state,
            other._key,
            other._value,
        )

    __hash__ = None

    def __repr__(self) -> str:
        if self._state is ReferenceState.LOADED:
            return f"ForeignReference.loaded({self._value!r})"
        if self._state is ReferenceState.KEY_ONLY:
            return f"ForeignReference.key_only({self._key!r})"
        return "ForeignReference()"

    def __getstate__(self) -> dict:
        state = self.__dict__.copy()
        state["_serialize_value"] = self._serialize_value.is_set()
        return state

    def __setstate__(self, state: dict) -> None:
        serialize_value = state.pop("_serialize_value")
        self.__dict__.update(state)
        self._serialize_value = threading.Event()
        if serialize_value:
            self._serialize_value.set()


def _dump(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


class UnloadedOnNull:
    """Field marker that turns an explicit ``null`` into an unloaded reference."""

    def __get_pydantic_core_schema__(
        self, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_before_validator_function(
            lambda raw: ForeignReference() if raw is None else raw,
            handler(source_type),
        )


MaybeForeign = Annotated[ForeignReference[V], UnloadedOnNull()]


def allow_value_serialize(references: Iterable[ForeignReference]) -> None:
    """Serialize every loaded reference in ``references`` as its full value."""
    count = 0
    for reference in references:
        reference.allow_value_serialize()
        count += 1
    LOGGER.debug("Allowed value serialization on %s references", count)


def disallow_value_serialize(references: Iterable[ForeignReference]) -> None:
    for reference in references:
        reference.disallow_value_serialize()
