"""
Schema
======

Field constants for the models of an application, built from their MDL
definitions at runtime.

``SchemaRegistry.define`` parses a model and returns a ``Schema``. Each
attribute of a schema is a ``SchemaField``: a string holding the path of the
field, which can be used anywhere a string is expected by the query
builder. Foreign nodes and relations are also callable and return the
schema of the model they point at, with every path prefixed::

    registry = SchemaRegistry()
    registry.define("Project { name }")
    account = registry.define("Account { id, ->manage->Project as projects }")

    str(account.projects)         # '->manage->Project'
    str(account.projects().name)  # '->manage->Project.name'

A registry is an ordinary object: create one wherever the models are needed
and pass it around.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional

from mdlquery.ast_nodes import Field, ForeignNode, Model, OptionFlag, Property, Relation
from mdlquery.exceptions import SchemaError
from mdlquery.filters import param_name
from mdlquery.foreign import ForeignReference
from mdlquery.injecters import Bindings, Injecter
from mdlquery.logger import LOGGER
from mdlquery.mdl_parser import parse_model
from mdlquery.paths import as_alias, compares_parameterized, join_path, named_label
from mdlquery.querybuilder import ClauseKind, Contribution


class SchemaField(str):
    """The path of one field, e.g. ``author.name``."""

    def __new__(
        cls,
        path: str,
        field: Optional[Field] = None,
        registry: Optional[SchemaRegistry] = None,
    ):
        instance = super().__new__(cls, path)
        instance.field = field
        instance.registry = registry
        return instance

    def __repr__(self) -> str:
        return f"SchemaField({str(self)!r})"

    @property
    def param(self) -> str:
        """Placeholder name for the field: ``author.name`` gives ``author_name``."""
        return param_name(self)

    def equals_parameterized(self) -> str:
        return compares_parameterized(self, "=")

    def compares_parameterized(self, operator: str) -> str:
        return compares_parameterized(self, operator)

    def from_alias(self, alias: str) -> SchemaField:
        """The same field reached through ``alias``: ``alias.path``."""
        return SchemaField(join_path(alias, str(self)), self.field, self.registry)

    def aliased(self) -> str:
        """For a relation, its path followed by ``AS alias``."""
        if isinstance(self.field, Relation):
            return as_alias(self, self.field.alias.value)
        return str(self)

    def __call__(self) -> Schema:
        """Schema of the model this foreign node or relation points at."""
        if isinstance(self.field, (ForeignNode, Relation)):
            return self.registry.get(self.field.foreign_type.value, origin=str(self))
        raise SchemaError(f"{str(self)!r} is not a foreign node or a relation")


def field_segment(field: Field) -> str:
    """The path segment one field adds."""
    if isinstance(field, Relation):
        return field.path
    if isinstance(field, (Property, ForeignNode)):
        return field.name.value
    raise TypeError(f"Unknown field kind {field!r}")


class Schema:
    """Field constants of one model, optionally reached through an origin path."""

    def __init__(self, model: Model, registry: SchemaRegistry, origin: str = ""):
        self._model = model
        self._registry = registry
        self._origin = origin

    @property
    def model(self) -> Model:
        return self._model

    @property
    def origin(self) -> str:
        return self._origin

    def __str__(self) -> str:
        return self._model.name.value

    def __repr__(self) -> str:
        if self._origin:
            return f"Schema({self}, origin={self._origin!r})"
        return f"Schema({self})"

    def __getitem__(self, name: str) -> SchemaField:
        try:
            field = self._model.field(name)
        except KeyError:
            raise SchemaError(f"Model {self} has no field {name!r}") from None
        return SchemaField(
            join_path(self._origin, field_segment(field)), field, self._registry
        )

    def __getattr__(self, name: str) -> SchemaField:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except SchemaError as error:
            raise AttributeError(error.message) from None

    def __iter__(self) -> Iterator[SchemaField]:
        for field in self._model.fields:
            yield self[field.attribute.value]

    def __dir__(self) -> List[str]:
        return list(super().__dir__()) + [
            field.attribute.value for field in self._model.fields
        ]

    def fields(self) -> List[SchemaField]:
        return list(self)

    def public_fields(self) -> List[SchemaField]:
        """Fields declared ``pub``, in declaration order."""
        return [field for field in self if field.field.is_public]

    def with_id(self, record_id: Any) -> Schema:
        """The same schema rooted at one record, e.g. ``Account:john``."""
        return Schema(
            self._model,
            self._registry,
            join_path(self._origin, named_label(record_id, self)),
        )

    def partial(self, **values: Any) -> Dict[str, Any]:
        """Some of the fields of a record, for ``Set`` or ``Content``.

        Only models declared ``with(partial)`` allow it. Foreign references
        are replaced by their wire form.
        """
        if not self._model.has_option(OptionFlag.PARTIAL):
            raise SchemaError(f"Model {self} is not declared with(partial)")
        partial = {}
        for name, value in values.items():
            field = self[name]
            if isinstance(value, ForeignReference):
                value = value.to_wire()
            partial[str(field)] = value
        return partial


class SchemaRegistry:
    """The schemas of one application, by model name and alias."""

    def __init__(self):
        self._schemas: Dict[str, Schema] = {}

    def define(self, source: str) -> Schema:
        """Parse an MDL model and register its schema."""
        model = parse_model(source)
        names = [model.name.value]
        if model.alias is not None:
            names.append(model.alias.value)
        for name in names:
            if name in self._schemas:
                raise SchemaError(f"Model {name!r} is already defined")
        schema = Schema(model, self)
        for name in names:
            self._schemas[name] = schema
        if model.unknown_options:
            LOGGER.debug(
                "Model %s keeps unknown options %s",
                model.name.value,
                sorted(model.unknown_options),
            )
        return schema

    def get(self, name: str, origin: str = "") -> Schema:
        try:
            schema = self._schemas[name]
        except KeyError:
            raise SchemaError(f"No model named {name!r}") from None
        if origin:
            return Schema(schema.model, self, origin)
        return schema

    def __getitem__(self, name: str) -> Schema:
        return self.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)


class SetObject(Injecter):
    """``SET field = $field`` for every public field of ``schema``.

    Values are read from ``record`` by attribute, or by key when it is a
    mapping; fields the record lacks are skipped.
    """

    def __init__(self, schema: Schema, record: Any):
        self.schema = schema
        self.record = record

    def _read(self, name: str) -> Any:
        if isinstance(self.record, Mapping):
            return self.record.get(name, _MISSING)
        return getattr(self.record, name, _MISSING)

    def inject(self, bindings: Bindings) -> List[Contribution]:
        contributions = []
        for field in self.schema.public_fields():
            value = self._read(field.field.attribute.value)
            if value is _MISSING:
                continue
            if isinstance(value, ForeignReference):
                value = value.to_wire()
            bindings[field.param] = value
            contributions.append((ClauseKind.SET, field.equals_parameterized()))
        return contributions


_MISSING = object()
