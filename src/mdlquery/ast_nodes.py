"""
AST
===

Classes produced by the MDL parser. A ``Model`` has a name, an optional
alias, a set of option flags and an ordered list of fields. Each field is
one of ``Property``, ``ForeignNode`` or ``Relation``; the ``kind`` tag makes
the union a pydantic discriminated union so ASTs can be dumped to JSON and
loaded back.

Every node can print itself back to MDL text with ``to_mdl()``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, FrozenSet, Generator, List, Literal, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict

from mdlquery.tree_mixin import TreeMixin

RAW_LITERAL_MARKER = "r#"

RESERVED_WORDS = frozenset({"as", "pub", "with"})


class OptionFlag(str, Enum):
    """Model options the schema layer knows about."""

    PARTIAL = "partial"


class Direction(str, Enum):
    """Direction of a relation edge, valued by its MDL arrow."""

    OUTGOING = "->"
    INCOMING = "<-"


class Identifier(TreeMixin, BaseModel):
    """A name in the model source.

    ``is_raw_literal`` marks names written with the ``r#`` marker because they
    collide with a reserved word. Two identifiers are equal when their values
    are equal, whatever their raw-literal flag; an identifier also compares
    equal to the plain string of its value.
    """

    model_config = ConfigDict(frozen=True)

    value: str
    is_raw_literal: bool = False

    def __eq__(self, other) -> bool:
        if isinstance(other, Identifier):
            return self.value == other.value
        if isinstance(other, str):
            return self.value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __str__(self) -> str:
        return self.value

    def label(self) -> str:
        return self.to_mdl()

    def to_mdl(self) -> str:
        if self.is_raw_literal:
            return f"{RAW_LITERAL_MARKER}{self.value}"
        return self.value


def _visibility(is_public: bool) -> str:
    return "pub " if is_public else ""


class Property(TreeMixin, BaseModel):
    """A plain attribute of the model."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["property"] = "property"
    name: Identifier
    is_public: bool = False

    @property
    def attribute(self) -> Identifier:
        """Name the field is exposed under."""
        return self.name

    @property
    def children(self) -> Generator[Identifier]:
        yield self.name

    def label(self) -> str:
        return f"{_visibility(self.is_public)}Property"

    def to_mdl(self) -> str:
        return f"{_visibility(self.is_public)}{self.name.to_mdl()}"


class ForeignNode(TreeMixin, BaseModel):
    """A field holding a reference to another model's record(s)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["foreign_node"] = "foreign_node"
    name: Identifier
    foreign_type: Identifier
    is_public: bool = False

    @property
    def attribute(self) -> Identifier:
        """Name the field is exposed under."""
        return self.name

    @property
    def children(self) -> Generator[Identifier]:
        yield self.name
        yield self.foreign_type

    def label(self) -> str:
        return f"{_visibility(self.is_public)}ForeignNode"

    def to_mdl(self) -> str:
        return (
            f"{_visibility(self.is_public)}{self.name.to_mdl()}"
            f"<{self.foreign_type.to_mdl()}>"
        )


class Relation(TreeMixin, BaseModel):
    """A named edge traversal, exposed under its alias."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["relation"] = "relation"
    name: Identifier
    foreign_type: Identifier
    alias: Identifier
    direction: Direction = Direction.OUTGOING
    is_public: bool = False

    @property
    def attribute(self) -> Identifier:
        """Name the field is exposed under."""
        return self.alias

    @property
    def path(self) -> str:
        """The traversal text, e.g. ``->manage->Project``."""
        arrow = self.direction.value
        return f"{arrow}{self.name.value}{arrow}{self.foreign_type.value}"

    @property
    def children(self) -> Generator[Identifier | str]:
        yield self.direction.name
        yield self.name
        yield self.foreign_type
        yield self.alias

    def label(self) -> str:
        return f"{_visibility(self.is_public)}Relation"

    def to_mdl(self) -> str:
        arrow = self.direction.value
        return (
            f"{_visibility(self.is_public)}{arrow}{self.name.to_mdl()}"
            f"{arrow}{self.foreign_type.to_mdl()} as {self.alias.to_mdl()}"
        )


Field = Annotated[
    Union[Property, ForeignNode, Relation],
    pydantic.Field(discriminator="kind"),
]


class Model(TreeMixin, BaseModel):
    """A parsed model definition."""

    model_config = ConfigDict(frozen=True)

    name: Identifier
    alias: Optional[Identifier] = None
    options: FrozenSet[str] = frozenset()
    fields: List[Field] = []

    def has_option(self, flag: OptionFlag | str) -> bool:
        """Whether the model was declared with ``flag`` in its ``with(...)``."""
        flag = flag.value if isinstance(flag, OptionFlag) else flag
        return flag in self.options

    @property
    def unknown_options(self) -> FrozenSet[str]:
        """Flags this package does not interpret, kept for other consumers."""
        known = {flag.value for flag in OptionFlag}
        return frozenset(option for option in self.options if option not in known)

    def field(self, name: str) -> Field:
        """Look up a field by the name it is exposed under."""
        for field in self.fields:
            if field.attribute == name:
                return field
        raise KeyError(name)

    @property
    def children(self) -> Generator[TreeMixin | str]:
        yield self.name
        if self.alias is not None:
            yield f"alias: {self.alias.to_mdl()}"
        for option in sorted(self.options):
            yield f"option: {option}"
        yield from self.fields

    def label(self) -> str:
        return "Model"

    def to_mdl(self) -> str:
        """Print the model back to MDL source text."""
        header = self.name.to_mdl()
        if self.alias is not None:
            header += f" as {self.alias.to_mdl()}"
        if self.options:
            options = (
                f"{RAW_LITERAL_MARKER}{option}" if option in RESERVED_WORDS else option
                for option in sorted(self.options)
            )
            header += f" with({', '.join(options)})"
        if not self.fields:
            return f"{header} {{}}"
        lines = [f"{header} {{"]
        lines.extend(f"  {field.to_mdl()}," for field in self.fields)
        lines.append("}")
        return "\n".join(lines)
