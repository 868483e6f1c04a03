"""
Injecters
=========

Small units that contribute clause text and bindings to a ``QueryBuilder``.

An injecter's ``inject(bindings)`` receives the bindings collected so far,
may add new entries to that dictionary, and returns a list of
``(ClauseKind, text)`` contributions. Lists and tuples of injecters run left
to right and ``None`` contributes nothing, so optional parts of a query can
be written inline::

    query(
        Select("*"),
        From("user"),
        Where(("name", name)),
        Fetch("friends") if with_friends else None,
    )

``Where`` and ``Set`` take conditions, which may be:

* a string, used as is;
* a ``(key, value)`` pair, rendered as ``key = $key`` with ``value`` bound;
* a mapping, flattened into one ``path = $path`` condition per leaf;
* ``Sql(text)``, raw text that is never bound;
* ``Cmp`` and its shorthands, ``And`` and ``Or``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from mdlquery.filters import filter_conditions, param_name
from mdlquery.querybuilder import ClauseKind, Contribution

Bindings = Dict[str, Any]


class Sql:
    """Raw query text, placed in the query as is and never bound."""

    def __init__(self, text: str):
        self.text = text

    def __repr__(self) -> str:
        return f"Sql({self.text!r})"

    def __str__(self) -> str:
        return self.text

    def __eq__(self, other) -> bool:
        return isinstance(other, Sql) and self.text == other.text

    def __hash__(self) -> int:
        return hash(self.text)


def bind_value(key: Any, value: Any, bindings: Bindings, name: Optional[str] = None) -> str:
    """The right-hand side for ``value``: raw text for ``Sql``, otherwise a
    placeholder (``name``, or one named after ``key``) with the value stored
    in ``bindings``.
    """
    if isinstance(value, Sql):
        return value.text
    name = name or param_name(key)
    bindings[name] = value
    return f"${name}"


class Condition(ABC):
    """A condition that renders itself, binding values as it goes."""

    @abstractmethod
    def render(self, bindings: Bindings) -> str:
        pass


class Cmp(Condition):
    """``key <op> value``, e.g. ``Cmp(">=", "age", 18)`` gives ``age >= $age``.

    The placeholder is named after ``key``, so two comparisons on one key in
    the same query would share it. Pass ``name`` to give one its own::

        Where(Greater("age", 18), Lower("age", 65, name="max_age"))
    """

    def __init__(self, operator: str, key: Any, value: Any, name: Optional[str] = None):
        self.operator = operator
        self.key = key
        self.value = value
        self.name = name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.operator!r}, {self.key!r}, {self.value!r})"

    def render(self, bindings: Bindings) -> str:
        placeholder = bind_value(self.key, self.value, bindings, self.name)
        return f"{self.key} {self.operator} {placeholder}"


class Equal(Cmp):
    def __init__(self, key: Any, value: Any, name: Optional[str] = None):
        super().__init__("=", key, value, name)


class Greater(Cmp):
    def __init__(self, key: Any, value: Any, name: Optional[str] = None):
        super().__init__(">", key, value, name)


class Lower(Cmp):
    def __init__(self, key: Any, value: Any, name: Optional[str] = None):
        super().__init__("<", key, value, name)


class PlusEqual(Cmp):
    """``key += value``, for ``SET`` clauses that append to a field."""

    def __init__(self, key: Any, value: Any, name: Optional[str] = None):
        super().__init__("+=", key, value, name)


def expand_condition(condition: Any, bindings: Bindings) -> List[str]:
    """Render one condition into the clause parts it stands for.

    A mapping stands for one part per leaf; everything else is one part.
    """
    if condition is None:
        return []
    if isinstance(condition, Condition):
        return [condition.render(bindings)]
    if isinstance(condition, Sql):
        return [condition.text]
    if isinstance(condition, str):
        return [condition]
    if isinstance(condition, Mapping):
        parts = []
        for text, name, value in filter_conditions(condition):
            bindings[name] = value
            parts.append(text)
        return parts
    if isinstance(condition, tuple) and len(condition) == 2:
        key, value = condition
        return [f"{key} = {bind_value(key, value, bindings)}"]
    raise TypeError(f"Unsupported condition {condition!r}")


class _Group(Condition):
    keyword = ""

    def __init__(self, *conditions: Any):
        self.conditions = conditions

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self.conditions!r}"

    def parts(self, bindings: Bindings) -> List[str]:
        parts = []
        for condition in self.conditions:
            parts.extend(expand_condition(condition, bindings))
        return parts


class And(_Group):
    """All of the conditions hold."""

    def render(self, bindings: Bindings) -> str:
        return " AND ".join(self.parts(bindings))


class Or(_Group):
    """At least one of the conditions holds. Several members are parenthesized."""

    def render(self, bindings: Bindings) -> str:
        parts = self.parts(bindings)
        if len(parts) > 1:
            return f"({' OR '.join(parts)})"
        return "".join(parts)


class Injecter(ABC):
    """Base class of everything that can be passed to ``QueryBuilder.inject``."""

    @abstractmethod
    def inject(self, bindings: Bindings) -> List[Contribution]:
        """Add bindings and return the ``(ClauseKind, text)`` contributions."""

    def when(self, condition: bool) -> Injecter:
        """This injecter if ``condition`` holds, otherwise one that does nothing."""
        return When(self, condition)


class When(Injecter):
    def __init__(self, injecter: Any, condition: bool):
        self.injecter = injecter
        self.condition = bool(condition)

    def inject(self, bindings: Bindings) -> List[Contribution]:
        if not self.condition:
            return []
        return self.injecter.inject(bindings)


class _Clause(Injecter):
    """Contributes each of its texts to one clause kind."""

    kind: ClauseKind

    def __init__(self, *texts: Any):
        self.texts = texts

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self.texts!r}"

    def inject(self, bindings: Bindings) -> List[Contribution]:
        return [(self.kind, str(text)) for text in self.texts if text is not None]


class Select(_Clause):
    kind = ClauseKind.SELECT


class From(_Clause):
    kind = ClauseKind.FROM


class Create(_Clause):
    kind = ClauseKind.CREATE


class Update(_Clause):
    kind = ClauseKind.UPDATE


class Delete(_Clause):
    kind = ClauseKind.DELETE


class Relate(_Clause):
    """``RELATE`` text, e.g. ``Relate("user:1->manage->project:2")``."""

    kind = ClauseKind.RELATE


class Fetch(_Clause):
    kind = ClauseKind.FETCH


class GroupBy(_Clause):
    kind = ClauseKind.GROUP_BY


class Content(Injecter):
    """``CONTENT $content``, binding a whole object.

    ``Sql`` and plain strings are written as is.
    """

    def __init__(self, value: Any, name: str = "content"):
        self.value = value
        self.name = name

    def inject(self, bindings: Bindings) -> List[Contribution]:
        if isinstance(self.value, str):
            return [(ClauseKind.CONTENT, self.value)]
        return [(ClauseKind.CONTENT, bind_value(self.name, self.value, bindings))]


class Where(Injecter):
    """Conditions for the ``WHERE`` clause, joined by ``AND``."""

    def __init__(self, *conditions: Any):
        self.conditions = conditions

    def __repr__(self) -> str:
        return f"Where{self.conditions!r}"

    def inject(self, bindings: Bindings) -> List[Contribution]:
        contributions = []
        for condition in self.conditions:
            for text in expand_condition(condition, bindings):
                contributions.append((ClauseKind.WHERE, text))
        return contributions


class Set(Where):
    """Assignments for the ``SET`` clause.

    Takes the same forms as ``Where``: ``Set(("name", name))`` gives
    ``SET name = $name`` and ``Set(PlusEqual("tags", tag))`` gives
    ``SET tags += $tags``.
    """

    def __repr__(self) -> str:
        return f"Set{self.conditions!r}"

    def inject(self, bindings: Bindings) -> List[Contribution]:
        return [(ClauseKind.SET, text) for _, text in super().inject(bindings)]


class OrderBy(Injecter):
    def __init__(self, field: Any, descending: bool = False):
        self.field = field
        self.descending = descending

    @classmethod
    def asc(cls, field: Any) -> OrderBy:
        return cls(field)

    @classmethod
    def desc(cls, field: Any) -> OrderBy:
        return cls(field, descending=True)

    def inject(self, bindings: Bindings) -> List[Contribution]:
        direction = "DESC" if self.descending else "ASC"
        return [(ClauseKind.ORDER_BY, f"{self.field} {direction}")]


class Limit(Injecter):
    def __init__(self, count: int):
        self.count = count

    def inject(self, bindings: Bindings) -> List[Contribution]:
        return [(ClauseKind.LIMIT, str(self.count))]


class StartAt(Injecter):
    def __init__(self, offset: int):
        self.offset = offset

    def inject(self, bindings: Bindings) -> List[Contribution]:
        return [(ClauseKind.START_AT, str(self.offset))]


class Pagination(Injecter):
    """The rows from ``start`` up to, but not including, ``end``.

    Compiles to ``LIMIT end - start`` and, when ``start`` is positive,
    ``START AT start``.
    """

    def __init__(self, start: int, end: int):
        if end < start:
            raise ValueError(f"Pagination end {end} is before its start {start}")
        self.start = start
        self.end = end

    @classmethod
    def from_range(cls, rows: range) -> Pagination:
        return cls(rows.start, rows.stop)

    def inject(self, bindings: Bindings) -> List[Contribution]:
        contributions = [(ClauseKind.LIMIT, str(self.end - self.start))]
        if self.start > 0:
            contributions.append((ClauseKind.START_AT, str(self.start)))
        return contributions


class Bind(Injecter):
    """Add a binding without contributing any text."""

    def __init__(self, name: str, value: Any):
        self.name = name
        self.value = value

    def inject(self, bindings: Bindings) -> List[Contribution]:
        bindings[self.name] = self.value
        return []


class Raw(Injecter):
    """Free text for any clause kind."""

    def __init__(self, kind: ClauseKind, text: Optional[str]):
        self.kind = kind
        self.text = text

    def inject(self, bindings: Bindings) -> List[Contribution]:
        if self.text is None:
            return []
        return [(self.kind, self.text)]
