"""
Query builder
=============

``QueryBuilder`` collects clause text under a ``ClauseKind`` and compiles it
into a query string plus a bindings dictionary.

Clauses are emitted in SurrealQL order no matter in which order they were
added; within one kind the order of the calls is kept::

    >>> QueryBuilder().where("name = $name").from_("user").select("*").build()
    'SELECT * FROM user WHERE name = $name'

Injecters (see ``mdlquery.injecters``) are applied with ``inject``. Each one
sees the bindings collected so far, may add new ones, and returns the clause
text it contributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from mdlquery.config import (  # pylint: disable=no-name-in-module
    CLAUSE_SEPARATOR,
    WARN_ON_BINDING_COLLISION,
)
from mdlquery.filters import filter_conditions
from mdlquery.logger import LOGGER


class ClauseKind(Enum):
    """Clause keywords, declared in the order they are compiled."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RELATE = "RELATE"
    SELECT = "SELECT"
    FROM = "FROM"
    CONTENT = "CONTENT"
    SET = "SET"
    WHERE = "WHERE"
    GROUP_BY = "GROUP BY"
    ORDER_BY = "ORDER BY"
    LIMIT = "LIMIT"
    START_AT = "START AT"
    FETCH = "FETCH"

    @property
    def joiner(self) -> str:
        """Text placed between two parts of the same clause."""
        return " AND " if self is ClauseKind.WHERE else " , "

    @property
    def single_valued(self) -> bool:
        """Whether a new part replaces the previous one instead of joining it."""
        return self in (ClauseKind.LIMIT, ClauseKind.START_AT)


@dataclass
class QuerySegment:
    """The accumulated text of one clause."""

    kind: ClauseKind
    parts: List[str] = field(default_factory=list)

    def add(self, text: str) -> None:
        if self.kind.single_valued:
            self.parts = [text]
        else:
            self.parts.append(text)

    def render(self) -> str:
        return f"{self.kind.value} {self.kind.joiner.join(self.parts)}"


Contribution = Tuple[ClauseKind, str]


class QueryBuilder:
    """Mutable, chainable assembly of query clauses and bindings.

    Every operation returns the builder itself. Nothing here validates the
    text it is given; use bindings for any untrusted value.
    """

    def __init__(self):
        self.segments: Dict[ClauseKind, QuerySegment] = {}
        self.bindings: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"QueryBuilder({self.build()!r})"

    def __str__(self) -> str:
        return self.build()

    def add_segment(self, kind: ClauseKind, text: Any) -> QueryBuilder:
        """Add ``text`` to the clause ``kind``. Empty text is ignored."""
        text = "" if text is None else str(text).strip()
        if not text:
            return self
        if kind not in self.segments:
            self.segments[kind] = QuerySegment(kind)
        self.segments[kind].add(text)
        return self

    def _add_all(self, kind: ClauseKind, texts: Iterable[Any]) -> QueryBuilder:
        for text in texts:
            self.add_segment(kind, text)
        return self

    def create(self, what: Any) -> QueryBuilder:
        return self.add_segment(ClauseKind.CREATE, what)

    def update(self, what: Any) -> QueryBuilder:
        return self.add_segment(ClauseKind.UPDATE, what)

    def delete(self, what: Any) -> QueryBuilder:
        return self.add_segment(ClauseKind.DELETE, what)

    def relate(self, edge: Any) -> QueryBuilder:
        return self.add_segment(ClauseKind.RELATE, edge)

    def select(self, *fields: Any) -> QueryBuilder:
        return self._add_all(ClauseKind.SELECT, fields)

    def from_(self, *targets: Any) -> QueryBuilder:
        return self._add_all(ClauseKind.FROM, targets)

    def content(self, text: Any) -> QueryBuilder:
        return self.add_segment(ClauseKind.CONTENT, text)

    def set(self, *assignments: Any) -> QueryBuilder:
        return self._add_all(ClauseKind.SET, assignments)

    def where(self, *conditions: Any) -> QueryBuilder:
        """Add conditions; all conditions of the clause are joined by ``AND``."""
        return self._add_all(ClauseKind.WHERE, conditions)

    def where_any(self, *conditions: Any) -> QueryBuilder:
        """Add one condition that holds when any of ``conditions`` holds."""
        texts = [str(condition).strip() for condition in conditions]
        texts = [text for text in texts if text]
        if len(texts) > 1:
            return self.where(f"({' OR '.join(texts)})")
        return self._add_all(ClauseKind.WHERE, texts)

    def where_object(self, obj: Mapping) -> QueryBuilder:
        """Add a ``path = $param`` condition and a binding per filter leaf."""
        for condition, name, value in filter_conditions(obj):
            self.bind(name, value)
            self.where(condition)
        return self

    def group_by(self, *fields: Any) -> QueryBuilder:
        return self._add_all(ClauseKind.GROUP_BY, fields)

    def order_by(self, field_path: Any, descending: bool = False) -> QueryBuilder:
        direction = "DESC" if descending else "ASC"
        return self.add_segment(ClauseKind.ORDER_BY, f"{field_path} {direction}")

    def limit(self, count: int) -> QueryBuilder:
        return self.add_segment(ClauseKind.LIMIT, count)

    def start_at(self, offset: int) -> QueryBuilder:
        return self.add_segment(ClauseKind.START_AT, offset)

    def fetch(self, *fields: Any) -> QueryBuilder:
        return self._add_all(ClauseKind.FETCH, fields)

    def bind(self, name: str, value: Any) -> QueryBuilder:
        """Bind ``value`` to the placeholder ``$name``; the last bind wins."""
        if WARN_ON_BINDING_COLLISION and name in self.bindings:
            if self.bindings[name] != value:
                LOGGER.warning(
                    "Binding %r is overwritten: %r replaces %r",
                    name,
                    value,
                    self.bindings[name],
                )
        self.bindings[name] = value
        return self

    def if_then(
        self, condition: bool, action: Callable[[QueryBuilder], Optional[QueryBuilder]]
    ) -> QueryBuilder:
        """Apply ``action`` to the builder only when ``condition`` holds."""
        if condition:
            action(self)
        return self

    def inject(self, *injecters: Any) -> QueryBuilder:
        """Apply injecters in order. Lists and tuples run left to right and
        ``None`` does nothing.
        """
        for injecter in injecters:
            self._apply(injecter)
        return self

    def _apply(self, injecter: Any) -> None:
        if injecter is None:
            return
        if isinstance(injecter, (list, tuple)):
            for member in injecter:
                self._apply(member)
            return
        if not hasattr(injecter, "inject"):
            raise TypeError(f"{injecter!r} is not an injecter")
        scratch = dict(self.bindings)
        contributions: List[Contribution] = injecter.inject(scratch)
        for name, value in scratch.items():
            if name in self.bindings and self.bindings[name] is value:
                continue
            self.bind(name, value)
        LOGGER.debug(
            "Applied %s: %s contributions", type(injecter).__name__, len(contributions)
        )
        for kind, text in contributions:
            self.add_segment(kind, text)

    def compile(self) -> Tuple[str, Dict[str, Any]]:
        """Render the query string and a copy of the bindings.

        Compiling does not change the builder.
        """
        query = CLAUSE_SEPARATOR.join(
            self.segments[kind].render() for kind in ClauseKind if kind in self.segments
        )
        LOGGER.debug("Compiled query %r with %s bindings", query, len(self.bindings))
        return query, dict(self.bindings)

    def build(self) -> str:
        """Render only the query string."""
        return self.compile()[0]
