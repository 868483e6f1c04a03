"""Statement helpers.

Each helper compiles its injecters through a fresh ``QueryBuilder`` and
returns ``(query, bindings)``::

    >>> select("*", "user", Where(("name", "John")))
    ('SELECT * FROM user WHERE name = $name', {'name': 'John'})
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from mdlquery.injecters import Create, Delete, From, Select, Update
from mdlquery.querybuilder import QueryBuilder

Compiled = Tuple[str, Dict[str, Any]]


def query(*injecters: Any) -> Compiled:
    """Compile any injecters into ``(query, bindings)``."""
    return QueryBuilder().inject(*injecters).compile()


def bindings(*injecters: Any) -> Dict[str, Any]:
    """Only the bindings the injecters produce."""
    return query(*injecters)[1]


def select(what: Any, from_: Any, *injecters: Any) -> Compiled:
    return query(Select(what), From(from_), *injecters)


def create(what: Any, *injecters: Any) -> Compiled:
    return query(Create(what), *injecters)


def update(what: Any, *injecters: Any) -> Compiled:
    return query(Update(what), *injecters)


def delete(what: Any, *injecters: Any) -> Compiled:
    return query(Delete(what), *injecters)
