"""String helpers for node and edge paths.

    >>> edge_out("user", "project")
    'user->project'
    >>> named_label("John", "Account")
    'Account:John'
    >>> filter_last_segment("account->manage->project", "name = $name")
    'account->manage->(project WHERE name = $name)'

None of these quote or escape their arguments.
"""

from __future__ import annotations

import re
from typing import Any

from mdlquery.filters import param_name

_LAST_SEGMENT = re.compile(r"[^\W_]*$")

EDGE_OUT = "->"
EDGE_IN = "<-"


def edge_out(path: Any, node: Any) -> str:
    """``path->node``"""
    return f"{path}{EDGE_OUT}{node}"


def edge_in(path: Any, node: Any) -> str:
    """``path<-node``"""
    return f"{path}{EDGE_IN}{node}"


def named_label(name: Any, label: Any) -> str:
    """``label:name``, the id of record ``name`` in table ``label``."""
    return f"{label}:{name}"


def as_alias(path: Any, alias: Any) -> str:
    return f"{path} AS {alias}"


def equals(path: Any, value: Any) -> str:
    return f"{path} = {value}"


def equals_parameterized(path: Any) -> str:
    """``path = $path``, with the placeholder named by ``param_name``."""
    return compares_parameterized(path, "=")


def compares_parameterized(path: Any, operator: str) -> str:
    return f"{path} {operator} ${param_name(path)}"


def filter_last_segment(path: Any, condition: Any) -> str:
    """Wrap the last alphanumeric segment of ``path`` in a ``WHERE`` filter."""
    path = str(path)
    last = _LAST_SEGMENT.search(path).start()
    return f"{path[:last]}({path[last:]} WHERE {condition})"


def join_path(origin: str, segment: str) -> str:
    """Append ``segment`` to ``origin``.

    Edge segments are appended as they are; anything else follows a dot.
    """
    if not origin:
        return segment
    if segment.startswith((EDGE_OUT, EDGE_IN)):
        return f"{origin}{segment}"
    return f"{origin}.{segment}"
