"""Flattening of JSON-like filter objects into query conditions.

A filter such as ``{"name": "John", "address": {"city": "Paris"}}`` becomes
one ``(path, value)`` leaf per scalar, with nested keys joined by dots:
``[("name", "John"), ("address.city", "Paris")]``. Each leaf turns into a
``path = $param`` condition whose placeholder name is ``param_name(path)``.
"""

from __future__ import annotations

import re
from typing import Any, Iterator, List, Mapping, Tuple

from mdlquery.exceptions import FilterShapeError

_NON_WORD = re.compile(r"\W+")

SCALAR_TYPES = (type(None), bool, int, float, str)


def param_name(path: str) -> str:
    """Placeholder name for a field path.

    Every run of non-word characters becomes one underscore, and a leading
    or trailing underscore left over from an arrow or a dot is dropped:

    >>> param_name("address.city")
    'address_city'
    >>> param_name("->manage->Project.name")
    'manage_Project_name'
    """
    return _NON_WORD.sub("_", str(path)).strip("_")


def _check_leaf(path: str, value: Any) -> None:
    if isinstance(value, SCALAR_TYPES):
        return
    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            if isinstance(item, Mapping):
                for key in item:
                    _check_key(f"{path}[{index}]", key)
                for key, nested in item.items():
                    _check_leaf(f"{path}[{index}].{key}", nested)
            else:
                _check_leaf(f"{path}[{index}]", item)
        return
    raise FilterShapeError(
        f"Unsupported value of type {type(value).__name__} at {path!r}"
    )


def _check_key(path: str, key: Any) -> None:
    if not isinstance(key, str):
        raise FilterShapeError(
            f"Filter keys must be strings, got {key!r} under {path or 'the root'!r}"
        )


def _walk(prefix: str, obj: Mapping) -> Iterator[Tuple[str, Any]]:
    for key, value in obj.items():
        _check_key(prefix, key)
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, Mapping) and value:
            yield from _walk(path, value)
        else:
            if isinstance(value, Mapping):
                value = dict(value)
            else:
                _check_leaf(path, value)
            yield path, value


def flatten_filter(obj: Mapping) -> List[Tuple[str, Any]]:
    """Flatten a nested mapping into ``(dotted_path, value)`` leaves.

    Leaves may be ``None``, booleans, numbers, strings, or lists of those
    (lists may hold objects too; they are bound as a whole). An empty
    nested mapping is kept as a leaf. Any other value, or a key that is not
    a string, raises ``FilterShapeError``.
    """
    if not isinstance(obj, Mapping):
        raise FilterShapeError(
            f"A filter must be a mapping, got {type(obj).__name__}"
        )
    return list(_walk("", obj))


def filter_conditions(obj: Mapping) -> List[Tuple[str, str, Any]]:
    """``(condition, placeholder, value)`` for every leaf of a filter.

    Raises ``FilterShapeError`` when a path gives an empty placeholder name,
    or when two paths of the filter give the same one.
    """
    conditions = []
    paths = {}
    for path, value in flatten_filter(obj):
        name = param_name(path)
        if not name:
            raise FilterShapeError(f"No placeholder name can be made from {path!r}")
        if name in paths:
            raise FilterShapeError(
                f"{paths[name]!r} and {path!r} share the placeholder ${name}"
            )
        paths[name] = path
        conditions.append((f"{path} = ${name}", name, value))
    return conditions
