"""Structural copy and deep merge for JSON-like values.

State is a composition of mappings, lists and scalars. clone() is how the
store keeps its state isolated from every reference a caller holds:
incoming values are cloned on write, outgoing values on read.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def clone(value: Any) -> Any:
    """Deep structural copy.

    Mappings become dicts, lists and tuples become lists. Anything else is
    treated as a scalar and returned as is.
    """
    if isinstance(value, Mapping):
        return {key: clone(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [clone(item) for item in value]
    return value


def merge_deep(base: Mapping | None, overlay: Mapping) -> dict:
    """Merge overlay onto base and return a new dict.

    For every key in overlay: two lists are concatenated, two mappings are
    merged recursively, otherwise the overlay value wins. Neither input is
    modified.

    Usage:
        merge_deep({"a": {"b": 1}, "l": [1]}, {"a": {"c": 2}, "l": [2]})
        # {"a": {"b": 1, "c": 2}, "l": [1, 2]}
    """
    merged = clone(base) if base else {}
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, list) and isinstance(value, (list, tuple)):
            merged[key] = current + clone(value)
        elif isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_deep(current, value)
        else:
            merged[key] = clone(value)
    return merged
