"""Read and write values inside nested state by path segments."""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Sequence


def _index(container: list, segment: str, *, append: bool = False) -> int | None:
    """List index addressed by segment, or None if it is not a valid one.

    With append=True the index one past the end is valid too.
    """
    if not segment.isdigit():
        return None
    index = int(segment)
    limit = len(container) + 1 if append else len(container)
    return index if index < limit else None


def _child(node: Any, segment: str) -> Any:
    if isinstance(node, MutableMapping):
        return node.get(segment)
    if isinstance(node, list):
        index = _index(node, segment)
        return None if index is None else node[index]
    return None


def get_in(root: Any, segments: Sequence[str]) -> Any:
    """Walk segments from root and return the value found there, or None.

    Walking stops at the first missing or falsy intermediate. Addressing
    through 0, "" or False yields None, same as through a missing key; a
    falsy value is only returned when it is the addressed value itself.
    """
    node = root
    last = len(segments) - 1
    for position, segment in enumerate(segments):
        node = _child(node, segment)
        if position < last and not node:
            return None
    return node


def set_in(root: Any, segments: Sequence[str], value: Any) -> bool:
    """Assign value at segments, creating missing intermediate dicts.

    On a list, the final segment may be the index one past the end, which
    appends. Returns False when there are no segments or when an existing
    intermediate cannot hold children (a scalar, None, or a list addressed
    with an invalid index). Missing intermediates created before the
    failing point stay in root, so callers write into a copy.
    """
    if not segments:
        return False
    node = root
    for segment in segments[:-1]:
        if isinstance(node, MutableMapping):
            if segment not in node:
                node[segment] = {}
            node = node[segment]
        elif isinstance(node, list):
            index = _index(node, segment)
            if index is None:
                return False
            node = node[index]
        else:
            return False
    last = segments[-1]
    if isinstance(node, MutableMapping):
        node[last] = value
        return True
    if isinstance(node, list):
        index = _index(node, last, append=True)
        if index is None:
            return False
        if index == len(node):
            node.append(value)
        else:
            node[index] = value
        return True
    return False
