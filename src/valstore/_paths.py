"""Dotted path codec.

A path like "cart.items.0" addresses state["cart"]["items"][0]. The empty
path (or None) addresses the whole state. Subscribers watching a path are
notified for writes to that path and to any of its descendants, which is
why writes are expanded into their ancestor chain.
"""

from __future__ import annotations

from typing import Iterable

SEPARATOR = "."
WILDCARD = "*"


def parse(path: str | None) -> tuple[str, ...]:
    """Split a dotted path into its segments. Empty/None -> ()."""
    if not path:
        return ()
    return tuple(path.split(SEPARATOR))


def ancestors(path: str) -> list[str]:
    """Every prefix of path, shortest first.

    ancestors("a.b.c") == ["a", "a.b", "a.b.c"]
    """
    chain: list[str] = []
    current = ""
    for segment in parse(path):
        current = f"{current}{SEPARATOR}{segment}" if current else segment
        chain.append(current)
    return chain


def expand(paths: str | Iterable[str]) -> list[str]:
    """Ordered, de-duplicated union of the ancestor chains of paths."""
    if isinstance(paths, str):
        paths = (paths,)
    seen: dict[str, None] = {}
    for path in paths:
        for prefix in ancestors(path):
            seen.setdefault(prefix, None)
    return list(seen)


def normalize(paths: str | Iterable[str] | None) -> tuple[str, ...]:
    """Turn a watched-path configuration into a tuple of paths.

    None watches everything, a string watches one path.
    """
    if paths is None:
        return (WILDCARD,)
    if isinstance(paths, str):
        return (paths,)
    return tuple(paths)
