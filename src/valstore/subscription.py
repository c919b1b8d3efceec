"""Subscription registry — who is watching which paths.

One subscribe() call registers one entry per watched path; the entries
share an id so the whole registration can be dropped at once. Entries are
kept in registration order, which is also the order callbacks are started
in during a trigger pass.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from valstore._paths import WILDCARD, expand, normalize

Callback = Callable[[Any], Any]


@dataclass(frozen=True)
class Subscriber:
    """A single (id, watched path, callback) registration."""

    id: str
    path: str
    callback: Callback
    sync: bool = False

    def selected_by(self, selector: object, path: str | None = None) -> bool:
        """Does unsubscribe(selector, path) remove this entry?"""
        return (
            selector == self.id
            or selector == self.path
            or selector == self.callback
            or (path is not None and path == self.path and selector == self.callback)
        )


def new_id() -> str:
    return uuid.uuid4().hex[:12]


class SubscriptionRegistry:
    """Ordered collection of Subscriber entries."""

    def __init__(self) -> None:
        self._entries: list[Subscriber] = []

    def subscribe(
        self,
        callback: Callback,
        paths: str | Iterable[str] | None = None,
        *,
        sync: bool = False,
    ) -> str:
        """Register callback for paths (None = every write). Returns the id."""
        if not callable(callback):
            raise TypeError(f"subscriber callback must be callable, got {callback!r}")
        subscriber_id = new_id()
        for path in normalize(paths):
            self._entries.append(Subscriber(subscriber_id, path, callback, sync))
        return subscriber_id

    def unsubscribe(self, selector: object = None, path: str | None = None) -> bool:
        """Remove entries selected by id, watched path or callback.

        With no selector every entry is removed. Returns whether anything
        was removed.
        """
        if selector is None:
            self._entries = []
            return True
        kept = [entry for entry in self._entries if not entry.selected_by(selector, path)]
        removed = len(kept) != len(self._entries)
        self._entries = kept
        return removed

    def match(self, paths: str | Iterable[str]) -> list[Subscriber]:
        """Entries notified by writes to paths, each at most once."""
        written = set(expand(paths))
        return [
            entry for entry in self._entries
            if entry.path == WILDCARD or entry.path in written
        ]

    def match_all(self) -> list[Subscriber]:
        """Entries notified by a write to the whole state."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))
