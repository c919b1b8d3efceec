"""Textual integration for valstore. Opt-in — requires textual.

connect() keeps a widget in step with a few store paths: the effect runs
with the values at those paths whenever one of them changes.

Guard + NoMatches + thread-marshal are enforced here, not at callsites.
_paused_apps has a single owner (this module): an id is present exactly
while the app is inside a pause() block.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Mapping

from textual.css.query import NoMatches

from valstore.store import Store

logger = logging.getLogger("valstore.textual")

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


class Binding:
    """Handle returned by connect(). dispose() stops the updates."""

    __slots__ = ("_store", "_key_map", "_subscriber_id", "_values")

    def __init__(self, store: Store, key_map: Mapping[str, str]) -> None:
        self._store = store
        self._key_map = dict(key_map)
        self._subscriber_id: str | None = None
        self._values = self.read()

    def read(self) -> dict[str, Any]:
        """Current store values for every name in the key map."""
        return {name: self._store.get(path) for name, path in self._key_map.items()}

    @property
    def values(self) -> dict[str, Any]:
        """Values last handed to the effect (or read at connect time)."""
        return dict(self._values)

    @property
    def disposed(self) -> bool:
        return self._subscriber_id is None

    def dispose(self) -> None:
        if self._subscriber_id is not None:
            self._store.unsubscribe(self._subscriber_id)
            self._subscriber_id = None

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else "active"
        return f"Binding({sorted(self._key_map)}, {state})"


def connect(
    app,
    store: Store,
    key_map: Mapping[str, str],
    effect: Callable[[dict[str, Any]], None],
    *,
    fire_immediately: bool = False,
) -> Binding:
    """Call effect({name: store.get(path)}) when the mapped values change.

    Writes that touch a watched path but leave every mapped value equal do
    not call the effect. Guards against firing during pause/not-running,
    catches NoMatches from widget queries, and marshals cross-thread calls
    via call_from_thread.

    Usage:
        binding = connect(app, store, {"name": "user.name"},
                          lambda v: app.query_one("#name").update(v["name"]))
        ...
        binding.dispose()
    """
    _main = threading.get_ident()
    binding = Binding(store, key_map)

    def _on_change(_state):
        values = binding.read()
        if values == binding._values:
            return
        binding._values = values
        _guarded(values)

    def _guarded(values):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, values)
        else:
            _safe(values)

    def _safe(values):
        try:
            effect(values)
        except NoMatches:
            logger.debug("Binding effect skipped, widget not mounted")

    binding._subscriber_id = store.subscribe(_on_change, list(binding._key_map.values()), sync=True)
    if fire_immediately:
        _guarded(binding.values)
    return binding
