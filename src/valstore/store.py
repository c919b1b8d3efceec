"""Store — one JSON-like document with path-addressed reads, writes and subscriptions.

Writes apply synchronously and are visible to get() immediately. Every
write notifies the subscribers watching the written path or one of its
ancestors. Inside a batch, writes still apply at once but notification is
held back until the batch ends, then runs as a single pass in which each
subscriber entry fires at most once.

Isolation: the stored document is never handed out. Reads return copies,
and each write builds a new document instead of editing the current one.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable

from valstore._access import get_in, set_in
from valstore._delivery import Delivery, Dispatcher
from valstore._merge import clone, merge_deep
from valstore._paths import parse
from valstore.errors import ConfigurationError, ProtocolError
from valstore.subscription import Callback, Subscriber, SubscriptionRegistry

logger = logging.getLogger("valstore.store")


@dataclass
class Transaction:
    """Writes collected while a batch runs."""

    label: str | None = None
    active: bool = False
    keys: list[str] = field(default_factory=list)
    # Set when the whole document was replaced during the batch.
    everything: bool = False


def _merged(current: Any, value: Any) -> Any:
    if isinstance(current, Mapping) and isinstance(value, Mapping):
        return merge_deep(current, value)
    if isinstance(current, list) and isinstance(value, (list, tuple)):
        return current + clone(value)
    return clone(value)


class Store:
    """Observable key-path state container."""

    def __init__(self, initial: Any) -> None:
        if not isinstance(initial, (Mapping, list, tuple)):
            raise ConfigurationError(
                f"Store needs a mapping or list as initial state, e.g. Store({{}}), got {initial!r}"
            )
        self._state = clone(initial)
        self._subscriptions = SubscriptionRegistry()
        self._transaction = Transaction()
        self._dispatcher = Dispatcher()

    # --- Reads ---

    def get(self, path: str | Callable[[Any], Any] | None = None) -> Any:
        """Read the whole state, the value at a dotted path, or a selector's result.

        Composite values are returned as copies. A selector is called with a
        copy of the whole state and its result is returned unchanged.
        """
        if callable(path):
            return path(clone(self._state))
        if not path:
            return clone(self._state)
        return clone(get_in(self._state, parse(path)))

    @property
    def in_transaction(self) -> bool:
        return self._transaction.active

    @property
    def pending_count(self) -> int:
        """Deferred callbacks started but not finished. Useful for testing."""
        return self._dispatcher.pending_count

    # --- Writes ---

    def set(self, path: str, value: Any, *, merge: bool = False, silent: bool = False) -> Delivery:
        """Write value at path and notify watchers of the path and its ancestors.

        merge=True merges a mapping onto the existing mapping (lists inside
        are concatenated) or appends a list to an existing list. silent=True
        applies the write without any notification, even inside a batch.

        Returns a Delivery that resolves to the new state once every
        notified callback has finished.
        """
        segments = parse(path)
        if not segments:
            raise ProtocolError("set() needs a non-empty path; use replace() for the whole state")
        state = clone(self._state)
        value = _merged(get_in(state, segments), value) if merge else clone(value)
        if not set_in(state, segments, value):
            raise ProtocolError(f"cannot set {path!r}: an intermediate value is not a container", path=path)
        entries = self._targets(path, silent=silent)
        self._state = state
        return self._notify(path, entries, silent=silent)

    def replace(self, updater: Callable[[Any], Any], *, silent: bool = False) -> Delivery:
        """Replace the whole state with updater(current state).

        updater receives a copy and must return the new state. Every
        subscriber is notified.
        """
        state = updater(self.get())
        if state is None:
            raise ProtocolError("replace() updater returned None instead of a new state")
        entries = self._targets(None, silent=silent)
        self._state = clone(state)
        return self._notify(None, entries, silent=silent)

    def _targets(self, path: str | None, *, silent: bool) -> list[Subscriber] | None:
        """Entries a write to path notifies right away; None when silent or batched.

        Raises before the write is applied if they cannot be delivered.
        """
        if silent or self._transaction.active:
            return None
        entries = self._subscriptions.match_all() if path is None else self._subscriptions.match(path)
        self._dispatcher.check(entries)
        return entries

    def _notify(self, path: str | None, entries: list[Subscriber] | None, *, silent: bool) -> Delivery:
        # The stored document is never edited in place, so it can be handed
        # to the Delivery as is; awaiting copies it.
        if entries is not None:
            return self._dispatcher.deliver(entries, self.get, self._state)
        if not silent:
            if path is None:
                self._transaction.everything = True
            else:
                self._transaction.keys.append(path)
        return Delivery(self._state)

    def trigger(self, paths: str | Iterable[str]) -> Delivery:
        """Run one notification pass for paths without writing anything."""
        if not isinstance(paths, str):
            paths = list(paths)
        entries = self._subscriptions.match(paths)
        logger.debug("Trigger %r -> %d subscribers", paths, len(entries))
        return self._dispatcher.deliver(entries, self.get)

    # --- Batching ---

    def batch_start(self, label: str | None = None) -> None:
        """Hold back notifications until batch_end(). Batches do not nest."""
        if self._transaction.active:
            raise ProtocolError(
                f"cannot start batch {label!r}: batch {self._transaction.label!r} is already active"
            )
        self._transaction = Transaction(label=label, active=True)
        logger.debug("Batch %r started", label)

    def batch_end(self) -> Delivery:
        """Close the batch and notify once for everything written in it."""
        transaction = self._transaction
        if not transaction.active:
            raise ProtocolError("batch_end() called without an active batch")
        self._transaction = Transaction()
        logger.debug(
            "Batch %r ended: %d writes%s",
            transaction.label,
            len(transaction.keys),
            ", whole state replaced" if transaction.everything else "",
        )
        if transaction.everything:
            entries = self._subscriptions.match_all()
        elif transaction.keys:
            entries = self._subscriptions.match(transaction.keys)
        else:
            entries = []
        return self._dispatcher.deliver(entries, self.get)

    def batch(self, label: str | None, work: Callable[[], Any]) -> Awaitable[Any]:
        """Run work() as one batch.

        If work is synchronous the batch ends before batch() returns and the
        result is the Delivery of the closing pass. If work is a coroutine
        function, the batch stays open until the returned coroutine has
        awaited it, so that coroutine must be awaited.

        Usage:
            await store.batch("login", lambda: (
                store.set("user", user),
                store.set("session.id", session_id),
            ))
            # subscribers to "user" or "session" ran once, after both writes
        """
        self.batch_start(label)
        try:
            pending = work()
        except BaseException:
            self._abort_batch()
            raise
        # A Delivery from a set() inside work has nothing left to wait for.
        if inspect.isawaitable(pending) and not isinstance(pending, Delivery):
            return self._finish_batch(pending)
        return self.batch_end()

    async def _finish_batch(self, pending: Awaitable[Any]) -> None:
        try:
            await pending
        except BaseException:
            self._abort_batch()
            raise
        await self.batch_end()

    def _abort_batch(self) -> None:
        """End the batch after work failed; work's error is the one that propagates."""
        label = self._transaction.label
        try:
            self.batch_end()
        except Exception:
            logger.exception("Delivery failed while closing aborted batch %r", label)

    @contextmanager
    def transaction(self, label: str | None = None):
        """Context manager for batching writes.

        Usage:
            with store.transaction("reset"):
                store.set("cart.items", [])
                store.set("cart.total", 0)
                # subscribers fire here, once
        """
        self.batch_start(label)
        try:
            yield self
        except BaseException:
            self._abort_batch()
            raise
        self.batch_end()

    # --- Subscriptions ---

    def subscribe(
        self,
        callback: Callback,
        paths: str | Iterable[str] | None = None,
        *,
        sync: bool = False,
    ) -> str:
        """Call callback(state) when paths (or any of their descendants) are written.

        paths=None watches every write. sync=True calls back inline from the
        writing call instead of from a scheduled task. Returns an id for
        unsubscribe().
        """
        return self._subscriptions.subscribe(callback, paths, sync=sync)

    def unsubscribe(self, selector: object = None, path: str | None = None) -> bool:
        """Drop subscriptions by id, watched path, or callback. No argument drops all."""
        return self._subscriptions.unsubscribe(selector, path)

    def __repr__(self) -> str:
        state = f"batch {self._transaction.label!r}" if self._transaction.active else "idle"
        return f"Store({len(self._subscriptions)} subscribers, {state})"
