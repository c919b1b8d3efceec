"""Notification delivery — turning matched subscribers into callback runs.

Each matched subscriber becomes one asyncio task on the running loop, so
callbacks start on the next loop iteration in registration order and never
inside the set() that caused them. Subscribers registered with sync=True
are called inline instead. Outside a running loop there is nothing to defer
to, so every callback is called inline.

A trigger pass hands back a Delivery: awaiting it waits for every task of
the pass to settle, then yields the pass's value.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable

from valstore._merge import clone
from valstore.errors import ProtocolError
from valstore.subscription import Subscriber

logger = logging.getLogger("valstore.delivery")


class Delivery:
    """Completion handle for one trigger pass.

    Usage:
        state = await store.set("user.name", "Ada")
        # every subscriber notified by the write has finished
    """

    __slots__ = ("_tasks", "_value")

    def __init__(self, value: Any = None, tasks: Iterable[asyncio.Future] = ()) -> None:
        self._value = value
        self._tasks = tuple(tasks)

    @property
    def value(self) -> Any:
        """A copy of the value this delivery resolves to."""
        return clone(self._value)

    def done(self) -> bool:
        return all(task.done() for task in self._tasks)

    def __len__(self) -> int:
        """Number of deferred callbacks in this pass."""
        return len(self._tasks)

    def __await__(self):
        if self._tasks:
            # First failure propagates; the other tasks still run to completion.
            yield from asyncio.gather(*self._tasks).__await__()
        return self.value

    def __repr__(self) -> str:
        state = "done" if self.done() else "pending"
        return f"Delivery({len(self._tasks)} tasks, {state})"


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Dispatcher:
    """Runs subscriber callbacks and tracks the ones still in flight."""

    def __init__(self) -> None:
        # Strong references until done; the loop only keeps weak ones.
        self._pending: set[asyncio.Future] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def check(self, entries: list[Subscriber]) -> None:
        """Raise ProtocolError if entries cannot be delivered right now.

        Coroutine callbacks need a running loop. Called before a write so a
        delivery that is bound to fail leaves the state untouched.
        """
        if _running_loop() is not None:
            return
        for entry in entries:
            if inspect.iscoroutinefunction(entry.callback):
                raise ProtocolError(
                    f"subscriber {entry.id} is a coroutine function but no event loop is running",
                    path=entry.path,
                )

    def deliver(
        self,
        entries: list[Subscriber],
        snapshot: Callable[[], Any],
        value: Any = None,
    ) -> Delivery:
        """Start one callback per entry. snapshot() builds each callback's argument.

        Inline callbacks all run even if one fails; the first failure is
        re-raised once every entry has been handled.
        """
        loop = _running_loop()
        if loop is None and entries:
            logger.debug("No running event loop, delivering %d callbacks inline", len(entries))
        tasks: list[asyncio.Future] = []
        failures: list[BaseException] = []
        for entry in entries:
            if loop is not None and not entry.sync:
                tasks.append(self._track(loop.create_task(self._run(entry, snapshot))))
                continue
            try:
                result = entry.callback(snapshot())
                if inspect.isawaitable(result):
                    tasks.append(self._adopt(loop, result, entry))
            except Exception as exc:
                failures.append(exc)
        if failures:
            for extra in failures[1:]:
                logger.error("Subscriber callback failed", exc_info=extra)
            raise failures[0]
        return Delivery(value, tasks)

    async def _run(self, entry: Subscriber, snapshot: Callable[[], Any]) -> None:
        result = entry.callback(snapshot())
        if inspect.isawaitable(result):
            await result

    def _adopt(self, loop, awaitable: Awaitable, entry: Subscriber) -> asyncio.Future:
        if loop is None:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise ProtocolError(
                f"subscriber {entry.id} returned an awaitable but no event loop is running",
                path=entry.path,
            )
        return self._track(asyncio.ensure_future(awaitable))

    def _track(self, future: asyncio.Future) -> asyncio.Future:
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)
        return future
