"""
In-process asyncio event bus ("intercom") shared by API modules and their host.

Listeners are plain callables or coroutine functions registered against a
string event name. ``emit`` calls every listener in registration order with
the emitted arguments; coroutine listeners are scheduled as tasks on the
running loop and tracked until they finish, so ``emit`` never blocks.

Key Features:
    - Namespacing: every name passed to on/off/emit is prefixed with the
      configured namespace (e.g. ``facet:``)
    - Fire-and-forget emission with ``drain()`` to await scheduled listeners
    - ``once`` listeners and ``wait_for`` for one-shot subscriptions
    - Listener failures in tasks are logged, the task keeps the exception

Usage:
    intercom = Intercom(prefix="facet:")
    intercom.on("product:find", api.find)
    intercom.emit("product:find", {"conditions": {}})
    await intercom.drain()

Thread Safety:
    Not thread-safe. Use from a single event loop.
"""

import asyncio
import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

__all__ = ["Intercom", "Listener"]

logger = structlog.get_logger(__name__)

Listener = Callable[..., Any]


class Intercom:
    """Named-event bus with sync and async listeners."""

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix
        self._listeners: defaultdict[str, list[Listener]] = defaultdict(list)
        self._once: dict[str, set[int]] = defaultdict(set)
        self._pending: set[asyncio.Task] = set()

    def name(self, event: str) -> str:
        """Fully qualified event name, namespace included."""
        return f"{self.prefix}{event}"

    def on(self, event: str, listener: Listener) -> Listener:
        """Subscribe ``listener`` to ``event``. Returns the listener."""
        self._listeners[self.name(event)].append(listener)
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Subscribe ``listener`` for the next emission of ``event`` only."""
        self.on(event, listener)
        self._once[self.name(event)].add(id(listener))
        return listener

    def off(self, event: str, listener: Listener) -> None:
        """Remove ``listener`` from ``event``. Unknown listeners are ignored."""
        name = self.name(event)
        listeners = self._listeners.get(name, [])
        if listener in listeners:
            listeners.remove(listener)
            self._once[name].discard(id(listener))

    def remove_all_listeners(self, event: str | None = None) -> None:
        if event is None:
            self._listeners.clear()
            self._once.clear()
        else:
            self._listeners.pop(self.name(event), None)
            self._once.pop(self.name(event), None)

    def listeners(self, event: str) -> list[Listener]:
        return list(self._listeners.get(self.name(event), []))

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(self.name(event), []))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener of ``event`` with ``args``.

        Returns:
            True if at least one listener was subscribed.

        Raises:
            Exceptions raised synchronously by a plain listener propagate to
            the emitter. Coroutine listeners report failures through logging.
        """
        return self._dispatch(event, args) is not None

    async def emit_async(self, event: str, *args: Any) -> bool:
        """Emit ``event`` and wait for the listener tasks it scheduled.

        Raises:
            The first exception raised by one of those listeners.
        """
        tasks = self._dispatch(event, args)
        if tasks is None:
            return False
        if tasks:
            await asyncio.gather(*tasks)
        return True

    def _dispatch(self, event: str, args: tuple[Any, ...]) -> list[asyncio.Task] | None:
        name = self.name(event)
        listeners = list(self._listeners.get(name, []))
        if not listeners:
            logger.debug("intercom_no_listeners", event_name=name)
            return None

        once = self._once.get(name)
        tasks = []
        for listener in listeners:
            if once and id(listener) in once:
                self.off(event, listener)

            result = listener(*args)
            if inspect.isawaitable(result):
                tasks.append(self._schedule(name, result))
        return tasks

    def _schedule(self, name: str, awaitable: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._task_done(name, t))
        return task

    def _task_done(self, name: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("intercom_listener_failed", event_name=name, error=str(exc), exc_info=exc)

    @property
    def pending(self) -> int:
        """Number of listener tasks still running."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every scheduled listener task, including ones they spawn, finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def wait_for(self, event: str) -> "asyncio.Future[tuple[Any, ...]]":
        """Future resolved with the arguments of the next emission of ``event``."""
        future: asyncio.Future[tuple[Any, ...]] = asyncio.get_running_loop().create_future()

        def _resolve(*args: Any) -> None:
            if not future.done():
                future.set_result(args)

        self.once(event, _resolve)
        return future
