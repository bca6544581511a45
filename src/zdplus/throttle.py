"""Bounded-concurrency throttle for async calls.

A remote Chrome DevTools endpoint only copes with so many commands in flight.
A call such as ``driver.find_all(selector, fn)`` fans out one remote call per
matched element and can easily exceed that, which shows up as spurious
"connection reset" errors.

``serialize_calls`` wraps any coroutine function so that at most
``max_pending_calls`` invocations run at once. Excess calls wait in a FIFO
queue and are admitted in arrival order as running calls settle.

Usage::

    from zdplus.throttle import serialize_calls

    tab.send = serialize_calls(tab.send, max_pending_calls=5)

    class Page:
        @throttled(2)
        async def fetch(self, url): ...
"""

from __future__ import annotations

import asyncio
import functools
import logging
import types
from collections import deque
from typing import Any, Awaitable, Callable

from zdplus.exceptions import InvalidCapacityError

logger = logging.getLogger(__name__)


class CallThrottle:
    """Callable wrapper admitting at most *max_pending_calls* concurrent invocations.

    The queue and running count are private to each instance, so two throttles
    never share capacity. There is no timeout and no queue bound: an operation
    that never settles holds its slot forever, and callers queued behind it
    wait with it.

    A call joins the queue when its coroutine first runs, not when
    ``wrapped(...)`` is evaluated. Arrival order is therefore the order in
    which the returned coroutines are first awaited or scheduled as tasks.
    Coroutines built up front and awaited out of order are admitted in the
    order they are awaited.

    Used as a class attribute the throttle binds like a plain function, and
    every instance of that class shares the one capacity.

    Args:
        method: The coroutine function to wrap.
        max_pending_calls: Capacity, an integer >= 1.

    Raises:
        InvalidCapacityError: If *max_pending_calls* is not an integer >= 1.
    """

    def __init__(self, method: Callable[..., Awaitable[Any]], max_pending_calls: int) -> None:
        if (
            isinstance(max_pending_calls, bool)
            or not isinstance(max_pending_calls, int)
            or max_pending_calls < 1
        ):
            raise InvalidCapacityError(max_pending_calls)

        functools.update_wrapper(self, method, updated=())
        self._method = method
        self._max_pending_calls = max_pending_calls
        # Calls that haven't started yet. Resolving a future admits its call.
        self._queue: deque[asyncio.Future[None]] = deque()
        # Admitted calls whose underlying operation has not settled.
        self._running = 0

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return types.MethodType(self, instance)

    def __repr__(self) -> str:
        name = getattr(self._method, "__qualname__", repr(self._method))
        return f"<CallThrottle {name} max_pending_calls={self._max_pending_calls}>"

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        ready: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._queue.append(ready)
        # With spare capacity this resolves ready right away, and the await
        # below completes without suspending.
        self._check_queue()
        if not ready.done():
            logger.debug(
                "%r: %d calls running, queued (%d waiting)",
                self,
                self._running,
                len(self._queue),
            )

        try:
            await ready
        except asyncio.CancelledError:
            # Admitted, but cancelled before we got to run: give the slot back.
            if ready.done() and not ready.cancelled():
                self._release()
            raise

        try:
            return await self._method(*args, **kwargs)
        finally:
            self._release()

    async def call_with(self, receiver: Any, *args: Any, **kwargs: Any) -> Any:
        """Invoke the wrapped method with an explicit *receiver* as its first argument."""
        return await self(receiver, *args, **kwargs)

    def _release(self) -> None:
        self._running -= 1
        self._check_queue()

    def _check_queue(self) -> None:
        while self._running < self._max_pending_calls and self._queue:
            ready = self._queue.popleft()
            if ready.done():
                # Waiter was cancelled while queued.
                continue
            self._running += 1
            ready.set_result(None)


def serialize_calls(method: Callable[..., Awaitable[Any]], max_pending_calls: int) -> CallThrottle:
    """Wrap *method* so at most *max_pending_calls* invocations are outstanding at once."""
    return CallThrottle(method, max_pending_calls)


def throttled(max_pending_calls: int) -> Callable[[Callable[..., Awaitable[Any]]], CallThrottle]:
    """Decorator form of :func:`serialize_calls`."""

    def decorator(method: Callable[..., Awaitable[Any]]) -> CallThrottle:
        return CallThrottle(method, max_pending_calls)

    return decorator
