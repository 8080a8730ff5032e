"""Debouncing and duplicate-call suppression for async callables.

- debounce_async: Only the last call of a burst runs, after a quiet period
- single_flight: Concurrent calls share the in-flight call

Example:
    >>> search = debounce_async(fetch_suggestions, delay=0.25)
    >>> # Typing "cat" quickly: only the call for "cat" reaches the API,
    >>> # callers for "c" and "ca" get OperationAborted.
    >>> results = await search("cat")

    >>> refresh = single_flight(reload_projects)
    >>> a, b = await asyncio.gather(refresh(), refresh())  # one reload
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Awaitable, Callable, Generic, ParamSpec, TypeVar

from asyncaction.foundation.config import get_settings
from asyncaction.foundation.errors import OperationAborted
from asyncaction.runtime.observability import get_logger

T = TypeVar("T")
P = ParamSpec("P")

_log = get_logger("asyncaction.utils")


def _chain(target: asyncio.Future[T], source: asyncio.Future[T]) -> None:
    """Copy the outcome of source into target."""
    if source.cancelled():
        target.cancel()
        return
    exc = source.exception()
    if target.done():
        return
    if exc is not None:
        target.set_exception(exc)
    else:
        target.set_result(source.result())


class Debounced(Generic[P, T]):
    """Async callable that delays execution until calls stop arriving.

    Each call restarts the quiet period. A call that is replaced before its
    delay elapses fails with OperationAborted; a call that has already
    started runs to completion.
    """

    def __init__(self, fn: Callable[P, Awaitable[T]], delay: float) -> None:
        self._fn = fn
        self._delay = delay
        self._pending: asyncio.Future[T] | None = None
        self._timer: asyncio.TimerHandle | None = None
        functools.update_wrapper(self, fn)

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        """Whether a call is waiting for its quiet period to end."""
        return self._pending is not None and not self._pending.done()

    async def __call__(self, *args: P.args, **kwargs: P.kwargs) -> T:
        self.cancel()
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[T] = loop.create_future()
        self._pending = waiter
        self._timer = loop.call_later(self._delay, self._fire, waiter, args, kwargs)
        return await waiter

    def cancel(self) -> None:
        """Abort the pending call, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is not None and not self._pending.done():
            self._pending.set_exception(OperationAborted("Debounced call superseded", reason="superseded"))
        self._pending = None

    def _fire(self, waiter: asyncio.Future[T], args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        self._timer = None
        if self._pending is waiter:
            self._pending = None
        if waiter.done():
            return
        task = asyncio.ensure_future(self._fn(*args, **kwargs))
        task.add_done_callback(functools.partial(_chain, waiter))


def debounce_async(fn: Callable[P, Awaitable[T]], delay: float | None = None) -> Debounced[P, T]:
    """Debounce an async callable (delay defaults to ASYNCACTION_DEBOUNCE_DELAY)."""
    return Debounced(fn, get_settings().debounce.delay if delay is None else delay)


class SingleFlight(Generic[P, T]):
    """Async callable whose concurrent calls share one in-flight call.

    Arguments of calls that join an in-flight call are ignored. Each caller
    awaits through a shield, so one caller giving up does not cancel the
    shared call.
    """

    def __init__(self, fn: Callable[P, Awaitable[T]]) -> None:
        self._fn = fn
        self._task: asyncio.Future[T] | None = None
        functools.update_wrapper(self, fn)

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def __call__(self, *args: P.args, **kwargs: P.kwargs) -> T:
        if self._task is not None and not self._task.done():
            _log.debug("duplicate call prevented", function=getattr(self._fn, "__name__", repr(self._fn)))
        else:
            self._task = asyncio.ensure_future(self._fn(*args, **kwargs))
            self._task.add_done_callback(self._clear)
        return await asyncio.shield(self._task)

    def _clear(self, task: asyncio.Future[T]) -> None:
        if self._task is task:
            self._task = None


def single_flight(fn: Callable[P, Awaitable[T]]) -> SingleFlight[P, T]:
    """Share one in-flight call among concurrent callers."""
    return SingleFlight(fn)
