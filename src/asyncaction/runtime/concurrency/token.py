"""Cooperative cancellation tokens.

A CancelToken is an explicit value handed to a running operation. The
operation observes it (polling, awaiting, or through a bound task) and
aborts its own work. Tokens are never shared between controllers; each
invocation gets a fresh one.

Example:
    >>> async def upload(path: str, *, token: CancelToken) -> str:
    ...     for chunk in read_chunks(path):
    ...         await token.checkpoint()  # raises OperationAborted once cancelled
    ...         await send(chunk)
    ...     return "done"
    >>>
    >>> token = CancelToken()
    >>> task = asyncio.create_task(upload("a.png", token=token))
    >>> token.cancel(CancelReason.EXPLICIT)
"""

from __future__ import annotations

import asyncio
import inspect
from enum import StrEnum
from typing import Callable

from asyncaction.foundation.errors import OperationAborted


class CancelReason(StrEnum):
    """Why a token was cancelled."""
    EXPLICIT = "explicit"      # cancel() called by the owner
    SUPERSEDED = "superseded"  # a newer invocation replaced this one
    TIMEOUT = "timeout"        # deadline exceeded
    TEARDOWN = "teardown"      # owning scope closed
    LINKED = "linked"          # parent token cancelled without a reason


CancelCallback = Callable[["CancelToken"], object]


class CancelToken:
    """One-shot cancellation signal with callbacks.

    Cancelling is synchronous: every registered callback runs before
    cancel() returns. Later registrations on a cancelled token fire
    immediately.
    """

    __slots__ = ("_reason", "_callbacks")

    def __init__(self) -> None:
        self._reason: CancelReason | None = None
        self._callbacks: list[CancelCallback] = []

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> CancelReason | None:
        return self._reason

    def cancel(self, reason: CancelReason | str = CancelReason.EXPLICIT) -> bool:
        """Signal cancellation.

        Returns:
            True if this call cancelled the token, False if it was already cancelled
        """
        if self._reason is not None:
            return False
        self._reason = CancelReason(reason)
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(self)
        return True

    def on_cancel(self, callback: CancelCallback) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        if self._reason is not None:
            callback(self)
            return _noop
        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
        return remove

    def bind(self, task: asyncio.Future[object]) -> Callable[[], None]:
        """Cancel `task` when this token is cancelled."""
        return self.on_cancel(lambda tok: task.cancel(f"token cancelled: {tok.reason}"))

    def raise_if_cancelled(self) -> None:
        """Raise OperationAborted if the token has been cancelled."""
        if self._reason is not None:
            raise OperationAborted(f"Operation aborted ({self._reason})", reason=self._reason.value)

    async def checkpoint(self) -> None:
        """Yield to the event loop, then raise if cancelled."""
        await asyncio.sleep(0)
        self.raise_if_cancelled()

    async def wait(self) -> CancelReason:
        """Suspend until the token is cancelled and return the reason."""
        if self._reason is not None:
            return self._reason
        waiter: asyncio.Future[CancelReason] = asyncio.get_running_loop().create_future()

        def _wake(tok: CancelToken) -> None:
            if not waiter.done():
                waiter.set_result(tok.reason)  # type: ignore[arg-type]

        remove = self.on_cancel(_wake)
        try:
            return await waiter
        finally:
            remove()

    @classmethod
    def linked(cls, *parents: CancelToken | None) -> CancelToken:
        """Create a token cancelled as soon as any parent is.

        The child inherits the parent's reason. None parents are ignored.
        """
        child = cls()
        for parent in parents:
            if parent is None:
                continue
            parent.on_cancel(lambda p: child.cancel(p.reason or CancelReason.LINKED))
            if child.cancelled:
                break
        return child

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled}, reason={self._reason!s})"


def _noop() -> None:
    return None


async def cancellable_sleep(delay: float, token: CancelToken | None = None) -> None:
    """Sleep for `delay` seconds, waking early and raising OperationAborted if token fires."""
    if token is None:
        await asyncio.sleep(delay)
        return
    token.raise_if_cancelled()
    loop = asyncio.get_running_loop()
    wake: asyncio.Future[None] = loop.create_future()

    def _wake(*_: object) -> None:
        if not wake.done():
            wake.set_result(None)

    timer = loop.call_later(delay, _wake)
    remove = token.on_cancel(_wake)
    try:
        await wake
    finally:
        timer.cancel()
        remove()
    token.raise_if_cancelled()


def accepts_token(fn: Callable[..., object]) -> bool:
    """Whether fn declares a keyword-capable ``token`` parameter."""
    try:
        params = inspect.signature(fn).parameters
    except (TypeError, ValueError):
        return False
    param = params.get("token")
    return param is not None and param.kind in (
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
        inspect.Parameter.KEYWORD_ONLY,
    )
