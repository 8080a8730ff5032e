"""Deadline enforcement for token-aware operations."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from asyncaction.foundation.errors import ActionTimeoutError, OperationAborted
from asyncaction.runtime.concurrency import CancelReason, CancelToken, accepts_token

T = TypeVar("T")


async def run_with_timeout(
    fn: Callable[..., Awaitable[T]],
    /,
    *args: Any,
    timeout: float,
    token: CancelToken | None = None,
    on_timeout: Callable[[], object] | None = None,
    **kwargs: Any,
) -> T:
    """Run fn(*args, **kwargs) under a deadline.

    The operation gets a token linked to `token` (passed as ``token=`` when fn
    declares it) and runs in its own task, cancelled when the deadline passes
    or the parent token fires.

    Raises:
        ActionTimeoutError: Deadline exceeded
        OperationAborted: Parent token cancelled

    Example:
        >>> resp = await run_with_timeout(client.get, "/api/health", timeout=5.0)
    """
    child = CancelToken.linked(token)
    child.raise_if_cancelled()
    if accepts_token(fn):
        kwargs["token"] = child
    task: asyncio.Future[T] = asyncio.ensure_future(fn(*args, **kwargs))
    child.bind(task)

    def _expire() -> None:
        if child.cancel(CancelReason.TIMEOUT) and on_timeout is not None:
            on_timeout()

    timer = asyncio.get_running_loop().call_later(timeout, _expire)
    try:
        return await task
    except (asyncio.CancelledError, OperationAborted):
        if child.reason is CancelReason.TIMEOUT:
            raise ActionTimeoutError(f"Operation timed out after {timeout}s", timeout) from None
        if child.cancelled:
            raise OperationAborted(f"Operation aborted ({child.reason})", reason=str(child.reason)) from None
        raise
    finally:
        timer.cancel()
