"""Retry an async operation with backoff."""

from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

from asyncaction.foundation.config import get_settings
from asyncaction.foundation.errors import OperationAborted
from asyncaction.runtime.concurrency import CancelToken, cancellable_sleep
from asyncaction.runtime.observability import get_logger

from .backoff import Backoff, ExponentialBackoff

T = TypeVar("T")

RetryCallback = Callable[[int, Exception], object]

_log = get_logger("asyncaction.retry")


def default_backoff() -> ExponentialBackoff:
    """Backoff built from ASYNCACTION_RETRY_* settings."""
    cfg = get_settings().retry
    return ExponentialBackoff(
        base=cfg.initial_delay,
        max_delay=cfg.max_delay,
        multiplier=cfg.multiplier,
        jitter=cfg.jitter,
    )


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int | None = None,
    backoff: Backoff | None = None,
    on_retry: RetryCallback | None = None,
    retry_if: Callable[[Exception], bool] | None = None,
    token: CancelToken | None = None,
) -> T:
    """Run `operation`, retrying failures up to `max_retries` times.

    OperationAborted is never retried. A cancelled token stops retrying
    immediately, including during the backoff sleep.

    Args:
        operation: Zero-argument async callable
        max_retries: Retry attempts after the first call (default from settings)
        backoff: Delay strategy (default: exponential from settings)
        on_retry: Called with (retry number starting at 1, error) before each sleep
        retry_if: Predicate deciding whether an error is retryable
        token: Cancels the retry loop

    Raises:
        The last error once retries are exhausted
        OperationAborted: If the token is cancelled

    Example:
        >>> data = await retry_operation(lambda: client.get_json("/api/projects"), max_retries=2)
    """
    retries = get_settings().retry.max_retries if max_retries is None else max_retries
    strategy = backoff or default_backoff()

    attempt = 0
    while True:
        if token is not None:
            token.raise_if_cancelled()
        try:
            return await operation()
        except OperationAborted:
            raise
        except Exception as exc:
            if attempt >= retries or (retry_if is not None and not retry_if(exc)):
                raise
            delay = strategy.delay(attempt)
            attempt += 1
            _log.warning("retrying operation", attempt=attempt, delay=delay, error=str(exc))
            if on_retry is not None:
                on_retry(attempt, exc)
            await cancellable_sleep(delay, token)
