"""asyncaction - Lifecycle management for client-side async actions.

Wraps an async operation so that every invocation is tracked, deduplicated,
superseded, timed out and cancelled consistently, with results and failures
exposed as observable state instead of raised exceptions.

Quick Start:
    >>> from asyncaction import AsyncActionController, CancelToken
    >>>
    >>> async def generate_image(prompt: str, *, token: CancelToken) -> str:
    ...     ...
    >>>
    >>> generate = AsyncActionController(
    ...     generate_image,
    ...     timeout=60.0,
    ...     prevent_duplicate_calls=True,
    ...     on_error=lambda err: print(err.message),
    ... )
    >>> url = await generate.execute("sunset over a bakery")  # None on failure
    >>> generate.status, generate.result, generate.error

Several actions on one resource:
    >>> from asyncaction import AsyncActionGroup
    >>> project = AsyncActionGroup({"save": save, "delete": delete, "share": share})
    >>> project.any_running
    >>> project.cancel_all()

Utilities:
    >>> from asyncaction import retry_operation, debounce_async, single_flight, run_with_timeout
    >>> from asyncaction.io import fetch_with_timeout
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from .foundation.errors import (
    ActionError,
    ActionException,
    ActionTimeoutError,
    Err,
    ErrorCode,
    ErrorKind,
    Ok,
    OperationAborted,
    Result,
    classify_exception,
)

# Configuration
from .foundation.config import AsyncActionSettings, clear_settings_cache, get_settings

# Action lifecycle
from .runtime.action import (
    ActionOptions,
    ActionStatus,
    AsyncActionController,
    AsyncActionGroup,
    OperationState,
    async_action,
)

# Cancellation
from .runtime.concurrency import CancelReason, CancelToken, cancellable_sleep

# Retry & utilities
from .runtime.retry import ConstantBackoff, ExponentialBackoff, LinearBackoff, retry_operation
from .runtime.utils import debounce_async, run_with_timeout, single_flight

# Logging
from .runtime.observability import configure_from_settings, configure_logging, get_logger

__all__ = [
    "__version__",
    # Errors
    "ActionError", "ActionException", "ActionTimeoutError", "OperationAborted",
    "ErrorCode", "ErrorKind", "classify_exception", "Result", "Ok", "Err",
    # Configuration
    "AsyncActionSettings", "get_settings", "clear_settings_cache",
    # Action lifecycle
    "ActionOptions", "ActionStatus", "AsyncActionController", "AsyncActionGroup",
    "OperationState", "async_action",
    # Cancellation
    "CancelReason", "CancelToken", "cancellable_sleep",
    # Retry & utilities
    "ConstantBackoff", "ExponentialBackoff", "LinearBackoff", "retry_operation",
    "debounce_async", "run_with_timeout", "single_flight",
    # Logging
    "configure_logging", "configure_from_settings", "get_logger",
]
