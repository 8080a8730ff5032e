"""Runtime layer: action lifecycle, cancellation, retries, utilities and logging."""

from .action import (
    ActionOptions,
    ActionStatus,
    AsyncActionController,
    AsyncActionGroup,
    OperationState,
    async_action,
)
from .concurrency import CancelReason, CancelToken, cancellable_sleep
from .retry import ConstantBackoff, ExponentialBackoff, LinearBackoff, retry_operation
from .utils import debounce_async, run_with_timeout, single_flight

__all__ = [
    "ActionOptions", "ActionStatus", "AsyncActionController", "AsyncActionGroup",
    "OperationState", "async_action",
    "CancelReason", "CancelToken", "cancellable_sleep",
    "ConstantBackoff", "ExponentialBackoff", "LinearBackoff", "retry_operation",
    "debounce_async", "run_with_timeout", "single_flight",
]
