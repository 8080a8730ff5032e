"""Observable lifecycle state of a single action."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from asyncaction.foundation.errors import ActionError

T = TypeVar("T")


class ActionStatus(StrEnum):
    """Action lifecycle states. Exactly one holds at any instant."""
    IDLE = "idle"            # Nothing recorded, or explicitly cancelled/reset
    RUNNING = "running"      # An invocation is in flight
    SUCCEEDED = "succeeded"  # Last invocation returned a value
    FAILED = "failed"        # Last invocation raised or timed out
    CANCELLED = "cancelled"  # Last invocation aborted itself or was torn down


@dataclass(slots=True, frozen=True)
class OperationState(Generic[T]):
    """Immutable snapshot of a controller's state.

    The controller replaces its snapshot on every transition, so a snapshot
    handed to a listener never changes underneath it.

    Attributes:
        status: Current lifecycle state
        result: Value of the last successful invocation (SUCCEEDED only)
        error: Failure descriptor of the last failed invocation (FAILED only)
    """

    status: ActionStatus = ActionStatus.IDLE
    result: T | None = None
    error: ActionError | None = None

    def __post_init__(self) -> None:
        if self.result is not None and self.status is not ActionStatus.SUCCEEDED:
            raise ValueError(f"result is only valid when status is succeeded, not {self.status}")
        if self.error is not None and self.status is not ActionStatus.FAILED:
            raise ValueError(f"error is only valid when status is failed, not {self.status}")

    @property
    def running(self) -> bool:
        return self.status is ActionStatus.RUNNING

    loading = running

    @property
    def idle(self) -> bool:
        return self.status is ActionStatus.IDLE

    @property
    def succeeded(self) -> bool:
        return self.status is ActionStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status is ActionStatus.FAILED

    @property
    def cancelled(self) -> bool:
        return self.status is ActionStatus.CANCELLED
