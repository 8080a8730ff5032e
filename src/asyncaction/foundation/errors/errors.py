"""Standardized error handling for async actions.

Provides error codes, error kinds and the structured error descriptor that a
controller records in its state. Uses Pydantic for validation and serialization.
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from functools import lru_cache
from typing import Annotated, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)


class ErrorKind(StrEnum):
    """Failure taxonomy of a single invocation."""
    FAILURE = "failure"      # Operation raised for a domain reason
    TIMEOUT = "timeout"      # Deadline exceeded
    CANCELLED = "cancelled"  # Explicit cancel, teardown or supersession


class ErrorCode(StrEnum):
    """Machine-readable error codes for retry decisions and UI feedback."""
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    INVALID_PARAMS = "INVALID_PARAMS"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    PARSE_ERROR = "PARSE_ERROR"
    UNKNOWN = "UNKNOWN"


# Pattern -> code mapping, checked in insertion order
_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "timed out": ErrorCode.TIMEOUT,
    "abort": ErrorCode.CANCELLED,
    "cancel": ErrorCode.CANCELLED,
    "connect": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "transport": ErrorCode.NETWORK_ERROR,
    "rate limit": ErrorCode.RATE_LIMITED,
    "ratelimit": ErrorCode.RATE_LIMITED,
    "429": ErrorCode.RATE_LIMITED,
    "server error": ErrorCode.SERVER_ERROR,
    "permission": ErrorCode.PERMISSION_DENIED,
    "forbidden": ErrorCode.PERMISSION_DENIED,
    "unauthorized": ErrorCode.PERMISSION_DENIED,
    "notfound": ErrorCode.NOT_FOUND,
    "not found": ErrorCode.NOT_FOUND,
    "parse": ErrorCode.PARSE_ERROR,
    "json": ErrorCode.PARSE_ERROR,
    "decode": ErrorCode.PARSE_ERROR,
    "validation": ErrorCode.INVALID_PARAMS,
    "valueerror": ErrorCode.INVALID_PARAMS,
    "typeerror": ErrorCode.INVALID_PARAMS,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES.keys())


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    """Cached classification by exception signature."""
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code via pattern matching on name/message."""
    if isinstance(exc, ActionException):
        return exc.error.code
    if isinstance(exc, TimeoutError):
        return ErrorCode.TIMEOUT
    if isinstance(exc, OperationAborted):
        return ErrorCode.CANCELLED
    return _classify_cached(f"{type(exc).__name__} {exc}")


_RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.TIMEOUT,
    ErrorCode.NETWORK_ERROR,
    ErrorCode.RATE_LIMITED,
    ErrorCode.SERVER_ERROR,
})


class ActionError(BaseModel):
    """Structured failure descriptor recorded by a controller.

    Attributes:
        action: Name of the action that failed
        message: Human-readable error message
        kind: Failure, timeout or cancellation
        code: Machine-readable error code
        recoverable: Whether the action might succeed if executed again
        details: Optional formatted traceback
        timeout: Configured deadline in seconds (timeout kind only)
        cause: Original exception, never serialized
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        arbitrary_types_allowed=True,
        json_schema_extra={
            "title": "Action Error",
            "description": "Structured error from an async action",
            "examples": [{
                "action": "share_image",
                "message": "Operation timed out after 10.0s",
                "kind": "timeout",
                "code": "TIMEOUT",
                "recoverable": True,
            }],
        },
    )

    action: Annotated[str, Field(min_length=1, description="Name of the failing action")]
    message: Annotated[str, Field(min_length=1, description="Human-readable error message")]
    kind: ErrorKind = ErrorKind.FAILURE
    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = True
    details: str | None = Field(default=None, repr=False)
    timeout: float | None = None
    cause: BaseException | None = Field(default=None, exclude=True, repr=False)

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: object) -> object:
        """Accept exceptions and fall back to the exception type for empty messages."""
        if isinstance(v, BaseException):
            return str(v) or type(v).__name__
        return v

    @computed_field
    @property
    def is_timeout(self) -> bool:
        return self.kind is ErrorKind.TIMEOUT

    @computed_field
    @property
    def is_retryable(self) -> bool:
        """Whether this error is typically transient."""
        return self.recoverable and self.code in _RETRYABLE_CODES

    @classmethod
    def from_exception(
        cls,
        action: str,
        exc: BaseException,
        *,
        include_trace: bool = True,
    ) -> Self:
        """Create from an exception raised by the wrapped operation."""
        if isinstance(exc, ActionException):
            return exc.error.model_copy(update={"action": action, "cause": exc})
        details = None
        if include_trace and exc.__traceback__ is not None:
            details = "".join(traceback.format_exception(exc))
        return cls(
            action=action,
            message=str(exc) or type(exc).__name__,
            kind=ErrorKind.TIMEOUT if isinstance(exc, TimeoutError) else ErrorKind.FAILURE,
            code=classify_exception(exc),
            details=details,
            timeout=exc.timeout if isinstance(exc, ActionTimeoutError) else None,
            cause=exc,
        )

    @classmethod
    def timed_out(cls, action: str, timeout: float) -> Self:
        return cls(
            action=action,
            message=f"Operation timed out after {timeout}s",
            kind=ErrorKind.TIMEOUT,
            code=ErrorCode.TIMEOUT,
            timeout=timeout,
            cause=ActionTimeoutError(f"Operation timed out after {timeout}s", timeout),
        )

    @classmethod
    def cancelled(cls, action: str, reason: str = "cancelled") -> Self:
        return cls(
            action=action,
            message=f"Operation {reason}",
            kind=ErrorKind.CANCELLED,
            code=ErrorCode.CANCELLED,
            recoverable=False,
        )

    def render(self) -> str:
        """Format for display in logs or UI toasts."""
        head = f"{self.action}: {self.message} [{self.code}]"
        return f"{head}\n{self.details}" if self.details else head

    def __str__(self) -> str:
        return f"{self.action}: {self.message} [{self.code}]"


class ActionException(Exception):
    """Exception wrapping an ActionError for raising."""

    __slots__ = ("error",)

    def __init__(self, error: ActionError) -> None:
        self.error = error
        super().__init__(error.message)

    @classmethod
    def create(cls, action: str, message: str, code: ErrorCode = ErrorCode.UNKNOWN, *, recoverable: bool = True) -> Self:
        return cls(ActionError(action=action, message=message, code=code, recoverable=recoverable))


class ActionTimeoutError(TimeoutError):
    """Deadline exceeded. Carries the configured timeout in seconds."""

    def __init__(self, message: str, timeout: float) -> None:
        super().__init__(message)
        self.timeout = timeout


class OperationAborted(Exception):
    """Raised by cooperative operations when their cancel token fires.

    Distinguishes an aborted operation from a natural failure so callers
    can classify the outcome.
    """

    def __init__(self, message: str = "Operation aborted", reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason
