"""Unified error handling for asyncaction.

- ErrorKind/ErrorCode: Failure taxonomy and machine-readable codes
- ActionError/ActionException: Structured error descriptor and its exception
- ActionTimeoutError/OperationAborted: Deadline and abort signals
- Result/Ok/Err: Tagged union for callers that want an explicit error channel
"""

from .errors import (
    ActionError,
    ActionException,
    ActionTimeoutError,
    ErrorCode,
    ErrorKind,
    OperationAborted,
    classify_exception,
)
from .result import Err, Ok, Result

__all__ = [
    "ActionError", "ActionException", "ActionTimeoutError", "OperationAborted",
    "ErrorCode", "ErrorKind", "classify_exception",
    "Result", "Ok", "Err",
]
