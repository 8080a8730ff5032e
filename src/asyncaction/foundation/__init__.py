"""Foundation layer: errors and configuration shared by the runtime."""

from .config import AsyncActionSettings, clear_settings_cache, get_settings
from .errors import (
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

__all__ = [
    "AsyncActionSettings", "clear_settings_cache", "get_settings",
    "ActionError", "ActionException", "ActionTimeoutError", "OperationAborted",
    "ErrorCode", "ErrorKind", "classify_exception",
    "Result", "Ok", "Err",
]
