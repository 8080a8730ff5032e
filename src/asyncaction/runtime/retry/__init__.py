"""Retry helpers and backoff strategies."""

from .backoff import Backoff, ConstantBackoff, ExponentialBackoff, LinearBackoff
from .retry import RetryCallback, default_backoff, retry_operation

__all__ = [
    "Backoff",
    "ConstantBackoff",
    "ExponentialBackoff",
    "LinearBackoff",
    "RetryCallback",
    "default_backoff",
    "retry_operation",
]
