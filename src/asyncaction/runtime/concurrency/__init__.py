"""Cooperative cancellation primitives.

Cancellation is an explicit value passed into the running operation, never
ambient state, so multiple controllers never share a cancellation source.
"""

from __future__ import annotations

from .token import CancelCallback, CancelReason, CancelToken, accepts_token, cancellable_sleep

__all__ = ["CancelCallback", "CancelReason", "CancelToken", "accepts_token", "cancellable_sleep"]
