"""Async action lifecycle: controller, group, state and options."""

from __future__ import annotations

from .controller import AsyncActionController, InFlightHandle, StateListener, async_action
from .group import AsyncActionGroup, GroupListener
from .options import ActionOptions
from .state import ActionStatus, OperationState

__all__ = [
    "ActionOptions",
    "ActionStatus",
    "AsyncActionController",
    "AsyncActionGroup",
    "GroupListener",
    "InFlightHandle",
    "OperationState",
    "StateListener",
    "async_action",
]
