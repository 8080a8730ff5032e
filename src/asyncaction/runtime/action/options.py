"""Controller configuration."""

from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat

from asyncaction.foundation.config import get_settings
from asyncaction.foundation.errors import ActionError


class ActionOptions(BaseModel):
    """Configuration shared by a controller (or every member of a group).

    Attributes:
        on_success: Called with the result once per successful, non-stale settlement
        on_error: Called with the ActionError once per failed or timed-out settlement
        prevent_duplicate_calls: Attach calls made while in flight to the running invocation
        timeout: Deadline in seconds; None disables it
        name: Action name for logs and error descriptors

    Example:
        >>> opts = ActionOptions(timeout=10.0, prevent_duplicate_calls=True)
        >>> opts.merged(timeout=5.0).timeout
        5.0
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
        json_schema_extra={"title": "Action Options"},
    )

    on_success: Callable[[Any], object] | None = Field(default=None, repr=False)
    on_error: Callable[[ActionError], object] | None = Field(default=None, repr=False)
    prevent_duplicate_calls: bool = False
    timeout: PositiveFloat | None = Field(default=None, description="Deadline in seconds")
    name: str | None = None

    @classmethod
    def from_settings(cls, **overrides: Any) -> ActionOptions:
        """Build options from ASYNCACTION_ACTION_* settings, then apply overrides."""
        cfg = get_settings().action
        return cls(**{
            "timeout": cfg.default_timeout,
            "prevent_duplicate_calls": cfg.prevent_duplicate_calls,
            **overrides,
        })

    def merged(self, **overrides: Any) -> ActionOptions:
        """Return validated copy with overrides applied."""
        if not overrides:
            return self
        values = {name: getattr(self, name) for name in type(self).model_fields}
        return type(self)(**{**values, **overrides})
