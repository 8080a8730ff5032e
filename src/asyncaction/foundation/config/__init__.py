"""Configuration management using pydantic-settings."""

from .settings import (
    ActionSettings,
    AsyncActionSettings,
    DebounceSettings,
    HttpSettings,
    LoggingSettings,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "ActionSettings",
    "AsyncActionSettings",
    "DebounceSettings",
    "HttpSettings",
    "LoggingSettings",
    "RetrySettings",
    "clear_settings_cache",
    "get_settings",
]
