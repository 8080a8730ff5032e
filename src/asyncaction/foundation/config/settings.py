"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated defaults for controllers and the async
utilities. Supports .env files and nested configuration.

Example:
    >>> from asyncaction.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.http.timeout
    30.0
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # ASYNCACTION_ACTION_DEFAULT_TIMEOUT=10
    # ASYNCACTION_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import (
    Field,
    NonNegativeFloat,
    PositiveFloat,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class ActionSettings(BaseSettings):
    """Controller defaults applied by ActionOptions.from_settings()."""

    model_config = SettingsConfigDict(
        env_prefix="ASYNCACTION_ACTION_",
        extra="ignore",
    )

    default_timeout: PositiveFloat | None = Field(default=None, description="Default deadline in seconds")
    prevent_duplicate_calls: bool = False


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ASYNCACTION_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"
    colors: bool | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class RetrySettings(BaseSettings):
    """Defaults for retry_operation()."""

    model_config = SettingsConfigDict(
        env_prefix="ASYNCACTION_RETRY_",
        extra="ignore",
    )

    max_retries: Annotated[int, Field(ge=0, le=10)] = 3
    initial_delay: PositiveFloat = Field(default=1.0, description="First retry delay in seconds")
    max_delay: PositiveFloat = Field(default=10.0, description="Maximum delay in seconds")
    multiplier: PositiveFloat = 2.0
    jitter: bool = False


class HttpSettings(BaseSettings):
    """Defaults for fetch_with_timeout()."""

    model_config = SettingsConfigDict(
        env_prefix="ASYNCACTION_HTTP_",
        extra="ignore",
    )

    timeout: PositiveFloat = Field(default=30.0, description="Per-attempt request timeout")
    retries: Annotated[int, Field(ge=0, le=10)] = 0
    retry_delay: NonNegativeFloat = Field(default=1.0, description="Base delay between retries")


class DebounceSettings(BaseSettings):
    """Defaults for debounce_async()."""

    model_config = SettingsConfigDict(
        env_prefix="ASYNCACTION_DEBOUNCE_",
        extra="ignore",
    )

    delay: NonNegativeFloat = 0.3


class AsyncActionSettings(BaseSettings):
    """Root settings.

    Loads configuration from environment variables with ASYNCACTION_ prefix.

    Example environment variables:
        ASYNCACTION_ACTION_DEFAULT_TIMEOUT=15
        ASYNCACTION_LOG_FORMAT=json
        ASYNCACTION_HTTP_RETRIES=2
    """

    model_config = SettingsConfigDict(
        env_prefix="ASYNCACTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    action: ActionSettings = Field(default_factory=ActionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    debounce: DebounceSettings = Field(default_factory=DebounceSettings)


@lru_cache(maxsize=1)
def get_settings() -> AsyncActionSettings:
    """Get the global settings instance (cached)."""
    return AsyncActionSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() reloads the environment."""
    get_settings.cache_clear()
