"""Tests for settings, ActionOptions and OperationState."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from asyncaction import (
    ActionError,
    ActionOptions,
    ActionStatus,
    AsyncActionSettings,
    OperationState,
    clear_settings_cache,
    get_settings,
)


class TestSettings:
    def test_defaults(self) -> None:
        settings = AsyncActionSettings()
        assert settings.action.default_timeout is None
        assert settings.action.prevent_duplicate_calls is False
        assert settings.logging.level == "INFO"
        assert settings.retry.max_retries == 3
        assert settings.http.timeout == 30.0
        assert settings.debounce.delay == 0.3

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ASYNCACTION_ACTION_DEFAULT_TIMEOUT", "12.5")
        monkeypatch.setenv("ASYNCACTION_LOG_LEVEL", "debug")
        monkeypatch.setenv("ASYNCACTION_HTTP_RETRIES", "2")

        settings = AsyncActionSettings()
        assert settings.action.default_timeout == 12.5
        assert settings.logging.level == "DEBUG"
        assert settings.http.retries == 2

    def test_invalid_values_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ASYNCACTION_RETRY_MAX_RETRIES", "-1")
        with pytest.raises(ValidationError):
            AsyncActionSettings()

    def test_cached_until_cleared(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings()
        assert get_settings() is first

        monkeypatch.setenv("ASYNCACTION_HTTP_TIMEOUT", "5")
        assert get_settings().http.timeout == 30.0
        clear_settings_cache()
        assert get_settings().http.timeout == 5.0


class TestActionOptions:
    def test_defaults(self) -> None:
        options = ActionOptions()
        assert options.timeout is None
        assert not options.prevent_duplicate_calls
        assert options.on_success is None and options.on_error is None

    def test_rejects_unknown_and_invalid_fields(self) -> None:
        with pytest.raises(ValidationError):
            ActionOptions(retries=3)  # type: ignore[call-arg]
        with pytest.raises(ValidationError):
            ActionOptions(timeout=0)

    def test_merged_returns_validated_copy(self) -> None:
        base = ActionOptions(timeout=10.0)
        assert base.merged() is base
        merged = base.merged(prevent_duplicate_calls=True)
        assert merged.timeout == 10.0 and merged.prevent_duplicate_calls
        assert not base.prevent_duplicate_calls
        with pytest.raises(ValidationError):
            base.merged(timeout=-1.0)

    def test_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ASYNCACTION_ACTION_DEFAULT_TIMEOUT", "8")
        monkeypatch.setenv("ASYNCACTION_ACTION_PREVENT_DUPLICATE_CALLS", "true")

        options = ActionOptions.from_settings(name="share_image")
        assert options.timeout == 8.0
        assert options.prevent_duplicate_calls
        assert options.name == "share_image"
        assert ActionOptions.from_settings(timeout=None).timeout is None


class TestOperationState:
    def test_idle_by_default(self) -> None:
        state: OperationState[str] = OperationState()
        assert state.idle and not state.running and not state.loading
        assert state.result is None and state.error is None

    def test_result_only_when_succeeded(self) -> None:
        assert OperationState(ActionStatus.SUCCEEDED, result="url").succeeded
        with pytest.raises(ValueError):
            OperationState(ActionStatus.RUNNING, result="url")

    def test_error_only_when_failed(self) -> None:
        error = ActionError(action="save", message="boom")
        assert OperationState(ActionStatus.FAILED, error=error).failed
        with pytest.raises(ValueError):
            OperationState(ActionStatus.SUCCEEDED, error=error)

    def test_status_values(self) -> None:
        assert [s.value for s in ActionStatus] == ["idle", "running", "succeeded", "failed", "cancelled"]
