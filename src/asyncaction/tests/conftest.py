"""Shared fixtures for asyncaction tests."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest

from asyncaction.foundation.config import clear_settings_cache
from asyncaction.runtime.observability import LogEntry, NoOpRenderer, set_renderer


@dataclass(slots=True)
class CaptureRenderer:
    """Renderer that keeps entries in memory."""

    entries: list[LogEntry] = field(default_factory=list)

    def render(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def events(self, level: str | None = None) -> list[str]:
        return [e.event for e in self.entries if level is None or e.level == level]


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from the host environment and the settings cache."""
    for key in list(os.environ):
        if key.startswith("ASYNCACTION_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    set_renderer(NoOpRenderer(), "INFO")
    yield
    clear_settings_cache()
    set_renderer(None, "INFO")


@pytest.fixture
def logs() -> CaptureRenderer:
    """In-memory log capture. Install it inside the test body with set_renderer(logs, "DEBUG")."""
    return CaptureRenderer()


class Gate:
    """Async operation whose completion the test controls."""

    def __init__(self) -> None:
        self.calls = 0
        self.tokens: list[object] = []
        self._events: list[asyncio.Event] = []
        self._outcomes: list[object] = []

    async def __call__(self, value: object = None, *, token: object = None) -> object:
        self.calls += 1
        self.tokens.append(token)
        event = asyncio.Event()
        self._events.append(event)
        self._outcomes.append(None)
        index = len(self._events) - 1
        await event.wait()
        outcome = self._outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return value if outcome is None else outcome

    def release(self, index: int = -1, outcome: object = None) -> None:
        self._outcomes[index] = outcome
        self._events[index].set()


@pytest.fixture
def gate() -> Gate:
    return Gate()
