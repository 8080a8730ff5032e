"""Delay strategies between retry attempts.

retry_operation() asks its strategy for the pause before each retry. The
argument is the number of retries already made, so the first pause is
``delay(0)``.

Example:
    >>> ExponentialBackoff().delay(0), ExponentialBackoff().delay(5)
    (1.0, 10.0)
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Backoff(Protocol):
    def delay(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt + 1``."""
        ...


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Doubling (by default) pause, capped at ``max_delay`` seconds.

    With ``jitter`` the capped value is scaled by a random factor between
    0.5 and 1.5 so that clients retrying the same outage spread out.
    """

    base: float = 1.0
    max_delay: float = 10.0
    multiplier: float = 2.0
    jitter: bool = False

    def delay(self, attempt: int) -> float:
        pause = min(self.max_delay, self.base * self.multiplier ** attempt)
        if not self.jitter:
            return pause
        return pause * random.uniform(0.5, 1.5)


@dataclass(frozen=True, slots=True)
class LinearBackoff:
    """Pause growing by ``increment`` seconds per retry, capped at ``max_delay``."""

    base: float = 1.0
    increment: float = 1.0
    max_delay: float = 30.0

    def delay(self, attempt: int) -> float:
        return min(self.max_delay, self.base + attempt * self.increment)


@dataclass(frozen=True, slots=True)
class ConstantBackoff:
    delay_seconds: float = 1.0

    def delay(self, attempt: int) -> float:
        return self.delay_seconds
