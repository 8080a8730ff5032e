"""Async helpers: deadlines, debouncing and duplicate-call suppression."""

from .debounce import Debounced, SingleFlight, debounce_async, single_flight
from .timeout import run_with_timeout

__all__ = [
    "Debounced",
    "SingleFlight",
    "debounce_async",
    "run_with_timeout",
    "single_flight",
]
