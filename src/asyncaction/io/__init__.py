"""I/O collaborators that respect cancellation tokens."""

from .http import fetch_with_timeout

__all__ = ["fetch_with_timeout"]
