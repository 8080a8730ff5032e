"""Structured logging for action lifecycles.

Every controller, retry loop and HTTP helper logs through a BoundLogger that
carries the action name (and, per call, the invocation id). Output goes to a
renderer chosen per context:

- ConsoleRenderer: one readable line per event, action-prefixed
- JsonRenderer: JSON lines for log shippers
- NoOpRenderer: discard everything (tests, embedded use)

Quick Start:
    >>> from asyncaction.runtime.observability import get_logger, configure_logging
    >>>
    >>> configure_logging(format="console", level="DEBUG")
    >>> log = get_logger("ui.share").bind_action("share_image")
    >>> log.debug("duplicate call prevented", invocation=3)
    # => 10:30:45.120 debug   share_image#3 duplicate call prevented logger="ui.share"

Renderer and level live in ContextVars, so a task inherits the configuration
that was active where it was created.
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from contextvars import ContextVar, Token
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, TextIO, runtime_checkable

import orjson

if TYPE_CHECKING:
    from types import TracebackType

JsonDict = dict[str, Any]

_scope: ContextVar[JsonDict] = ContextVar("asyncaction_log_scope", default={})
_active_renderer: ContextVar[LogRenderer | None] = ContextVar("asyncaction_log_renderer", default=None)
_threshold: ContextVar[int] = ContextVar("asyncaction_log_level", default=logging.INFO)


# ─────────────────────────────────────────────────────────────────────────────
# Entries & Renderers
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class LogEntry:
    """One structured event. `level` is the lowercase stdlib level name."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def clock(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]

    def as_record(self) -> JsonDict:
        return {
            "timestamp": datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat(),
            "level": self.level,
            "event": self.event,
            **self.context,
        }


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


@dataclass(frozen=True, slots=True)
class _Palette:
    reset: str = ""
    dim: str = ""
    bold: str = ""
    key: str = ""
    text: str = ""
    number: str = ""
    levels: dict[str, str] = field(default_factory=dict)


_ANSI = _Palette(
    reset="\033[0m", dim="\033[2m", bold="\033[1m", key="\033[36m", text="\033[33m", number="\033[34m",
    levels={"debug": "\033[2m", "info": "\033[32m", "warning": "\033[33m", "error": "\033[31m", "critical": "\033[1;31m"},
)
_PLAIN = _Palette()

# Context keys pulled into the line prefix instead of the key=value tail
_PREFIX_KEYS = frozenset({"action", "invocation", "exc_info"})


@dataclass(slots=True)
class ConsoleRenderer:
    """Readable single-line output: ``time level action#invocation event key=value ...``."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None: colour only when output is a tty
    show_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            isatty = getattr(self.output, "isatty", None)
            self.colors = bool(isatty and isatty())

    def render(self, entry: LogEntry) -> None:
        p = _ANSI if self.colors else _PLAIN
        ctx = entry.context
        head = [f"{p.dim}{entry.clock}{p.reset}"] if self.show_timestamp else []
        head.append(f"{p.levels.get(entry.level, '')}{entry.level:<7}{p.reset}")
        if (action := ctx.get("action")) is not None:
            suffix = f"#{ctx['invocation']}" if "invocation" in ctx else ""
            head.append(f"{p.bold}{action}{suffix}{p.reset}")
        head.append(entry.event)
        tail = [f"{p.key}{k}{p.reset}={_show(v, p)}" for k, v in sorted(ctx.items()) if k not in _PREFIX_KEYS]
        print(" ".join(head + tail), file=self.output)
        if "exc_info" in ctx:
            print(ctx["exc_info"].rstrip(), file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """One JSON object per line; non-JSON values are stringified."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        line = orjson.dumps(entry.as_record(), option=orjson.OPT_NON_STR_KEYS, default=str)
        print(line.decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    def render(self, entry: LogEntry) -> None:
        return None


def _show(v: object, p: _Palette) -> str:
    match v:
        case bool(): return f"{p.number}{'true' if v else 'false'}{p.reset}"
        case int() | float(): return f"{p.number}{v}{p.reset}"
        case str(): return f'{p.text}"{v}"{p.reset}'
        case None: return f"{p.dim}null{p.reset}"
        case _: return repr(v)


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class BoundLogger:
    """Logger with immutable bound context; bind() and friends return new loggers.

    A logger built with an explicit renderer or level ignores the context-wide
    configuration for that setting.
    """

    context: JsonDict = field(default_factory=dict)
    renderer: LogRenderer | None = None
    level: int | None = None

    def bind(self, **kw: Any) -> BoundLogger:
        return replace(self, context={**self.context, **kw})

    def bind_action(self, name: str, **kw: Any) -> BoundLogger:
        """Attach the action name, rendered as the line prefix on the console."""
        return self.bind(action=name, **kw)

    def unbind(self, *keys: str) -> BoundLogger:
        return replace(self, context={k: v for k, v in self.context.items() if k not in keys})

    def is_enabled_for(self, level: int) -> bool:
        return level >= (_threshold.get() if self.level is None else self.level)

    def debug(self, event: str, **kw: Any) -> None:
        self._emit(logging.DEBUG, event, kw)

    def info(self, event: str, **kw: Any) -> None:
        self._emit(logging.INFO, event, kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._emit(logging.WARNING, event, kw)

    def error(self, event: str, **kw: Any) -> None:
        self._emit(logging.ERROR, event, kw)

    def exception(self, event: str, exc: BaseException | None = None, **kw: Any) -> None:
        """Log at error level with a formatted traceback of exc (or the exception being handled)."""
        kw["exc_info"] = "".join(traceback.format_exception(exc)) if exc is not None else traceback.format_exc()
        self._emit(logging.ERROR, event, kw)

    def _emit(self, level: int, event: str, kw: JsonDict) -> None:
        if not self.is_enabled_for(level):
            return
        entry = LogEntry(time.time(), logging.getLevelName(level).lower(), event, {**_scope.get(), **self.context, **kw})
        (self.renderer or _current_renderer()).render(entry)


def get_logger(name: str | None = None, **context: Any) -> BoundLogger:
    """Logger whose context holds `logger=name` (when given) plus `context`."""
    if name:
        context["logger"] = name
    return BoundLogger(context=context)


class log_context:
    """Add key-value pairs to every entry logged inside the ``with`` block (and tasks it spawns)."""

    __slots__ = ("_extra", "_reset")

    def __init__(self, **kw: Any) -> None:
        self._extra: JsonDict = kw
        self._reset: Token[JsonDict] | None = None

    def __enter__(self) -> log_context:
        self._reset = _scope.set({**_scope.get(), **self._extra})
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        if self._reset is not None:
            _scope.reset(self._reset)
            self._reset = None


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────


def _to_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _current_renderer() -> LogRenderer:
    renderer = _active_renderer.get()
    if renderer is None:
        renderer = ConsoleRenderer()
        _active_renderer.set(renderer)
    return renderer


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Install a renderer for the current context.

    Args:
        format: "console", "json" or "none"
        level: Minimum level name
        output: Stream to write to (stderr for console, stdout for json)
        colors: Force ANSI colours on or off (console only)
    """
    renderer: LogRenderer
    if format == "console":
        renderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
    elif format == "json":
        renderer = JsonRenderer(output=output or sys.stdout)
    elif format == "none":
        renderer = NoOpRenderer()
    else:
        raise ValueError(f"Unknown format: {format!r}. Use 'console', 'json' or 'none'")
    set_renderer(renderer, level)
    return renderer


def configure_from_settings(*, output: TextIO | None = None) -> LogRenderer:
    """configure_logging() driven by ASYNCACTION_LOG_* settings."""
    from asyncaction.foundation.config import get_settings
    cfg = get_settings().logging
    return configure_logging(cfg.format, cfg.level, output=output, colors=cfg.colors)


def set_renderer(renderer: LogRenderer | None, level: str | None = None) -> None:
    """Install a renderer (None: lazily create a console renderer) and optionally a level."""
    _active_renderer.set(renderer)
    if level is not None:
        _threshold.set(_to_level(level))
