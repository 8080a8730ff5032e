"""Lifecycle controller for one named asynchronous action.

AsyncActionController wraps an async operation and owns every invocation of
it: in-flight state, supersession, deduplication, deadlines, cancellation and
result/error capture. It is the Python counterpart of a UI "async action"
hook: a button handler calls execute(), and the view renders from the
controller's state.

Key guarantees:
    - Single-flight: only the most recently started invocation may change
      observable state ("last execute() wins", whatever the completion order)
    - No-throw: futures returned by execute() resolve to the value or None and
      never raise the operation's exception; failures live in state
    - Cooperative cancellation: each invocation receives its own CancelToken;
      cancelling it also cancels the task running the operation

Example:
    >>> async def share_image(image_id: str, *, token: CancelToken) -> dict:
    ...     return await api.post(f"/api/share/{image_id}", token=token)
    >>>
    >>> share = AsyncActionController(
    ...     share_image,
    ...     on_success=lambda data: toast("Shared!"),
    ...     on_error=lambda err: toast(err.message),
    ...     prevent_duplicate_calls=True,
    ...     timeout=10.0,
    ... )
    >>> data = await share.execute("img-123")   # None on failure
    >>> share.running, share.error
"""

from __future__ import annotations

import asyncio
import functools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, ParamSpec, TypeVar, overload

from asyncaction.foundation.errors import ActionError, Err, Ok, OperationAborted, Result
from asyncaction.runtime.concurrency import CancelReason, CancelToken, accepts_token
from asyncaction.runtime.observability import get_logger

from .options import ActionOptions
from .state import ActionStatus, OperationState

if TYPE_CHECKING:
    from types import TracebackType

T = TypeVar("T")
P = ParamSpec("P")

StateListener = Callable[[OperationState[Any]], object]


@dataclass(slots=True, eq=False)
class InFlightHandle(Generic[T]):
    """Bookkeeping for one live invocation.

    Attributes:
        invocation_id: Controller-local sequence number (stale-completion guard)
        token: Cancellation token handed to the operation
        future: Resolved exactly once with the caller-visible value
        deadline: Loop time at which the invocation times out
        task: Task running the wrapped operation
        outcome: Tagged outcome recorded when the future resolves
    """

    invocation_id: int
    token: CancelToken
    future: asyncio.Future[T | None]
    deadline: float | None = None
    task: asyncio.Task[T] | None = field(default=None, repr=False)
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)
    outcome: Result[T, ActionError] | None = None

    def disarm(self) -> None:
        """Cancel the deadline timer, if armed."""
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def resolve(self, value: T | None, outcome: Result[T, ActionError]) -> None:
        """Record outcome and resolve the future. Later calls are ignored."""
        if self.outcome is None:
            self.outcome = outcome
        if not self.future.done():
            self.future.set_result(value)


class AsyncActionController(Generic[P, T]):
    """Owns the lifecycle of one asynchronous action.

    Args:
        fn: Async callable to wrap. If it declares a ``token`` parameter, the
            invocation's CancelToken is passed as ``token=``.
        options: Shared ActionOptions; keyword overrides are merged on top.

    State transitions:
        execute()  -> RUNNING
        success    -> SUCCEEDED (result set, on_success called)
        raise      -> FAILED (error set, on_error called or error logged)
        timeout    -> FAILED (error.kind == TIMEOUT, on_error called)
        self-abort -> CANCELLED (OperationAborted or CancelledError from the operation)
        cancel()   -> IDLE
        reset()    -> IDLE, result and error cleared
        close()    -> CANCELLED if an invocation was in flight
    """

    __slots__ = (
        "_fn", "_options", "_name", "_accepts_token", "_state", "_handle",
        "_invocation_id", "_listeners", "_closed", "_log",
    )

    def __init__(
        self,
        fn: Callable[P, Awaitable[T]],
        options: ActionOptions | None = None,
        /,
        **overrides: Any,
    ) -> None:
        if not callable(fn):
            raise TypeError(f"Expected an async callable, got {type(fn).__name__}")
        self._fn = fn
        self._options = (options or ActionOptions()).merged(**overrides)
        self._name = self._options.name or getattr(fn, "__name__", None) or "action"
        self._accepts_token = accepts_token(fn)
        self._state: OperationState[T] = OperationState()
        self._handle: InFlightHandle[T] | None = None
        self._invocation_id = 0
        self._listeners: list[StateListener] = []
        self._closed = False
        self._log = get_logger("asyncaction.action").bind_action(self._name)

    # ─── Observable State ──────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def options(self) -> ActionOptions:
        return self._options

    @property
    def state(self) -> OperationState[T]:
        """Current immutable state snapshot."""
        return self._state

    @property
    def status(self) -> ActionStatus:
        return self._state.status

    @property
    def result(self) -> T | None:
        return self._state.result

    @property
    def error(self) -> ActionError | None:
        return self._state.error

    @property
    def running(self) -> bool:
        return self._state.running

    loading = running

    @property
    def in_flight(self) -> bool:
        """Whether a live invocation handle exists."""
        return self._handle is not None

    @property
    def invocation_id(self) -> int:
        """Identifier of the most recently started invocation (0 before the first)."""
        return self._invocation_id

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call listener with the new state after every transition. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    # ─── Operations ────────────────────────────────────────────────────

    def execute(self, *args: P.args, **kwargs: P.kwargs) -> asyncio.Future[T | None]:
        """Start (or join) an invocation.

        Must be called with a running event loop. The returned future
        resolves to the operation's value on success and to None on failure,
        cancellation, timeout or supersession; it never raises the
        operation's exception. With prevent_duplicate_calls, calls made while
        an invocation is in flight return that invocation's future itself.

        Cancelling the returned future cancels the invocation. Callers that
        share a deduplicated future and want to stop waiting on their own
        should await ``asyncio.shield(controller.execute(...))``.

        Raises:
            RuntimeError: If the controller is closed or no loop is running
        """
        return self._start(args, kwargs).future

    async def execute_result(self, *args: P.args, **kwargs: P.kwargs) -> Result[T, ActionError]:
        """Like execute(), but return Ok(value) or Err(ActionError).

        Supersession and cancellation produce Err with kind CANCELLED.
        """
        handle = self._start(args, kwargs)
        await asyncio.shield(handle.future)
        if handle.outcome is None:
            return Err(ActionError.cancelled(self._name))
        return handle.outcome

    def cancel(self) -> None:
        """Cancel the in-flight invocation and return to IDLE. No-op when idle."""
        if (handle := self._handle) is None:
            return
        self._log.debug("invocation cancelled", invocation=handle.invocation_id)
        self._abandon(handle, CancelReason.EXPLICIT)
        self._transition(OperationState())

    def reset(self, *, cancel_in_flight: bool = True) -> None:
        """Return to IDLE and clear result and error.

        By default the in-flight invocation (if any) is cancelled as well, so
        a late completion cannot repopulate state after a reset. With
        ``cancel_in_flight=False`` the invocation keeps running and, being
        still current, records its outcome when it settles.
        """
        if cancel_in_flight and (handle := self._handle) is not None:
            self._abandon(handle, CancelReason.EXPLICIT)
        self._transition(OperationState())

    def close(self) -> None:
        """Tear down: cancel in-flight work and refuse further invocations. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if (handle := self._handle) is not None:
            self._log.debug("controller closed with invocation in flight", invocation=handle.invocation_id)
            self._abandon(handle, CancelReason.TEARDOWN)
            self._transition(OperationState(ActionStatus.CANCELLED))
        self._listeners.clear()

    async def __aenter__(self) -> AsyncActionController[P, T]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"AsyncActionController(name={self._name!r}, status={self.status!s}, in_flight={self.in_flight})"

    # ─── Invocation Lifecycle ──────────────────────────────────────────

    def _start(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> InFlightHandle[T]:
        if self._closed:
            raise RuntimeError(f"Action {self._name!r} is closed")
        loop = asyncio.get_running_loop()
        current = self._handle
        if current is not None:
            if self._options.prevent_duplicate_calls:
                self._log.debug("duplicate call prevented", invocation=current.invocation_id)
                return current
            self._log.debug("superseding invocation", invocation=current.invocation_id)
            self._abandon(current, CancelReason.SUPERSEDED)

        self._invocation_id += 1
        handle: InFlightHandle[T] = InFlightHandle(self._invocation_id, CancelToken(), loop.create_future())
        self._handle = handle

        if (timeout := self._options.timeout) is not None:
            handle.deadline = loop.time() + timeout
            handle.timer = loop.call_later(timeout, self._on_timeout, handle)

        handle.task = loop.create_task(
            self._invoke(handle, args, kwargs),
            name=f"{self._name}#{handle.invocation_id}",
        )
        handle.token.bind(handle.task)
        handle.task.add_done_callback(functools.partial(self._settle, handle))
        handle.future.add_done_callback(functools.partial(self._on_future_done, handle))
        self._transition(OperationState(ActionStatus.RUNNING))
        return handle

    async def _invoke(self, handle: InFlightHandle[T], args: tuple[Any, ...], kwargs: dict[str, Any]) -> T:
        if self._accepts_token:
            kwargs = {**kwargs, "token": handle.token}
        return await self._fn(*args, **kwargs)

    def _is_current(self, handle: InFlightHandle[T]) -> bool:
        return self._handle is not None and self._handle.invocation_id == handle.invocation_id

    def _abandon(self, handle: InFlightHandle[T], reason: CancelReason) -> None:
        """Detach handle, cancel its token and resolve its callers with None."""
        if self._is_current(handle):
            self._handle = None
        handle.disarm()
        handle.token.cancel(reason)
        handle.resolve(None, Err(ActionError.cancelled(self._name, reason.value)))

    def _settle(self, handle: InFlightHandle[T], task: asyncio.Task[T]) -> None:
        """Task done-callback: record the outcome if the invocation is still current."""
        handle.disarm()
        exc = None if task.cancelled() else task.exception()
        if not self._is_current(handle):
            # Superseded, cancelled, timed out or torn down: discard silently
            return
        self._handle = None

        if task.cancelled() or isinstance(exc, OperationAborted):
            self._log.info("operation aborted", invocation=handle.invocation_id)
            handle.resolve(None, Err(ActionError.cancelled(self._name, "aborted")))
            self._transition(OperationState(ActionStatus.CANCELLED))
        elif exc is not None:
            error = ActionError.from_exception(self._name, exc)
            handle.resolve(None, Err(error))
            self._transition(OperationState(ActionStatus.FAILED, error=error))
            self._report_error(handle, error)
        else:
            value = task.result()
            handle.resolve(value, Ok(value))
            self._transition(OperationState(ActionStatus.SUCCEEDED, result=value))
            if self._options.on_success is not None:
                self._options.on_success(value)

    def _on_timeout(self, handle: InFlightHandle[T]) -> None:
        handle.timer = None
        if not self._is_current(handle):
            return
        self._handle = None
        timeout = self._options.timeout or 0.0
        self._log.warning("operation timed out", invocation=handle.invocation_id, timeout=timeout)
        handle.token.cancel(CancelReason.TIMEOUT)
        error = ActionError.timed_out(self._name, timeout)
        handle.resolve(None, Err(error))
        self._transition(OperationState(ActionStatus.FAILED, error=error))
        self._report_error(handle, error)

    def _on_future_done(self, handle: InFlightHandle[T], future: asyncio.Future[T | None]) -> None:
        # A caller cancelled the shared future: treat it as an explicit cancel
        if future.cancelled() and self._is_current(handle):
            self.cancel()

    def _report_error(self, handle: InFlightHandle[T], error: ActionError) -> None:
        if self._options.on_error is not None:
            self._options.on_error(error)
        else:
            self._log.error(
                "async operation failed",
                invocation=handle.invocation_id,
                kind=error.kind.value,
                code=error.code.value,
                error=error.message,
            )

    def _transition(self, state: OperationState[T]) -> None:
        """Publish a new snapshot. A failing listener is logged and does not stop the others."""
        self._state = state
        for listener in tuple(self._listeners):
            try:
                listener(state)
            except Exception as exc:
                self._log.exception("state listener failed", exc, status=state.status.value)


@overload
def async_action(fn: Callable[P, Awaitable[T]], /) -> AsyncActionController[P, T]: ...
@overload
def async_action(
    fn: None = None, /, **options: Any
) -> Callable[[Callable[P, Awaitable[T]]], AsyncActionController[P, T]]: ...


def async_action(
    fn: Callable[P, Awaitable[T]] | None = None,
    /,
    **options: Any,
) -> AsyncActionController[P, T] | Callable[[Callable[P, Awaitable[T]]], AsyncActionController[P, T]]:
    """Decorator turning an async function into an AsyncActionController.

    Example:
        >>> @async_action(timeout=10.0, prevent_duplicate_calls=True)
        ... async def save_project(project_id: str, *, token: CancelToken) -> dict:
        ...     ...
        >>> await save_project.execute("p-1")
    """
    def decorator(func: Callable[P, Awaitable[T]]) -> AsyncActionController[P, T]:
        return AsyncActionController(func, **options)

    return decorator(fn) if fn is not None else decorator
