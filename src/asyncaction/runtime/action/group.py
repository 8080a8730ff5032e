"""Composition of several named actions sharing one configuration.

Useful for operations like "save", "delete", "share" on the same resource,
where the view needs a single "anything in flight?" signal and a way to
abandon everything at once (e.g. when a project page is closed).

Example:
    >>> project = AsyncActionGroup(
    ...     {"save": save_project, "delete": delete_project, "share": share_project},
    ...     timeout=15.0,
    ... )
    >>> await project.save.execute(project_id)
    >>> project.any_running
    False
    >>> project.cancel_all()
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from asyncaction.runtime.observability import get_logger

from .controller import AsyncActionController
from .options import ActionOptions
from .state import OperationState

if TYPE_CHECKING:
    from types import TracebackType

GroupListener = Callable[[bool], object]

_log = get_logger("asyncaction.group")


class AsyncActionGroup:
    """Fixed set of AsyncActionControllers keyed by name.

    Membership is decided at construction and never changes. Each member is
    a full controller; ``any_running`` is derived from member state and
    recomputed on every member transition.

    Args:
        actions: Mapping of action name to async callable
        options: Shared ActionOptions; keyword overrides are merged on top.
            A member is named by its key, prefixed with the shared name if set.

    Members are also reachable as attributes (``group.save``). Keys that clash
    with group attributes such as ``running_names``, ``names``, ``controllers``,
    ``subscribe`` or ``close`` are reachable only through ``group[key]``.
    """

    __slots__ = ("_controllers", "_any_running", "_listeners", "_unsubscribers")

    def __init__(
        self,
        actions: Mapping[str, Callable[..., Awaitable[Any]]],
        options: ActionOptions | None = None,
        /,
        **overrides: Any,
    ) -> None:
        shared = (options or ActionOptions()).merged(**overrides)
        controllers: dict[str, AsyncActionController[..., Any]] = {}
        for key, fn in actions.items():
            name = f"{shared.name}.{key}" if shared.name else key
            controllers[key] = AsyncActionController(fn, shared.merged(name=name))
        self._controllers: Mapping[str, AsyncActionController[..., Any]] = MappingProxyType(controllers)
        self._any_running = False
        self._listeners: list[GroupListener] = []
        self._unsubscribers = [c.subscribe(self._on_member_change) for c in controllers.values()]

    # ─── Member Access ─────────────────────────────────────────────────

    def __getitem__(self, name: str) -> AsyncActionController[..., Any]:
        return self._controllers[name]

    def __getattr__(self, name: str) -> AsyncActionController[..., Any]:
        # Only reached for names that are not regular attributes
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._controllers[name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__} has no action {name!r}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._controllers

    def __iter__(self) -> Iterator[str]:
        return iter(self._controllers)

    def __len__(self) -> int:
        return len(self._controllers)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._controllers)

    @property
    def controllers(self) -> Mapping[str, AsyncActionController[..., Any]]:
        """Read-only name -> controller mapping."""
        return self._controllers

    # ─── Aggregate State ───────────────────────────────────────────────

    @property
    def any_running(self) -> bool:
        """True iff at least one member is RUNNING."""
        return self._any_running

    any_loading = any_running

    @property
    def running_names(self) -> tuple[str, ...]:
        """Names of members currently RUNNING."""
        return tuple(name for name, c in self._controllers.items() if c.running)

    def subscribe(self, listener: GroupListener) -> Callable[[], None]:
        """Call listener with the new any_running value whenever it flips."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _on_member_change(self, _state: OperationState[Any]) -> None:
        any_running = any(c.running for c in self._controllers.values())
        if any_running == self._any_running:
            return
        self._any_running = any_running
        for listener in tuple(self._listeners):
            try:
                listener(any_running)
            except Exception as exc:
                _log.exception("group listener failed", exc, any_running=any_running)

    # ─── Bulk Operations ───────────────────────────────────────────────

    def cancel_all(self) -> None:
        """Cancel every member. Afterwards no member has an in-flight invocation."""
        for controller in self._controllers.values():
            controller.cancel()

    def reset_all(self, *, cancel_in_flight: bool = True) -> None:
        for controller in self._controllers.values():
            controller.reset(cancel_in_flight=cancel_in_flight)

    def close(self) -> None:
        """Tear down every member. Idempotent."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        for controller in self._controllers.values():
            controller.close()
        self._any_running = False

    async def __aenter__(self) -> AsyncActionGroup:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"AsyncActionGroup(actions={list(self._controllers)}, any_running={self._any_running})"
