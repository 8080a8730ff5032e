"""Tagged success/failure union returned by AsyncActionController.execute_result.

Callers that prefer an explicit error channel over polling controller state
get an Ok(value) or Err(ActionError). Both arms support structural matching:

    >>> match await action.execute_result("img-123"):
    ...     case Ok(data): show(data)
    ...     case Err(error) if error.is_timeout: toast("Too slow, try again")
    ...     case Err(error): toast(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Generic, NoReturn, TypeVar, Union

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome carrying the operation's value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise RuntimeError(f"unwrap_err() on Ok: {self.value!r}")

    def unwrap_or(self, default: object) -> T:
        return self.value

    def unwrap_or_else(self, f: Callable[[object], object]) -> T:
        return self.value

    def ok(self) -> T:
        return self.value

    def err(self) -> None:
        return None

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        return Ok(f(self.value))

    def map_err(self, f: Callable[[object], object]) -> Ok[T]:
        return self

    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        return f(self.value)

    def match(self, *, ok: Callable[[T], U], err: Callable[[object], U]) -> U:
        return ok(self.value)

    def __bool__(self) -> bool:
        return True

    def __iter__(self) -> Iterator[T]:
        yield self.value


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed, timed-out or cancelled outcome carrying the error descriptor."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Raise ActionException for an ActionError payload, RuntimeError otherwise."""
        from .errors import ActionError, ActionException
        if isinstance(self.error, ActionError):
            raise ActionException(self.error)
        raise RuntimeError(f"unwrap() on Err: {self.error!r}")

    def unwrap_err(self) -> E:
        return self.error

    def unwrap_or(self, default: U) -> U:
        return default

    def unwrap_or_else(self, f: Callable[[E], U]) -> U:
        return f(self.error)

    def ok(self) -> None:
        return None

    def err(self) -> E:
        return self.error

    def map(self, f: Callable[[object], object]) -> Err[E]:
        return self

    def map_err(self, f: Callable[[E], U]) -> Err[U]:
        return Err(f(self.error))

    def flat_map(self, f: Callable[[object], object]) -> Err[E]:
        return self

    def match(self, *, ok: Callable[[object], U], err: Callable[[E], U]) -> U:
        return err(self.error)

    def __bool__(self) -> bool:
        return False

    def __iter__(self) -> Iterator[NoReturn]:
        return iter(())


Result = Union[Ok[T], Err[E]]
