"""Tests for CancelToken and cancellable_sleep."""

from __future__ import annotations

import asyncio

import pytest

from asyncaction import CancelReason, CancelToken, OperationAborted, cancellable_sleep
from asyncaction.runtime.concurrency import accepts_token


class TestCancelToken:
    def test_cancel_is_one_shot(self) -> None:
        token = CancelToken()
        assert not token.cancelled and token.reason is None

        assert token.cancel(CancelReason.SUPERSEDED) is True
        assert token.cancel(CancelReason.TIMEOUT) is False
        assert token.cancelled
        assert token.reason is CancelReason.SUPERSEDED

    def test_callbacks_run_once_and_late_registration_fires_immediately(self) -> None:
        token = CancelToken()
        calls: list[CancelReason | None] = []
        token.on_cancel(lambda t: calls.append(t.reason))
        remove = token.on_cancel(lambda t: calls.append(None))
        remove()

        token.cancel()
        token.cancel()
        assert calls == [CancelReason.EXPLICIT]

        token.on_cancel(lambda t: calls.append(t.reason))
        assert calls == [CancelReason.EXPLICIT, CancelReason.EXPLICIT]

    def test_raise_if_cancelled(self) -> None:
        token = CancelToken()
        token.raise_if_cancelled()
        token.cancel("timeout")
        with pytest.raises(OperationAborted) as info:
            token.raise_if_cancelled()
        assert info.value.reason == "timeout"

    def test_linked_token_inherits_parent_reason(self) -> None:
        parent = CancelToken()
        other = CancelToken()
        child = CancelToken.linked(parent, None, other)
        assert not child.cancelled

        other.cancel(CancelReason.TEARDOWN)
        assert child.reason is CancelReason.TEARDOWN
        parent.cancel()
        assert child.reason is CancelReason.TEARDOWN

    def test_linked_to_already_cancelled_parent(self) -> None:
        parent = CancelToken()
        parent.cancel(CancelReason.TIMEOUT)
        assert CancelToken.linked(parent).reason is CancelReason.TIMEOUT

    @pytest.mark.asyncio
    async def test_bind_cancels_task(self) -> None:
        token = CancelToken()
        task = asyncio.ensure_future(asyncio.sleep(10))
        token.bind(task)
        await asyncio.sleep(0)

        token.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_wait_and_checkpoint(self) -> None:
        token = CancelToken()
        waiter = asyncio.ensure_future(token.wait())
        await token.checkpoint()
        assert not waiter.done()

        token.cancel(CancelReason.SUPERSEDED)
        assert await waiter is CancelReason.SUPERSEDED
        with pytest.raises(OperationAborted):
            await token.checkpoint()


class TestCancellableSleep:
    @pytest.mark.asyncio
    async def test_wakes_early_on_cancel(self) -> None:
        token = CancelToken()
        loop = asyncio.get_running_loop()
        loop.call_later(0.01, token.cancel)
        start = loop.time()

        with pytest.raises(OperationAborted):
            await cancellable_sleep(5.0, token)
        assert loop.time() - start < 1.0

    @pytest.mark.asyncio
    async def test_sleeps_full_delay_without_cancel(self) -> None:
        await cancellable_sleep(0.01, CancelToken())
        await cancellable_sleep(0.01)

    @pytest.mark.asyncio
    async def test_already_cancelled_raises_immediately(self) -> None:
        token = CancelToken()
        token.cancel()
        with pytest.raises(OperationAborted):
            await cancellable_sleep(5.0, token)


def test_accepts_token() -> None:
    async def keyword(*, token: CancelToken) -> None: ...
    async def positional(x: int, token: CancelToken | None = None) -> None: ...
    async def absent(x: int) -> None: ...
    async def variadic(**kwargs: object) -> None: ...

    assert accepts_token(keyword)
    assert accepts_token(positional)
    assert not accepts_token(absent)
    assert not accepts_token(variadic)
