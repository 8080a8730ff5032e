"""Tests for fetch_with_timeout using httpx.MockTransport."""

from __future__ import annotations

import asyncio

import httpx
import orjson
import pytest

from asyncaction import (
    ActionException,
    ActionStatus,
    ActionTimeoutError,
    AsyncActionController,
    CancelToken,
    ErrorCode,
    OperationAborted,
)
from asyncaction.io import fetch_with_timeout


def client_for(handler: object) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://api.example")  # type: ignore[arg-type]


class Sequence:
    """Handler replaying a list of responses or exceptions."""

    def __init__(self, *outcomes: int | Exception) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, json={"status": outcome})


class TestRetries:
    @pytest.mark.asyncio
    async def test_server_error_then_success(self) -> None:
        handler = Sequence(503, 200)
        retries: list[tuple[int, Exception]] = []

        async with client_for(handler) as client:
            resp = await fetch_with_timeout(
                client, "GET", "/projects",
                retries=2, retry_delay=0.0, on_retry=lambda n, e: retries.append((n, e)),
            )

        assert resp.status_code == 200
        assert len(handler.requests) == 2
        assert retries[0][0] == 1
        error = retries[0][1]
        assert isinstance(error, ActionException)
        assert error.error.code is ErrorCode.SERVER_ERROR

    @pytest.mark.asyncio
    async def test_last_server_error_is_returned(self) -> None:
        handler = Sequence(502)
        async with client_for(handler) as client:
            resp = await fetch_with_timeout(client, "GET", "/projects", retries=0)
        assert resp.status_code == 502

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self) -> None:
        handler = Sequence(404, 200)
        async with client_for(handler) as client:
            resp = await fetch_with_timeout(client, "GET", "/projects/x", retries=2, retry_delay=0.0)
        assert resp.status_code == 404
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_errors_retried_then_raised(self) -> None:
        refused = httpx.ConnectError("connection refused")
        handler = Sequence(refused, refused)

        async with client_for(handler) as client:
            with pytest.raises(httpx.ConnectError):
                await fetch_with_timeout(client, "GET", "/projects", retries=1, retry_delay=0.0)
        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_retries_default_to_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ASYNCACTION_HTTP_RETRIES", "1")
        monkeypatch.setenv("ASYNCACTION_HTTP_RETRY_DELAY", "0")
        handler = Sequence(500, 200)

        async with client_for(handler) as client:
            resp = await fetch_with_timeout(client, "GET", "/projects")
        assert resp.status_code == 200


class TestDeadlines:
    @pytest.mark.asyncio
    async def test_timeout_raises_and_is_not_retried(self) -> None:
        calls = 0
        timeouts: list[bool] = []

        async def hang(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            await asyncio.sleep(10)
            return httpx.Response(200)

        async with client_for(hang) as client:
            with pytest.raises(ActionTimeoutError, match="Request timed out after 0.02s"):
                await fetch_with_timeout(
                    client, "GET", "/slow",
                    timeout=0.02, retries=3, on_timeout=lambda: timeouts.append(True),
                )
        assert calls == 1
        assert timeouts == [True]

    @pytest.mark.asyncio
    async def test_token_aborts_request(self) -> None:
        token = CancelToken()

        async def hang(request: httpx.Request) -> httpx.Response:
            token.cancel()
            await asyncio.sleep(10)
            return httpx.Response(200)

        async with client_for(hang) as client:
            with pytest.raises(OperationAborted):
                await fetch_with_timeout(client, "GET", "/slow", timeout=5.0, token=token)

    @pytest.mark.asyncio
    async def test_request_kwargs_are_forwarded(self) -> None:
        handler = Sequence(201)
        async with client_for(handler) as client:
            await fetch_with_timeout(
                client, "POST", "/share",
                json={"image_id": "img-123"}, headers={"X-Request-Id": "r-1"},
            )

        sent = handler.requests[0]
        assert sent.method == "POST"
        assert sent.headers["X-Request-Id"] == "r-1"
        assert orjson.loads(sent.content) == {"image_id": "img-123"}


@pytest.mark.asyncio
async def test_controller_cancel_aborts_fetch() -> None:
    started = asyncio.Event()

    async def hang(request: httpx.Request) -> httpx.Response:
        started.set()
        await asyncio.sleep(10)
        return httpx.Response(200)

    async with client_for(hang) as client:
        async def load_project(project_id: str, *, token: CancelToken) -> dict[str, object]:
            resp = await fetch_with_timeout(client, "GET", f"/projects/{project_id}", token=token)
            return resp.json()

        load = AsyncActionController(load_project)
        future = load.execute("p-1")
        await started.wait()
        load.cancel()

        assert await future is None
        assert load.status is ActionStatus.IDLE
        await asyncio.sleep(0.01)
