"""HTTP requests with deadline, retry and cooperative cancellation.

fetch_with_timeout() is the network-side collaborator of the controller: it
accepts the invocation's CancelToken and fails with OperationAborted when
cancelled, so the controller can tell an abort apart from a failure.

Example:
    >>> async def load_project(project_id: str, *, token: CancelToken) -> dict:
    ...     resp = await fetch_with_timeout(client, "GET", f"/api/projects/{project_id}",
    ...                                     timeout=10.0, retries=2, token=token)
    ...     resp.raise_for_status()
    ...     return resp.json()
    >>> load = AsyncActionController(load_project, prevent_duplicate_calls=True)
"""

from __future__ import annotations

from typing import Any, Callable

import httpx

from asyncaction.foundation.config import get_settings
from asyncaction.foundation.errors import ActionException, ActionTimeoutError, ErrorCode
from asyncaction.runtime.concurrency import CancelToken, cancellable_sleep
from asyncaction.runtime.observability import get_logger
from asyncaction.runtime.utils import run_with_timeout

_log = get_logger("asyncaction.http")


async def fetch_with_timeout(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    timeout: float | None = None,
    retries: int | None = None,
    retry_delay: float | None = None,
    token: CancelToken | None = None,
    on_timeout: Callable[[], object] | None = None,
    on_retry: Callable[[int, Exception], object] | None = None,
    **request: Any,
) -> httpx.Response:
    """Send a request with a per-attempt deadline and optional retries.

    5xx responses and transport errors are retried with linear backoff
    (retry_delay * attempt). Deadlines and cancellation are never retried.
    Defaults come from ASYNCACTION_HTTP_* settings.

    Args:
        client: Shared httpx.AsyncClient
        method: HTTP method
        url: Absolute URL or path relative to the client's base_url
        timeout: Per-attempt deadline in seconds
        retries: Retry attempts after the first request
        retry_delay: Base delay between retries in seconds
        token: Aborts the request (and any backoff sleep) when cancelled
        on_timeout: Called when a deadline fires
        on_retry: Called with (retry number, error) before each retry
        **request: Forwarded to client.request (headers, json, params, ...)

    Raises:
        ActionTimeoutError: Deadline exceeded
        OperationAborted: Token cancelled
        httpx.TransportError: Network failure after retries

    A 5xx response on the last attempt is returned, not raised.
    """
    cfg = get_settings().http
    timeout = cfg.timeout if timeout is None else timeout
    retries = cfg.retries if retries is None else retries
    retry_delay = cfg.retry_delay if retry_delay is None else retry_delay

    attempt = 0
    while True:
        try:
            response = await run_with_timeout(
                client.request, method, url,
                timeout=timeout, token=token, on_timeout=on_timeout, **request,
            )
        except ActionTimeoutError:
            _log.warning("request timed out", method=method, url=url, timeout=timeout)
            raise ActionTimeoutError(f"Request timed out after {timeout}s", timeout) from None
        except httpx.TransportError as exc:
            if attempt >= retries:
                raise
            error: Exception = exc
        else:
            if not (500 <= response.status_code < 600 and attempt < retries):
                return response
            await response.aclose()
            error = ActionException.create(
                "fetch", f"Server error: {response.status_code}", ErrorCode.SERVER_ERROR,
            )

        attempt += 1
        _log.warning("retrying request", method=method, url=url, attempt=attempt, error=str(error))
        if on_retry is not None:
            on_retry(attempt, error)
        await cancellable_sleep(retry_delay * attempt, token)
