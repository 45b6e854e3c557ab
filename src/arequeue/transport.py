r"""httpx transport that hands failed requests to an interception engine.

``RequeueTransport`` wraps another transport. Successful responses are
returned as they are. A failing response or a transport error that the
engine deems retry-eligible is queued, and the client call waits until
the engine settles it. Queued requests are re-dispatched through the
wrapped transport, never through the wrapper itself.

Example:
    ```pycon
    >>> import asyncio
    >>> import httpx
    >>> from arequeue import RetryPolicy
    >>> from arequeue.transport import RequeueTransport
    >>> async def main():  # doctest: +SKIP
    ...     transport = RequeueTransport(policy=RetryPolicy(max_retries=5))
    ...     async with transport.engine, httpx.AsyncClient(transport=transport) as client:
    ...         return await client.get("https://api.example.com/data")
    ...
    >>> asyncio.run(main())  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = ["CLEARED_STATUS_CODE", "RequeueTransport", "TransportDispatcher"]

import logging
from typing import TYPE_CHECKING, Any

import httpx

from arequeue.engine import InterceptionEngine
from arequeue.exceptions import RequestClearedError
from arequeue.retry.decider import is_success

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Mapping

    from arequeue.core.config import RetryPolicy
    from arequeue.network import ConnectivitySource

logger: logging.Logger = logging.getLogger(__name__)

# Status of the synthetic response returned for a cleared request
CLEARED_STATUS_CODE = 499


class TransportDispatcher:
    """Dispatcher that re-sends queued requests through an httpx transport.

    The response body is read before the response is returned, so the
    connection goes back to the pool right away.

    Args:
        transport: The transport used to send the requests.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport) -> None:
        self._transport = transport

    async def __call__(self, url: str, options: Mapping[str, Any]) -> httpx.Response:
        request = httpx.Request(
            method=options.get("method", "GET"),
            url=url,
            headers=options.get("headers"),
            content=options.get("content"),
            extensions=dict(options.get("extensions") or {}),
        )
        response = await self._transport.handle_async_request(request)
        await response.aread()
        return response


class RequeueTransport(httpx.AsyncBaseTransport):
    """Transport wrapper that queues retry-eligible failures.

    The transport owns an ``InterceptionEngine`` exposed as ``engine``.
    Failures are only queued while the engine is started. Otherwise the
    failing response is returned and the transport error is raised as
    they are.

    Args:
        inner: Optional transport to wrap. If ``None``, an
            ``httpx.AsyncHTTPTransport`` is used.
        policy: Optional retry policy of the engine.
        connectivity: Optional connectivity source of the engine.
    """

    def __init__(
        self,
        inner: httpx.AsyncBaseTransport | None = None,
        *,
        policy: RetryPolicy | None = None,
        connectivity: ConnectivitySource | None = None,
    ) -> None:
        self._inner = inner if inner is not None else httpx.AsyncHTTPTransport()
        self.engine = InterceptionEngine(
            policy=policy,
            dispatcher=TransportDispatcher(self._inner),
            connectivity=connectivity,
        )

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        options = {
            "method": request.method,
            "headers": httpx.Headers(request.headers),
            "content": await request.aread(),
            "extensions": dict(request.extensions),
        }

        try:
            response = await self._inner.handle_async_request(request)
        except Exception as exc:
            handle = self.engine.enqueue_failed_request(url, options, error=exc)
            if handle is None:
                raise
            return await self._wait(handle, request)

        if is_success(response):
            return response
        handle = self.engine.enqueue_failed_request(url, options, response=response)
        if handle is None:
            return response
        await response.aclose()
        return await self._wait(handle, request)

    async def aclose(self) -> None:
        self.engine.stop()
        await self._inner.aclose()

    async def _wait(
        self, handle: asyncio.Future[httpx.Response], request: httpx.Request
    ) -> httpx.Response:
        try:
            return await handle
        except RequestClearedError:
            logger.debug(f"{request.method} request to {request.url} was cleared")
            return httpx.Response(
                CLEARED_STATUS_CODE,
                request=request,
                extensions={"reason_phrase": b"Request Cleared"},
            )
