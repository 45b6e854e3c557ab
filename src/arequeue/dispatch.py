r"""Transport capability used by the engine to re-dispatch requests.

A dispatcher performs a request from its URL and options. It returns a
response for every status code and raises an exception when no response
could be obtained. The engine classifies the outcome itself.
"""

from __future__ import annotations

__all__ = ["Dispatcher", "HttpxDispatcher"]

import logging
from typing import TYPE_CHECKING, Any, Protocol

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType
    from typing import Self

logger: logging.Logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    """Capability to perform a request given its URL and options."""

    async def __call__(self, url: str, options: Mapping[str, Any]) -> httpx.Response:
        """Perform the request.

        Args:
            url: The URL of the request.
            options: The request options.

        Returns:
            The response, whatever its status code.
        """


class HttpxDispatcher:
    r"""Dispatcher backed by an ``httpx.AsyncClient``.

    The ``method`` option selects the HTTP method (``GET`` by default)
    and the other options are forwarded to ``httpx.AsyncClient.request``
    (``headers``, ``params``, ``json``, ``content``, ``timeout``, ...).

    Args:
        client: Optional client to use. If ``None``, a client is created
            on first use and closed by ``aclose``. A client passed by the
            caller is never closed by the dispatcher.

    Example:
        ```pycon
        >>> import asyncio
        >>> from arequeue.dispatch import HttpxDispatcher
        >>> async def main():  # doctest: +SKIP
        ...     async with HttpxDispatcher() as dispatch:
        ...         return await dispatch("https://api.example.com/data", {"method": "GET"})
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def __call__(self, url: str, options: Mapping[str, Any]) -> httpx.Response:
        kwargs = dict(options)
        method = kwargs.pop("method", "GET")
        logger.debug(f"Dispatching {method} request to {url}")
        return await self._ensure_client().request(method, url, **kwargs)

    async def aclose(self) -> None:
        """Close the underlying client if the dispatcher created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client
