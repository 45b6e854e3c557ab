r"""In-memory registry of the requests waiting for a retry.

Each queued request owns an ``asyncio.Future`` that represents the
original caller's outcome. The registry settles that future in the same
step that removes the request, so a request is never resolved twice and
never outlives its resolution.
"""

from __future__ import annotations

__all__ = ["PendingRequest", "PendingRequestRegistry"]

import asyncio
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from arequeue.exceptions import RequestClearedError

if TYPE_CHECKING:
    from collections.abc import Mapping

    import httpx

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(eq=False)
class PendingRequest:
    """A request waiting for a retry.

    Attributes:
        id: Unique identifier generated at enqueue time.
        url: The URL of the request.
        options: Read-only snapshot of the request options.
        future: The caller's pending outcome.
        retry_count: Number of retries made so far.
        last_attempt_at: ``time.monotonic()`` of the most recent attempt.
        last_error: The error of the most recent attempt, if any.
        last_response: The response of the most recent attempt, if any.
    """

    id: str
    url: str
    options: Mapping[str, Any]
    future: asyncio.Future[httpx.Response]
    retry_count: int = 0
    last_attempt_at: float = field(default_factory=time.monotonic)
    last_error: Exception | None = None
    last_response: httpx.Response | None = None

    def mark_attempt(self) -> None:
        """Record a new attempt of the request."""
        self.retry_count += 1
        self.last_attempt_at = time.monotonic()


class PendingRequestRegistry:
    r"""Store of the requests waiting for a retry, keyed by id.

    The registry is the only owner of the ``PendingRequest`` entries.
    Thread-safe implementation using locks, but the futures it settles
    belong to the event loop that created them.

    Example:
        ```pycon
        >>> import asyncio
        >>> from arequeue.registry import PendingRequestRegistry
        >>> async def main():
        ...     registry = PendingRequestRegistry()
        ...     request = registry.enqueue("https://api.example.com", {"method": "GET"})
        ...     print(registry.count())
        ...     registry.clear()
        ...     print(registry.count(), request.future.done())
        ...
        >>> asyncio.run(main())
        1
        0 True

        ```
    """

    def __init__(self) -> None:
        self._requests: dict[str, PendingRequest] = {}
        self._lock = threading.Lock()

    def __contains__(self, request_id: str) -> bool:
        with self._lock:
            return request_id in self._requests

    def enqueue(
        self,
        url: str,
        options: Mapping[str, Any] | None = None,
        *,
        error: Exception | None = None,
        response: httpx.Response | None = None,
    ) -> PendingRequest:
        """Store a new request and create its pending outcome.

        Must be called from a running event loop.

        Args:
            url: The URL of the request.
            options: The request options. A read-only copy is stored.
            error: The error of the original attempt, if any.
            response: The response of the original attempt, if any.

        Returns:
            The new pending request.
        """
        request = PendingRequest(
            id=uuid.uuid4().hex,
            url=url,
            options=MappingProxyType(dict(options or {})),
            future=asyncio.get_running_loop().create_future(),
            last_error=error,
            last_response=response,
        )
        with self._lock:
            self._requests[request.id] = request
        logger.debug(f"Stored request {request.id} for retry. URL: {url}")
        return request

    def remove(self, request_id: str) -> PendingRequest | None:
        """Remove a request without settling it.

        Args:
            request_id: The id of the request.

        Returns:
            The removed request, or ``None`` if it was not queued.
        """
        with self._lock:
            return self._requests.pop(request_id, None)

    def snapshot(self) -> list[PendingRequest]:
        """Return a point-in-time copy of the queued requests.

        Returns:
            The queued requests.
        """
        with self._lock:
            return list(self._requests.values())

    def count(self) -> int:
        """Return the number of queued requests."""
        with self._lock:
            return len(self._requests)

    def resolve(self, request_id: str, response: httpx.Response) -> bool:
        """Remove a request and settle it with a response.

        Args:
            request_id: The id of the request.
            response: The response handed back to the caller.

        Returns:
            ``True`` if the request was queued and has been settled.
        """
        request = self.remove(request_id)
        if request is None or request.future.done():
            return False
        request.future.set_result(response)
        return True

    def reject(self, request_id: str, error: BaseException) -> bool:
        """Remove a request and settle it with an error.

        Args:
            request_id: The id of the request.
            error: The error raised to the caller.

        Returns:
            ``True`` if the request was queued and has been settled.
        """
        request = self.remove(request_id)
        if request is None:
            return False
        return _fail(request, error)

    def clear(self) -> int:
        """Settle every queued request with ``RequestClearedError`` and
        empty the registry.

        Returns:
            The number of cleared requests.
        """
        with self._lock:
            requests = list(self._requests.values())
            self._requests.clear()
        for request in requests:
            _fail(request, RequestClearedError(url=request.url))
        logger.debug(f"Cleared {len(requests)} pending request(s)")
        return len(requests)


def _fail(request: PendingRequest, error: BaseException) -> bool:
    if request.future.done():
        return False
    request.future.set_exception(error)
    if isinstance(error, RequestClearedError):
        # Teardown is not reported to the loop's exception handler
        request.future.exception()
    return True
