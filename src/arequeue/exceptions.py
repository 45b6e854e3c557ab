r"""Exceptions surfaced to callers whose requests were queued."""

from __future__ import annotations

__all__ = ["RequeueError", "RequestClearedError", "RetriesExhaustedError"]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class RequeueError(RuntimeError):
    """Base class of the terminal errors raised for queued requests.

    Args:
        url: The URL of the queued request.
        message: A descriptive error message.

    Example:
        ```pycon
        >>> from arequeue.exceptions import RequeueError
        >>> raise RequeueError(url="https://api.example.com", message="request failed")
        Traceback (most recent call last):
            ...
        arequeue.exceptions.RequeueError: request failed

        ```
    """

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class RetriesExhaustedError(RequeueError):
    """Raised when a queued request used up all its retries.

    The last transport error, if any, is chained as ``__cause__``.

    Args:
        url: The URL of the queued request.
        retry_count: The number of retries made.
        max_retries: The retry ceiling at the time the request was abandoned.
        response: The last response obtained, if any.

    Example:
        ```pycon
        >>> from arequeue.exceptions import RetriesExhaustedError
        >>> raise RetriesExhaustedError(
        ...     url="https://api.example.com", retry_count=3, max_retries=3
        ... )
        Traceback (most recent call last):
            ...
        arequeue.exceptions.RetriesExhaustedError: Max retries exceeded for https://api.example.com (3/3)

        ```
    """

    def __init__(
        self,
        url: str,
        retry_count: int,
        max_retries: int,
        response: httpx.Response | None = None,
    ) -> None:
        super().__init__(
            url=url,
            message=f"Max retries exceeded for {url} ({retry_count}/{max_retries})",
        )
        self.retry_count = retry_count
        self.max_retries = max_retries
        self.response = response


class RequestClearedError(RequeueError):
    """Raised when a queued request is discarded by a clear or a stop.

    This is an intentional teardown and not a real failure, so callers
    can tell it apart from ``RetriesExhaustedError``.

    Example:
        ```pycon
        >>> from arequeue.exceptions import RequestClearedError
        >>> raise RequestClearedError(url="https://api.example.com")
        Traceback (most recent call last):
            ...
        arequeue.exceptions.RequestClearedError: Request to https://api.example.com was cleared

        ```
    """

    def __init__(self, url: str) -> None:
        super().__init__(url=url, message=f"Request to {url} was cleared")
