r"""Retry decision logic for determining whether to retry requests.

This module provides the default eligibility predicate, the failure
classification it is built on, and the RetryDecider class that applies
the live predicate on behalf of the engine.
"""

from __future__ import annotations

__all__ = [
    "FailureKind",
    "RetryDecider",
    "classify_failure",
    "default_retry_condition",
    "is_success",
]

import logging
from enum import Enum
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import Callable

logger: logging.Logger = logging.getLogger(__name__)

# Status codes that are retried even though they are not 5xx
# 0: Opaque or aborted response
# 408: Request Timeout
# 429: Too Many Requests - Rate limiting
RETRYABLE_NON_SERVER_STATUS_CODES = (0, 408, 429)

# Exceptions raised when no response could be obtained at all
NETWORK_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
)


class FailureKind(Enum):
    """Classification of a failed request.

    Attributes:
        NETWORK_ERROR: No response was obtained (connection or timeout).
        SERVER_ERROR: A server-class, timeout or rate-limit status.
        CLIENT_ERROR: Any other 4xx status.
        OTHER: Anything else (e.g. an unexpected exception).
    """

    NETWORK_ERROR = "network_error"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    OTHER = "other"


def is_success(response: httpx.Response) -> bool:
    """Indicate if a response has a 2xx status code.

    Args:
        response: The response to check.

    Returns:
        ``True`` if the status code is in ``[200, 300)``.

    Example:
        ```pycon
        >>> import httpx
        >>> from arequeue.retry.decider import is_success
        >>> is_success(httpx.Response(200))
        True
        >>> is_success(httpx.Response(503))
        False

        ```
    """
    return 200 <= response.status_code < 300


def classify_failure(
    error: Exception | None, response: httpx.Response | None = None
) -> FailureKind:
    """Classify a failed request.

    Args:
        error: The exception raised by the transport, if any.
        response: The response obtained, if any.

    Returns:
        The failure kind.

    Example:
        ```pycon
        >>> import httpx
        >>> from arequeue.retry.decider import classify_failure
        >>> classify_failure(None, httpx.Response(503))
        <FailureKind.SERVER_ERROR: 'server_error'>
        >>> classify_failure(None, httpx.Response(404))
        <FailureKind.CLIENT_ERROR: 'client_error'>
        >>> classify_failure(httpx.ConnectError("boom"))
        <FailureKind.NETWORK_ERROR: 'network_error'>

        ```
    """
    if response is not None:
        status = response.status_code
        if status >= 500 or status in RETRYABLE_NON_SERVER_STATUS_CODES:
            return FailureKind.SERVER_ERROR
        if 400 <= status < 500:
            return FailureKind.CLIENT_ERROR
        return FailureKind.OTHER
    if isinstance(error, NETWORK_EXCEPTIONS):
        return FailureKind.NETWORK_ERROR
    return FailureKind.OTHER


def default_retry_condition(
    error: Exception | None, response: httpx.Response | None = None
) -> bool:
    """Decide if a failed request is worth another attempt.

    Network-level errors and server-class statuses (>= 500, 408, 429
    and 0) are retried. Other 4xx statuses are never retried.

    Args:
        error: The exception raised by the transport, if any.
        response: The response obtained, if any.

    Returns:
        ``True`` if the request should be retried.

    Example:
        ```pycon
        >>> import httpx
        >>> from arequeue.retry.decider import default_retry_condition
        >>> default_retry_condition(None, httpx.Response(503))
        True
        >>> default_retry_condition(None, httpx.Response(404))
        False

        ```
    """
    return classify_failure(error, response) in (
        FailureKind.NETWORK_ERROR,
        FailureKind.SERVER_ERROR,
    )


class RetryDecider:
    """Decides whether a request should be queued or retried again.

    Args:
        retry_condition: The eligibility predicate. It receives the
            error (or ``None``) and the response (or ``None``).
    """

    def __init__(
        self,
        retry_condition: Callable[[Exception | None, httpx.Response | None], bool],
    ) -> None:
        self.retry_condition = retry_condition

    def should_enqueue(
        self, error: Exception | None, response: httpx.Response | None = None
    ) -> bool:
        """Decide if an original failure should be queued for retry.

        Exceptions raised by the predicate propagate to the caller.

        Args:
            error: The exception raised by the transport, if any.
            response: The response obtained, if any.

        Returns:
            ``True`` if the failure is retry-eligible.
        """
        return bool(self.retry_condition(error, response))

    def should_keep_retrying(
        self, error: Exception | None, response: httpx.Response | None = None
    ) -> bool:
        """Decide if a failed re-dispatch leaves the request queued.

        A predicate that raises is treated as a caller bug: the error is
        logged and the request stays queued, so the retry ceiling still
        bounds it.

        Args:
            error: The exception raised by the transport, if any.
            response: The response obtained, if any.

        Returns:
            ``True`` if the request should stay queued.
        """
        try:
            return bool(self.retry_condition(error, response))
        except Exception:
            logger.exception("retry_condition raised, keeping the request queued")
            return True
