r"""Callback data structures for observability.

This module provides the information passed to the user-defined
observers, enabling users to hook into the retry lifecycle for logging,
metrics and alerting.

The callback system provides two lifecycle hooks:
- on_retry: Called before each re-dispatch of a queued request
- on_max_retries_exceeded: Called once when a queued request is abandoned

Example:
    ```pycon
    >>> from arequeue import InterceptionEngine, RetryPolicy
    >>> from arequeue.callbacks import RequestInfo
    >>> def log_retry(error, attempt, request_info: RequestInfo):
    ...     print(f"Retry {attempt} of {request_info.url}")
    ...
    >>> engine = InterceptionEngine(policy=RetryPolicy(on_retry=log_retry))

    ```
"""

from __future__ import annotations

__all__ = ["RequestInfo"]

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class RequestInfo:
    """Information passed to the retry observers.

    Attributes:
        url: The URL of the queued request.
        options: The read-only request options used to re-dispatch it.
    """

    url: str
    options: Mapping[str, Any]
