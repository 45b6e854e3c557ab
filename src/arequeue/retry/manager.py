r"""Callback manager for orchestrating retry lifecycle events.

This module provides the CallbackManager class that handles invocation
of user-defined observers at various points in the retry lifecycle.
"""

from __future__ import annotations

__all__ = ["CallbackManager"]

import logging
from typing import TYPE_CHECKING

from arequeue.callbacks import RequestInfo

if TYPE_CHECKING:
    from arequeue.core.config import RetryPolicy
    from arequeue.registry import PendingRequest

logger: logging.Logger = logging.getLogger(__name__)


class CallbackManager:
    """Manages observer invocations during the retry lifecycle.

    Observers belong to the caller, so an exception raised by one of them
    is logged and never allowed to interrupt a sweep.

    Args:
        policy: The policy holding the observers.

    Attributes:
        policy: The policy holding the observers.
    """

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy

    def on_retry(self, request: PendingRequest) -> None:
        """Invoke the on_retry observer before a re-dispatch.

        Args:
            request: The pending request about to be re-dispatched.
        """
        if self.policy.on_retry is None:
            return
        try:
            self.policy.on_retry(
                request.last_error,
                request.retry_count,
                RequestInfo(url=request.url, options=request.options),
            )
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Error in on_retry callback for {request.url}: {e}")

    def on_max_retries_exceeded(self, request: PendingRequest) -> None:
        """Invoke the on_max_retries_exceeded observer.

        Args:
            request: The pending request being abandoned.
        """
        if self.policy.on_max_retries_exceeded is None:
            return
        try:
            self.policy.on_max_retries_exceeded(
                request.last_error,
                RequestInfo(url=request.url, options=request.options),
            )
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Error in on_max_retries_exceeded callback for {request.url}: {e}")
