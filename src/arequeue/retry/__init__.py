r"""Retry decision and observer management.

Public API:
    - FailureKind: Classification of a failed request
    - RetryDecider: Logic for deciding whether to retry
    - CallbackManager: Manager for observer invocations
    - classify_failure: Classify a failed request
    - default_retry_condition: Default eligibility predicate
    - is_success: Check if a response has a 2xx status code
"""

from __future__ import annotations

__all__ = [
    "CallbackManager",
    "FailureKind",
    "RetryDecider",
    "classify_failure",
    "default_retry_condition",
    "is_success",
]

from arequeue.retry.decider import (
    FailureKind,
    RetryDecider,
    classify_failure,
    default_retry_condition,
    is_success,
)
from arequeue.retry.manager import CallbackManager
