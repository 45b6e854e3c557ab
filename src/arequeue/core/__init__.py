r"""Core configuration and validation shared by the engine components."""

from __future__ import annotations

__all__ = [
    "DEFAULT_DELAY_TIME",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_INTERVAL",
    "RetryPolicy",
    "validate_policy_params",
]

from arequeue.core.config import (
    DEFAULT_DELAY_TIME,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_INTERVAL,
    RetryPolicy,
)
from arequeue.core.validation import validate_policy_params
