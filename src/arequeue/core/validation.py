r"""Parameter validation utilities for the retry policy.

This module provides validation functions for retry policy parameters
to ensure they meet the required constraints before the engine uses
them to schedule retries.
"""

from __future__ import annotations

__all__ = ["validate_policy_params"]


def validate_policy_params(
    max_retries: int,
    delay_time: float = 0.0,
    retry_interval: float = 1.0,
) -> None:
    """Validate retry policy parameters.

    Args:
        max_retries: Maximum number of retry attempts for a queued request.
            Must be >= 0. A value of 0 means a queued request is abandoned
            on the first sweep that considers it.
        delay_time: Minimum number of seconds between two attempts of the
            same request. Must be >= 0.
        retry_interval: Number of seconds between two scheduled sweeps.
            Must be > 0.

    Raises:
        ValueError: If max_retries or delay_time are negative,
            or if retry_interval is non-positive.

    Example:
        ```pycon
        >>> from arequeue.core import validate_policy_params
        >>> validate_policy_params(max_retries=3)
        >>> validate_policy_params(max_retries=3, delay_time=0.5, retry_interval=2.0)
        >>> validate_policy_params(max_retries=-1)  # doctest: +SKIP

        ```
    """
    if max_retries < 0:
        msg = f"max_retries must be >= 0, got {max_retries}"
        raise ValueError(msg)
    if delay_time < 0:
        msg = f"delay_time must be >= 0, got {delay_time}"
        raise ValueError(msg)
    if retry_interval <= 0:
        msg = f"retry_interval must be > 0, got {retry_interval}"
        raise ValueError(msg)
