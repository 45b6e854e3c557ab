r"""Retry policy dataclass and defaults for the interception engine.

This module provides configuration constants and a dataclass-based
retry policy used by the InterceptionEngine and its scheduler.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_DELAY_TIME",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_INTERVAL",
    "OBSERVER_FIELDS",
    "RetryPolicy",
]

from dataclasses import asdict, dataclass, replace
from typing import TYPE_CHECKING, Any

from arequeue.core.validation import validate_policy_params
from arequeue.retry.decider import default_retry_condition

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from arequeue.callbacks import RequestInfo


# Minimum number of seconds between two attempts of the same request
# The original failed attempt counts as the first one
DEFAULT_DELAY_TIME = 1.0

# Number of seconds between two scheduled sweeps of the pending requests
DEFAULT_RETRY_INTERVAL = 5.0

# Default maximum number of retry attempts of a queued request
DEFAULT_MAX_RETRIES = 3

# Optional observer fields that a None override removes
OBSERVER_FIELDS = frozenset({"on_retry", "on_max_retries_exceeded"})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy of an InterceptionEngine.

    A policy is immutable. Updating the configuration of a running engine
    swaps in a new policy built with ``merge``, which only affects the
    sweeps that start afterwards.

    Args:
        delay_time: Minimum number of seconds that must elapse since the
            last attempt of a request before it is re-dispatched. Must be >= 0.
        retry_interval: Number of seconds between two scheduled sweeps.
            Must be > 0.
        max_retries: Maximum number of retry attempts of a queued request.
            Must be >= 0.
        retry_condition: Predicate deciding if a failure is retry-eligible.
            It receives the error (or ``None``) and the response (or ``None``).
        on_retry: Optional callback invoked before each re-dispatch with
            the last error, the attempt number and a ``RequestInfo``.
        on_max_retries_exceeded: Optional callback invoked once when a
            request is abandoned, with the last error and a ``RequestInfo``.
        enable_logging: Whether to emit lifecycle messages at INFO level
            instead of DEBUG level.

    Example:
        ```pycon
        >>> from arequeue.core.config import RetryPolicy
        >>> policy = RetryPolicy()
        >>> policy.max_retries
        3
        >>> merged = policy.merge(max_retries=10)
        >>> merged.max_retries
        10
        >>> policy.max_retries  # Original unchanged
        3

        ```
    """

    delay_time: float = DEFAULT_DELAY_TIME
    retry_interval: float = DEFAULT_RETRY_INTERVAL
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_condition: Callable[[Exception | None, httpx.Response | None], bool] = (
        default_retry_condition
    )
    on_retry: Callable[[Exception | None, int, RequestInfo], None] | None = None
    on_max_retries_exceeded: Callable[[Exception | None, RequestInfo], None] | None = None
    enable_logging: bool = False

    def __post_init__(self) -> None:
        """Validate policy parameters after initialization.

        Raises:
            ValueError: If any parameter fails validation.
        """
        if self.retry_condition is None:
            object.__setattr__(self, "retry_condition", default_retry_condition)
        validate_policy_params(
            max_retries=self.max_retries,
            delay_time=self.delay_time,
            retry_interval=self.retry_interval,
        )

    def merge(self, **overrides: Any) -> RetryPolicy:
        """Create a new policy with specified parameters overridden.

        None values are ignored, except for the observer fields
        ``on_retry`` and ``on_max_retries_exceeded`` where None removes
        the observer.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new RetryPolicy instance with overrides applied.

        Raises:
            TypeError: If an override does not name a policy field.
            ValueError: If the merged policy fails validation.

        Example:
            ```pycon
            >>> from arequeue.core.config import RetryPolicy
            >>> policy = RetryPolicy(max_retries=3)
            >>> policy.merge(max_retries=1, delay_time=None).max_retries
            1

            ```
        """
        filtered_overrides = {
            k: v for k, v in overrides.items() if v is not None or k in OBSERVER_FIELDS
        }
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert the policy to dictionary format.

        Returns:
            Dictionary with the policy parameters.

        Example:
            ```pycon
            >>> from arequeue.core.config import RetryPolicy
            >>> RetryPolicy(max_retries=5).to_dict()["max_retries"]
            5

            ```
        """
        return asdict(self)
