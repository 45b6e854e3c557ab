r"""Unit tests for retry policy parameter validation."""

from __future__ import annotations

import pytest

from arequeue.core.validation import validate_policy_params

############################################
#     Tests for validate_policy_params     #
############################################


@pytest.mark.parametrize("max_retries", [0, 1, 3, 100])
def test_validate_policy_params_valid_max_retries(max_retries: int) -> None:
    """Test that non-negative max_retries values are accepted."""
    validate_policy_params(max_retries=max_retries)


def test_validate_policy_params_valid_all() -> None:
    """Test that a complete set of valid parameters is accepted."""
    validate_policy_params(max_retries=3, delay_time=0.0, retry_interval=0.1)


def test_validate_policy_params_negative_max_retries() -> None:
    """Test that negative max_retries raises ValueError."""
    with pytest.raises(ValueError, match=r"max_retries must be >= 0, got -1"):
        validate_policy_params(max_retries=-1)


def test_validate_policy_params_negative_delay_time() -> None:
    """Test that negative delay_time raises ValueError."""
    with pytest.raises(ValueError, match=r"delay_time must be >= 0, got -1.0"):
        validate_policy_params(max_retries=3, delay_time=-1.0)


@pytest.mark.parametrize("retry_interval", [0.0, -1.0])
def test_validate_policy_params_non_positive_retry_interval(retry_interval: float) -> None:
    """Test that non-positive retry_interval raises ValueError."""
    with pytest.raises(ValueError, match=r"retry_interval must be > 0"):
        validate_policy_params(max_retries=3, retry_interval=retry_interval)
