from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from arequeue.core.config import RetryPolicy
from arequeue.network import ManualConnectivity


@pytest.fixture
def mock_response() -> httpx.Response:
    """Create a mock successful httpx.Response for testing."""
    return Mock(spec=httpx.Response, status_code=200)


@pytest.fixture
def mock_response_fail() -> httpx.Response:
    """Create a mock httpx.Response with a retryable status for
    testing."""
    return Mock(spec=httpx.Response, status_code=500)


@pytest.fixture
def mock_dispatcher(mock_response: httpx.Response) -> AsyncMock:
    """Create a mock dispatcher that always succeeds."""
    return AsyncMock(return_value=mock_response)


@pytest.fixture
def connectivity() -> ManualConnectivity:
    """Create an online connectivity source."""
    return ManualConnectivity()


@pytest.fixture
def policy() -> RetryPolicy:
    """Create a policy whose requests are due right away and whose
    periodic sweeps never fire during a test."""
    return RetryPolicy(delay_time=0.0, retry_interval=3600.0)
