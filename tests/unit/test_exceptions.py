r"""Unit tests for the terminal errors."""

from __future__ import annotations

from unittest.mock import Mock

import httpx

from arequeue.exceptions import RequestClearedError, RequeueError, RetriesExhaustedError

TEST_URL = "https://api.example.com/data"


def test_retries_exhausted_error() -> None:
    response = Mock(spec=httpx.Response, status_code=503)
    error = RetriesExhaustedError(url=TEST_URL, retry_count=3, max_retries=3, response=response)

    assert isinstance(error, RequeueError)
    assert isinstance(error, RuntimeError)
    assert error.url == TEST_URL
    assert error.retry_count == 3
    assert error.max_retries == 3
    assert error.response is response
    assert str(error) == f"Max retries exceeded for {TEST_URL} (3/3)"


def test_retries_exhausted_error_without_response() -> None:
    assert RetriesExhaustedError(url=TEST_URL, retry_count=1, max_retries=1).response is None


def test_request_cleared_error() -> None:
    error = RequestClearedError(url=TEST_URL)

    assert isinstance(error, RequeueError)
    assert error.url == TEST_URL
    assert str(error) == f"Request to {TEST_URL} was cleared"


def test_cleared_and_exhausted_are_distinct() -> None:
    assert not issubclass(RequestClearedError, RetriesExhaustedError)
    assert not issubclass(RetriesExhaustedError, RequestClearedError)
