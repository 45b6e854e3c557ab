from __future__ import annotations

import json
import logging
from io import StringIO
from typing import TYPE_CHECKING

import pytest

from arequeue.utils.structured_logging import (
    StructuredFormatter,
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    log_event,
    log_structured,
    set_correlation_id,
)

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def stream_logger() -> Generator[tuple[logging.Logger, StringIO], None, None]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("arequeue.tests.structured")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    try:
        yield logger, stream
    finally:
        logger.removeHandler(handler)
        logger.propagate = True
        clear_correlation_id()


def read_records(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().strip().split("\n") if line]


###########################################
#     Tests for correlation ID helpers    #
###########################################


def test_correlation_id_initially_none() -> None:
    clear_correlation_id()
    assert get_correlation_id() is None


def test_set_and_clear_correlation_id() -> None:
    set_correlation_id("3f2a9c")
    assert get_correlation_id() == "3f2a9c"
    clear_correlation_id()
    assert get_correlation_id() is None


def test_correlation_scope_restores_previous_value() -> None:
    set_correlation_id("outer")
    try:
        with correlation_scope("inner"):
            assert get_correlation_id() == "inner"
        assert get_correlation_id() == "outer"
    finally:
        clear_correlation_id()


def test_correlation_scope_restores_on_error() -> None:
    clear_correlation_id()
    with pytest.raises(RuntimeError), correlation_scope("failing"):
        raise RuntimeError
    assert get_correlation_id() is None


#########################################
#     Tests for StructuredFormatter     #
#########################################


def test_structured_formatter_basic_log(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    logger.info("Stored request for retry")

    (record,) = read_records(stream)
    assert record["message"] == "Stored request for retry"
    assert record["level"] == "INFO"
    assert record["logger"] == "arequeue.tests.structured"
    assert record["function"] == "test_structured_formatter_basic_log"
    assert "correlation_id" not in record


def test_structured_formatter_timestamp_format(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    logger.info("Timestamp test")

    timestamp = read_records(stream)[0]["timestamp"]
    # Format: YYYY-MM-DDTHH:MM:SS.MMMZ
    assert timestamp[10] == "T"
    assert timestamp.endswith("Z")
    assert len(timestamp) == 24


def test_structured_formatter_with_correlation_id(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    with correlation_scope("request-789"):
        logger.info("Retrying request")

    assert read_records(stream)[0]["correlation_id"] == "request-789"


def test_structured_formatter_with_extra_fields(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    logger.info("Request settled", extra={"request_id": "abc", "status_code": 200})

    record = read_records(stream)[0]
    assert record["request_id"] == "abc"
    assert record["status_code"] == 200


def test_structured_formatter_with_exception(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    try:
        msg = "Test error"
        raise ValueError(msg)
    except ValueError:
        logger.exception("Unexpected error while retrying request")

    record = read_records(stream)[0]
    assert record["level"] == "ERROR"
    assert "ValueError: Test error" in record["exception"]


def test_structured_formatter_non_serializable_extra(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    logger.info("Request stored", extra={"error": ConnectionError("refused")})

    assert read_records(stream)[0]["error"] == "refused"


####################################
#     Tests for log_structured     #
####################################


def test_log_structured_with_extra_fields(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    log_structured(logger, logging.WARNING, "Request failed", url="https://api.example.com")

    record = read_records(stream)[0]
    assert record["level"] == "WARNING"
    assert record["url"] == "https://api.example.com"


def test_log_structured_respects_log_level(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    logger.setLevel(logging.WARNING)
    log_structured(logger, logging.INFO, "Info message")
    log_structured(logger, logging.ERROR, "Error message")

    assert [record["message"] for record in read_records(stream)] == ["Error message"]


###############################
#     Tests for log_event     #
###############################


@pytest.mark.parametrize(("enabled", "level"), [(True, "INFO"), (False, "DEBUG")])
def test_log_event_level(
    stream_logger: tuple[logging.Logger, StringIO], enabled: bool, level: str
) -> None:
    logger, stream = stream_logger
    log_event(logger, "Interception engine started", enabled=enabled, request_id="abc")

    record = read_records(stream)[0]
    assert record["level"] == level
    assert record["request_id"] == "abc"
