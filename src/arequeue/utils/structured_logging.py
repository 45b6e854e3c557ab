r"""Structured logging utilities for machine-readable log output.

This module provides a JSON formatter and a correlation id stored in a
context variable. While a queued request is re-dispatched, the engine
sets the correlation id to the id of that request, so every log line
emitted by the transport during the attempt can be tied back to it.

The structured logging system is opt-in and can be enabled by configuring
Python's logging system to use the provided formatter.

Example:
    Enable structured logging for arequeue:

    ```python
    import logging
    from arequeue.utils.structured_logging import StructuredFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    logger = logging.getLogger("arequeue")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    ```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "correlation_scope",
    "get_correlation_id",
    "log_event",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Generator

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Attributes of every LogRecord, everything else comes from ``extra``
_RECORD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "msecs",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "sinfo",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
    }
)


def get_correlation_id() -> str | None:
    """Get the current correlation ID.

    Returns:
        The current correlation ID, or None if not set.

    Example:
        ```pycon
        >>> from arequeue.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("req-123")
        >>> get_correlation_id()
        'req-123'
        >>> clear_correlation_id()

        ```
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: The correlation ID to set.
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current context."""
    _correlation_id.set(None)


@contextmanager
def correlation_scope(correlation_id: str) -> Generator[None, None, None]:
    """Set the correlation ID for the duration of a block.

    The previous value is restored when the block exits.

    Args:
        correlation_id: The correlation ID to set.

    Example:
        ```pycon
        >>> from arequeue.utils.structured_logging import (
        ...     correlation_scope,
        ...     get_correlation_id,
        ... )
        >>> with correlation_scope("3f2a"):
        ...     print(get_correlation_id())
        ...
        3f2a
        >>> get_correlation_id()

        ```
    """
    token = _correlation_id.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id.reset(token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Standard fields in the JSON output:
        - timestamp: ISO 8601 timestamp
        - level: Log level name
        - logger: Logger name
        - message: Log message
        - correlation_id: Id of the request being re-dispatched, if any
        - module, function, line: Where the log originated

    Any additional fields added via the ``extra`` parameter in logging
    calls are included in the JSON output.

    Example:
        ```pycon
        >>> import logging
        >>> from io import StringIO
        >>> from arequeue.utils.structured_logging import StructuredFormatter
        >>> stream = StringIO()
        >>> handler = logging.StreamHandler(stream)
        >>> handler.setFormatter(StructuredFormatter())
        >>> logger = logging.getLogger("doctest_structured_formatter")
        >>> logger.addHandler(handler)
        >>> logger.setLevel(logging.INFO)
        >>> logger.info("Request stored", extra={"request_id": "123"})
        >>> "request_id" in stream.getvalue()
        True

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = get_correlation_id()
        if correlation_id is not None:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value

        return json.dumps(log_data, default=str)

    def formatTime(  # noqa: N802
        self, record: logging.LogRecord, datefmt: str | None = None  # noqa: ARG002
    ) -> str:
        """Format timestamp as ISO 8601 with millisecond precision."""
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """Log a message with structured data.

    Args:
        logger: Logger to use.
        level: Log level (e.g., logging.INFO).
        message: Log message.
        **extra: Additional structured fields to include in the log.
    """
    logger.log(level, message, extra=extra)


def log_event(
    logger: logging.Logger,
    message: str,
    *,
    enabled: bool,
    **extra: Any,
) -> None:
    """Log an engine lifecycle event.

    Events are logged at INFO level when the engine logging toggle is
    enabled, and at DEBUG level otherwise.

    Args:
        logger: Logger to use.
        message: Log message.
        enabled: The value of the ``enable_logging`` policy toggle.
        **extra: Additional structured fields to include in the log.
    """
    log_structured(logger, logging.INFO if enabled else logging.DEBUG, message, **extra)
