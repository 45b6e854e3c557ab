r"""Utility functions shared by the engine components."""

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

from arequeue.utils.structured_logging import (
    StructuredFormatter,
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    log_event,
    log_structured,
    set_correlation_id,
)
