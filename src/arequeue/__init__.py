r"""arequeue - Retry and offline queue for outbound HTTP requests.

This package provides a transparent layer that sits between application
code and the transport. Requests that fail with a retry-eligible error
are queued, re-dispatched periodically, and resumed as soon as the
network comes back online. Built on top of asyncio and the httpx library.

Key Features:
    - Queue of failed requests with one awaitable outcome per request
    - Retry of network errors and server-class statuses (>= 500, 408, 429)
    - Periodic retry sweeps with a minimum delay between two attempts
    - Immediate retry sweep when connectivity comes back
    - Bounded retries with an observer called on exhaustion
    - Clear and stop operations that never leave a caller waiting
    - httpx transport wrapper for drop-in integration

Example:
    ```pycon
    >>> import asyncio
    >>> import httpx
    >>> from arequeue import RetryPolicy
    >>> from arequeue.transport import RequeueTransport
    >>> async def main():  # doctest: +SKIP
    ...     transport = RequeueTransport(policy=RetryPolicy(max_retries=5))
    ...     async with transport.engine, httpx.AsyncClient(transport=transport) as client:
    ...         return await client.get("https://api.example.com/data")
    ...
    >>> asyncio.run(main())  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_DELAY_TIME",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_INTERVAL",
    "EngineStatus",
    "FailureKind",
    "HttpxDispatcher",
    "InterceptionEngine",
    "ManualConnectivity",
    "RequestClearedError",
    "RequestInfo",
    "RequeueError",
    "RequeueTransport",
    "RetriesExhaustedError",
    "RetryPolicy",
    "__version__",
    "classify_failure",
    "create_engine",
    "default_retry_condition",
    "get_global_engine",
    "start_global_engine",
    "stop_global_engine",
]

from importlib.metadata import PackageNotFoundError, version

from arequeue.callbacks import RequestInfo
from arequeue.core.config import (
    DEFAULT_DELAY_TIME,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_INTERVAL,
    RetryPolicy,
)
from arequeue.dispatch import HttpxDispatcher
from arequeue.engine import (
    EngineStatus,
    InterceptionEngine,
    create_engine,
    get_global_engine,
    start_global_engine,
    stop_global_engine,
)
from arequeue.exceptions import RequestClearedError, RequeueError, RetriesExhaustedError
from arequeue.network import ManualConnectivity
from arequeue.retry.decider import FailureKind, classify_failure, default_retry_condition
from arequeue.transport import RequeueTransport

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
