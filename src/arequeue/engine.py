r"""Interception engine that queues failed requests for retry.

The engine is the single entry point for transport wrappers. When a
request fails, the wrapper calls ``enqueue_failed_request``: if the policy
deems the failure retry-eligible, the request is queued and the wrapper
receives a future that settles once the request succeeds, is abandoned,
or is cleared. Queued requests are re-dispatched by a periodic scheduler
and right after connectivity comes back.

Example:
    ```pycon
    >>> import asyncio
    >>> import httpx
    >>> from arequeue import InterceptionEngine, RetryPolicy
    >>> async def main():  # doctest: +SKIP
    ...     async with InterceptionEngine(policy=RetryPolicy(max_retries=5)) as engine:
    ...         handle = engine.enqueue_failed_request(
    ...             "https://api.example.com/data",
    ...             {"method": "GET"},
    ...             response=httpx.Response(503),
    ...         )
    ...         return await handle
    ...
    >>> asyncio.run(main())  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "EngineStatus",
    "InterceptionEngine",
    "create_engine",
    "get_global_engine",
    "start_global_engine",
    "stop_global_engine",
]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from arequeue.core.config import RetryPolicy
from arequeue.dispatch import HttpxDispatcher
from arequeue.network import ManualConnectivity, NetworkStateMonitor
from arequeue.registry import PendingRequestRegistry
from arequeue.retry.decider import RetryDecider
from arequeue.scheduler import RetryScheduler
from arequeue.utils.structured_logging import log_event

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Mapping
    from types import TracebackType
    from typing import Self

    import httpx

    from arequeue.dispatch import Dispatcher
    from arequeue.network import ConnectivitySource

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineStatus:
    """Read-only snapshot of the engine state.

    Attributes:
        active: Whether the engine is started.
        online: Whether the network is considered online.
        pending_count: The number of queued requests.
    """

    active: bool
    online: bool
    pending_count: int


class InterceptionEngine:
    r"""Queue failed requests and retry them in the background.

    The engine has two states. It starts inactive; ``start`` activates it
    by starting the scheduler and the connectivity observation, and
    ``stop`` deactivates it and clears every queued request.

    All methods must be called from the thread running the event loop.
    ``start`` and ``enqueue_failed_request`` need a running loop.

    Args:
        policy: Optional retry policy. If ``None``, a default
            ``RetryPolicy`` is used.
        dispatcher: Optional transport capability used to re-dispatch
            requests. If ``None``, an ``HttpxDispatcher`` is used.
        connectivity: Optional connectivity source. If ``None``, a
            ``ManualConnectivity`` that is always online is used.

    Example:
        ```pycon
        >>> from arequeue import InterceptionEngine, RetryPolicy
        >>> engine = InterceptionEngine(policy=RetryPolicy(max_retries=5))
        >>> engine.get_status()
        EngineStatus(active=False, online=True, pending_count=0)
        >>> engine.update_config(max_retries=1)
        >>> engine.policy.max_retries
        1

        ```
    """

    def __init__(
        self,
        *,
        policy: RetryPolicy | None = None,
        dispatcher: Dispatcher | None = None,
        connectivity: ConnectivitySource | None = None,
    ) -> None:
        self._policy = policy if policy is not None else RetryPolicy()
        self._dispatcher = dispatcher if dispatcher is not None else HttpxDispatcher()
        self._registry = PendingRequestRegistry()
        self._monitor = NetworkStateMonitor(
            connectivity if connectivity is not None else ManualConnectivity(),
            on_online=self._handle_online,
        )
        self._scheduler = RetryScheduler(
            registry=self._registry,
            dispatcher=self._dispatcher,
            policy_provider=lambda: self._policy,
            is_online=lambda: self._monitor.online,
        )
        self._active = False

    async def __aenter__(self) -> Self:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def policy(self) -> RetryPolicy:
        """The live retry policy."""
        return self._policy

    @property
    def active(self) -> bool:
        """Indicate if the engine is started."""
        return self._active

    def start(self) -> None:
        """Start the scheduler and the connectivity observation.

        Does nothing if the engine is already active.
        """
        if self._active:
            log_event(logger, "Interceptor already active", enabled=self._policy.enable_logging)
            return
        self._scheduler.start()
        self._monitor.attach()
        self._active = True
        log_event(logger, "Interception engine started", enabled=self._policy.enable_logging)

    def stop(self) -> None:
        """Stop the scheduler and the connectivity observation, and clear
        every queued request.

        Every caller still waiting is settled with ``RequestClearedError``.
        Does nothing if the engine is inactive.
        """
        if not self._active:
            return
        self._scheduler.stop()
        self._monitor.detach()
        self.clear_pending_requests()
        self._active = False
        log_event(logger, "Interception engine stopped", enabled=self._policy.enable_logging)

    async def aclose(self) -> None:
        """Stop the engine and release the dispatcher resources."""
        self.stop()
        aclose = getattr(self._dispatcher, "aclose", None)
        if aclose is not None:
            await aclose()

    def update_config(self, **overrides: Any) -> None:
        """Merge new values into the live retry policy.

        The new policy applies to the sweeps that start afterwards. Past
        attempts of queued requests are not re-evaluated.

        Args:
            **overrides: The policy fields to change.

        Raises:
            TypeError: If an override does not name a policy field.
            ValueError: If the merged policy fails validation.
        """
        self._policy = self._policy.merge(**overrides)
        log_event(
            logger,
            f"Configuration updated: {sorted(overrides)}",
            enabled=self._policy.enable_logging,
        )

    def get_status(self) -> EngineStatus:
        """Return a snapshot of the engine state."""
        return EngineStatus(
            active=self._active,
            online=self._monitor.online,
            pending_count=self._registry.count(),
        )

    def get_pending_count(self) -> int:
        """Return the number of queued requests."""
        return self._registry.count()

    def clear_pending_requests(self) -> int:
        """Settle every queued request with ``RequestClearedError``.

        The engine stays in its current state.

        Returns:
            The number of cleared requests.
        """
        count = self._registry.clear()
        log_event(
            logger,
            f"Cleared {count} pending request(s)",
            enabled=self._policy.enable_logging,
        )
        return count

    def enqueue_failed_request(
        self,
        url: str,
        options: Mapping[str, Any] | None = None,
        error: Exception | None = None,
        response: httpx.Response | None = None,
    ) -> asyncio.Future[httpx.Response] | None:
        """Queue a failed request for retry if the policy allows it.

        Args:
            url: The URL of the failed request.
            options: The options needed to re-dispatch the request.
            error: The exception raised by the transport, if any.
            response: The failing response, if any.

        Returns:
            A future settled with the final response, or failed with
            ``RetriesExhaustedError``, ``RequestClearedError`` or a
            non-retryable transport error. ``None`` if the engine is inactive
            or the failure is not retry-eligible, in which case the original
            failure is final.
        """
        if not self._active:
            logger.debug(f"Engine inactive, not queueing failure of {url}")
            return None
        policy = self._policy
        if not RetryDecider(policy.retry_condition).should_enqueue(error, response):
            logger.debug(f"Failure of {url} is not retry-eligible")
            return None
        request = self._registry.enqueue(url, options, error=error, response=response)
        log_event(
            logger,
            f"Stored request {request.id} for retry. URL: {url}",
            enabled=policy.enable_logging,
            request_id=request.id,
            url=url,
        )
        return request.future

    async def sweep(self) -> int:
        """Run one sweep right away.

        Returns:
            The number of requests processed by the sweep.
        """
        return await self._scheduler.sweep()

    def _handle_online(self) -> None:
        log_event(
            logger,
            "Network back online - retrying pending requests",
            enabled=self._policy.enable_logging,
        )
        if not self._active:
            return
        if self._scheduler.sweeping:
            logger.debug("Sweep in progress, skipping the reconnect sweep")
            return
        self._scheduler.trigger()


_global_engine: InterceptionEngine | None = None


def create_engine(
    policy: RetryPolicy | None = None,
    *,
    dispatcher: Dispatcher | None = None,
    connectivity: ConnectivitySource | None = None,
) -> InterceptionEngine:
    """Create a new, inactive, interception engine.

    Args:
        policy: Optional retry policy.
        dispatcher: Optional transport capability.
        connectivity: Optional connectivity source.

    Returns:
        The new engine.
    """
    return InterceptionEngine(policy=policy, dispatcher=dispatcher, connectivity=connectivity)


def start_global_engine(
    policy: RetryPolicy | None = None,
    *,
    dispatcher: Dispatcher | None = None,
    connectivity: ConnectivitySource | None = None,
) -> InterceptionEngine:
    """Start the process-wide engine, creating it on the first call.

    The arguments are only used when the engine is created.

    Returns:
        The process-wide engine.
    """
    global _global_engine  # noqa: PLW0603
    if _global_engine is None:
        _global_engine = create_engine(policy, dispatcher=dispatcher, connectivity=connectivity)
    _global_engine.start()
    return _global_engine


def stop_global_engine() -> None:
    """Stop the process-wide engine if it exists."""
    if _global_engine is not None:
        _global_engine.stop()


def get_global_engine() -> InterceptionEngine | None:
    """Return the process-wide engine, or ``None`` if it was never started."""
    return _global_engine
