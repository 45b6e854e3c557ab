r"""Periodic retry scheduler.

The scheduler sweeps the pending request registry and re-dispatches
every request that is due. Sweeps never overlap: a sweep requested while
another one is running is skipped.
"""

from __future__ import annotations

__all__ = ["RetryScheduler"]

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from arequeue.exceptions import RetriesExhaustedError
from arequeue.retry.decider import RetryDecider, is_success
from arequeue.retry.manager import CallbackManager
from arequeue.utils.structured_logging import correlation_scope, log_event

if TYPE_CHECKING:
    from collections.abc import Callable

    from arequeue.core.config import RetryPolicy
    from arequeue.dispatch import Dispatcher
    from arequeue.registry import PendingRequest, PendingRequestRegistry

logger: logging.Logger = logging.getLogger(__name__)


class RetryScheduler:
    """Sweeps the registry and re-dispatches the requests that are due.

    The policy is read once at the start of each sweep, so a policy
    update applies to the sweeps that start afterwards.

    Args:
        registry: The registry of queued requests.
        dispatcher: The transport capability used to re-dispatch requests.
        policy_provider: Function returning the live retry policy.
        is_online: Function returning the current connectivity state.
    """

    def __init__(
        self,
        registry: PendingRequestRegistry,
        dispatcher: Dispatcher,
        policy_provider: Callable[[], RetryPolicy],
        is_online: Callable[[], bool],
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._policy_provider = policy_provider
        self._is_online = is_online
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._triggered: set[asyncio.Task[int]] = set()

    @property
    def running(self) -> bool:
        """Indicate if the periodic loop is running."""
        return self._task is not None and not self._task.done()

    @property
    def sweeping(self) -> bool:
        """Indicate if a sweep is in progress."""
        return self._lock.locked()

    def start(self) -> None:
        """Start the periodic loop.

        The first sweep runs right away. Does nothing if the loop is
        already running. Must be called from a running event loop.
        """
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="arequeue-retry-scheduler"
        )

    def stop(self) -> None:
        """Cancel the periodic loop and any triggered sweep."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        for task in list(self._triggered):
            task.cancel()
        self._triggered.clear()

    def trigger(self) -> asyncio.Task[int]:
        """Run one sweep out of band, without waiting for the next tick.

        Must be called from a running event loop.

        Returns:
            The task running the sweep.
        """
        task = asyncio.get_running_loop().create_task(self.sweep())
        self._triggered.add(task)
        task.add_done_callback(self._triggered.discard)
        return task

    async def sweep(self) -> int:
        """Run one pass over the queued requests.

        The sweep is skipped if another sweep is in progress, if the
        network is offline, or if no request is queued.

        Returns:
            The number of requests processed by the sweep.
        """
        if self._lock.locked():
            logger.debug("Sweep already in progress, skipping")
            return 0
        async with self._lock:
            if not self._is_online() or self._registry.count() == 0:
                return 0
            policy = self._policy_provider()
            decider = RetryDecider(policy.retry_condition)
            callbacks = CallbackManager(policy)
            processed = 0
            for request in self._registry.snapshot():
                if not self._is_online():
                    logger.debug("Network went offline during the sweep, stopping it")
                    break
                if request.id not in self._registry:
                    continue
                if request.future.done():
                    # The caller stopped waiting, e.g. its await was cancelled
                    self._registry.remove(request.id)
                    continue
                if time.monotonic() - request.last_attempt_at < policy.delay_time:
                    continue
                processed += 1
                try:
                    await self._retry(request, policy, decider, callbacks)
                except Exception:
                    logger.exception(f"Unexpected error while retrying request {request.id}")
            return processed

    async def _run(self) -> None:
        while True:
            try:
                await self.sweep()
            except Exception:
                logger.exception("Retry sweep failed")
            await asyncio.sleep(self._policy_provider().retry_interval)

    async def _retry(
        self,
        request: PendingRequest,
        policy: RetryPolicy,
        decider: RetryDecider,
        callbacks: CallbackManager,
    ) -> None:
        if request.retry_count >= policy.max_retries:
            # The ceiling was lowered below the retries already made
            self._exhaust(request, policy, callbacks)
            return

        request.mark_attempt()
        callbacks.on_retry(request)
        log_event(
            logger,
            f"Retrying request {request.id} "
            f"(attempt {request.retry_count}/{policy.max_retries})",
            enabled=policy.enable_logging,
            request_id=request.id,
            url=request.url,
            attempt=request.retry_count,
        )

        with correlation_scope(request.id):
            try:
                response = await self._dispatcher(request.url, request.options)
            except Exception as exc:
                request.last_error = exc
                request.last_response = None
                if request.retry_count >= policy.max_retries:
                    self._exhaust(request, policy, callbacks)
                elif not decider.should_keep_retrying(exc, None):
                    logger.debug(f"Request {request.id} failed with non-retryable error: {exc}")
                    self._registry.reject(request.id, exc)
                return

        request.last_error = None
        request.last_response = response
        if is_success(response) or not decider.should_keep_retrying(None, response):
            if self._registry.resolve(request.id, response):
                log_event(
                    logger,
                    f"Request {request.id} settled with status {response.status_code} "
                    f"on retry {request.retry_count}",
                    enabled=policy.enable_logging,
                    request_id=request.id,
                    url=request.url,
                    status_code=response.status_code,
                )
        elif request.retry_count >= policy.max_retries:
            self._exhaust(request, policy, callbacks)

    def _exhaust(
        self, request: PendingRequest, policy: RetryPolicy, callbacks: CallbackManager
    ) -> None:
        if request.id not in self._registry:
            return
        callbacks.on_max_retries_exceeded(request)
        error = RetriesExhaustedError(
            url=request.url,
            retry_count=request.retry_count,
            max_retries=policy.max_retries,
            response=request.last_response,
        )
        error.__cause__ = request.last_error
        self._registry.reject(request.id, error)
        log_event(
            logger,
            f"Request {request.id} failed after {request.retry_count} retries",
            enabled=policy.enable_logging,
            request_id=request.id,
            url=request.url,
        )
