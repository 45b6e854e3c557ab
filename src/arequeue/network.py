r"""Connectivity tracking for the interception engine.

The engine does not know how connectivity is detected. It consumes a
``ConnectivitySource`` that reports the current state and notifies
listeners of transitions. ``ManualConnectivity`` is an in-process source
driven by the application, and ``NetworkStateMonitor`` turns the
transitions into engine actions.
"""

from __future__ import annotations

__all__ = ["ConnectivitySource", "ManualConnectivity", "NetworkStateMonitor"]

import logging
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

logger: logging.Logger = logging.getLogger(__name__)


class ConnectivitySource(Protocol):
    """Source of connectivity state and transitions."""

    def is_online(self) -> bool:
        """Return the current connectivity state."""

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]:
        """Register a listener called with the new state on each transition.

        Args:
            listener: The listener to call.

        Returns:
            A function that removes the listener.
        """


class ManualConnectivity:
    r"""Connectivity source driven explicitly by the application.

    Listeners are only notified when the state actually changes.

    Args:
        online: The initial connectivity state.

    Example:
        ```pycon
        >>> from arequeue.network import ManualConnectivity
        >>> source = ManualConnectivity()
        >>> unsubscribe = source.subscribe(lambda online: print(f"online={online}"))
        >>> source.set_offline()
        online=False
        >>> source.set_offline()
        >>> source.set_online()
        online=True
        >>> unsubscribe()
        >>> source.is_online()
        True

        ```
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._listeners: list[Callable[[bool], None]] = []

    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_online(self) -> None:
        """Switch to online and notify the listeners."""
        self._set(True)

    def set_offline(self) -> None:
        """Switch to offline and notify the listeners."""
        self._set(False)

    def _set(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        for listener in list(self._listeners):
            listener(online)


class NetworkStateMonitor:
    """Tracks connectivity and triggers a sweep when it comes back.

    Going offline only records the state. Going online records the state
    and calls ``on_online`` once, so queued requests are retried without
    waiting for the next scheduled sweep.

    Args:
        source: The connectivity source to observe.
        on_online: Function called on each transition to online.
    """

    def __init__(self, source: ConnectivitySource, on_online: Callable[[], Any]) -> None:
        self.source = source
        self._on_online = on_online
        self._online = source.is_online()
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def online(self) -> bool:
        """Indicate if the network is currently considered online."""
        return self._online

    @property
    def attached(self) -> bool:
        """Indicate if the monitor is observing its source."""
        return self._unsubscribe is not None

    def attach(self) -> None:
        """Start observing the source.

        The current state is read again, since it may have changed while
        the monitor was detached.
        """
        if self._unsubscribe is not None:
            return
        self._online = self.source.is_online()
        self._unsubscribe = self.source.subscribe(self.handle_change)

    def detach(self) -> None:
        """Stop observing the source."""
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    def handle_change(self, online: bool) -> None:
        """Record a connectivity change.

        Args:
            online: The new connectivity state.
        """
        was_online = self._online
        self._online = online
        if not online:
            logger.debug("Network went offline - storing requests for later")
            return
        if not was_online:
            logger.debug("Network back online - retrying pending requests")
            self._on_online()
