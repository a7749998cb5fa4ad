# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Network status monitor: a pure mirror of the runtime connectivity signal.

`was_offline` is the "reconnected" marker used to gate auto-replay:
- starts as ``not is_online`` (booting offline counts as an offline period),
- becomes True on every "online" signal,
- becomes False on every "offline" signal.
"""

from typing import Protocol

from ..core.log import get_logger
from ..core.signals import Signal, Unsubscribe


class ConnectivitySource(Protocol):
    """Anything that pushes online/offline transitions (e.g. ConnectivityProbe)."""

    @property
    def is_online(self) -> bool: ...

    online: Signal
    offline: Signal


class NetworkStatusMonitor:
    def __init__(self, *, initial_online: bool = True) -> None:
        self._is_online = bool(initial_online)
        self._was_offline = not self._is_online
        self.changed = Signal("network.changed")
        self.log = get_logger("network")

    @classmethod
    def from_source(cls, source: ConnectivitySource) -> NetworkStatusMonitor:
        return cls(initial_online=source.is_online)

    @property
    def is_online(self) -> bool:
        return self._is_online

    @property
    def was_offline(self) -> bool:
        return self._was_offline

    def handle_online(self) -> None:
        self._is_online = True
        self._was_offline = True
        self.log.info("network online", event="network.online")
        self.changed.emit(self)

    def handle_offline(self) -> None:
        self._is_online = False
        self._was_offline = False
        self.log.info("network offline", event="network.offline")
        self.changed.emit(self)

    def attach(self, source: ConnectivitySource) -> Unsubscribe:
        """Subscribe to a source's transitions; the returned callable detaches both."""
        off_online = source.online.connect(self.handle_online)
        off_offline = source.offline.connect(self.handle_offline)

        def _detach() -> None:
            off_online()
            off_offline()

        return _detach
