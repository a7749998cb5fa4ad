# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from .monitor import ConnectivitySource, NetworkStatusMonitor
from .probe import ConnectivityProbe

__all__ = [
    "ConnectivityProbe",
    "ConnectivitySource",
    "NetworkStatusMonitor",
]
