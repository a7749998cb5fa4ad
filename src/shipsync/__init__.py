# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

# Runtime package version from installed distribution metadata.
try:
    from importlib.metadata import version as _pkg_version

    __version__ = _pkg_version("shipsync")
except Exception:  # pragma: no cover
    # fallback for source checkouts without an install
    __version__ = "0.0.0"

from .core.config import SyncConfig
from .errors import NetworkSendError, QueuedRequestError, StorageError, SyncError
from .models import HttpMethod, PassResult, QueuedRequest, QueueState
from .queue import OfflineQueue
from .sync import OfflineCoordinator, QueueStatePublisher, get_publisher, init_publisher, shutdown_publisher

__all__ = [
    "HttpMethod",
    "NetworkSendError",
    "OfflineCoordinator",
    "OfflineQueue",
    "PassResult",
    "QueueState",
    "QueueStatePublisher",
    "QueuedRequest",
    "QueuedRequestError",
    "StorageError",
    "SyncConfig",
    "SyncError",
    "__version__",
    "get_publisher",
    "init_publisher",
    "shutdown_publisher",
]
