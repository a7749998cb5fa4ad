# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from .context import SyncContext, build_context, get_context, get_publisher, init_publisher, shutdown_publisher
from .coordinator import OfflineCoordinator
from .indicator import IndicatorView
from .notify import CallbackNotifier, LogNotifier, Notification, Notifier, Variant
from .publisher import QueueStatePublisher

__all__ = [
    "CallbackNotifier",
    "IndicatorView",
    "LogNotifier",
    "Notification",
    "Notifier",
    "OfflineCoordinator",
    "QueueStatePublisher",
    "SyncContext",
    "Variant",
    "build_context",
    "get_context",
    "get_publisher",
    "init_publisher",
    "shutdown_publisher",
]
