# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Durable storage for queued requests.
"""

from .queue import QueueStore
from .sqlite import SqliteQueueStore

__all__ = [
    "QueueStore",
    "SqliteQueueStore",
]
