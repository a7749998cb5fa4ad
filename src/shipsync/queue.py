# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Queue manager: the write-side entry point used when a request has to be parked.
"""

from collections.abc import Mapping
from typing import Any

from .core.log import get_logger
from .core.time import Clock, SystemClock
from .core.types import RecordId
from .core.utils import generate_record_id
from .models import HttpMethod, QueuedRequest
from .storage.queue import QueueStore

__all__ = ["OfflineQueue"]


class OfflineQueue:
    def __init__(self, store: QueueStore, *, clock: Clock | None = None) -> None:
        self.store = store
        self.clock: Clock = clock or SystemClock()
        self.log = get_logger("queue")

    async def queue_request(
        self,
        method: HttpMethod | str,
        url: str,
        *,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> RecordId:
        """Persist a request for later replay and return its queue id."""
        now = self.clock.now_ms()
        record = QueuedRequest(
            id=generate_record_id(now),
            method=method,
            url=url,
            headers=dict(headers or {}),
            params=dict(params) if params is not None else None,
            data=data,
            timestamp=now,
            retry_count=0,
        )
        await self.store.enqueue(record)
        self.log.info(
            "request queued",
            event="queue.enqueued",
            record_id=record.id,
            method=record.method.value,
            url=record.url,
        )
        return record.id

    async def get_queued_request(self, record_id: RecordId) -> QueuedRequest | None:
        return await self.store.get(record_id)

    async def count(self) -> int:
        return await self.store.count()

    async def clear_all(self) -> None:
        await self.store.clear_all()
