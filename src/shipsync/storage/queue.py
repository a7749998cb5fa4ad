# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Durable queue store interface (medium-agnostic).

Responsibilities:
- Persist queued request records across application restarts.
- Keep each single-record operation atomic (a crash mid-enqueue must not
  corrupt other records).
- Report an unavailable or corrupted medium as `StorageError`.

Ordering of `list_all()` is not part of the contract; the coordinator sorts.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ..core.types import RecordId
from ..models import QueuedRequest

__all__ = ["QueueStore"]


@runtime_checkable
class QueueStore(Protocol):
    async def enqueue(self, record: QueuedRequest) -> None:
        """Insert a new record. Raises StorageError if the medium is unavailable."""
        ...

    async def list_all(self) -> Sequence[QueuedRequest]:
        """Return every stored record (unspecified order)."""
        ...

    async def get(self, record_id: RecordId) -> QueuedRequest | None: ...

    async def remove(self, record_id: RecordId) -> None:
        """Delete the record; no-op when it is already gone."""
        ...

    async def update_retry_count(self, record_id: RecordId, retry_count: int) -> None:
        """Set retry_count on the matching record; no-op when absent."""
        ...

    async def count(self) -> int: ...

    async def clear_all(self) -> None: ...
