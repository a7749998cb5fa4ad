# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Error taxonomy for the offline queue.

Storage failures are surfaced once per operation; per-request send failures are
absorbed by the replay pass and only show up in its aggregate counts.
"""

from typing import Literal

Language = Literal["en", "fr"]

_QUEUED_MESSAGES: dict[str, str] = {
    "en": "Request queued - will be sent when online",
    "fr": "Requête en attente - sera envoyée une fois en ligne",
}


class SyncError(Exception):
    """Base class for all shipsync errors."""

    ...


class StorageError(SyncError):
    """The local persistence medium is unavailable or its content is corrupted."""

    ...


class NetworkSendError(SyncError):
    """
    An HTTP send failed: transport error, timeout or non-2xx response.

    `status_code` is None when no response was received at all, which is what
    callers treat as a connectivity failure.
    """

    def __init__(self, message: str, *, status_code: int | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    @property
    def is_connectivity(self) -> bool:
        return self.status_code is None


class ExhaustedRetriesError(SyncError):
    """A queued request reached the retry limit and was dropped from the queue."""

    def __init__(self, record_id: str, attempts: int) -> None:
        super().__init__(f"request {record_id} failed after {attempts} attempts")
        self.record_id = record_id
        self.attempts = attempts


class QueuedRequestError(SyncError):
    """
    Raised to callers of the offline-aware client when a mutation could not be sent
    and was queued for replay instead.
    """

    is_queued = True

    def __init__(self, queue_id: str, *, language: Language = "en") -> None:
        super().__init__(queued_request_message(language))
        self.queue_id = queue_id
        self.message = str(self)


def is_queued_request_error(error: object) -> bool:
    """True when `error` reports a request that was parked in the offline queue."""
    return getattr(error, "is_queued", False) is True


def queued_request_message(language: Language = "en") -> str:
    """User-facing message for a queued request."""
    return _QUEUED_MESSAGES.get(language, _QUEUED_MESSAGES["en"])


__all__ = [
    "SyncError",
    "StorageError",
    "NetworkSendError",
    "ExhaustedRetriesError",
    "QueuedRequestError",
    "is_queued_request_error",
    "queued_request_message",
]
