# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
shipsync.models
===============

Persisted and in-flight shapes of the offline queue.

- `QueuedRequest` is the durable unit of state (one failed mutation awaiting replay).
  Pydantic v2 with `extra="forbid"` so a corrupted/foreign row fails fast.
- `ReplayRequest` is what the HTTP-send capability receives. It is built per method:
  GET/DELETE never carry a body, POST/PUT/PATCH do.
- `PassResult` / `QueueState` are in-memory aggregates, never persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .core.types import Headers, RecordId, TimestampMs
from .core.utils import strip_authorization, with_bearer


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def has_body(self) -> bool:
        return self in _BODY_METHODS


_BODY_METHODS = frozenset({HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH})


class QueuedRequest(BaseModel):
    """A persisted description of one failed request awaiting replay."""

    model_config = ConfigDict(extra="forbid", frozen=True, use_enum_values=False)

    id: RecordId = Field(min_length=1)
    url: str = Field(min_length=1)
    method: HttpMethod
    headers: Headers = Field(default_factory=dict)
    params: dict[str, Any] | None = None
    data: Any = None
    timestamp: TimestampMs = Field(ge=0)
    retry_count: int = Field(default=0, ge=0)

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("url")
    @classmethod
    def _relative_url(cls, v: str) -> str:
        parts = urlsplit(v)
        if parts.scheme or parts.netloc:
            raise ValueError("queued url must be relative to the API base url")
        return v

    @field_validator("headers", mode="before")
    @classmethod
    def _drop_authorization(cls, v: Any) -> Any:
        # bearer token is re-read at replay time, never persisted
        if v is None:
            return {}
        return strip_authorization(v) if isinstance(v, dict) else v

    def with_retry_count(self, retry_count: int) -> QueuedRequest:
        return self.model_copy(update={"retry_count": retry_count})


@dataclass(frozen=True)
class ReplayRequest:
    """
    One outgoing HTTP request.

    `method` is lower-case; `data` is only meaningful when `has_body` is True.
    """

    url: str
    method: str
    headers: Headers = field(default_factory=dict)
    params: dict[str, Any] | None = None
    data: Any = None
    has_body: bool = False


def build_replay_request(record: QueuedRequest, token: str | None) -> ReplayRequest:
    """Turn a stored record into a sendable request with a freshly-read bearer token."""
    method = HttpMethod(record.method)
    headers = with_bearer(record.headers, token)
    if method.has_body:
        return ReplayRequest(
            url=record.url,
            method=method.value.lower(),
            headers=headers,
            params=record.params,
            data=record.data,
            has_body=True,
        )
    return ReplayRequest(url=record.url, method=method.value.lower(), headers=headers, params=record.params)


@dataclass
class PassResult:
    """Outcome of one replay pass."""

    success_count: int = 0
    fail_count: int = 0
    kept_count: int = 0
    skipped: bool = False
    error: str | None = None

    @property
    def has_outcome(self) -> bool:
        return self.success_count > 0 or self.fail_count > 0


@dataclass(frozen=True)
class QueueState:
    """Snapshot published to UI consumers."""

    is_online: bool
    queued_count: int
    is_retrying: bool


__all__ = [
    "HttpMethod",
    "QueuedRequest",
    "ReplayRequest",
    "build_replay_request",
    "PassResult",
    "QueueState",
]
