from __future__ import annotations

"""
shipsync.core.utils
===================

Low-level helpers with **no external dependencies**:
- Record id generation (time-based prefix + random base36 suffix).
- Compact JSON (de)serialization helpers for persisted columns.
- Header hygiene for queued requests.
"""

import json
from collections.abc import Mapping
from secrets import choice
from typing import Any

from .types import AUTHORIZATION_HEADER, RECORD_ID_ALPHABET, RECORD_ID_SUFFIX_SIZE, TimestampMs


def generate_record_id(now_ms: TimestampMs, *, suffix_size: int = RECORD_ID_SUFFIX_SIZE) -> str:
    """
    Build a queued-request id of the form ``"<epoch-ms>-<suffix>"``.

    The millisecond prefix keeps ids roughly sortable for humans reading the store;
    the random suffix makes collisions within the same millisecond negligible.

    Args:
        now_ms: creation time in epoch milliseconds.
        suffix_size: number of random base36 characters.

    Returns:
        Id string, e.g. ``"1767025976194-k3j9x0a2b"``.
    """
    if suffix_size <= 0:
        raise ValueError("suffix_size must be positive")
    suffix = "".join(choice(RECORD_ID_ALPHABET) for _ in range(suffix_size))
    return f"{int(now_ms)}-{suffix}"


def dumps(x: Any) -> str:
    """
    Compact JSON dump (ensure_ascii=False, no spaces).
    Used for the headers/params/data columns of the queue table.
    """
    return json.dumps(x, ensure_ascii=False, separators=(",", ":"))


def loads(s: str | bytes) -> Any:
    """Inverse of dumps()."""
    if isinstance(s, bytes):
        s = s.decode("utf-8")
    return json.loads(s)


def strip_authorization(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Copy headers without the bearer Authorization entry (case-insensitive)."""
    if not headers:
        return {}
    banned = AUTHORIZATION_HEADER.lower()
    return {str(k): str(v) for k, v in headers.items() if str(k).lower() != banned}


def with_bearer(headers: Mapping[str, str] | None, token: str | None) -> dict[str, str]:
    """Return headers merged with ``Authorization: Bearer <token>`` when a token is set."""
    out = strip_authorization(headers)
    if token:
        out[AUTHORIZATION_HEADER] = f"Bearer {token}"
    return out
