from __future__ import annotations

"""
shipsync.core.types
===================

Shared type aliases and small constants used across the codebase.
Keep this module **tiny** and dependency-free.
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Final, Union

# ---- JSON-like value aliases -------------------------------------------------

JSONScalar = Union[str, int, float, bool, None]
JSONValue = Union[JSONScalar, "JSONArray", "JSONDict"]
JSONArray = list[JSONValue]
JSONDict = dict[str, JSONValue]

ROMappingStrAny = Mapping[str, Any]
Headers = dict[str, str]

# ---- Time & IDs --------------------------------------------------------------

Millis = int
Seconds = float
TimestampMs = int  # wall-clock epoch timestamp (ms)
MonotonicMs = int  # process-local monotonic time (ms)

RecordId = str

# ---- Callbacks ---------------------------------------------------------------

TokenProvider = Callable[[], "str | None"]
AsyncCallback = Callable[[], Awaitable[Any]]

# ---- Constants ---------------------------------------------------------------

# Total replay attempts allowed per queued request before it is abandoned.
MAX_RETRIES: Final[int] = 3

# Random suffix of generated record ids (base36).
RECORD_ID_ALPHABET: Final[str] = "0123456789abcdefghijklmnopqrstuvwxyz"
RECORD_ID_SUFFIX_SIZE: Final[int] = 9

AUTHORIZATION_HEADER: Final[str] = "Authorization"


__all__ = [
    "JSONScalar",
    "JSONValue",
    "JSONArray",
    "JSONDict",
    "ROMappingStrAny",
    "Headers",
    "Millis",
    "Seconds",
    "TimestampMs",
    "MonotonicMs",
    "RecordId",
    "TokenProvider",
    "AsyncCallback",
    "MAX_RETRIES",
    "RECORD_ID_ALPHABET",
    "RECORD_ID_SUFFIX_SIZE",
    "AUTHORIZATION_HEADER",
]
