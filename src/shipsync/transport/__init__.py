# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from .client import OfflineAwareClient
from .http import HttpSender, HttpxSender, MemoryTokenStore, TokenStore

__all__ = [
    "HttpSender",
    "HttpxSender",
    "MemoryTokenStore",
    "OfflineAwareClient",
    "TokenStore",
]
