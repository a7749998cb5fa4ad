from __future__ import annotations

"""
shipsync.core.config
====================

Strongly-typed configuration for the offline queue and its replay loop.
- No external deps; optional JSON file loading.
- Derives millisecond fields from seconds to avoid repeated conversions.
- Provides small env overrides for convenience.

If a config file path is not provided or not found, sane defaults are used.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .types import MAX_RETRIES

_ENVIRONMENTS = ("development", "production", "test")
_LANGUAGES = ("en", "fr")


def _try_load_json(path: Path | None) -> dict[str, Any]:
    if not path or not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must contain a JSON object")
    return data


def _default_db_path() -> str:
    return str(Path.home() / ".shipsync" / "offline_queue.db")


# ---------------------------------------------------------------------------


@dataclass
class SyncConfig:
    """Offline queue configuration loaded from JSON/env with derived millisecond fields."""

    # ---- API
    api_url: str = "http://localhost:3000"
    api_prefix: str = "/api"
    environment: str = "development"
    # None -> 30s in production, 10s otherwise
    request_timeout_sec: float | None = None

    # ---- Storage
    db_path: str = ""

    # ---- Replay policy
    max_retries: int = MAX_RETRIES
    replay_pacing_sec: float = 0.1
    reconnect_settle_sec: float = 1.0
    count_poll_interval_sec: float = 2.0

    # ---- Connectivity probe
    probe_url: str | None = None
    probe_interval_sec: float = 5.0
    probe_timeout_sec: float = 3.0

    # ---- UI
    language: str = "en"

    # ---- Derived (ms)
    replay_pacing_ms: int = 0
    reconnect_settle_ms: int = 0
    count_poll_interval_ms: int = 0
    probe_interval_ms: int = 0

    # ---- Methods ------------------------------------------------------------

    def __post_init__(self) -> None:
        if not self.api_url:
            raise ValueError("api_url must be a non-empty string")
        if self.environment not in _ENVIRONMENTS:
            raise ValueError(f"environment must be one of {_ENVIRONMENTS}")
        if self.language not in _LANGUAGES:
            raise ValueError(f"language must be one of {_LANGUAGES}")
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        for name in ("replay_pacing_sec", "reconnect_settle_sec", "count_poll_interval_sec", "probe_interval_sec"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.request_timeout_sec is None:
            self.request_timeout_sec = 30.0 if self.environment == "production" else 10.0
        if not self.db_path:
            self.db_path = _default_db_path()
        self._derive_ms()

    def _derive_ms(self) -> None:
        """Populate millisecond fields derived from second-based values."""
        self.replay_pacing_ms = int(self.replay_pacing_sec * 1000)
        self.reconnect_settle_ms = int(self.reconnect_settle_sec * 1000)
        self.count_poll_interval_ms = int(self.count_poll_interval_sec * 1000)
        self.probe_interval_ms = int(self.probe_interval_sec * 1000)

    @property
    def base_url(self) -> str:
        """API root every queued relative url is resolved against."""
        return f"{self.api_url.rstrip('/')}{self.api_prefix}"

    @property
    def effective_probe_url(self) -> str:
        return self.probe_url or self.base_url

    # Loader
    @classmethod
    def load(cls, path: Path | str | None = None, *, overrides: dict[str, Any] | None = None) -> SyncConfig:
        """
        Load config from JSON file (if provided), then apply env and overrides.

        Env overrides:
          - SHIPSYNC_API_URL
          - SHIPSYNC_ENV
          - SHIPSYNC_DB_PATH
          - SHIPSYNC_MAX_RETRIES
          - SHIPSYNC_LANGUAGE
        """
        data: dict[str, Any] = {}

        data.update(_try_load_json(Path(path) if path else None))

        if os.getenv("SHIPSYNC_API_URL"):
            data["api_url"] = os.environ["SHIPSYNC_API_URL"]
        if os.getenv("SHIPSYNC_ENV"):
            data["environment"] = os.environ["SHIPSYNC_ENV"].lower()
        if os.getenv("SHIPSYNC_DB_PATH"):
            data["db_path"] = os.environ["SHIPSYNC_DB_PATH"]
        if os.getenv("SHIPSYNC_MAX_RETRIES"):
            data["max_retries"] = int(os.environ["SHIPSYNC_MAX_RETRIES"])
        if os.getenv("SHIPSYNC_LANGUAGE"):
            data["language"] = os.environ["SHIPSYNC_LANGUAGE"].lower()

        if overrides:
            data.update(overrides)

        return cls(**data)
