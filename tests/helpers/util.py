from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from shipsync.models import QueuedRequest


def make_record(
    rid: str,
    *,
    timestamp: int,
    retry_count: int = 0,
    method: str = "POST",
    url: str | None = None,
    data: Any = None,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> QueuedRequest:
    return QueuedRequest(
        id=rid,
        url=url or f"/shipments/{rid}",
        method=method,
        headers=headers or {"Content-Type": "application/json"},
        params=params,
        data=data if data is not None else ({"ref": rid} if method in ("POST", "PUT", "PATCH") else None),
        timestamp=timestamp,
        retry_count=retry_count,
    )


async def wait_until(pred: Callable[[], bool], *, timeout: float = 2.0, step: float = 0.005) -> None:
    """Poll `pred` until it returns True or fail the test after `timeout` seconds."""
    try:
        async with asyncio.timeout(timeout):
            while not pred():
                await asyncio.sleep(step)
    except TimeoutError:
        raise AssertionError("condition not reached in time") from None
