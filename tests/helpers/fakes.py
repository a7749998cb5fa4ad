from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from shipsync.errors import NetworkSendError
from shipsync.models import ReplayRequest
from shipsync.sync.notify import Notification


class ScriptedSender:
    """
    HttpSender double.

    `fail_urls` maps url -> number of upcoming failures (use a large number for "always").
    `gate`, when set, blocks every send until the event is set (to hold a pass in flight).
    """

    def __init__(self, *, fail_urls: dict[str, int] | None = None, gate: asyncio.Event | None = None) -> None:
        self.sent: list[ReplayRequest] = []
        self.fail_urls: dict[str, int] = dict(fail_urls or {})
        self.gate = gate
        self.on_send: Callable[[ReplayRequest], Any] | None = None

    @property
    def urls(self) -> list[str]:
        return [r.url for r in self.sent]

    async def send(self, request: ReplayRequest) -> dict[str, Any]:
        self.sent.append(request)
        if self.on_send is not None:
            self.on_send(request)
        if self.gate is not None:
            await self.gate.wait()
        left = self.fail_urls.get(request.url, 0)
        if left > 0:
            self.fail_urls[request.url] = left - 1
            raise NetworkSendError(f"{request.method} {request.url} returned 503", status_code=503, url=request.url)
        return {"ok": True}


class RecordingNotifier:
    def __init__(self) -> None:
        self.items: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.items.append(notification)

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.items]
