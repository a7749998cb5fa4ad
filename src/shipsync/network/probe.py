# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Connectivity probe: turns periodic HEAD requests into online/offline transitions.

Any HTTP answer below 500 means the API host is reachable. Transport errors,
timeouts and 5xx answers count as offline. Signals fire on transitions only.
"""

import asyncio

import httpx

from ..core.log import get_logger
from ..core.signals import Signal
from ..core.time import Clock, SystemClock


class ConnectivityProbe:
    def __init__(
        self,
        url: str,
        *,
        interval_ms: int = 5000,
        timeout_sec: float = 3.0,
        initial_online: bool = True,
        client: httpx.AsyncClient | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.url = url
        self.interval_ms = interval_ms
        self.timeout_sec = timeout_sec
        self.clock: Clock = clock or SystemClock()
        self._client = client
        self._owns_client = client is None
        self._is_online = initial_online
        self._task: asyncio.Task | None = None
        self._running = False
        self.online = Signal("probe.online")
        self.offline = Signal("probe.offline")
        self.log = get_logger("network.probe")

    @property
    def is_online(self) -> bool:
        return self._is_online

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_sec)
        return self._client

    async def check(self) -> bool:
        """Probe once, emit on transition, return the new state."""
        try:
            resp = await self._http().head(self.url, timeout=self.timeout_sec)
            reachable = resp.status_code < 500
        except httpx.HTTPError as e:
            self.log.debug("probe failed", event="probe.error", url=self.url, error=str(e))
            reachable = False
        self._set(reachable)
        return reachable

    def _set(self, reachable: bool) -> None:
        if reachable == self._is_online:
            return
        self._is_online = reachable
        (self.online if reachable else self.offline).emit()

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="connectivity-probe")

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _loop(self) -> None:
        while self._running:
            await self.check()
            await self.clock.sleep_ms(self.interval_ms)
