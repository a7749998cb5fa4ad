# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Process-wide wiring of the offline queue.

`init_publisher()` builds store, probe, monitor, sender, coordinator and
publisher exactly once per process and starts them; every consumer then reaches
the same instance through `get_publisher()`. `build_context()` does the wiring
without registering anything global, for embedding and tests.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..core.config import SyncConfig
from ..core.log import get_logger, swallow
from ..core.signals import Unsubscribe
from ..core.time import Clock, SystemClock
from ..network.monitor import NetworkStatusMonitor
from ..network.probe import ConnectivityProbe
from ..queue import OfflineQueue
from ..storage.queue import QueueStore
from ..storage.sqlite import SqliteQueueStore
from ..transport.client import OfflineAwareClient
from ..transport.http import HttpSender, HttpxSender, MemoryTokenStore, TokenStore
from .coordinator import OfflineCoordinator
from .notify import Notifier
from .publisher import QueueStatePublisher

log = get_logger("context")


@dataclass
class SyncContext:
    cfg: SyncConfig
    store: QueueStore
    monitor: NetworkStatusMonitor
    sender: HttpSender
    tokens: TokenStore
    queue: OfflineQueue
    client: OfflineAwareClient
    coordinator: OfflineCoordinator
    publisher: QueueStatePublisher
    probe: ConnectivityProbe | None = None
    _detach_probe: Unsubscribe | None = None

    async def start(self) -> None:
        if self.probe is not None and self._detach_probe is None:
            self._detach_probe = self.monitor.attach(self.probe)
            await self.probe.start()
        await self.publisher.start()

    async def stop(self) -> None:
        await self.publisher.stop()
        if self.probe is not None:
            if self._detach_probe is not None:
                self._detach_probe()
                self._detach_probe = None
            await self.probe.stop()
        aclose = getattr(self.sender, "aclose", None)
        if aclose is not None:
            with swallow(logger=log, code="context.sender.close", msg="sender close failed", level=logging.WARNING):
                await aclose()
        close = getattr(self.store, "close", None)
        if close is not None:
            with swallow(logger=log, code="context.store.close", msg="store close failed", level=logging.WARNING):
                await close()


def build_context(
    cfg: SyncConfig | None = None,
    *,
    store: QueueStore | None = None,
    sender: HttpSender | None = None,
    tokens: TokenStore | None = None,
    notifier: Notifier | None = None,
    clock: Clock | None = None,
    probe: ConnectivityProbe | None = None,
    use_probe: bool = True,
    initial_online: bool | None = None,
    on_unauthorized: Callable[[], None] | None = None,
) -> SyncContext:
    cfg = cfg or SyncConfig.load()
    clock = clock or SystemClock()
    tokens = tokens or MemoryTokenStore()
    store = store or SqliteQueueStore(cfg.db_path)
    sender = sender or HttpxSender.from_config(cfg, tokens=tokens, on_unauthorized=on_unauthorized)

    if probe is None and use_probe:
        probe = ConnectivityProbe(
            cfg.effective_probe_url,
            interval_ms=cfg.probe_interval_ms,
            timeout_sec=cfg.probe_timeout_sec,
            initial_online=True if initial_online is None else initial_online,
            clock=clock,
        )
    if initial_online is None:
        initial_online = probe.is_online if probe is not None else True
    monitor = NetworkStatusMonitor(initial_online=initial_online)

    queue = OfflineQueue(store, clock=clock)
    coordinator = OfflineCoordinator(
        store=store,
        monitor=monitor,
        sender=sender,
        token_provider=tokens.get,
        notifier=notifier,
        cfg=cfg,
        clock=clock,
    )
    publisher = QueueStatePublisher(
        store=store,
        monitor=monitor,
        coordinator=coordinator,
        notifier=coordinator.notifier,
        cfg=cfg,
        clock=clock,
    )
    client = OfflineAwareClient(
        sender=sender, queue=queue, monitor=monitor, tokens=tokens, language=cfg.language  # type: ignore[arg-type]
    )
    return SyncContext(
        cfg=cfg,
        store=store,
        monitor=monitor,
        sender=sender,
        tokens=tokens,
        queue=queue,
        client=client,
        coordinator=coordinator,
        publisher=publisher,
        probe=probe,
    )


# Global context instance
_context: SyncContext | None = None


async def init_publisher(cfg: SyncConfig | None = None, **kwargs: Any) -> QueueStatePublisher:
    """Build and start the shared context. Raises RuntimeError if already initialized."""
    global _context
    if _context is not None:
        raise RuntimeError("offline queue publisher is already initialized")
    ctx = build_context(cfg, **kwargs)
    _context = ctx
    try:
        await ctx.start()
    except Exception:
        _context = None
        raise
    log.info("offline queue ready", event="context.init", db_path=ctx.cfg.db_path)
    return ctx.publisher


def get_context() -> SyncContext:
    if _context is None:
        raise RuntimeError("offline queue is not initialized; call init_publisher() first")
    return _context


def get_publisher() -> QueueStatePublisher:
    return get_context().publisher


async def shutdown_publisher() -> None:
    """Stop and release the shared context (no-op when not initialized)."""
    global _context
    ctx, _context = _context, None
    if ctx is not None:
        await ctx.stop()
        log.info("offline queue stopped", event="context.shutdown")
