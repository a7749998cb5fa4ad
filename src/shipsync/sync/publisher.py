# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Queue-state publisher: the single read-subscribable surface the UI talks to.

Publishes `is_online`, `was_offline`, `queued_count`, `is_retrying` and exposes
two commands, `retry_queue()` and `clear_queue()`. It also owns the automatic
replay triggers:

- reconnect: while ``is_online and was_offline and queued_count > 0`` holds, a
  replay fires after the settle delay. The timer is re-armed whenever one of the
  three inputs changes and cancelled as soon as the condition stops holding;
- visibility: the host signals ``visibility_changed.emit(True)`` when the app
  comes back to the foreground; a replay fires right away if online with work queued.

`queued_count` is re-read from the store on start, every poll interval, after
`clear_queue()` and at the end of each replay pass.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from ..core.config import SyncConfig
from ..core.log import get_logger
from ..core.signals import Signal, Unsubscribe
from ..core.time import Clock, SystemClock
from ..errors import StorageError
from ..models import PassResult, QueueState
from ..network.monitor import NetworkStatusMonitor
from ..storage.queue import QueueStore
from .coordinator import OfflineCoordinator
from .notify import LogNotifier, Notifier, clear_error, queue_cleared


class QueueStatePublisher:
    def __init__(
        self,
        *,
        store: QueueStore,
        monitor: NetworkStatusMonitor,
        coordinator: OfflineCoordinator,
        notifier: Notifier | None = None,
        cfg: SyncConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.monitor = monitor
        self.coordinator = coordinator
        self.notifier: Notifier = notifier or LogNotifier()
        self.cfg = cfg or SyncConfig()
        self.clock: Clock = clock or SystemClock()

        # the pass refreshes the count through us so subscribers see it
        self.coordinator.refresh_count = self.refresh_count

        self._queued_count = 0
        self._last_state: QueueState | None = None
        self._trigger_key: tuple[bool, bool, int] | None = None
        self._settle_task: asyncio.Task | None = None
        self._poll_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        # replay passes are awaited on stop, never cancelled
        self._passes: set[asyncio.Task] = set()
        self._unsubscribers: list[Unsubscribe] = []
        self._running = False

        self.changed = Signal("publisher.changed")
        self.visibility_changed = Signal("publisher.visibility")
        self.log = get_logger("publisher")

    # ---- published fields

    @property
    def is_online(self) -> bool:
        return self.monitor.is_online

    @property
    def was_offline(self) -> bool:
        return self.monitor.was_offline

    @property
    def queued_count(self) -> int:
        return self._queued_count

    @property
    def is_retrying(self) -> bool:
        return self.coordinator.is_retrying

    @property
    def state(self) -> QueueState:
        return QueueState(is_online=self.is_online, queued_count=self._queued_count, is_retrying=self.is_retrying)

    @property
    def running(self) -> bool:
        return self._running

    def subscribe(self, callback: Callable[[QueueState], Any]) -> Unsubscribe:
        """Receive a QueueState snapshot on every change."""
        return self.changed.connect(callback)

    # ---- lifecycle

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._unsubscribers = [
            self.monitor.changed.connect(lambda _m: self._on_inputs_changed()),
            self.coordinator.changed.connect(lambda _c: self._publish()),
            self.visibility_changed.connect(self.handle_visibility_change),
        ]
        await self.refresh_count()
        self._on_inputs_changed()
        self._poll_task = self._spawn(self._poll_loop(), name="queue-count-poll")
        self.log.debug("publisher started", event="publisher.start")

    async def stop(self) -> None:
        """Cancel the poll loop and settle timer; a replay pass already running finishes first."""
        self._running = False
        for off in self._unsubscribers:
            off()
        self._unsubscribers = []
        self._cancel_settle()
        pending = list(self._tasks)
        for t in pending:
            if t not in self._passes:
                t.cancel()
        for t in pending:
            try:
                await t
            except asyncio.CancelledError:
                pass
            except Exception:
                # already reported by the done-callback
                continue
        self._poll_task = None
        self._tasks.clear()
        self._passes.clear()
        self._trigger_key = None
        self.log.debug("publisher stopped", event="publisher.stop")

    async def __aenter__(self) -> QueueStatePublisher:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def _poll_loop(self) -> None:
        while self._running:
            await self.clock.sleep_ms(self.cfg.count_poll_interval_ms)
            if not self._running:
                return
            await self.refresh_count()

    def _spawn(self, coro, *, name: str) -> asyncio.Task:
        t = asyncio.create_task(coro, name=name)
        self._tasks.add(t)

        def _done(task: asyncio.Task) -> None:
            self._tasks.discard(task)
            self._passes.discard(task)
            if task.cancelled():
                return
            if task.exception() is not None:
                self.log.error(
                    "task crashed", event="publisher.task.crashed", task=task.get_name(), exc_info=task.exception()
                )

        t.add_done_callback(_done)
        return t

    def _spawn_pass(self, name: str) -> asyncio.Task:
        t = self._spawn(self.coordinator.retry_queue(), name=name)
        self._passes.add(t)
        return t

    # ---- state

    def _publish(self) -> None:
        if not self._running:
            return
        snapshot = self.state
        if snapshot == self._last_state:
            return
        self._last_state = snapshot
        self.changed.emit(snapshot)

    async def refresh_count(self) -> int:
        """Re-read the store count; on StorageError the cached value is kept."""
        try:
            count = await self.store.count()
        except StorageError:
            self.log.error("failed to get queue count", event="publisher.count.error", exc_info=True)
            return self._queued_count
        if count != self._queued_count:
            self._queued_count = count
            self._on_inputs_changed()
        return count

    # ---- triggers

    def _on_inputs_changed(self) -> None:
        self._publish()
        if not self._running:
            return
        key = (self.monitor.is_online, self.monitor.was_offline, self._queued_count)
        if key == self._trigger_key:
            return
        self._trigger_key = key
        self._cancel_settle()
        is_online, was_offline, queued = key
        if is_online and was_offline and queued > 0:
            self._settle_task = self._spawn(self._replay_after_settle(), name="reconnect-settle")

    def _cancel_settle(self) -> None:
        if self._settle_task is not None and not self._settle_task.done():
            self._settle_task.cancel()
        self._settle_task = None

    async def _replay_after_settle(self) -> None:
        await self.clock.sleep_ms(self.cfg.reconnect_settle_ms)
        # detach the pass from the timer: re-arming must not cancel a started pass
        self._settle_task = None
        self.log.info("network back, replaying queue", event="publisher.trigger.reconnect")
        self._spawn_pass("reconnect-replay")

    def handle_visibility_change(self, visible: bool) -> None:
        if not self._running or not visible:
            return
        if self.is_online and self._queued_count > 0:
            self.log.info("app visible, replaying queue", event="publisher.trigger.visible")
            self._spawn_pass("visibility-replay")

    # ---- commands

    async def retry_queue(self) -> PassResult:
        return await self.coordinator.retry_queue()

    async def clear_queue(self) -> None:
        try:
            await self.store.clear_all()
            await self.refresh_count()
        except StorageError:
            self.log.error("failed to clear queue", event="publisher.clear.error", exc_info=True)
            self.notifier.notify(clear_error())
            return
        self.notifier.notify(queue_cleared())
