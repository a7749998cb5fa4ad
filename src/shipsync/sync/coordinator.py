# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Offline coordinator: replays queued requests once the network is back.

Rules of a replay pass (`retry_queue`):
- never while offline, never two passes at once (late callers are dropped, not queued);
- records are replayed strictly one after another, oldest timestamp first,
  because later requests may depend on earlier ones (create, then update);
- a failed send bumps and persists retry_count *before* deciding keep vs. evict;
- a record is evicted after `max_retries` failed attempts in total, across passes;
- the pass reports one aggregate notification and always clears `is_retrying`.
"""

import uuid

from ..core.config import SyncConfig
from ..core.log import get_logger, log_context, warn_once
from ..core.signals import Signal
from ..core.time import Clock, SystemClock
from ..core.types import AsyncCallback, TokenProvider
from ..errors import ExhaustedRetriesError, StorageError
from ..models import PassResult, QueuedRequest, build_replay_request
from ..network.monitor import NetworkStatusMonitor
from ..storage.queue import QueueStore
from ..transport.http import HttpSender
from .notify import LogNotifier, Notifier, pass_error, pass_summary


class OfflineCoordinator:
    """
    Owns the `is_retrying` flag and the replay algorithm.
    `sender`, `store` and `clock` are injected so tests can script failures and skip real sleeps.
    """

    def __init__(
        self,
        *,
        store: QueueStore,
        monitor: NetworkStatusMonitor,
        sender: HttpSender,
        token_provider: TokenProvider | None = None,
        notifier: Notifier | None = None,
        cfg: SyncConfig | None = None,
        clock: Clock | None = None,
        refresh_count: AsyncCallback | None = None,
    ) -> None:
        self.store = store
        self.monitor = monitor
        self.sender = sender
        self.token_provider = token_provider
        self.notifier: Notifier = notifier or LogNotifier()
        self.cfg = cfg or SyncConfig()
        self.clock: Clock = clock or SystemClock()
        self.refresh_count = refresh_count

        self._retrying = False
        self.last_count: int | None = None
        self.changed = Signal("coordinator.changed")
        self.log = get_logger("coordinator")

    @property
    def is_retrying(self) -> bool:
        return self._retrying

    @property
    def max_retries(self) -> int:
        return self.cfg.max_retries

    def _set_retrying(self, value: bool) -> None:
        if self._retrying == value:
            return
        self._retrying = value
        self.changed.emit(self)

    def _token(self) -> str | None:
        token = self.token_provider() if self.token_provider is not None else None
        if not token:
            warn_once(self.log, "replay.no_token", "replaying queued requests without a session token")
        return token

    # ---- replay pass

    async def retry_queue(self) -> PassResult:
        if not self.monitor.is_online or self._retrying:
            self.log.debug(
                "replay skipped",
                event="replay.skip",
                online=self.monitor.is_online,
                retrying=self._retrying,
            )
            return PassResult(skipped=True)

        # flag is raised before the first await so a concurrent caller sees it
        self._set_retrying(True)
        result = PassResult()
        try:
            with log_context(pass_id=uuid.uuid4().hex[:8]):
                records = await self.store.list_all()
                if not records:
                    return result

                ordered = sorted(records, key=lambda r: r.timestamp)
                self.log.info("replay started", event="replay.start", queued=len(ordered))
                for record in ordered:
                    with log_context(record_id=record.id, method=record.method.value, url=record.url):
                        await self._replay_one(record, result)

                await self._refresh_count()
                self.log.info(
                    "replay finished",
                    event="replay.done",
                    succeeded=result.success_count,
                    failed=result.fail_count,
                    kept=result.kept_count,
                )
                summary = pass_summary(result)
                if summary is not None:
                    self.notifier.notify(summary)
        except StorageError as e:
            result.error = str(e)
            self.log.error("replay aborted: queue storage failed", event="replay.storage_error", exc_info=True)
            self.notifier.notify(pass_error())
        finally:
            self._set_retrying(False)
        return result

    async def _replay_one(self, record: QueuedRequest, result: PassResult) -> None:
        if record.retry_count >= self.max_retries:
            # left behind by an interrupted pass: counted as failed, never re-sent
            self.log.warning(
                "request exceeded max retries, removing",
                event="replay.evict.stale",
                retry_count=record.retry_count,
            )
            await self.store.remove(record.id)
            result.fail_count += 1
            return

        request = build_replay_request(record, self._token())
        try:
            await self.sender.send(request)
        except Exception as e:
            await self._on_send_failed(record, result, e)
            return

        await self.store.remove(record.id)
        result.success_count += 1
        self.log.debug("request replayed", event="replay.sent")
        await self.clock.sleep_ms(self.cfg.replay_pacing_ms)

    async def _on_send_failed(self, record: QueuedRequest, result: PassResult, error: Exception) -> None:
        attempts = record.retry_count + 1
        await self.store.update_retry_count(record.id, attempts)
        if attempts < self.max_retries:
            result.kept_count += 1
            self.log.info(
                "request failed, kept for next pass",
                event="replay.retry",
                retry_count=attempts,
                max_retries=self.max_retries,
                error=str(error),
            )
            return
        await self.store.remove(record.id)
        result.fail_count += 1
        self.log.error(
            str(ExhaustedRetriesError(record.id, attempts)),
            event="replay.evict.exhausted",
            retry_count=attempts,
            error=str(error),
        )

    async def _refresh_count(self) -> None:
        if self.refresh_count is not None:
            await self.refresh_count()
        else:
            self.last_count = await self.store.count()
