# conftest.py
from __future__ import annotations

import os
import uuid

import pytest
import pytest_asyncio

from shipsync.core.config import SyncConfig
from shipsync.core.log import (
    bind_context,
    configure_from_env,
    enable_stdout_logging,
    get_logger,
    log_context,
)
from shipsync.core.time import ManualClock, SystemClock
from shipsync.network.monitor import NetworkStatusMonitor
from shipsync.sync.coordinator import OfflineCoordinator
from shipsync.sync.publisher import QueueStatePublisher
from shipsync.transport.http import MemoryTokenStore
from tests.helpers import InMemoryQueueStore, RecordingNotifier, ScriptedSender


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: pure logic tests without IO")
    config.addinivalue_line("markers", "integration: tests touching a real SQLite file or httpx transport")


def pytest_addoption(parser):
    parser.addoption(
        "--log-json",
        action="store_true",
        default=False,
        help="Emit shipsync logs in JSON format during tests",
    )


@pytest.fixture(scope="session", autouse=True)
def _configure_shipsync_logging(request):
    configure_from_env()
    prefer_json = request.config.getoption("--log-json")
    if os.getenv("SHIPSYNC_LOG_STDOUT", "").lower() not in ("1", "true", "yes", "on"):
        enable_stdout_logging(level="DEBUG", pretty=not prefer_json)
    bind_context(role="pytest")


@pytest.fixture(scope="session")
def session_run_id():
    return uuid.uuid4().hex[:8]


@pytest.fixture(autouse=True)
def _test_log_context(request, session_run_id):
    log = get_logger("test")
    with log_context(test=request.node.name, test_run=session_run_id):
        log.debug("pytest.test.start", event="pytest.test.start")
        yield


# Fast timings for lifecycle tests that run on the real clock
_FAST = {
    "replay_pacing_sec": 0.0,
    "reconnect_settle_sec": 0.05,
    "count_poll_interval_sec": 0.02,
    "probe_interval_sec": 0.02,
}


@pytest.fixture
def cfg(tmp_path) -> SyncConfig:
    return SyncConfig(db_path=str(tmp_path / "queue.db"), environment="test")


@pytest.fixture
def fast_cfg(tmp_path) -> SyncConfig:
    return SyncConfig(db_path=str(tmp_path / "queue.db"), environment="test", **_FAST)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start_ms=1_700_000_000_000)


@pytest.fixture
def store() -> InMemoryQueueStore:
    return InMemoryQueueStore()


@pytest.fixture
def sender() -> ScriptedSender:
    return ScriptedSender()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def tokens() -> MemoryTokenStore:
    return MemoryTokenStore("tok-1")


@pytest.fixture
def monitor() -> NetworkStatusMonitor:
    return NetworkStatusMonitor(initial_online=True)


@pytest.fixture
def coordinator(store, monitor, sender, tokens, notifier, cfg, clock) -> OfflineCoordinator:
    return OfflineCoordinator(
        store=store,
        monitor=monitor,
        sender=sender,
        token_provider=tokens.get,
        notifier=notifier,
        cfg=cfg,
        clock=clock,
    )


@pytest_asyncio.fixture
async def publisher(store, monitor, sender, tokens, notifier, fast_cfg):
    """Started publisher on the real clock with fast timings; stopped on teardown."""
    clk = SystemClock()
    coord = OfflineCoordinator(
        store=store,
        monitor=monitor,
        sender=sender,
        token_provider=tokens.get,
        notifier=notifier,
        cfg=fast_cfg,
        clock=clk,
    )
    pub = QueueStatePublisher(
        store=store, monitor=monitor, coordinator=coord, notifier=notifier, cfg=fast_cfg, clock=clk
    )
    await pub.start()
    try:
        yield pub
    finally:
        await pub.stop()
