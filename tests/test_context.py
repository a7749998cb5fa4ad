# tests/test_context.py
from __future__ import annotations

import asyncio

import httpx
import pytest
import pytest_asyncio

from shipsync.errors import QueuedRequestError
from shipsync.network.probe import ConnectivityProbe
from shipsync.storage.sqlite import SqliteQueueStore
from shipsync.sync import context as ctx_mod
from shipsync.sync.context import (
    build_context,
    get_context,
    get_publisher,
    init_publisher,
    shutdown_publisher,
)
from tests.helpers import wait_until


@pytest_asyncio.fixture
async def clean_singleton():
    await shutdown_publisher()
    yield
    await shutdown_publisher()


@pytest.mark.asyncio
async def test_get_before_init_raises(clean_singleton):
    with pytest.raises(RuntimeError):
        get_publisher()


@pytest.mark.asyncio
async def test_singleton_lifecycle(clean_singleton, fast_cfg, store, sender, notifier):
    pub = await init_publisher(fast_cfg, store=store, sender=sender, notifier=notifier, use_probe=False)

    assert get_publisher() is pub
    assert get_context().publisher is pub
    assert pub.running

    with pytest.raises(RuntimeError):
        await init_publisher(fast_cfg, store=store, sender=sender, use_probe=False)
    assert get_publisher() is pub

    await shutdown_publisher()
    assert not pub.running
    assert ctx_mod._context is None
    with pytest.raises(RuntimeError):
        get_publisher()


@pytest.mark.asyncio
async def test_shutdown_without_init_is_noop(clean_singleton):
    await shutdown_publisher()


@pytest.mark.asyncio
async def test_end_to_end_park_then_replay_on_reconnect(fast_cfg, sender, notifier, tokens):
    """Client parks while offline into SQLite; reconnect replays it through the same store."""
    store = SqliteQueueStore(fast_cfg.db_path)
    ctx = build_context(
        fast_cfg,
        store=store,
        sender=sender,
        tokens=tokens,
        notifier=notifier,
        use_probe=False,
        initial_online=False,
    )
    await ctx.start()
    try:
        assert ctx.monitor.was_offline is True

        with pytest.raises(QueuedRequestError):
            await ctx.client.post("/shipments", {"weight": 5})
        # distinct creation timestamps keep the replay order deterministic
        await asyncio.sleep(0.005)
        with pytest.raises(QueuedRequestError):
            await ctx.client.put("/shipments/1", {"weight": 6})
        await wait_until(lambda: ctx.publisher.queued_count == 2)
        assert sender.sent == []

        ctx.monitor.handle_online()
        await wait_until(lambda: ctx.publisher.queued_count == 0 and not ctx.publisher.is_retrying)

        assert [(r.method, r.url) for r in sender.sent] == [("post", "/shipments"), ("put", "/shipments/1")]
        assert await store.count() == 0
        assert notifier.items[-1].description == "2 request(s) synchronized successfully."
    finally:
        await ctx.stop()


@pytest.mark.asyncio
async def test_probe_drives_reconnect_replay(fast_cfg, store, sender, notifier, tokens):
    reachable = {"up": False}

    def handler(request: httpx.Request) -> httpx.Response:
        if not reachable["up"]:
            raise httpx.ConnectError("unreachable", request=request)
        return httpx.Response(200)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    probe = ConnectivityProbe(
        fast_cfg.effective_probe_url,
        interval_ms=fast_cfg.probe_interval_ms,
        timeout_sec=1.0,
        initial_online=False,
        client=http,
    )
    ctx = build_context(fast_cfg, store=store, sender=sender, tokens=tokens, notifier=notifier, probe=probe)
    await ctx.start()
    probe_task = probe._task
    try:
        assert ctx.monitor.is_online is False
        assert probe_task is not None and not probe_task.done()

        with pytest.raises(QueuedRequestError):
            await ctx.client.post("/shipments", {"weight": 1})
        await wait_until(lambda: ctx.publisher.queued_count == 1)
        await asyncio.sleep(0.05)
        assert sender.sent == []

        reachable["up"] = True
        await wait_until(lambda: ctx.monitor.is_online)
        await wait_until(lambda: ctx.publisher.queued_count == 0 and not ctx.publisher.is_retrying)
        assert sender.urls == ["/shipments"]
    finally:
        await ctx.stop()
        await http.aclose()

    assert probe_task.done()
    assert probe._task is None
    assert len(probe.online) == 0 and len(probe.offline) == 0
    # detached: a transition after stop no longer reaches the monitor
    probe.offline.emit()
    assert ctx.monitor.is_online is True
