import json

import httpx
import pytest

from shipsync.core.config import SyncConfig
from shipsync.errors import NetworkSendError
from shipsync.models import ReplayRequest
from shipsync.network.monitor import NetworkStatusMonitor
from shipsync.network.probe import ConnectivityProbe
from shipsync.transport.http import HttpSender, HttpxSender, MemoryTokenStore

pytestmark = pytest.mark.integration

BASE = "http://api.test/api"


def _sender(handler, **kw) -> HttpxSender:
    client = httpx.AsyncClient(base_url=BASE, transport=httpx.MockTransport(handler))
    return HttpxSender(base_url=BASE, client=client, **kw)


@pytest.mark.asyncio
async def test_post_sends_json_params_and_headers():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"id": 9})

    sender = _sender(handler)
    assert isinstance(sender, HttpSender)
    resp = await sender.send(
        ReplayRequest(
            url="/shipments",
            method="post",
            headers={"Authorization": "Bearer t"},
            params={"notify": "1"},
            data={"weight": 4},
            has_body=True,
        )
    )

    assert resp.json() == {"id": 9}
    req = seen[0]
    assert req.method == "POST"
    assert req.url.path == "/api/shipments"
    assert req.url.params["notify"] == "1"
    assert req.headers["Authorization"] == "Bearer t"
    assert json.loads(req.content) == {"weight": 4}


@pytest.mark.asyncio
async def test_get_has_no_body():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    await _sender(handler).send(ReplayRequest(url="/departures", method="get"))

    assert seen[0].method == "GET"
    assert seen[0].content == b""


@pytest.mark.asyncio
async def test_server_error_carries_status():
    sender = _sender(lambda r: httpx.Response(503))
    with pytest.raises(NetworkSendError) as ei:
        await sender.send(ReplayRequest(url="/x", method="put", data={}, has_body=True))
    assert ei.value.status_code == 503
    assert not ei.value.is_connectivity


@pytest.mark.asyncio
async def test_transport_error_is_connectivity_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(NetworkSendError) as ei:
        await _sender(handler).send(ReplayRequest(url="/x", method="delete"))
    assert ei.value.status_code is None
    assert ei.value.is_connectivity


@pytest.mark.asyncio
async def test_unauthorized_clears_token_and_notifies():
    tokens = MemoryTokenStore("expired")
    calls = []
    sender = _sender(lambda r: httpx.Response(401), tokens=tokens, on_unauthorized=lambda: calls.append(1))

    with pytest.raises(NetworkSendError) as ei:
        await sender.send(ReplayRequest(url="/me", method="get"))

    assert ei.value.status_code == 401
    assert tokens.get() is None
    assert calls == [1]


@pytest.mark.asyncio
async def test_from_config_uses_environment_timeout():
    sender = HttpxSender.from_config(SyncConfig(environment="production", db_path=":memory:"))
    try:
        assert sender._client.timeout.read == 30.0
        assert str(sender._client.base_url) == "http://localhost:3000/api/"
    finally:
        await sender.aclose()


@pytest.mark.asyncio
async def test_probe_emits_on_transitions_only():
    status = {"code": 200}

    def handler(request: httpx.Request) -> httpx.Response:
        if status["code"] == 0:
            raise httpx.ConnectTimeout("timeout", request=request)
        return httpx.Response(status["code"])

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    probe = ConnectivityProbe("http://api.test/api", client=client, initial_online=True)
    monitor = NetworkStatusMonitor.from_source(probe)
    detach = monitor.attach(probe)
    events = []
    monitor.changed.connect(lambda m: events.append(m.is_online))

    try:
        assert await probe.check() is True
        status["code"] = 0
        assert await probe.check() is False
        assert await probe.check() is False
        status["code"] = 404
        assert await probe.check() is True
        status["code"] = 502
        assert await probe.check() is False
    finally:
        detach()
        await probe.stop()
        await client.aclose()

    assert events == [False, True, False]
    assert monitor.was_offline is False
