# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Offline-aware request facade used by the application's service layer.

Reads are always sent live. A mutation is parked in the offline queue instead
of failing when the monitor reports offline, or when the send fails without any
HTTP response (connection refused, DNS, timeout). Parked requests surface to the
caller as `QueuedRequestError` carrying the queue id.
"""

from collections.abc import Mapping
from typing import Any

from ..core.log import get_logger
from ..core.utils import with_bearer
from ..errors import Language, NetworkSendError, QueuedRequestError
from ..models import HttpMethod, ReplayRequest
from ..network.monitor import NetworkStatusMonitor
from ..queue import OfflineQueue
from .http import HttpSender, TokenStore


class OfflineAwareClient:
    def __init__(
        self,
        *,
        sender: HttpSender,
        queue: OfflineQueue,
        monitor: NetworkStatusMonitor,
        tokens: TokenStore | None = None,
        language: Language = "en",
    ) -> None:
        self.sender = sender
        self.queue = queue
        self.monitor = monitor
        self.tokens = tokens
        self.language = language
        self.log = get_logger("transport.client")

    async def request(
        self,
        method: HttpMethod | str,
        url: str,
        *,
        data: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        m = HttpMethod(method.upper() if isinstance(method, str) else method)
        queueable = m is not HttpMethod.GET

        if queueable and not self.monitor.is_online:
            await self._park(m, url, data=data, params=params, headers=headers, reason="offline")

        token = self.tokens.get() if self.tokens is not None else None
        req = ReplayRequest(
            url=url,
            method=m.value.lower(),
            headers=with_bearer(headers, token),
            params=dict(params) if params is not None else None,
            data=data if m.has_body else None,
            has_body=m.has_body,
        )
        try:
            return await self.sender.send(req)
        except NetworkSendError as e:
            if queueable and e.is_connectivity:
                await self._park(m, url, data=data, params=params, headers=headers, reason="unreachable")
            raise

    async def _park(
        self,
        method: HttpMethod,
        url: str,
        *,
        data: Any,
        params: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
        reason: str,
    ) -> None:
        queue_id = await self.queue.queue_request(method, url, data=data, headers=headers, params=params)
        self.log.info("request parked", event="client.parked", record_id=queue_id, reason=reason, url=url)
        raise QueuedRequestError(queue_id, language=self.language)

    # Convenience verbs mirroring the service layer
    async def get(self, url: str, *, params: Mapping[str, Any] | None = None, **kw: Any) -> Any:
        return await self.request(HttpMethod.GET, url, params=params, **kw)

    async def post(self, url: str, data: Any = None, **kw: Any) -> Any:
        return await self.request(HttpMethod.POST, url, data=data, **kw)

    async def put(self, url: str, data: Any = None, **kw: Any) -> Any:
        return await self.request(HttpMethod.PUT, url, data=data, **kw)

    async def patch(self, url: str, data: Any = None, **kw: Any) -> Any:
        return await self.request(HttpMethod.PATCH, url, data=data, **kw)

    async def delete(self, url: str, **kw: Any) -> Any:
        return await self.request(HttpMethod.DELETE, url, **kw)
