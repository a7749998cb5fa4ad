# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
HTTP-send capability.

`HttpSender.send()` either returns the response or raises `NetworkSendError`;
nothing else is part of the contract. `HttpxSender` is the production
implementation over `httpx.AsyncClient`:
- relative urls resolve against ``api_url + api_prefix``,
- timeout depends on the environment (see SyncConfig),
- a 401 clears the session token and fires `on_unauthorized` before raising.
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

import httpx

from ..core.config import SyncConfig
from ..core.log import get_logger
from ..errors import NetworkSendError
from ..models import ReplayRequest

__all__ = [
    "HttpSender",
    "HttpxSender",
    "MemoryTokenStore",
    "TokenStore",
]


@runtime_checkable
class HttpSender(Protocol):
    async def send(self, request: ReplayRequest) -> Any: ...


class TokenStore(Protocol):
    """Where the current session bearer token lives."""

    def get(self) -> str | None: ...
    def clear(self) -> None: ...


class MemoryTokenStore:
    """Process-local token holder."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def get(self) -> str | None:
        return self._token

    def set(self, token: str | None) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class HttpxSender:
    def __init__(
        self,
        *,
        base_url: str,
        timeout_sec: float = 10.0,
        tokens: TokenStore | None = None,
        on_unauthorized: Callable[[], None] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.tokens = tokens
        self.on_unauthorized = on_unauthorized
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_sec)
        self.log = get_logger("transport.http")

    @classmethod
    def from_config(
        cls,
        cfg: SyncConfig,
        *,
        tokens: TokenStore | None = None,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> HttpxSender:
        return cls(
            base_url=cfg.base_url,
            timeout_sec=float(cfg.request_timeout_sec or 10.0),
            tokens=tokens,
            on_unauthorized=on_unauthorized,
        )

    async def send(self, request: ReplayRequest) -> httpx.Response:
        kwargs: dict[str, Any] = {"headers": request.headers}
        if request.params is not None:
            kwargs["params"] = request.params
        if request.has_body:
            kwargs["json"] = request.data
        try:
            resp = await self._client.request(request.method.upper(), request.url, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkSendError(f"{request.method.upper()} {request.url} failed: {e}", url=request.url) from e

        if resp.status_code == 401:
            self._handle_unauthorized()
        if not resp.is_success:
            raise NetworkSendError(
                f"{request.method.upper()} {request.url} returned {resp.status_code}",
                status_code=resp.status_code,
                url=request.url,
            )
        return resp

    def _handle_unauthorized(self) -> None:
        self.log.warning("session rejected", event="http.unauthorized")
        if self.tokens is not None:
            self.tokens.clear()
        if self.on_unauthorized is not None:
            self.on_unauthorized()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
