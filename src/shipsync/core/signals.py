from __future__ import annotations

"""
Tiny synchronous observer primitive.

`Signal.connect(cb)` returns an unsubscribe callable; `emit(*args)` calls every
subscriber in registration order. A failing subscriber is logged and does not
prevent the remaining subscribers from running.
"""

import logging
from collections.abc import Callable
from typing import Any

from .log import get_logger, swallow

Unsubscribe = Callable[[], None]


class Signal:
    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: list[Callable[..., Any]] = []
        self.log = get_logger("signals")

    def connect(self, callback: Callable[..., Any]) -> Unsubscribe:
        self._subscribers.append(callback)

        def _disconnect() -> None:
            # idempotent: second call is a no-op
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return _disconnect

    def emit(self, *args: Any) -> None:
        for cb in list(self._subscribers):
            with swallow(
                logger=self.log,
                code=f"signal.{self.name}",
                msg="signal subscriber failed",
                level=logging.ERROR,
                expected=False,
            ):
                cb(*args)

    def clear(self) -> None:
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)
