# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
View model for the offline banner. Pure function of the published state.
"""

from dataclasses import dataclass

from ..models import QueueState

SYNC_NOW = "sync_now"
CLEAR_QUEUE = "clear_queue"
DISMISS = "dismiss"


@dataclass(frozen=True)
class IndicatorView:
    should_show: bool
    tone: str | None = None  # "offline" | "pending"
    headline: str = ""
    detail: str = ""
    spinning: bool = False
    actions: tuple[str, ...] = ()

    @classmethod
    def from_state(cls, state: QueueState, *, dismissed: bool = False) -> IndicatorView:
        if dismissed or (state.is_online and state.queued_count == 0):
            return cls(should_show=False)

        if not state.is_online:
            return cls(
                should_show=True,
                tone="offline",
                headline="Offline",
                detail="Changes will be sent when the connection is back",
                actions=(DISMISS,),
            )

        if state.is_retrying:
            return cls(
                should_show=True,
                tone="pending",
                headline="Syncing...",
                detail="Processing queued requests",
                spinning=True,
            )

        noun = "queued request" if state.queued_count == 1 else "queued requests"
        return cls(
            should_show=True,
            tone="pending",
            headline=f"{state.queued_count} {noun}",
            detail="Waiting to synchronize",
            actions=(SYNC_NOW, CLEAR_QUEUE, DISMISS),
        )
