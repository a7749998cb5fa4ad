# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
User-facing notifications emitted by the sync layer.

A replay pass produces at most one notification summarizing all records, never
one per request.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..core.log import get_logger
from ..models import PassResult


class Variant(str, Enum):
    default = "default"
    destructive = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: Variant = Variant.default


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LogNotifier:
    """Writes notifications to the structured log (headless default)."""

    def __init__(self) -> None:
        self.log = get_logger("notify")

    def notify(self, notification: Notification) -> None:
        level = logging.WARNING if notification.variant is Variant.destructive else logging.INFO
        self.log.log(
            level,
            f"{notification.title}: {notification.description}",
            event="notify",
            title=notification.title,
            variant=notification.variant.value,
        )


class CallbackNotifier:
    """Forwards notifications to a UI callback (toast renderer, CLI echo, ...)."""

    def __init__(self, callback: Callable[[Notification], None]) -> None:
        self.callback = callback

    def notify(self, notification: Notification) -> None:
        self.callback(notification)


def pass_summary(result: PassResult) -> Notification | None:
    """Aggregate notification for a replay pass; None when nothing happened."""
    if not result.has_outcome:
        return None
    parts: list[str] = []
    if result.success_count > 0:
        parts.append(f"{result.success_count} request(s) synchronized successfully")
    if result.fail_count > 0:
        parts.append(f"{result.fail_count} request(s) failed after retries")
    variant = Variant.default if result.success_count > 0 and result.fail_count == 0 else Variant.destructive
    return Notification(title="Offline Queue Processed", description=". ".join(parts) + ".", variant=variant)


def pass_error() -> Notification:
    return Notification(title="Error", description="Failed to process queued requests", variant=Variant.destructive)


def queue_cleared() -> Notification:
    return Notification(title="Queue Cleared", description="All queued requests have been cleared")


def clear_error() -> Notification:
    return Notification(title="Error", description="Failed to clear queue", variant=Variant.destructive)
