"""Fire-and-forget notification dispatch with a typed outcome."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationMessage:
    type: str
    title: str
    body: str
    data: Mapping[str, Any] = field(default_factory=dict)

    def as_payload(self) -> dict[str, Any]:
        return {
            "type": str(self.type),
            "title": self.title,
            "body": self.body,
            "data": dict(self.data),
        }


class NotifyOutcome(str, Enum):
    OK = "ok"
    FAILED = "failed"
    SUPPRESSED = "suppressed"
    SKIPPED = "skipped"


class CeleryNotifier:
    """Queue delivery (in-app, push, email) on the notifications worker."""

    def notify(self, recipient_id: int, message: NotificationMessage) -> None:
        from notifications.tasks import deliver_notification

        deliver_notification.delay(recipient_id, message.as_payload())


def send_best_effort(notifier, recipient_id: int, message: NotificationMessage) -> NotifyOutcome:
    """
    Hand a message to the notifier and report how it went.

    Notification outages must never fail a payment transition or a
    webhook response, so any error is logged and returned as FAILED.
    """
    try:
        notifier.notify(recipient_id, message)
    except Exception:
        logger.warning(
            "notifications: could not dispatch %s to user %s",
            message.type,
            recipient_id,
            exc_info=True,
        )
        return NotifyOutcome.FAILED
    return NotifyOutcome.OK
