"""Turn committed transitions into best-effort notifications."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from notifications.notifier import NotificationMessage, NotifyOutcome, send_best_effort

from .events import RecordFamily
from .machine import Effect

logger = logging.getLogger(__name__)


def deliver(
    context,
    *,
    dedup_key: str,
    recipient_id: int | None,
    message: NotificationMessage,
) -> NotifyOutcome:
    """
    Send one notification unless the same key was sent inside the dedup window.

    A failed send gives the key back so a later retry of the same
    transition may notify again.
    """
    if recipient_id is None:
        return NotifyOutcome.SKIPPED
    dedup = context.dedup
    if dedup is not None and not dedup.claim(dedup_key):
        logger.info("notifications: duplicate suppressed", extra={"dedup_key": dedup_key})
        return NotifyOutcome.SUPPRESSED

    outcome = send_best_effort(context.notifier, recipient_id, message)
    if outcome is NotifyOutcome.FAILED and dedup is not None:
        dedup.release(dedup_key)
    return outcome


def dispatch_effects(
    context,
    family: RecordFamily,
    record: Any,
    effects: Iterable[Effect],
) -> list[NotifyOutcome]:
    machine = context.machine(family)
    outcomes = []
    for effect in effects:
        for recipient_id, message in machine.notifications_for(effect, record):
            key = f"{family.value}:{record.pk}:{effect.value}:{recipient_id}"
            outcomes.append(
                deliver(context, dedup_key=key, recipient_id=recipient_id, message=message)
            )
    return outcomes
