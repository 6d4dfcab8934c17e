"""Apply routed Stripe events to payable records."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from .effects import dispatch_effects
from .events import PaymentEvent, RecordFamily
from .exceptions import IntentMismatchError, StaleRecordError

logger = logging.getLogger(__name__)

MAX_DECIDE_ATTEMPTS = 3


class HandlerOutcome(str, Enum):
    APPLIED = "applied"
    NOOP = "noop"
    NOT_FOUND = "not_found"
    ANOMALY = "anomaly"
    CONFLICT = "conflict"
    IGNORED = "ignored"


class PaymentEventHandler:
    """
    Correlate an event with its record, ask the family machine for a
    transition and persist it with a compare-and-set on the prior status.

    Replays land on a record that is already at or past the target status,
    the machine returns no transition and nothing is written or sent.
    """

    def __init__(self, context, family: RecordFamily):
        self.context = context
        self.family = family

    @property
    def store(self):
        return self.context.store(self.family)

    @property
    def machine(self):
        return self.context.machine(self.family)

    def locate(self, event: PaymentEvent) -> Any | None:
        if event.type.is_checkout:
            record = self.store.find_by_session_id(event.session_id)
        else:
            record = self.store.find_by_intent_id(event.intent_id)
        if record is None and event.record_ref:
            record = self.store.find_by_identifier(event.record_ref)
        return record

    def __call__(self, event: PaymentEvent) -> HandlerOutcome:
        log_extra = {
            "event_id": event.id,
            "event_type": event.type.value,
            "family": self.family.value,
        }
        record = self.locate(event)
        if record is None:
            logger.warning(
                "payments: no record for event",
                extra={**log_extra, "session_id": event.session_id, "intent_id": event.intent_id},
            )
            return HandlerOutcome.NOT_FOUND

        status_field = self.machine.status_field
        for _ in range(MAX_DECIDE_ATTEMPTS):
            log_extra["record_id"] = record.pk
            try:
                transition = self.machine.decide(record, event, self.context.clock())
            except IntentMismatchError as exc:
                logger.error("payments: stripe id mismatch, event not applied: %s", exc, extra=log_extra)
                return HandlerOutcome.ANOMALY
            if transition is None:
                logger.info("payments: event is a no-op for record", extra=log_extra)
                return HandlerOutcome.NOOP

            try:
                updated = self.store.update_fields(
                    record.pk,
                    transition.patch(status_field),
                    expected_status=getattr(record, status_field),
                )
            except StaleRecordError:
                record = self.store.find_by_identifier(record.pk)
                if record is None:
                    return HandlerOutcome.NOT_FOUND
                continue

            logger.info(
                "payments: record moved to %s",
                transition.target,
                extra={**log_extra, "status": str(transition.target)},
            )
            dispatch_effects(self.context, self.family, updated, transition.effects)
            return HandlerOutcome.APPLIED

        logger.warning("payments: gave up after repeated conflicts", extra=log_extra)
        return HandlerOutcome.CONFLICT
