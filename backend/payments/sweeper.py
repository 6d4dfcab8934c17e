"""Release authorizations that nobody reacted to in time."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable

from .choices import PaymentStatus, Reaction
from .effects import dispatch_effects
from .events import TWO_PHASE_FAMILIES, RecordFamily
from .exceptions import MissingIntentError, RecordBusyError, StaleRecordError

logger = logging.getLogger(__name__)

AUTHORIZATION_TTL = timedelta(days=7)


def expiry_note(timeout: timedelta) -> str:
    return (
        "Automatically rejected due to expired payment authorization "
        f"({timeout.days} days)"
    )


@dataclass
class SweepReport:
    checked: int = 0
    cancelled: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class ExpirySweeper:
    """
    Cancel holds that stayed authorized past ``timeout``.

    Each record is locked, re-read and updated on its own; a failing
    record is logged and the sweep moves on.
    """

    def __init__(
        self,
        context,
        *,
        families: Iterable[RecordFamily] = TWO_PHASE_FAMILIES,
        timeout: timedelta = AUTHORIZATION_TTL,
    ):
        self.context = context
        self.families = tuple(families)
        self.timeout = timeout
        self.note = expiry_note(timeout)

    def run(self) -> SweepReport:
        report = SweepReport()
        cutoff = self.context.clock() - self.timeout
        for family in self.families:
            store = self.context.store(family)
            for record in store.find_expired(cutoff, PaymentStatus.AUTHORIZED):
                report.checked += 1
                log_extra = {"family": family.value, "record_id": record.pk}
                try:
                    expired = self._expire(family, record.pk, cutoff)
                except RecordBusyError:
                    logger.info("payments: record busy, expiry deferred", extra=log_extra)
                    report.skipped += 1
                    continue
                except Exception:
                    logger.exception("payments: failed to expire authorization", extra=log_extra)
                    report.failed += 1
                    continue
                if expired:
                    report.cancelled += 1
                else:
                    report.skipped += 1

        logger.info("payments: expiry sweep finished", extra=report.as_dict())
        return report

    def _expire(self, family: RecordFamily, record_id: Any, cutoff: datetime) -> bool:
        store = self.context.store(family)
        machine = self.context.machine(family)
        with self.context.hold(family, record_id, blocking=False):
            record = store.find_by_identifier(record_id)
            if record is None or record.payment_status != PaymentStatus.AUTHORIZED:
                return False
            if record.authorized_at is None or record.authorized_at >= cutoff:
                return False
            intent_id = record.stripe_payment_intent_id
            if not intent_id:
                raise MissingIntentError(f"{family.value} {record_id} is authorized without an intent")

            self.context.gateway.cancel(intent_id)
            transition = machine.on_expire(record, self.context.clock(), self.note)
            try:
                updated = store.update_fields(
                    record.pk,
                    transition.patch(machine.status_field),
                    expected_status=PaymentStatus.AUTHORIZED,
                    expected={"reaction": record.reaction},
                )
            except StaleRecordError:
                self._reject_if_released(family, record.pk)
                return False

        dispatch_effects(self.context, family, updated, transition.effects)
        return True

    def _reject_if_released(self, family: RecordFamily, record_id: Any) -> None:
        """The cancel webhook won the race; still close the pending reaction."""
        store = self.context.store(family)
        try:
            store.update_fields(
                record_id,
                {"reaction": Reaction.REJECTED, "reject_note": self.note},
                expected_status=PaymentStatus.CANCELLED,
                expected={"reaction": Reaction.PENDING},
            )
        except StaleRecordError:
            logger.info(
                "payments: record settled elsewhere during expiry",
                extra={"family": family.value, "record_id": record_id},
            )
