"""Tie a counterparty's accept/reject decision to capture or cancel on Stripe."""

from __future__ import annotations

import logging
from typing import Any

from .choices import PaymentStatus, Reaction
from .effects import deliver, dispatch_effects
from .events import TWO_PHASE_FAMILIES, RecordFamily
from .exceptions import (
    InvalidReaction,
    ReactionAlreadyDecided,
    ReactionNotAllowed,
    RecordNotFound,
    StaleRecordError,
)

logger = logging.getLogger(__name__)

DECISIONS = (Reaction.ACCEPTED, Reaction.REJECTED)


def coerce_reaction(value: Any) -> Reaction:
    try:
        reaction = Reaction(str(value or "").strip().lower())
    except ValueError as exc:
        raise InvalidReaction(f"Unknown reaction {value!r}.") from exc
    if reaction not in DECISIONS:
        raise InvalidReaction("Reaction must be accepted or rejected.")
    return reaction


class ReactionOrchestrator:
    """
    Run the payment side of a reaction before the reaction is recorded.

    The capture/cancel call happens under the record lock and is never
    retried here; a gateway error leaves payment status and reaction
    untouched so the caller can simply try again.
    """

    def __init__(self, context, family: RecordFamily):
        if family not in TWO_PHASE_FAMILIES:
            raise ValueError(f"{family.value} records have no reaction step")
        self.context = context
        self.family = family

    @property
    def store(self):
        return self.context.store(self.family)

    @property
    def machine(self):
        return self.context.machine(self.family)

    def submit(self, record_id: Any, *, actor_id: int, reaction: Any, note: str = ""):
        """Validate and apply a counterparty's reaction; returns the updated record."""
        decision = coerce_reaction(reaction)
        note = (note or "").strip() if decision is Reaction.REJECTED else ""

        with self.context.hold(self.family, record_id):
            record = self.store.find_by_identifier(record_id)
            if record is None:
                raise RecordNotFound(f"{self.family.value} {record_id} does not exist")
            if not record.is_counterparty(actor_id):
                raise ReactionNotAllowed("Only the booking participants can respond to it.")
            if record.reaction != Reaction.PENDING:
                raise ReactionAlreadyDecided(f"This request was already {record.reaction}.")

            self.handle_reaction_payment(
                record.pk,
                previous_reaction=record.reaction,
                new_reaction=decision,
                payment_status=record.payment_status,
                intent_id=record.stripe_payment_intent_id,
            )

            try:
                record = self.store.update_fields(
                    record.pk,
                    {"reaction": decision, "reject_note": note},
                    expected={"reaction": Reaction.PENDING},
                )
            except StaleRecordError as exc:
                raise ReactionAlreadyDecided("This request was already answered.") from exc

        logger.info(
            "payments: reaction recorded",
            extra={
                "family": self.family.value,
                "record_id": record.pk,
                "reaction": decision.value,
                "payment_status": record.payment_status,
            },
        )
        for recipient_id, message in self.machine.reaction_notifications(
            record, decision, actor_id=actor_id, note=note
        ):
            deliver(
                self.context,
                dedup_key=f"{self.family.value}:{record.pk}:reaction:{decision.value}:{recipient_id}",
                recipient_id=recipient_id,
                message=message,
            )
        return record

    def handle_reaction_payment(
        self,
        record_id: Any,
        *,
        previous_reaction: str,
        new_reaction: str,
        payment_status: str,
        intent_id: str,
    ):
        """
        Capture on accept, cancel on reject.

        No-op unless the reaction changes, funds are authorized and an
        intent exists. Gateway errors propagate with the record unchanged.
        """
        if new_reaction == previous_reaction:
            return None
        if payment_status != PaymentStatus.AUTHORIZED or not intent_id:
            logger.info(
                "payments: reaction needs no gateway call",
                extra={
                    "family": self.family.value,
                    "record_id": record_id,
                    "payment_status": payment_status,
                },
            )
            return None

        record = self.store.find_by_identifier(record_id)
        if record is None:
            raise RecordNotFound(f"{self.family.value} {record_id} does not exist")
        now = self.context.clock()
        if new_reaction == Reaction.ACCEPTED:
            transition = self.machine.on_capture(record, now)
            if transition is None:
                return record
            self.context.gateway.capture(intent_id)
        else:
            transition = self.machine.on_cancel(record, now)
            if transition is None:
                return record
            self.context.gateway.cancel(intent_id)

        try:
            updated = self.store.update_fields(
                record.pk,
                transition.patch(self.machine.status_field),
                expected_status=PaymentStatus.AUTHORIZED,
            )
        except StaleRecordError:
            # The webhook for our own capture/cancel can land first.
            current = self.store.find_by_identifier(record.pk)
            if current is not None and current.payment_status == transition.target:
                logger.info(
                    "payments: %s already recorded by webhook",
                    transition.target,
                    extra={"family": self.family.value, "record_id": record.pk},
                )
                return current
            raise

        dispatch_effects(self.context, self.family, updated, transition.effects)
        return updated
