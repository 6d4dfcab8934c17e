"""
Pure transition logic for payable records.

Machines never touch storage or Stripe. Given the persisted record and an
incoming event (or an orchestrated action) they return the Transition to
apply, or None when the event does not move the record. Callers persist
the Transition with a compare-and-set on the prior status and only then
act on its effects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping

from notifications.notifier import NotificationMessage

from .choices import PaymentStatus, Reaction, TipStatus
from .events import EventType, PaymentEvent
from .exceptions import IntentMismatchError
from .fees import format_amount


class Effect(str, Enum):
    NOTIFY_AUTHORIZED = "authorized"
    NOTIFY_PAID = "paid"
    NOTIFY_RELEASED = "released"
    NOTIFY_EXPIRED = "expired"
    NOTIFY_TIP_RECEIVED = "tip_received"


@dataclass(frozen=True)
class Transition:
    target: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    effects: tuple[Effect, ...] = ()

    def patch(self, status_field: str) -> dict[str, Any]:
        return {**self.fields, status_field: self.target}


class StatusGraph:
    """Directed graph of allowed status moves; terminal states have no edges."""

    def __init__(self, edges: Mapping[str, Iterable[str]]):
        self._edges = {state: frozenset(targets) for state, targets in edges.items()}

    def can_advance(self, current: str, target: str) -> bool:
        return target in self._edges.get(current, frozenset())

    def is_terminal(self, status: str) -> bool:
        return not self._edges.get(status)

    def states(self) -> frozenset[str]:
        found = set(self._edges)
        for targets in self._edges.values():
            found.update(targets)
        return frozenset(found)


TWO_PHASE_GRAPH = StatusGraph(
    {
        # unpaid -> paid covers payment_intent.succeeded arriving before the
        # authorization event.
        PaymentStatus.UNPAID: {PaymentStatus.AUTHORIZED, PaymentStatus.PAID},
        PaymentStatus.AUTHORIZED: {
            PaymentStatus.PAID,
            PaymentStatus.CANCELLED,
            PaymentStatus.FAILED,
        },
        PaymentStatus.PAID: (),
        PaymentStatus.CANCELLED: (),
        PaymentStatus.FAILED: (),
    }
)

TIP_GRAPH = StatusGraph(
    {
        TipStatus.PENDING: {TipStatus.COMPLETED, TipStatus.FAILED, TipStatus.CANCELED},
        TipStatus.COMPLETED: (),
        TipStatus.FAILED: (),
        TipStatus.CANCELED: (),
    }
)

Notice = tuple[int, NotificationMessage]


def display_name(user: Any) -> str:
    if user is None:
        return "Someone"
    full_name = user.get_full_name() if hasattr(user, "get_full_name") else ""
    return full_name or getattr(user, "username", "") or "Someone"


class PaymentMachine:
    status_field = "payment_status"
    graph: StatusGraph

    def decide(self, record: Any, event: PaymentEvent, now: datetime) -> Transition | None:
        raise NotImplementedError

    def notifications_for(self, effect: Effect, record: Any) -> list[Notice]:
        """Messages to send once ``effect`` has been committed."""
        return []

    def amount_label(self, record: Any) -> str:
        return format_amount(record.amount, record.currency)

    def check_correlation(self, record: Any, event: PaymentEvent) -> None:
        pairs = (
            ("stripe_payment_intent_id", event.intent_id),
            ("stripe_checkout_session_id", event.session_id),
        )
        for field_name, reported in pairs:
            on_file = getattr(record, field_name, "") or ""
            if reported and on_file and reported != on_file:
                raise IntentMismatchError(
                    f"{field_name} on file is {on_file}, event {event.id} reports {reported}"
                )

    def correlation_fields(self, record: Any, event: PaymentEvent) -> dict[str, Any]:
        """Stripe ids reported by the event that the record does not hold yet."""
        fields: dict[str, Any] = {}
        if event.session_id and not record.stripe_checkout_session_id:
            fields["stripe_checkout_session_id"] = event.session_id
        if event.intent_id and not record.stripe_payment_intent_id:
            fields["stripe_payment_intent_id"] = event.intent_id
        return fields

    def advance(
        self,
        record: Any,
        target: str,
        fields: Mapping[str, Any] | None = None,
        effects: tuple[Effect, ...] = (),
    ) -> Transition | None:
        current = getattr(record, self.status_field)
        if not self.graph.can_advance(current, target):
            return None
        return Transition(target=target, fields=dict(fields or {}), effects=effects)

    def record_fields(self, record: Any, fields: Mapping[str, Any]) -> Transition | None:
        """Persist new ids without moving the status."""
        if not fields:
            return None
        return Transition(target=getattr(record, self.status_field), fields=dict(fields))


class TwoPhasePaymentMachine(PaymentMachine):
    """Authorize, then capture or cancel on the counterparty's reaction."""

    graph = TWO_PHASE_GRAPH
    # Deposits collected with a manual-capture Checkout hold funds as soon
    # as the session completes.
    authorize_on_checkout = False

    def decide(self, record: Any, event: PaymentEvent, now: datetime) -> Transition | None:
        self.check_correlation(record, event)
        ids = self.correlation_fields(record, event)

        if event.type is EventType.CHECKOUT_COMPLETED:
            if self.authorize_on_checkout and (event.intent_id or record.stripe_payment_intent_id):
                transition = self._authorize(record, now, ids)
                if transition is not None:
                    return transition
            return self.record_fields(record, ids)
        if event.type is EventType.PAYMENT_AUTHORIZED:
            return self._authorize(record, now, ids)
        if event.type is EventType.PAYMENT_SUCCEEDED:
            return self.advance(
                record,
                PaymentStatus.PAID,
                {**ids, "completed_at": record.completed_at or now},
                (Effect.NOTIFY_PAID,),
            )
        if event.type is EventType.PAYMENT_FAILED:
            return self.advance(record, PaymentStatus.FAILED, ids, (Effect.NOTIFY_RELEASED,))
        if event.type is EventType.PAYMENT_CANCELED:
            return self.advance(record, PaymentStatus.CANCELLED, ids, (Effect.NOTIFY_RELEASED,))
        return None

    def _authorize(self, record: Any, now: datetime, ids: Mapping[str, Any]) -> Transition | None:
        return self.advance(
            record,
            PaymentStatus.AUTHORIZED,
            {**ids, "authorized_at": record.authorized_at or now},
            (Effect.NOTIFY_AUTHORIZED,),
        )

    def on_capture(self, record: Any, now: datetime) -> Transition | None:
        if record.payment_status != PaymentStatus.AUTHORIZED:
            return None
        return Transition(
            target=PaymentStatus.PAID,
            fields={"completed_at": record.completed_at or now},
            effects=(Effect.NOTIFY_PAID,),
        )

    def on_cancel(self, record: Any, now: datetime) -> Transition | None:
        if record.payment_status != PaymentStatus.AUTHORIZED:
            return None
        return Transition(target=PaymentStatus.CANCELLED, effects=(Effect.NOTIFY_RELEASED,))

    def on_expire(self, record: Any, now: datetime, note: str) -> Transition | None:
        if record.payment_status != PaymentStatus.AUTHORIZED:
            return None
        if record.reaction != Reaction.PENDING:
            # Already decided; release the hold and leave the decision alone.
            return Transition(target=PaymentStatus.CANCELLED, effects=(Effect.NOTIFY_RELEASED,))
        return Transition(
            target=PaymentStatus.CANCELLED,
            fields={"reaction": Reaction.REJECTED, "reject_note": note},
            effects=(Effect.NOTIFY_EXPIRED,),
        )

    def reaction_notifications(
        self, record: Any, reaction: str, *, actor_id: int, note: str = ""
    ) -> list[Notice]:
        """Messages telling the other counterparty about a reaction."""
        return []


class TipPaymentMachine(PaymentMachine):
    """Single-phase tips: Stripe events alone move the record."""

    status_field = "status"
    graph = TIP_GRAPH

    def correlation_fields(self, record: Any, event: PaymentEvent) -> dict[str, Any]:
        fields = super().correlation_fields(record, event)
        if event.customer_id and not record.stripe_customer_id:
            fields["stripe_customer_id"] = event.customer_id
        if event.customer_email and not record.customer_email:
            fields["customer_email"] = event.customer_email
        return fields

    def decide(self, record: Any, event: PaymentEvent, now: datetime) -> Transition | None:
        self.check_correlation(record, event)
        ids = self.correlation_fields(record, event)

        if event.type is EventType.CHECKOUT_COMPLETED:
            if event.session_payment_status == "paid":
                return self._complete(record, now, ids)
            # Delayed methods (bank debits) settle later via async events.
            return self.record_fields(record, ids)
        if event.type in (EventType.ASYNC_PAYMENT_SUCCEEDED, EventType.PAYMENT_SUCCEEDED):
            return self._complete(record, now, ids)
        if event.type in (EventType.ASYNC_PAYMENT_FAILED, EventType.PAYMENT_FAILED):
            return self.advance(record, TipStatus.FAILED, ids)
        if event.type is EventType.PAYMENT_CANCELED:
            return self.advance(record, TipStatus.CANCELED, ids)
        return None

    def _complete(self, record: Any, now: datetime, ids: Mapping[str, Any]) -> Transition | None:
        return self.advance(
            record,
            TipStatus.COMPLETED,
            {**ids, "completed_at": record.completed_at or now},
            (Effect.NOTIFY_TIP_RECEIVED,),
        )
