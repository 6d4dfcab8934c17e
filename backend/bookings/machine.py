"""Notification texts for the booking payment flow."""

from __future__ import annotations

from typing import Any

from notifications.models import NotifyType
from notifications.notifier import NotificationMessage
from payments.choices import Reaction
from payments.events import RecordFamily
from payments.machine import Effect, Notice, TwoPhasePaymentMachine, display_name


def _data(booking: Any, **extra: Any) -> dict[str, Any]:
    return {"family": RecordFamily.BOOKING.value, "record_id": booking.pk, **extra}


class BookingPaymentMachine(TwoPhasePaymentMachine):
    def notifications_for(self, effect: Effect, record: Any) -> list[Notice]:
        amount = self.amount_label(record)
        day = record.day
        if effect is Effect.NOTIFY_AUTHORIZED:
            return [
                (
                    record.artist_id,
                    NotificationMessage(
                        type=NotifyType.BOOKING_CREATED,
                        title="New paid booking request",
                        body=(
                            f"{display_name(record.owner)} requested a booking on {day}. "
                            f"A deposit of {amount} is on hold."
                        ),
                        data=_data(record),
                    ),
                )
            ]
        if effect is Effect.NOTIFY_PAID:
            return [
                (
                    record.owner_id,
                    NotificationMessage(
                        type=NotifyType.PAYMENT_SUCCESS,
                        title="Payment completed",
                        body=f"Your deposit of {amount} for the booking on {day} has been charged.",
                        data=_data(record, amount=record.amount),
                    ),
                ),
                (
                    record.artist_id,
                    NotificationMessage(
                        type=NotifyType.PAYMENT_SUCCESS,
                        title="Deposit received",
                        body=f"You received a deposit of {amount} for the booking on {day}.",
                        data=_data(record, amount=record.amount),
                    ),
                ),
            ]
        if effect is Effect.NOTIFY_RELEASED:
            return [
                (
                    record.owner_id,
                    NotificationMessage(
                        type=NotifyType.PAYMENT_RELEASED,
                        title="Deposit released",
                        body=f"The hold of {amount} for your booking on {day} has been released.",
                        data=_data(record),
                    ),
                )
            ]
        if effect is Effect.NOTIFY_EXPIRED:
            return [
                (
                    record.owner_id,
                    NotificationMessage(
                        type=NotifyType.BOOKING_EXPIRED,
                        title="Booking expired",
                        body=(
                            f"Your booking request for {day} was not answered in time. "
                            f"The hold of {amount} has been released."
                        ),
                        data=_data(record),
                    ),
                )
            ]
        return []

    def reaction_notifications(
        self, record: Any, reaction: str, *, actor_id: int, note: str = ""
    ) -> list[Notice]:
        recipient_id = record.other_party_id(actor_id)
        actor = record.artist if actor_id == record.artist_id else record.owner
        if reaction == Reaction.ACCEPTED:
            message = NotificationMessage(
                type=NotifyType.BOOKING_ACCEPTED,
                title="Booking accepted",
                body=f"{display_name(actor)} accepted the booking on {record.day}.",
                data=_data(record, reaction=Reaction.ACCEPTED.value),
            )
        else:
            body = f"{display_name(actor)} rejected the booking on {record.day}."
            if note:
                body = f"{body} Note: {note}"
            message = NotificationMessage(
                type=NotifyType.BOOKING_REJECTED,
                title="Booking rejected",
                body=body,
                data=_data(record, reaction=Reaction.REJECTED.value, note=note),
            )
        return [(recipient_id, message)]
