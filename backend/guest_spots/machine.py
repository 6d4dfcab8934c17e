from __future__ import annotations

from typing import Any

from notifications.models import NotifyType
from notifications.notifier import NotificationMessage
from payments.choices import Reaction
from payments.events import RecordFamily
from payments.machine import Effect, Notice, TwoPhasePaymentMachine, display_name


def _data(record: Any, **extra: Any) -> dict[str, Any]:
    return {"family": RecordFamily.GUEST_SPOT.value, "record_id": record.pk, **extra}


class GuestSpotPaymentMachine(TwoPhasePaymentMachine):
    """Deposits are manual-capture Checkout sessions, held once checkout completes."""

    authorize_on_checkout = True

    def notifications_for(self, effect: Effect, record: Any) -> list[Notice]:
        amount = self.amount_label(record)
        when = record.selected_date
        if effect is Effect.NOTIFY_AUTHORIZED:
            return [
                (
                    record.shop_id,
                    NotificationMessage(
                        type=NotifyType.GUEST_SPOT_REQUEST,
                        title="New guest spot request",
                        body=(
                            f"{display_name(record.artist)} requested a guest spot on {when} "
                            f"with a {amount} deposit on hold."
                        ),
                        data=_data(record),
                    ),
                )
            ]
        if effect is Effect.NOTIFY_PAID:
            return [
                (
                    record.artist_id,
                    NotificationMessage(
                        type=NotifyType.PAYMENT_SUCCESS,
                        title="Deposit charged",
                        body=f"Your guest spot deposit of {amount} for {when} has been charged.",
                        data=_data(record, amount=record.amount),
                    ),
                ),
                (
                    record.shop_id,
                    NotificationMessage(
                        type=NotifyType.PAYMENT_SUCCESS,
                        title="Deposit received",
                        body=f"You received a guest spot deposit of {amount} for {when}.",
                        data=_data(record, amount=record.amount),
                    ),
                ),
            ]
        if effect is Effect.NOTIFY_RELEASED:
            return [
                (
                    record.artist_id,
                    NotificationMessage(
                        type=NotifyType.PAYMENT_RELEASED,
                        title="Deposit released",
                        body=f"Your guest spot deposit of {amount} for {when} has been released.",
                        data=_data(record),
                    ),
                )
            ]
        if effect is Effect.NOTIFY_EXPIRED:
            return [
                (
                    record.artist_id,
                    NotificationMessage(
                        type=NotifyType.GUEST_SPOT_EXPIRED,
                        title="Guest spot request expired",
                        body=(
                            f"The shop did not answer your guest spot request for {when}. "
                            f"Your {amount} deposit has been released."
                        ),
                        data=_data(record),
                    ),
                )
            ]
        return []

    def reaction_notifications(
        self, record: Any, reaction: str, *, actor_id: int, note: str = ""
    ) -> list[Notice]:
        actor = record.shop if actor_id == record.shop_id else record.artist
        accepted = reaction == Reaction.ACCEPTED
        body = (
            f"{display_name(actor)} {'accepted' if accepted else 'rejected'} "
            f"the guest spot for {record.selected_date}."
        )
        if note and not accepted:
            body = f"{body} Note: {note}"
        message = NotificationMessage(
            type=NotifyType.GUEST_SPOT_ACCEPTED if accepted else NotifyType.GUEST_SPOT_REJECTED,
            title="Guest spot accepted" if accepted else "Guest spot rejected",
            body=body,
            data=_data(record, reaction=str(reaction), note=note),
        )
        return [(record.other_party_id(actor_id), message)]
