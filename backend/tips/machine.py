from __future__ import annotations

from typing import Any

from notifications.models import NotifyType
from notifications.notifier import NotificationMessage
from payments.events import RecordFamily
from payments.machine import Effect, Notice
from payments.machine import TipPaymentMachine as BaseTipPaymentMachine


class TipPaymentMachine(BaseTipPaymentMachine):
    def notifications_for(self, effect: Effect, record: Any) -> list[Notice]:
        if effect is not Effect.NOTIFY_TIP_RECEIVED:
            return []
        return [
            (
                record.artist_id,
                NotificationMessage(
                    type=NotifyType.TIP_RECEIVED,
                    title="New tip received",
                    body=f"You received a tip for {self.amount_label(record)}",
                    data={
                        "family": RecordFamily.TIP.value,
                        "record_id": record.pk,
                        "amount": record.amount,
                        "currency": record.currency,
                    },
                ),
            )
        ]
