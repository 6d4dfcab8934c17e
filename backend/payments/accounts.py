"""Keep PayoutAccount rows in step with Stripe Connect account.updated events."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from django.utils import timezone

from notifications.models import NotifyType
from notifications.notifier import NotificationMessage

from .effects import deliver
from .events import PaymentEvent
from .exceptions import StaleRecordError
from .gateway import AccountStatus, account_status_from_payload
from .handlers import HandlerOutcome
from .models import PayoutAccount

logger = logging.getLogger(__name__)

ACCOUNT_FIELDS = ("details_submitted", "payouts_enabled", "charges_enabled")

ACCOUNT_ACTIVATED = NotificationMessage(
    type=NotifyType.STRIPE_ACCOUNT_ACTIVATED,
    title="Stripe Account Activated",
    body="Your Stripe account is ready. You can now receive payments.",
)


def is_account_onboarded(account: AccountStatus | Any) -> bool:
    return bool(
        getattr(account, "details_submitted", False)
        and getattr(account, "payouts_enabled", False)
        and getattr(account, "charges_enabled", False)
    )


class PayoutAccountStore:
    def find_by_account_id(self, account_id: str) -> PayoutAccount | None:
        if not account_id:
            return None
        return PayoutAccount.objects.filter(stripe_account_id=account_id).first()

    def update_fields(
        self,
        account_pk: int,
        patch: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> PayoutAccount:
        queryset = PayoutAccount.objects.filter(pk=account_pk, **(expected or {}))
        if not queryset.update(**patch, updated_at=timezone.now()):
            raise StaleRecordError(f"PayoutAccount {account_pk} changed concurrently")
        return PayoutAccount.objects.get(pk=account_pk)


class AccountUpdateHandler:
    """Family-agnostic: syncs payout capability for the connected account."""

    def __init__(self, context):
        self.context = context

    def _status(self, event: PaymentEvent) -> AccountStatus:
        payload = event.payload or {}
        if all(key in payload for key in ACCOUNT_FIELDS):
            return account_status_from_payload(payload)
        return self.context.gateway.retrieve_account(event.account_id)

    def __call__(self, event: PaymentEvent) -> HandlerOutcome:
        accounts = self.context.accounts
        account = accounts.find_by_account_id(event.account_id)
        if account is None:
            logger.warning(
                "payments: account.updated for unknown account",
                extra={"event_id": event.id, "account_id": event.account_id},
            )
            return HandlerOutcome.NOT_FOUND

        status = self._status(event)
        patch = {
            "details_submitted": status.details_submitted,
            "payouts_enabled": status.payouts_enabled,
            "charges_enabled": status.charges_enabled,
            "is_fully_onboarded": is_account_onboarded(status),
            "requirements_due": list(status.requirements_due),
            "last_synced_at": self.context.clock(),
        }
        was_enabled = account.payouts_enabled
        try:
            updated = accounts.update_fields(
                account.pk, patch, expected={"payouts_enabled": was_enabled}
            )
        except StaleRecordError:
            # A concurrent delivery synced first; payouts_enabled is absolute state.
            account = accounts.find_by_account_id(event.account_id)
            was_enabled = account.payouts_enabled
            updated = accounts.update_fields(account.pk, patch)

        logger.info(
            "payments: payout account synced",
            extra={
                "account_id": event.account_id,
                "payouts_enabled": updated.payouts_enabled,
                "onboarded": updated.is_fully_onboarded,
            },
        )
        if updated.payouts_enabled and not was_enabled:
            deliver(
                self.context,
                dedup_key=f"account:{event.account_id}:activated",
                recipient_id=updated.user_id,
                message=ACCOUNT_ACTIVATED,
            )
        return HandlerOutcome.APPLIED
