from django.conf import settings
from django.db import models

from .choices import PaymentStatus, Reaction


def _default_currency() -> str:
    return getattr(settings, "DEFAULT_CURRENCY", "usd") or "usd"


class PayableRecord(models.Model):
    """
    Fields every Stripe-backed record carries.

    Amounts are integer minor units (cents) and are fixed at creation.
    Stripe correlation ids start blank and are written at most once.
    """

    STATUS_FIELD = "payment_status"
    PAYER_FIELD = ""
    PAYEE_FIELD = ""

    amount = models.PositiveIntegerField(help_text="Total charged, in minor currency units.")
    currency = models.CharField(max_length=8, default=_default_currency)
    stripe_checkout_session_id = models.CharField(
        max_length=255, blank=True, default="", db_index=True
    )
    stripe_payment_intent_id = models.CharField(
        max_length=255, blank=True, default="", db_index=True
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    @property
    def payer_id(self) -> int | None:
        if not self.PAYER_FIELD:
            return None
        return getattr(self, f"{self.PAYER_FIELD}_id", None)

    @property
    def payee_id(self) -> int | None:
        if not self.PAYEE_FIELD:
            return None
        return getattr(self, f"{self.PAYEE_FIELD}_id", None)


class ReactionGatedRecord(PayableRecord):
    """A payable record whose capture waits on a counterparty's decision."""

    payment_status = models.CharField(
        max_length=16,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    reaction = models.CharField(
        max_length=16,
        choices=Reaction.choices,
        default=Reaction.PENDING,
    )
    reject_note = models.TextField(blank=True)
    authorized_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        abstract = True

    def is_counterparty(self, user_id: int | None) -> bool:
        return user_id is not None and user_id in (self.payer_id, self.payee_id)

    def other_party_id(self, user_id: int | None) -> int | None:
        if user_id == self.payer_id:
            return self.payee_id
        if user_id == self.payee_id:
            return self.payer_id
        return None


class PayoutAccount(models.Model):
    """Stripe Connect account and payment preferences for a payee."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="payout_account",
    )
    stripe_account_id = models.CharField(max_length=255, blank=True, default="", db_index=True)
    payouts_enabled = models.BooleanField(default=False)
    charges_enabled = models.BooleanField(default=False)
    details_submitted = models.BooleanField(default=False)
    is_fully_onboarded = models.BooleanField(
        default=False,
        help_text="Details submitted, charges and payouts enabled.",
    )
    requirements_due = models.JSONField(default=list, blank=True)
    deposit_amount = models.PositiveIntegerField(
        default=0,
        help_text="Deposit requested from payers, in minor currency units.",
    )
    accepts_tips = models.BooleanField(default=True)
    last_synced_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-last_synced_at", "user_id"]

    def __str__(self) -> str:
        return f"{self.user} - {self.stripe_account_id or 'unlinked'}"

    @property
    def can_receive_payments(self) -> bool:
        return bool(self.stripe_account_id) and self.payouts_enabled


class WebhookEvent(models.Model):
    """Ledger of verified Stripe deliveries, keyed by Stripe event id."""

    class Status(models.TextChoices):
        RECEIVED = "received", "Received"
        PROCESSED = "processed", "Processed"
        IGNORED = "ignored", "Ignored"
        FAILED = "failed", "Failed"

    stripe_event_id = models.CharField(max_length=255, unique=True)
    type = models.CharField(max_length=128)
    channel = models.CharField(max_length=32, default="default")
    payload = models.JSONField(default=dict)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.RECEIVED)
    outcome = models.CharField(max_length=32, blank=True)
    attempts = models.PositiveSmallIntegerField(default=0)
    error = models.TextField(blank=True)
    received_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-received_at"]
        indexes = [
            models.Index(fields=["status", "received_at"], name="webhook_status_received_idx"),
            models.Index(fields=["type", "received_at"], name="webhook_type_received_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.stripe_event_id}:{self.type} ({self.status})"
