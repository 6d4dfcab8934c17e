from django.conf import settings
from django.db import models


class NotifyType(models.TextChoices):
    BOOKING_CREATED = "booking_created", "Booking created"
    BOOKING_ACCEPTED = "booking_accepted", "Booking accepted"
    BOOKING_REJECTED = "booking_rejected", "Booking rejected"
    BOOKING_EXPIRED = "booking_expired", "Booking expired"
    GUEST_SPOT_REQUEST = "guest_spot_request", "Guest spot request"
    GUEST_SPOT_ACCEPTED = "guest_spot_accepted", "Guest spot accepted"
    GUEST_SPOT_REJECTED = "guest_spot_rejected", "Guest spot rejected"
    GUEST_SPOT_EXPIRED = "guest_spot_expired", "Guest spot expired"
    PAYMENT_SUCCESS = "payment_success", "Payment success"
    PAYMENT_RELEASED = "payment_released", "Payment released"
    TIP_RECEIVED = "tip_received", "Tip received"
    STRIPE_ACCOUNT_ACTIVATED = "stripe_account_activated", "Stripe account activated"


class Notification(models.Model):
    """In-app notification shown in the recipient's inbox."""

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    type = models.CharField(max_length=64, choices=NotifyType.choices)
    title = models.CharField(max_length=255)
    body = models.TextField(blank=True)
    data = models.JSONField(default=dict, blank=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "read_at"], name="notif_recipient_read_idx"),
            models.Index(fields=["recipient", "created_at"], name="notif_recipient_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.recipient_id}:{self.type}"


class NotificationLog(models.Model):
    class Channel(models.TextChoices):
        IN_APP = "in_app", "In-app"
        PUSH = "push", "Push"
        EMAIL = "email", "Email"

    class Status(models.TextChoices):
        SENT = "sent", "Sent"
        SKIPPED = "skipped", "Skipped"
        FAILED = "failed", "Failed"

    channel = models.CharField(max_length=8, choices=Channel.choices)
    type = models.CharField(max_length=128)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notification_logs",
    )
    record_family = models.CharField(max_length=32, blank=True)
    record_id = models.IntegerField(null=True, blank=True)
    status = models.CharField(max_length=8, choices=Status.choices)
    error = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["created_at"], name="notiflog_created_idx"),
            models.Index(fields=["record_family", "record_id", "created_at"], name="notiflog_record_idx"),
            models.Index(fields=["type", "created_at"], name="notiflog_type_created_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.channel}:{self.type} ({self.status})"
