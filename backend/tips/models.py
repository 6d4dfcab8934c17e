from __future__ import annotations

from django.conf import settings
from django.db import models

from payments.choices import TipStatus
from payments.models import PayableRecord


class Tip(PayableRecord):
    """A one-off payment to an artist; captured immediately, no reaction step."""

    STATUS_FIELD = "status"
    PAYEE_FIELD = "artist"

    artist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="tips_received",
        on_delete=models.CASCADE,
    )
    status = models.CharField(
        max_length=16,
        choices=TipStatus.choices,
        default=TipStatus.PENDING,
    )
    customer_email = models.EmailField(blank=True)
    stripe_customer_id = models.CharField(max_length=255, blank=True, default="")
    message = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["artist", "status", "created_at"], name="tip_artist_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Tip #{self.pk} {self.amount} {self.currency} ({self.status})"
