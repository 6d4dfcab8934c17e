"""Database models for direct artist bookings."""

from __future__ import annotations

from django.conf import settings
from django.db import models

from payments.models import ReactionGatedRecord


class Booking(ReactionGatedRecord):
    """A client's request for a session with an artist, secured by a deposit hold."""

    PAYER_FIELD = "owner"
    PAYEE_FIELD = "artist"

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="bookings_as_owner",
        on_delete=models.CASCADE,
    )
    artist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="bookings_as_artist",
        on_delete=models.CASCADE,
    )
    day = models.DateField()
    start_time = models.TimeField(null=True, blank=True)
    location = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    platform_fee = models.PositiveIntegerField(
        default=0,
        help_text="Platform share of amount, in minor currency units.",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["payment_status", "authorized_at"], name="booking_status_auth_idx"),
            models.Index(fields=["artist", "reaction"], name="booking_artist_reaction_idx"),
            models.Index(fields=["owner", "created_at"], name="booking_owner_created_idx"),
        ]

    def __str__(self) -> str:
        """Return a human-readable representation."""
        return f"Booking #{self.pk} {self.day} ({self.payment_status}/{self.reaction})"

    @property
    def requires_payment(self) -> bool:
        return self.amount > 0
