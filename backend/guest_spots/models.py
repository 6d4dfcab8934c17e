from __future__ import annotations

from django.conf import settings
from django.db import models

from payments.models import ReactionGatedRecord


class GuestSpotBooking(ReactionGatedRecord):
    """A visiting artist's request to work at a shop, held by a deposit to the shop."""

    PAYER_FIELD = "artist"
    PAYEE_FIELD = "shop"

    artist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="guest_spot_requests",
        on_delete=models.CASCADE,
    )
    shop = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="guest_spot_bookings",
        on_delete=models.CASCADE,
    )
    selected_date = models.DateField()
    selected_time = models.TimeField(null=True, blank=True)
    comment = models.TextField(blank=True)
    platform_commission_amount = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["payment_status", "authorized_at"], name="guestspot_status_auth_idx"),
            models.Index(fields=["shop", "reaction"], name="guestspot_shop_reaction_idx"),
            models.Index(fields=["artist", "created_at"], name="guestspot_artist_created_idx"),
        ]

    def __str__(self) -> str:
        return f"GuestSpotBooking #{self.pk} {self.selected_date} ({self.payment_status}/{self.reaction})"

    @property
    def requires_payment(self) -> bool:
        return self.amount > 0
