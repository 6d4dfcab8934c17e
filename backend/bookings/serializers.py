"""Serializers for booking endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Booking

User = get_user_model()


class BookingSerializer(serializers.ModelSerializer):
    """Serialize Booking instances; payment fields are read-only."""

    owner = serializers.PrimaryKeyRelatedField(read_only=True)
    artist = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True))
    artist_username = serializers.ReadOnlyField(source="artist.username")
    owner_username = serializers.ReadOnlyField(source="owner.username")

    class Meta:
        model = Booking
        fields = (
            "id",
            "owner",
            "owner_username",
            "artist",
            "artist_username",
            "day",
            "start_time",
            "location",
            "description",
            "amount",
            "platform_fee",
            "currency",
            "payment_status",
            "reaction",
            "reject_note",
            "authorized_at",
            "completed_at",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "amount",
            "platform_fee",
            "currency",
            "payment_status",
            "reaction",
            "reject_note",
            "authorized_at",
            "completed_at",
            "created_at",
            "updated_at",
        )
