from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import GuestSpotBooking

User = get_user_model()


class GuestSpotBookingSerializer(serializers.ModelSerializer):
    artist = serializers.PrimaryKeyRelatedField(read_only=True)
    shop = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True))

    class Meta:
        model = GuestSpotBooking
        fields = (
            "id",
            "artist",
            "shop",
            "selected_date",
            "selected_time",
            "comment",
            "amount",
            "platform_commission_amount",
            "currency",
            "payment_status",
            "reaction",
            "reject_note",
            "authorized_at",
            "completed_at",
            "created_at",
        )
        read_only_fields = (
            "amount",
            "platform_commission_amount",
            "currency",
            "payment_status",
            "reaction",
            "reject_note",
            "authorized_at",
            "completed_at",
            "created_at",
        )
