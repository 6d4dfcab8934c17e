from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Tip

User = get_user_model()


class TipSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tip
        fields = (
            "id",
            "artist",
            "amount",
            "currency",
            "status",
            "message",
            "completed_at",
            "created_at",
        )
        read_only_fields = fields


class CreateTipSerializer(serializers.Serializer):
    artist = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True))
    amount = serializers.IntegerField(min_value=1)
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    message = serializers.CharField(required=False, allow_blank=True, max_length=500, default="")
