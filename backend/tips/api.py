from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.response import Response

from payments.api import payment_error_response
from payments.gateway import StripeConfigurationError, StripePaymentError, StripeTransientError

from .models import Tip
from .serializers import CreateTipSerializer, TipSerializer
from .services import create_tip_session

logger = logging.getLogger(__name__)


class TipViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Anyone may start a tip; artists list the tips they received."""

    serializer_class = TipSerializer

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        return Tip.objects.filter(artist=self.request.user).order_by("-created_at")

    def create(self, request, *args, **kwargs):
        serializer = CreateTipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            tip, session = create_tip_session(
                artist=data["artist"],
                amount=data["amount"],
                customer_email=data.get("customer_email", ""),
                message=data.get("message", ""),
            )
        except (
            ValidationError,
            StripePaymentError,
            StripeTransientError,
            StripeConfigurationError,
        ) as exc:
            return payment_error_response(exc)
        return Response(
            {
                "tip": TipSerializer(tip).data,
                "session_id": session.session_id,
                "url": session.session_url,
            },
            status=status.HTTP_201_CREATED,
        )
