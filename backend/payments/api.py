"""DRF pieces shared by the booking and guest-spot viewsets."""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from rest_framework import serializers, status
from rest_framework.decorators import action
from rest_framework.response import Response

from .choices import Reaction
from .context import build_default_context
from .events import RecordFamily
from .exceptions import (
    InvalidReaction,
    ReactionAlreadyDecided,
    ReactionNotAllowed,
    RecordBusyError,
    RecordNotFound,
)
from .gateway import StripeConfigurationError, StripePaymentError, StripeTransientError
from .reactions import ReactionOrchestrator

logger = logging.getLogger(__name__)


class ReactionSerializer(serializers.Serializer):
    reaction = serializers.ChoiceField(choices=[Reaction.ACCEPTED, Reaction.REJECTED])
    note = serializers.CharField(required=False, allow_blank=True, max_length=1000, default="")


def payment_error_response(exc: Exception) -> Response:
    """Map payment flow errors onto API responses."""
    if isinstance(exc, (StripeTransientError, StripeConfigurationError)):
        return Response(
            {"detail": "Payment service unavailable, please retry."},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if isinstance(exc, ReactionNotAllowed):
        return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, RecordNotFound):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, RecordBusyError):
        return Response(
            {"detail": "This request is being updated, please retry."},
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, ValidationError):
        return Response({"detail": exc.messages}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class PaymentActionsMixin:
    """
    Adds ``pay`` and ``react`` actions to a viewset over a two-phase family.

    Subclasses set ``payment_family`` and implement ``open_payment_session``.
    """

    payment_family: RecordFamily
    handled_errors = (
        StripeTransientError,
        StripeConfigurationError,
        StripePaymentError,
        ReactionNotAllowed,
        ReactionAlreadyDecided,
        InvalidReaction,
        RecordBusyError,
        RecordNotFound,
        ValidationError,
    )

    def open_payment_session(self, record, user):
        raise NotImplementedError

    @action(detail=True, methods=["post"], url_path="pay")
    def pay(self, request, *args, **kwargs):
        """Open (or reuse) the Stripe Checkout session for this record's deposit."""
        record = self.get_object()
        if record.payer_id != request.user.id:
            return Response(
                {"detail": "Only the paying participant can pay for this request."},
                status=status.HTTP_403_FORBIDDEN,
            )
        try:
            session = self.open_payment_session(record, request.user)
        except self.handled_errors as exc:
            return payment_error_response(exc)
        return Response(
            {"session_id": session.session_id, "url": session.session_url},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"], url_path="react")
    def react(self, request, *args, **kwargs):
        """Accept or reject; captures or releases the held deposit first."""
        record = self.get_object()
        serializer = ReactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        orchestrator = ReactionOrchestrator(build_default_context(), self.payment_family)
        try:
            updated = orchestrator.submit(
                record.pk,
                actor_id=request.user.id,
                reaction=serializer.validated_data["reaction"],
                note=serializer.validated_data.get("note", ""),
            )
        except self.handled_errors as exc:
            logger.info(
                "payments: reaction refused",
                extra={"family": self.payment_family.value, "record_id": record.pk, "error": str(exc)},
            )
            return payment_error_response(exc)
        return Response(self.get_serializer(updated).data)
