"""API views for bookings."""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.response import Response

from payments.api import PaymentActionsMixin
from payments.events import RecordFamily

from .models import Booking
from .serializers import BookingSerializer
from .services import create_booking, create_payment_session

logger = logging.getLogger(__name__)


class IsBookingParticipant(permissions.BasePermission):
    """Allow access only to users tied to the booking."""

    def has_object_permission(self, request, view, obj: Booking) -> bool:
        """Check that the user is the booking owner or artist."""
        return obj.is_counterparty(getattr(request.user, "id", None))


class BookingViewSet(
    PaymentActionsMixin,
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Create and follow bookings; pay and react through actions."""

    serializer_class = BookingSerializer
    permission_classes = (permissions.IsAuthenticated, IsBookingParticipant)
    payment_family = RecordFamily.BOOKING

    def get_queryset(self):
        """Restrict bookings to the authenticated participant."""
        user = self.request.user
        if not user.is_authenticated:
            return Booking.objects.none()
        return (
            Booking.objects.select_related("owner", "artist")
            .filter(Q(owner=user) | Q(artist=user))
            .order_by("-created_at")
        )

    def get_object(self):
        """Fetch a single booking and enforce participant permissions."""
        obj = get_object_or_404(
            Booking.objects.select_related("owner", "artist"),
            pk=self.kwargs["pk"],
        )
        self.check_object_permissions(self.request, obj)
        return obj

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            booking = create_booking(
                owner=request.user,
                artist=data["artist"],
                day=data["day"],
                start_time=data.get("start_time"),
                location=data.get("location", ""),
                description=data.get("description", ""),
            )
        except ValidationError as exc:
            return Response({"detail": exc.messages}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(booking).data, status=status.HTTP_201_CREATED)

    def open_payment_session(self, record: Booking, user):
        return create_payment_session(record)
