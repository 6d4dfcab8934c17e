from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.response import Response

from payments.api import PaymentActionsMixin
from payments.events import RecordFamily

from .models import GuestSpotBooking
from .serializers import GuestSpotBookingSerializer
from .services import create_deposit_session, create_guest_spot_booking


class IsGuestSpotParticipant(permissions.BasePermission):
    def has_object_permission(self, request, view, obj: GuestSpotBooking) -> bool:
        return obj.is_counterparty(getattr(request.user, "id", None))


class GuestSpotBookingViewSet(
    PaymentActionsMixin,
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Guest spot requests: the artist pays the deposit, the shop reacts."""

    serializer_class = GuestSpotBookingSerializer
    permission_classes = (permissions.IsAuthenticated, IsGuestSpotParticipant)
    payment_family = RecordFamily.GUEST_SPOT

    def get_queryset(self):
        user = self.request.user
        if not user.is_authenticated:
            return GuestSpotBooking.objects.none()
        return (
            GuestSpotBooking.objects.select_related("artist", "shop")
            .filter(Q(artist=user) | Q(shop=user))
            .order_by("-created_at")
        )

    def get_object(self):
        obj = get_object_or_404(
            GuestSpotBooking.objects.select_related("artist", "shop"),
            pk=self.kwargs["pk"],
        )
        self.check_object_permissions(self.request, obj)
        return obj

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            booking = create_guest_spot_booking(
                artist=request.user,
                shop=data["shop"],
                selected_date=data["selected_date"],
                selected_time=data.get("selected_time"),
                comment=data.get("comment", ""),
            )
        except ValidationError as exc:
            return Response({"detail": exc.messages}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(booking).data, status=status.HTTP_201_CREATED)

    def open_payment_session(self, record: GuestSpotBooking, user):
        return create_deposit_session(record)
