from __future__ import annotations

import logging
from datetime import date, time

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from notifications.models import NotifyType
from notifications.notifier import CeleryNotifier, NotificationMessage, send_best_effort
from payments.choices import PaymentStatus, Reaction
from payments.events import RecordFamily, family_metadata
from payments.fees import calculate_platform_fee
from payments.gateway import MANUAL_CAPTURE, CheckoutSession, StripeGateway, checkout_urls
from payments.machine import display_name
from payments.models import PayoutAccount

from .models import GuestSpotBooking

logger = logging.getLogger(__name__)


def create_guest_spot_booking(
    *,
    artist,
    shop,
    selected_date: date,
    selected_time: time | None = None,
    comment: str = "",
    notifier=None,
) -> GuestSpotBooking:
    """Create a request priced from the shop's deposit plus platform commission."""
    if artist.pk == shop.pk:
        raise ValidationError("A shop cannot request its own guest spot.")
    account = PayoutAccount.objects.filter(user=shop).first()
    deposit = account.deposit_amount if account else 0
    commission = calculate_platform_fee(deposit) if deposit else 0

    booking = GuestSpotBooking.objects.create(
        artist=artist,
        shop=shop,
        selected_date=selected_date,
        selected_time=selected_time,
        comment=comment,
        amount=deposit + commission,
        platform_commission_amount=commission,
        currency=settings.DEFAULT_CURRENCY,
    )
    logger.info(
        "guest_spots: request created",
        extra={"guest_spot_booking_id": booking.pk, "amount": booking.amount},
    )
    if not booking.requires_payment:
        send_best_effort(
            notifier or CeleryNotifier(),
            shop.pk,
            NotificationMessage(
                type=NotifyType.GUEST_SPOT_REQUEST,
                title="New guest spot request",
                body=f"{display_name(artist)} requested a guest spot on {selected_date}.",
                data={"family": RecordFamily.GUEST_SPOT.value, "record_id": booking.pk},
            ),
        )
    return booking


def create_deposit_session(booking: GuestSpotBooking, *, gateway=None) -> CheckoutSession:
    if not booking.requires_payment:
        raise ValidationError("This shop does not require a deposit.")
    if booking.payment_status != PaymentStatus.UNPAID:
        raise ValidationError("The deposit for this request was already handled.")
    if booking.reaction != Reaction.PENDING:
        raise ValidationError("The shop already answered this request.")

    gateway = gateway or StripeGateway()
    previous_session_id = booking.stripe_checkout_session_id
    if previous_session_id:
        existing = gateway.retrieve_session(previous_session_id)
        if existing.status == "open":
            return existing
        if existing.status == "complete":
            raise ValidationError("The deposit for this request is already being processed.")

    account = PayoutAccount.objects.filter(user_id=booking.shop_id).first()
    if account is None or not account.can_receive_payments:
        raise ValidationError("The shop cannot receive deposits yet.")

    success_url, cancel_url = checkout_urls(f"/guest-spots/{booking.pk}")
    session = gateway.create_session(
        amount=booking.amount,
        currency=booking.currency,
        destination_account=account.stripe_account_id,
        metadata={
            **family_metadata(RecordFamily.GUEST_SPOT, booking.pk),
            "artist_id": str(booking.artist_id),
            "shop_id": str(booking.shop_id),
        },
        capture_method=MANUAL_CAPTURE,
        application_fee=booking.platform_commission_amount,
        customer_email=getattr(booking.artist, "email", "") or "",
        product_name="Guest spot deposit",
        description=f"Guest spot on {booking.selected_date}",
        success_url=success_url,
        cancel_url=cancel_url,
    )

    updated = GuestSpotBooking.objects.filter(
        pk=booking.pk,
        payment_status=PaymentStatus.UNPAID,
        stripe_checkout_session_id=previous_session_id,
    ).update(
        stripe_checkout_session_id=session.session_id,
        stripe_payment_intent_id=session.intent_id,
        updated_at=timezone.now(),
    )
    if not updated:
        raise ValidationError("This request changed while opening the payment, please retry.")
    return session
