"""Create bookings and open their deposit checkout sessions."""

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
from payments.fees import booking_fee_percent, calculate_platform_fee
from payments.gateway import MANUAL_CAPTURE, CheckoutSession, StripeGateway, checkout_urls
from payments.machine import display_name
from payments.models import PayoutAccount

from .models import Booking

logger = logging.getLogger(__name__)


def create_booking(
    *,
    owner,
    artist,
    day: date,
    start_time: time | None = None,
    location: str = "",
    description: str = "",
    notifier=None,
) -> Booking:
    """
    Persist a new booking priced from the artist's deposit.

    The platform fee is added on top of the deposit. Artists without a
    deposit get the request straight away since no hold is involved.
    """
    if owner.pk == artist.pk:
        raise ValidationError("You cannot book yourself.")
    account = PayoutAccount.objects.filter(user=artist).first()
    deposit = account.deposit_amount if account else 0
    fee = calculate_platform_fee(deposit, booking_fee_percent()) if deposit else 0

    booking = Booking.objects.create(
        owner=owner,
        artist=artist,
        day=day,
        start_time=start_time,
        location=location,
        description=description,
        amount=deposit + fee,
        platform_fee=fee,
        currency=settings.DEFAULT_CURRENCY,
    )
    logger.info(
        "bookings: booking created",
        extra={"booking_id": booking.pk, "amount": booking.amount, "artist_id": artist.pk},
    )

    if not booking.requires_payment:
        send_best_effort(
            notifier or CeleryNotifier(),
            artist.pk,
            NotificationMessage(
                type=NotifyType.BOOKING_CREATED,
                title="New booking request",
                body=f"{display_name(owner)} requested a booking on {day}.",
                data={"family": RecordFamily.BOOKING.value, "record_id": booking.pk},
            ),
        )
    return booking


def create_payment_session(booking: Booking, *, gateway=None) -> CheckoutSession:
    """Open a manual-capture Checkout session for the deposit, reusing an open one."""
    if not booking.requires_payment:
        raise ValidationError("This booking does not require a deposit.")
    if booking.payment_status != PaymentStatus.UNPAID:
        raise ValidationError("This booking has already been paid or closed.")
    if booking.reaction != Reaction.PENDING:
        raise ValidationError("This booking was already answered.")

    gateway = gateway or StripeGateway()
    previous_session_id = booking.stripe_checkout_session_id
    if previous_session_id:
        existing = gateway.retrieve_session(previous_session_id)
        if existing.status == "open":
            return existing
        if existing.status == "complete":
            raise ValidationError("Payment for this booking is already being processed.")

    account = PayoutAccount.objects.filter(user_id=booking.artist_id).first()
    if account is None or not account.can_receive_payments:
        raise ValidationError("The artist has not enabled payouts yet.")

    success_url, cancel_url = checkout_urls(f"/bookings/{booking.pk}")
    session = gateway.create_session(
        amount=booking.amount,
        currency=booking.currency,
        destination_account=account.stripe_account_id,
        metadata={
            **family_metadata(RecordFamily.BOOKING, booking.pk),
            "owner_id": str(booking.owner_id),
            "artist_id": str(booking.artist_id),
        },
        capture_method=MANUAL_CAPTURE,
        application_fee=booking.platform_fee,
        customer_email=getattr(booking.owner, "email", "") or "",
        product_name="Booking deposit",
        description=f"Deposit for the booking on {booking.day}",
        success_url=success_url,
        cancel_url=cancel_url,
    )

    # Only an unpaid booking still on the expired session may switch sessions.
    updated = Booking.objects.filter(
        pk=booking.pk,
        payment_status=PaymentStatus.UNPAID,
        stripe_checkout_session_id=previous_session_id,
    ).update(
        stripe_checkout_session_id=session.session_id,
        stripe_payment_intent_id=session.intent_id,
        updated_at=timezone.now(),
    )
    if not updated:
        raise ValidationError("This booking changed while opening the payment, please retry.")
    logger.info(
        "bookings: payment session created",
        extra={"booking_id": booking.pk, "session_id": session.session_id},
    )
    return session
