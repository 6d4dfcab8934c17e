"""Open Stripe Checkout sessions for tips."""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from payments.choices import TipStatus
from payments.events import RecordFamily, family_metadata
from payments.gateway import AUTOMATIC_CAPTURE, CheckoutSession, StripeGateway, checkout_urls
from payments.models import PayoutAccount

from .models import Tip

logger = logging.getLogger(__name__)


def _validate_amount(amount) -> int:
    try:
        normalized = int(round(float(amount)))
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid tip amount.") from exc
    minimum = getattr(settings, "MIN_TIP_AMOUNT", 100)
    if normalized < minimum:
        raise ValidationError(f"Tips must be at least {minimum} cents.")
    return normalized


def create_tip_session(
    *,
    artist,
    amount,
    customer_email: str = "",
    message: str = "",
    gateway=None,
) -> tuple[Tip, CheckoutSession]:
    """
    Persist a pending tip and open an automatic-capture Checkout session for it.

    If Stripe refuses the session the tip is marked failed and the error
    is re-raised to the caller.
    """
    normalized = _validate_amount(amount)
    account = PayoutAccount.objects.filter(user=artist).first()
    if account is None or not account.accepts_tips or not account.payouts_enabled:
        raise ValidationError("This artist is not accepting tips.")
    if not account.stripe_account_id:
        raise ValidationError("Artist payment account not configured.")

    email = (customer_email or "").strip()
    tip = Tip.objects.create(
        artist=artist,
        amount=normalized,
        currency=settings.DEFAULT_CURRENCY,
        customer_email=email,
        message=message,
    )

    gateway = gateway or StripeGateway()
    success_url, cancel_url = checkout_urls(f"/artists/{artist.pk}/tip")
    try:
        session = gateway.create_session(
            amount=normalized,
            currency=tip.currency,
            destination_account=account.stripe_account_id,
            metadata={**family_metadata(RecordFamily.TIP, tip.pk), "artist_id": str(artist.pk)},
            capture_method=AUTOMATIC_CAPTURE,
            customer_email=email,
            product_name="Tip",
            description=f"Tip for {artist.get_username() or 'artist'}",
            success_url=success_url,
            cancel_url=cancel_url,
        )
    except Exception:
        Tip.objects.filter(pk=tip.pk, status=TipStatus.PENDING).update(
            status=TipStatus.FAILED, updated_at=timezone.now()
        )
        logger.warning("tips: checkout session failed", extra={"tip_id": tip.pk}, exc_info=True)
        raise

    Tip.objects.filter(pk=tip.pk).update(
        stripe_checkout_session_id=session.session_id,
        stripe_payment_intent_id=session.intent_id,
        updated_at=timezone.now(),
    )
    tip.refresh_from_db()
    logger.info("tips: checkout session created", extra={"tip_id": tip.pk, "session_id": session.session_id})
    return tip, session
