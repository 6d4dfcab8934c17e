"""Stripe webhook endpoints and the event ledger they write to."""

from __future__ import annotations

import logging
from typing import Iterable

from django.conf import settings
from django.db.models import F
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import (
    api_view,
    authentication_classes,
    permission_classes,
    throttle_classes,
)
from rest_framework.response import Response

from .context import build_default_context
from .events import RecordFamily, parse_event
from .exceptions import WebhookSignatureError
from .handlers import HandlerOutcome
from .models import WebhookEvent
from .router import EventRouter, build_router

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "default"
TIP_CHANNEL = "tip"
SETTLED_STATUSES = (WebhookEvent.Status.PROCESSED, WebhookEvent.Status.IGNORED)
QUIET_OUTCOMES = (HandlerOutcome.IGNORED, HandlerOutcome.NOT_FOUND)


def record_event(raw_event: dict, *, channel: str) -> tuple[WebhookEvent, bool]:
    """Insert the delivery into the ledger; returns (row, created)."""
    event_id = str(raw_event.get("id") or "")
    defaults = {
        "type": str(raw_event.get("type") or ""),
        "channel": channel,
        "payload": raw_event,
    }
    return WebhookEvent.objects.get_or_create(stripe_event_id=event_id, defaults=defaults)


def process_event(row: WebhookEvent, *, router: EventRouter) -> HandlerOutcome | None:
    """
    Route a ledger row and record the result on it.

    Processing errors are logged and kept on the row for the replay task;
    they never propagate to Stripe as a failed delivery.
    """
    event = parse_event(row.payload)
    ledger = WebhookEvent.objects.filter(pk=row.pk)
    try:
        outcome = HandlerOutcome.IGNORED if event is None else router.route(event)
    except Exception as exc:
        logger.exception(
            "stripe_webhook: processing failed",
            extra={"event_id": row.stripe_event_id, "event_type": row.type},
        )
        ledger.update(
            status=WebhookEvent.Status.FAILED,
            attempts=F("attempts") + 1,
            error=f"{type(exc).__name__}: {exc}"[:2000],
        )
        return None

    ledger.update(
        status=(
            WebhookEvent.Status.IGNORED
            if outcome in QUIET_OUTCOMES
            else WebhookEvent.Status.PROCESSED
        ),
        outcome=outcome.value,
        attempts=F("attempts") + 1,
        error="",
        processed_at=timezone.now(),
    )
    return outcome


def _received() -> Response:
    return Response({"received": True}, status=status.HTTP_200_OK)


def _handle_delivery(
    request,
    *,
    secret: str,
    channel: str,
    families: Iterable[RecordFamily] | None = None,
) -> Response:
    # Read the raw bytes before anything can touch request.data.
    payload = request.body
    sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")

    if not getattr(settings, "STRIPE_ENABLED", True):
        return Response(
            {"detail": "Stripe payments are disabled."}, status=status.HTTP_400_BAD_REQUEST
        )

    context = build_default_context()
    try:
        raw_event = context.gateway.verify_signature(payload, sig_header, secret)
    except WebhookSignatureError as exc:
        logger.warning(
            "stripe_webhook: delivery rejected",
            extra={"channel": channel, "reason": str(exc)},
        )
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    if not raw_event.get("id"):
        return Response(
            {"detail": "Event id is missing."}, status=status.HTTP_400_BAD_REQUEST
        )

    row, created = record_event(raw_event, channel=channel)
    if not created and row.status in SETTLED_STATUSES:
        logger.info(
            "stripe_webhook: duplicate delivery",
            extra={"event_id": row.stripe_event_id, "event_type": row.type},
        )
        return _received()

    process_event(row, router=build_router(context, families=families))
    return _received()


@api_view(["POST"])
@authentication_classes([])
@permission_classes([])
@throttle_classes([])
def stripe_webhook(request):
    """Shared endpoint for bookings, guest-spot deposits, tips and Connect accounts."""
    return _handle_delivery(
        request,
        secret=getattr(settings, "STRIPE_WEBHOOK_SECRET", ""),
        channel=DEFAULT_CHANNEL,
    )


@api_view(["POST"])
@authentication_classes([])
@permission_classes([])
@throttle_classes([])
def tip_stripe_webhook(request):
    """Tip-only endpoint, optionally signed with its own secret."""
    secret = getattr(settings, "STRIPE_TIP_WEBHOOK_SECRET", "") or getattr(
        settings, "STRIPE_WEBHOOK_SECRET", ""
    )
    return _handle_delivery(
        request,
        secret=secret,
        channel=TIP_CHANNEL,
        families=(RecordFamily.TIP,),
    )
