from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings

from payments.context import build_default_context
from payments.events import RecordFamily
from payments.models import WebhookEvent
from payments.router import build_router
from payments.sweeper import AUTHORIZATION_TTL, ExpirySweeper
from payments.webhooks import TIP_CHANNEL, process_event

logger = logging.getLogger(__name__)


def _authorization_ttl() -> timedelta:
    days = getattr(settings, "PAYMENT_AUTHORIZATION_TTL_DAYS", None)
    return timedelta(days=days) if days else AUTHORIZATION_TTL


@shared_task(name="payments.cancel_expired_authorizations")
def cancel_expired_authorizations():
    """
    Cancel deposit holds that stayed authorized past the TTL.
    Safe to run repeatedly; only records still authorized are touched.
    """
    sweeper = ExpirySweeper(build_default_context(), timeout=_authorization_ttl())
    return sweeper.run().as_dict()


@shared_task(name="payments.retry_failed_webhook_events")
def retry_failed_webhook_events(limit: int = 100):
    """Replay ledger rows whose processing raised, up to WEBHOOK_MAX_ATTEMPTS."""
    max_attempts = getattr(settings, "WEBHOOK_MAX_ATTEMPTS", 5)
    rows = list(
        WebhookEvent.objects.filter(
            status=WebhookEvent.Status.FAILED,
            attempts__lt=max_attempts,
        ).order_by("received_at")[:limit]
    )
    if not rows:
        return {"retried": 0, "recovered": 0}

    context = build_default_context()
    routers = {
        TIP_CHANNEL: build_router(context, families=(RecordFamily.TIP,)),
    }
    default_router = build_router(context)
    recovered = 0
    for row in rows:
        outcome = process_event(row, router=routers.get(row.channel, default_router))
        if outcome is not None:
            recovered += 1
        else:
            logger.warning(
                "stripe_webhook: replay failed",
                extra={"event_id": row.stripe_event_id, "attempts": row.attempts + 1},
            )
    return {"retried": len(rows), "recovered": recovered}
