from __future__ import annotations

import logging
from typing import Any, Optional

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import EmailMultiAlternatives

from core.redis import push_event
from notifications.models import Notification, NotificationLog

logger = logging.getLogger(__name__)
User = get_user_model()


def _get_user(user_id: int) -> Optional[User]:
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        logger.warning("notifications: user %s no longer exists", user_id)
        return None


def _record_ref(data: dict[str, Any]) -> tuple[str, int | None]:
    family = str(data.get("family") or "")
    try:
        record_id = int(data.get("record_id"))
    except (TypeError, ValueError):
        record_id = None
    return family, record_id


def _log_notification(
    channel: str,
    type_: str,
    status: str,
    *,
    user_id: int | None = None,
    data: dict[str, Any] | None = None,
    error: str | None = None,
) -> None:
    family, record_id = _record_ref(data or {})
    try:
        NotificationLog.objects.create(
            channel=channel,
            type=type_,
            status=status,
            user_id=user_id,
            record_family=family,
            record_id=record_id,
            error=error or "",
        )
    except Exception:
        logger.exception(
            "notifications: failed to persist notification log",
            extra={"channel": channel, "type": type_, "status": status},
        )


def _store_in_app(user: User, payload: dict[str, Any]) -> bool:
    type_ = payload.get("type", "")
    try:
        Notification.objects.create(
            recipient=user,
            type=type_,
            title=payload.get("title", ""),
            body=payload.get("body", ""),
            data=payload.get("data") or {},
        )
    except Exception as exc:
        logger.exception("notifications: in-app notification failed", extra={"type": type_})
        _log_notification(
            NotificationLog.Channel.IN_APP,
            type_,
            NotificationLog.Status.FAILED,
            user_id=user.id,
            data=payload.get("data"),
            error=str(exc) or exc.__class__.__name__,
        )
        return False
    _log_notification(
        NotificationLog.Channel.IN_APP,
        type_,
        NotificationLog.Status.SENT,
        user_id=user.id,
        data=payload.get("data"),
    )
    return True


def _push(user: User, payload: dict[str, Any]) -> bool:
    type_ = payload.get("type", "")
    entry_id = push_event(user.id, f"notification:{type_}", payload)
    _log_notification(
        NotificationLog.Channel.PUSH,
        type_,
        NotificationLog.Status.SENT if entry_id else NotificationLog.Status.FAILED,
        user_id=user.id,
        data=payload.get("data"),
        error=None if entry_id else "push stream unavailable",
    )
    return bool(entry_id)


def _send_email_logged(user: User, payload: dict[str, Any]) -> bool:
    type_ = payload.get("type", "")
    if not getattr(settings, "NOTIFICATION_EMAILS_ENABLED", True):
        return False
    if not user.email:
        _log_notification(
            NotificationLog.Channel.EMAIL,
            type_,
            NotificationLog.Status.SKIPPED,
            user_id=user.id,
            data=payload.get("data"),
            error="missing recipient email",
        )
        return False

    message = EmailMultiAlternatives(
        subject=payload.get("title", ""),
        body=payload.get("body", ""),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[user.email],
    )
    try:
        message.send(fail_silently=False)
    except Exception as exc:
        logger.exception(
            "notifications: email send failed",
            extra={"type": type_, "user_id": user.id},
        )
        _log_notification(
            NotificationLog.Channel.EMAIL,
            type_,
            NotificationLog.Status.FAILED,
            user_id=user.id,
            data=payload.get("data"),
            error=str(exc) or exc.__class__.__name__,
        )
        return False
    _log_notification(
        NotificationLog.Channel.EMAIL,
        type_,
        NotificationLog.Status.SENT,
        user_id=user.id,
        data=payload.get("data"),
    )
    return True


@shared_task(name="notifications.deliver_notification")
def deliver_notification(user_id: int, payload: dict[str, Any]):
    """
    Deliver one notification on every channel.
    Channels are independent: a failing channel is logged and the others still run.
    """
    user = _get_user(user_id)
    if user is None:
        return {"in_app": False, "push": False, "email": False}
    return {
        "in_app": _store_in_app(user, payload),
        "push": _push(user, payload),
        "email": _send_email_logged(user, payload),
    }
