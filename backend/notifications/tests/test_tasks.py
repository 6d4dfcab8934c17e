import pytest
from django.core import mail

from notifications import tasks
from notifications.models import Notification, NotificationLog

pytestmark = pytest.mark.django_db

PAYLOAD = {
    "type": "tip_received",
    "title": "New tip received",
    "body": "You received a tip for USD 15.00",
    "data": {"family": "tip", "record_id": 8},
}


def test_delivery_runs_every_channel(monkeypatch, artist_user):
    pushed = []
    monkeypatch.setattr(
        tasks, "push_event", lambda user_id, event_type, payload: pushed.append(event_type) or "1-0"
    )

    result = tasks.deliver_notification(artist_user.pk, PAYLOAD)

    assert result == {"in_app": True, "push": True, "email": True}
    notification = Notification.objects.get(recipient=artist_user)
    assert notification.title == "New tip received"
    assert notification.data == {"family": "tip", "record_id": 8}
    assert pushed == ["notification:tip_received"]
    assert len(mail.outbox) == 1
    assert mail.outbox[0].subject == "New tip received"
    logs = NotificationLog.objects.filter(record_family="tip", record_id=8)
    assert set(logs.values_list("channel", "status")) == {
        (NotificationLog.Channel.IN_APP, NotificationLog.Status.SENT),
        (NotificationLog.Channel.PUSH, NotificationLog.Status.SENT),
        (NotificationLog.Channel.EMAIL, NotificationLog.Status.SENT),
    }


def test_failing_channel_does_not_stop_the_others(monkeypatch, artist_user):
    def _raise(*args, **kwargs):
        raise RuntimeError("smtp down")

    monkeypatch.setattr(tasks.EmailMultiAlternatives, "send", _raise)

    result = tasks.deliver_notification(artist_user.pk, PAYLOAD)

    assert result["in_app"] is True
    assert result["email"] is False
    log = NotificationLog.objects.get(channel=NotificationLog.Channel.EMAIL)
    assert log.status == NotificationLog.Status.FAILED
    assert "smtp down" in log.error


def test_push_without_redis_is_logged_as_failed(artist_user):
    result = tasks.deliver_notification(artist_user.pk, PAYLOAD)

    assert result["push"] is False
    log = NotificationLog.objects.get(channel=NotificationLog.Channel.PUSH)
    assert log.error == "push stream unavailable"


def test_missing_email_is_skipped(owner_user):
    owner_user.email = ""
    owner_user.save(update_fields=["email"])

    result = tasks.deliver_notification(owner_user.pk, PAYLOAD)

    assert result["email"] is False
    assert NotificationLog.objects.get(channel=NotificationLog.Channel.EMAIL).status == (
        NotificationLog.Status.SKIPPED
    )


def test_unknown_user_is_dropped():
    assert tasks.deliver_notification(987654, PAYLOAD) == {
        "in_app": False,
        "push": False,
        "email": False,
    }
    assert not Notification.objects.exists()
