from types import SimpleNamespace

from notifications.models import NotifyType
from notifications.notifier import (
    CeleryNotifier,
    NotificationMessage,
    NotifyOutcome,
    send_best_effort,
)

MESSAGE = NotificationMessage(
    type=NotifyType.PAYMENT_SUCCESS,
    title="Payment completed",
    body="Your deposit of USD 50.00 has been charged.",
    data={"family": "booking", "record_id": 3},
)


def test_payload_is_plain_json():
    assert MESSAGE.as_payload() == {
        "type": "payment_success",
        "title": "Payment completed",
        "body": "Your deposit of USD 50.00 has been charged.",
        "data": {"family": "booking", "record_id": 3},
    }


def test_send_best_effort_reports_failure():
    class Broken:
        def notify(self, recipient_id, message):
            raise ConnectionError("broker down")

    assert send_best_effort(Broken(), 1, MESSAGE) is NotifyOutcome.FAILED


def test_send_best_effort_reports_success():
    sent = []
    recorder = SimpleNamespace(notify=lambda recipient_id, message: sent.append(recipient_id))

    assert send_best_effort(recorder, 7, MESSAGE) is NotifyOutcome.OK
    assert sent == [7]


def test_celery_notifier_queues_delivery(monkeypatch):
    queued = []
    monkeypatch.setattr(
        "notifications.tasks.deliver_notification.delay",
        lambda user_id, payload: queued.append((user_id, payload)),
    )

    CeleryNotifier().notify(5, MESSAGE)

    assert queued == [(5, MESSAGE.as_payload())]
