from types import SimpleNamespace

import pytest
from django.core.exceptions import ImproperlyConfigured

from payments.events import EventType, PaymentEvent, RecordFamily
from payments.handlers import HandlerOutcome, PaymentEventHandler
from payments.router import IGNORE, EventRouter, build_dispatch_table, route_keys

from .fakes import make_context


def _event(event_type, family):
    return PaymentEvent(id="evt_r", type=event_type, family=family, object_id="obj")


def test_dispatch_table_covers_every_event_and_family():
    table = build_dispatch_table(make_context())

    assert set(route_keys()) <= set(table)
    assert table[(EventType.ASYNC_PAYMENT_SUCCEEDED, RecordFamily.BOOKING)] is IGNORE
    assert table[(EventType.PAYMENT_AUTHORIZED, RecordFamily.TIP)] is IGNORE
    assert isinstance(table[(EventType.PAYMENT_SUCCEEDED, RecordFamily.GUEST_SPOT)], PaymentEventHandler)


def test_router_refuses_incomplete_table():
    table = build_dispatch_table(make_context())
    del table[(EventType.PAYMENT_CANCELED, RecordFamily.TIP)]

    with pytest.raises(ImproperlyConfigured, match="payment_intent.canceled/tip"):
        EventRouter(table)


def test_ignored_combination_is_absorbed():
    table = {key: IGNORE for key in route_keys()}
    router = EventRouter(table)

    outcome = router.route(_event(EventType.ASYNC_PAYMENT_FAILED, RecordFamily.BOOKING))

    assert outcome is HandlerOutcome.IGNORED


def test_router_calls_the_handler_for_the_pair():
    seen = []
    table = {key: IGNORE for key in route_keys()}
    table[(EventType.PAYMENT_SUCCEEDED, RecordFamily.TIP)] = lambda event: (
        seen.append(event.id) or HandlerOutcome.APPLIED
    )

    outcome = EventRouter(table).route(_event(EventType.PAYMENT_SUCCEEDED, RecordFamily.TIP))

    assert outcome is HandlerOutcome.APPLIED
    assert seen == ["evt_r"]


def test_restricted_router_ignores_other_families():
    called = SimpleNamespace(count=0)

    def handler(event):
        called.count += 1
        return HandlerOutcome.APPLIED

    table = {key: handler for key in route_keys()}
    router = EventRouter(table, families=(RecordFamily.TIP,))

    assert router.route(_event(EventType.PAYMENT_SUCCEEDED, RecordFamily.BOOKING)) is HandlerOutcome.IGNORED
    assert router.route(_event(EventType.ACCOUNT_UPDATED, None)) is HandlerOutcome.APPLIED
    assert called.count == 1
