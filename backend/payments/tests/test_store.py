from datetime import timedelta

import pytest
from django.utils import timezone

from bookings.models import Booking
from payments.choices import PaymentStatus
from payments.exceptions import StaleRecordError
from payments.store import DjangoRecordStore

pytestmark = pytest.mark.django_db


@pytest.fixture
def store():
    return DjangoRecordStore(Booking, select_related=("owner", "artist"))


def test_lookup_by_identifiers(store, booking_factory):
    booking = booking_factory(stripe_checkout_session_id="cs_a", stripe_payment_intent_id="pi_a")

    assert store.find_by_identifier(str(booking.pk)) == booking
    assert store.find_by_identifier("not-a-number") is None
    assert store.find_by_session_id("cs_a") == booking
    assert store.find_by_intent_id("pi_a") == booking
    assert store.find_by_intent_id("") is None


def test_update_applies_when_status_matches(store, booking_factory):
    booking = booking_factory()

    updated = store.update_fields(
        booking.pk,
        {"payment_status": PaymentStatus.AUTHORIZED, "stripe_payment_intent_id": "pi_new"},
        expected_status=PaymentStatus.UNPAID,
    )

    assert updated.payment_status == PaymentStatus.AUTHORIZED
    assert updated.stripe_payment_intent_id == "pi_new"


def test_update_rejects_stale_status(store, booking_factory):
    booking = booking_factory(payment_status=PaymentStatus.PAID)

    with pytest.raises(StaleRecordError):
        store.update_fields(
            booking.pk,
            {"payment_status": PaymentStatus.CANCELLED},
            expected_status=PaymentStatus.AUTHORIZED,
        )

    booking.refresh_from_db()
    assert booking.payment_status == PaymentStatus.PAID


def test_stripe_ids_are_write_once(store, booking_factory):
    booking = booking_factory(stripe_payment_intent_id="pi_first")

    store.update_fields(booking.pk, {"stripe_payment_intent_id": "pi_first", "location": "Studio"})
    with pytest.raises(StaleRecordError):
        store.update_fields(booking.pk, {"stripe_payment_intent_id": "pi_second"})

    booking.refresh_from_db()
    assert booking.stripe_payment_intent_id == "pi_first"
    assert booking.location == "Studio"


def test_find_expired_orders_oldest_first(store, booking_factory):
    now = timezone.now()
    newest = booking_factory(payment_status=PaymentStatus.AUTHORIZED, authorized_at=now - timedelta(days=8))
    oldest = booking_factory(payment_status=PaymentStatus.AUTHORIZED, authorized_at=now - timedelta(days=10))
    booking_factory(payment_status=PaymentStatus.AUTHORIZED, authorized_at=now - timedelta(days=1))
    booking_factory(payment_status=PaymentStatus.PAID, authorized_at=now - timedelta(days=20))

    expired = store.find_expired(now - timedelta(days=7), PaymentStatus.AUTHORIZED)

    assert [booking.pk for booking in expired] == [oldest.pk, newest.pk]
