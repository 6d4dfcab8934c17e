import pytest

from bookings.models import Booking
from notifications.models import Notification, NotifyType
from payments import api as payments_api
from payments.choices import PaymentStatus, Reaction
from payments.context import build_default_context
from payments.gateway import CheckoutSession, StripeTransientError
from payments.tests.fakes import FakeGateway

pytestmark = pytest.mark.django_db


@pytest.fixture
def fake_gateway(monkeypatch):
    gateway = FakeGateway()
    monkeypatch.setattr(
        payments_api, "build_default_context", lambda: build_default_context(gateway=gateway)
    )
    return gateway


def test_create_booking(auth_client, owner_user, artist_user):
    resp = auth_client(owner_user).post(
        "/api/bookings/",
        {"artist": artist_user.pk, "day": "2030-05-01", "location": "Studio 4"},
        format="json",
    )

    assert resp.status_code == 201, resp.data
    assert resp.data["owner"] == owner_user.pk
    assert resp.data["amount"] == 5645
    assert resp.data["payment_status"] == "unpaid"
    assert resp.data["reaction"] == "pending"


def test_list_shows_bookings_for_both_parties(auth_client, booking_factory, artist_user, other_user):
    booking = booking_factory()

    artist_resp = auth_client(artist_user).get("/api/bookings/")
    other_resp = auth_client(other_user).get("/api/bookings/")

    assert [item["id"] for item in artist_resp.data] == [booking.pk]
    assert other_resp.data == []


def test_outsider_cannot_open_booking(auth_client, booking_factory, other_user):
    booking = booking_factory()

    resp = auth_client(other_user).get(f"/api/bookings/{booking.pk}/")

    assert resp.status_code == 403


def test_pay_returns_checkout_url(monkeypatch, auth_client, booking_factory, owner_user):
    booking = booking_factory()
    monkeypatch.setattr(
        "bookings.api.create_payment_session",
        lambda record: CheckoutSession(session_id="cs_api", session_url="https://checkout.stripe.test/cs_api"),
    )

    resp = auth_client(owner_user).post(f"/api/bookings/{booking.pk}/pay/")

    assert resp.status_code == 201
    assert resp.data == {"session_id": "cs_api", "url": "https://checkout.stripe.test/cs_api"}


def test_only_the_client_pays(auth_client, booking_factory, artist_user):
    booking = booking_factory()

    resp = auth_client(artist_user).post(f"/api/bookings/{booking.pk}/pay/")

    assert resp.status_code == 403


def test_pay_maps_stripe_outage_to_503(monkeypatch, auth_client, booking_factory, owner_user):
    booking = booking_factory()

    def unavailable(record):
        raise StripeTransientError("Temporary Stripe error, please retry.")

    monkeypatch.setattr("bookings.api.create_payment_session", unavailable)

    resp = auth_client(owner_user).post(f"/api/bookings/{booking.pk}/pay/")

    assert resp.status_code == 503


def test_artist_accepts_and_deposit_is_captured(fake_gateway, auth_client, authorized_booking, artist_user):
    resp = auth_client(artist_user).post(
        f"/api/bookings/{authorized_booking.pk}/react/", {"reaction": "accepted"}, format="json"
    )

    assert resp.status_code == 200, resp.data
    assert resp.data["reaction"] == "accepted"
    assert resp.data["payment_status"] == "paid"
    assert fake_gateway.calls == [("capture", "pi_test_booking")]
    assert Notification.objects.filter(
        recipient_id=authorized_booking.owner_id, type=NotifyType.BOOKING_ACCEPTED
    ).exists()


def test_client_withdraws_and_hold_is_released(fake_gateway, auth_client, authorized_booking, owner_user):
    resp = auth_client(owner_user).post(
        f"/api/bookings/{authorized_booking.pk}/react/",
        {"reaction": "rejected", "note": "Change of plans"},
        format="json",
    )

    authorized_booking.refresh_from_db()
    assert resp.status_code == 200
    assert authorized_booking.payment_status == PaymentStatus.CANCELLED
    assert authorized_booking.reject_note == "Change of plans"
    assert fake_gateway.calls == [("cancel", "pi_test_booking")]


def test_capture_outage_keeps_reaction_pending(fake_gateway, auth_client, authorized_booking, artist_user):
    def unavailable(intent_id):
        raise StripeTransientError("Temporary Stripe error, please retry.")

    fake_gateway.on_capture = unavailable

    resp = auth_client(artist_user).post(
        f"/api/bookings/{authorized_booking.pk}/react/", {"reaction": "accepted"}, format="json"
    )

    authorized_booking.refresh_from_db()
    assert resp.status_code == 503
    assert authorized_booking.reaction == Reaction.PENDING
    assert authorized_booking.payment_status == PaymentStatus.AUTHORIZED


def test_second_reaction_is_rejected(fake_gateway, auth_client, booking_factory, artist_user):
    booking = booking_factory(reaction=Reaction.ACCEPTED)

    resp = auth_client(artist_user).post(
        f"/api/bookings/{booking.pk}/react/", {"reaction": "rejected"}, format="json"
    )

    assert resp.status_code == 400
    assert Booking.objects.get(pk=booking.pk).reaction == Reaction.ACCEPTED


def test_invalid_reaction_value(auth_client, authorized_booking, artist_user):
    resp = auth_client(artist_user).post(
        f"/api/bookings/{authorized_booking.pk}/react/", {"reaction": "pending"}, format="json"
    )

    assert resp.status_code == 400
