"""Users, payout accounts and record factories shared across apps."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from datetime import date, timedelta
from typing import Any, Callable

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from bookings.models import Booking
from guest_spots.models import GuestSpotBooking
from payments.choices import PaymentStatus
from payments.models import PayoutAccount
from tips.models import Tip

from .fakes import make_context

User = get_user_model()


def _create_user(*, username: str) -> User:
    return User.objects.create_user(
        username=username,
        password="testpass",
        email=f"{username}@example.com",
        first_name=username.title(),
    )


def _payout_account(user: User, *, deposit_amount: int = 0, enabled: bool = True) -> PayoutAccount:
    return PayoutAccount.objects.create(
        user=user,
        stripe_account_id=f"acct_test_{user.username}",
        payouts_enabled=enabled,
        charges_enabled=enabled,
        details_submitted=enabled,
        is_fully_onboarded=enabled,
        deposit_amount=deposit_amount,
        last_synced_at=timezone.now(),
    )


@pytest.fixture(autouse=True)
def _clear_cache():
    # Dedup claims and record locks live in the locmem cache.
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def owner_user():
    return _create_user(username="client")


@pytest.fixture
def artist_user():
    user = _create_user(username="artist")
    _payout_account(user, deposit_amount=5000)
    return user


@pytest.fixture
def shop_user():
    user = _create_user(username="shop")
    _payout_account(user, deposit_amount=10000)
    return user


@pytest.fixture
def other_user():
    return _create_user(username="other")


@pytest.fixture
def auth_client() -> Callable[[Any], APIClient]:
    def _client(user) -> APIClient:
        client = APIClient()
        token_resp = client.post(
            "/api/token/",
            {"username": user.username, "password": "testpass"},
            format="json",
        )
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token_resp.data['access']}")
        return client

    return _client


@pytest.fixture
def booking_factory(owner_user, artist_user):
    def _create(**overrides) -> Booking:
        values = {
            "owner": owner_user,
            "artist": artist_user,
            "day": date.today() + timedelta(days=14),
            "amount": 5645,
            "platform_fee": 645,
            "currency": "usd",
        }
        values.update(overrides)
        return Booking.objects.create(**values)

    return _create


@pytest.fixture
def authorized_booking(booking_factory):
    return booking_factory(
        payment_status=PaymentStatus.AUTHORIZED,
        stripe_checkout_session_id="cs_test_booking",
        stripe_payment_intent_id="pi_test_booking",
        authorized_at=timezone.now(),
    )


@pytest.fixture
def guest_spot_factory(artist_user, shop_user):
    def _create(**overrides) -> GuestSpotBooking:
        values = {
            "artist": artist_user,
            "shop": shop_user,
            "selected_date": date.today() + timedelta(days=30),
            "amount": 11000,
            "platform_commission_amount": 1000,
            "currency": "usd",
        }
        values.update(overrides)
        return GuestSpotBooking.objects.create(**values)

    return _create


@pytest.fixture
def tip_factory(artist_user):
    def _create(**overrides) -> Tip:
        values = {"artist": artist_user, "amount": 1500, "currency": "usd"}
        values.update(overrides)
        return Tip.objects.create(**values)

    return _create


@pytest.fixture
def payment_context():
    return make_context()


def stripe_event(event_type: str, data_object: dict[str, Any], *, event_id: str = "evt_test_1") -> dict:
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": data_object},
    }


def sign_payload(payload: str, secret: str, *, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header the SDK accepts."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def post_webhook(api_client, settings):
    """POST a signed event to a webhook endpoint."""

    def _post(event: dict, *, url: str = "/api/payments/stripe/webhook/", secret: str | None = None):
        payload = json.dumps(event)
        header = sign_payload(payload, secret or settings.STRIPE_WEBHOOK_SECRET)
        return api_client.post(
            url,
            data=payload,
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE=header,
        )

    return _post
