import json
from types import SimpleNamespace

import pytest
import stripe

from payments.exceptions import WebhookSignatureError
from payments.gateway import (
    AUTOMATIC_CAPTURE,
    MANUAL_CAPTURE,
    StripeConfigurationError,
    StripeGateway,
    StripePaymentError,
    StripeTransientError,
    checkout_urls,
)

from .fixtures import sign_payload


@pytest.fixture
def gateway():
    return StripeGateway()


@pytest.fixture
def created_sessions(monkeypatch):
    calls = []

    def fake_create(**params):
        calls.append(params)
        return {
            "id": "cs_live",
            "url": "https://checkout.stripe.test/cs_live",
            "payment_intent": None,
            "status": "open",
            "payment_status": "unpaid",
        }

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    return calls


def test_manual_capture_session_with_application_fee(gateway, created_sessions):
    session = gateway.create_session(
        amount=5645,
        currency="usd",
        destination_account="acct_artist",
        metadata={"booking_id": 12},
        capture_method=MANUAL_CAPTURE,
        application_fee=645,
        customer_email="client@example.com",
        success_url="https://app.test/ok",
        cancel_url="https://app.test/cancel",
    )

    params = created_sessions[0]
    intent_data = params["payment_intent_data"]
    assert session.session_id == "cs_live"
    assert session.session_url.endswith("cs_live")
    assert intent_data["capture_method"] == "manual"
    assert intent_data["application_fee_amount"] == 645
    assert intent_data["transfer_data"] == {"destination": "acct_artist"}
    assert "on_behalf_of" not in intent_data
    assert params["metadata"]["booking_id"] == "12"
    assert params["line_items"][0]["price_data"]["unit_amount"] == 5645
    assert params["customer_email"] == "client@example.com"


def test_feeless_session_settles_on_behalf_of_payee(gateway, created_sessions):
    gateway.create_session(
        amount=1500,
        currency="usd",
        destination_account="acct_artist",
        metadata={"tip_id": "3", "type": "tip"},
        capture_method=AUTOMATIC_CAPTURE,
    )

    intent_data = created_sessions[0]["payment_intent_data"]
    assert intent_data["capture_method"] == "automatic"
    assert intent_data["on_behalf_of"] == "acct_artist"
    assert "application_fee_amount" not in intent_data


def test_session_requires_destination(gateway, created_sessions):
    with pytest.raises(StripePaymentError):
        gateway.create_session(amount=100, currency="usd", destination_account="", metadata={})
    assert created_sessions == []


def test_disabled_stripe_is_a_configuration_error(gateway, settings):
    settings.STRIPE_ENABLED = False

    with pytest.raises(StripeConfigurationError):
        gateway.capture("pi_1")


def test_rate_limit_maps_to_transient(gateway, monkeypatch):
    def boom(intent_id):
        raise stripe.error.RateLimitError("slow down")

    monkeypatch.setattr(stripe.PaymentIntent, "capture", boom)

    with pytest.raises(StripeTransientError):
        gateway.capture("pi_1")


def test_capture_of_already_captured_intent_succeeds(gateway, monkeypatch):
    def rejected(intent_id):
        raise stripe.error.InvalidRequestError("already captured", param=None)

    monkeypatch.setattr(stripe.PaymentIntent, "capture", rejected)
    monkeypatch.setattr(
        stripe.PaymentIntent,
        "retrieve",
        lambda intent_id: SimpleNamespace(id=intent_id, status="succeeded"),
    )

    assert gateway.capture("pi_done").status == "succeeded"


def test_cancel_of_missing_intent_is_treated_as_released(gateway, monkeypatch):
    def missing(intent_id):
        raise stripe.error.InvalidRequestError("No such payment_intent", param="id", code="resource_missing")

    monkeypatch.setattr(stripe.PaymentIntent, "cancel", missing)

    assert gateway.cancel("pi_gone") is None


def test_cancel_of_captured_intent_is_an_error(gateway, monkeypatch):
    def rejected(intent_id):
        raise stripe.error.InvalidRequestError("cannot cancel", param=None)

    monkeypatch.setattr(stripe.PaymentIntent, "cancel", rejected)
    monkeypatch.setattr(
        stripe.PaymentIntent,
        "retrieve",
        lambda intent_id: SimpleNamespace(id=intent_id, status="succeeded"),
    )

    with pytest.raises(StripePaymentError):
        gateway.cancel("pi_paid")


def test_retrieve_account_reads_requirements(gateway, monkeypatch):
    monkeypatch.setattr(
        stripe.Account,
        "retrieve",
        lambda account_id: {
            "id": account_id,
            "details_submitted": True,
            "payouts_enabled": True,
            "charges_enabled": True,
            "requirements": {"currently_due": ["tos_acceptance.date"]},
        },
    )

    status = gateway.retrieve_account("acct_1")

    assert status.is_onboarded
    assert status.requirements_due == ["tos_acceptance.date"]


def test_verify_signature_accepts_signed_body(gateway):
    payload = json.dumps({"id": "evt_1", "type": "payment_intent.succeeded"})

    event = gateway.verify_signature(payload.encode(), sign_payload(payload, "whsec_x"), "whsec_x")

    assert event["id"] == "evt_1"


@pytest.mark.parametrize(
    "body,header,secret",
    [
        (b'{"id": "evt_1"}', "t=1,v1=deadbeef", "whsec_x"),
        (b'{"id": "evt_1"}', "", "whsec_x"),
        (b"", "t=1,v1=deadbeef", "whsec_x"),
        (b'{"id": "evt_1"}', "t=1,v1=deadbeef", ""),
    ],
)
def test_verify_signature_rejects_bad_deliveries(gateway, body, header, secret):
    with pytest.raises(WebhookSignatureError):
        gateway.verify_signature(body, header, secret)


def test_tampered_body_fails_verification(gateway):
    payload = json.dumps({"id": "evt_1", "amount": 100})
    header = sign_payload(payload, "whsec_x")

    with pytest.raises(WebhookSignatureError):
        gateway.verify_signature(payload.replace("100", "999").encode(), header, "whsec_x")


def test_checkout_urls_prefer_configured_values(settings):
    settings.STRIPE_SUCCESS_URL = ""
    settings.STRIPE_CANCEL_URL = ""
    settings.FRONTEND_ORIGIN = "https://guestspot.test/"

    success, cancel = checkout_urls("/bookings/4")

    assert success.startswith("https://guestspot.test/bookings/4?payment=success")
    assert "{CHECKOUT_SESSION_ID}" in success
    assert cancel == "https://guestspot.test/bookings/4?payment=cancel"
