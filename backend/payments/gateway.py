"""Stripe SDK adapter used by the booking, guest-spot and tip flows."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, NoReturn

import stripe
from django.conf import settings

from .exceptions import WebhookSignatureError

logger = logging.getLogger(__name__)

MANUAL_CAPTURE = "manual"
AUTOMATIC_CAPTURE = "automatic"
CANCELABLE_INTENT_STATUSES = frozenset(
    {
        "requires_capture",
        "requires_payment_method",
        "requires_confirmation",
        "requires_action",
        "processing",
    }
)


class StripeConfigurationError(Exception):
    """Stripe is not configured correctly in the environment."""


class StripeTransientError(Exception):
    """Temporary Stripe/API issue that should be retried."""


class StripePaymentError(Exception):
    """Permanent payment failure reported by Stripe."""


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    session_url: str
    intent_id: str = ""
    status: str = ""
    payment_status: str = ""


@dataclass(frozen=True)
class AccountStatus:
    account_id: str
    details_submitted: bool = False
    payouts_enabled: bool = False
    charges_enabled: bool = False
    requirements_due: list[str] = field(default_factory=list)

    @property
    def is_onboarded(self) -> bool:
        return self.details_submitted and self.payouts_enabled and self.charges_enabled


def _get_stripe_api_key() -> str:
    """Return the configured Stripe API key or raise if missing."""
    if not getattr(settings, "STRIPE_ENABLED", True):
        raise StripeConfigurationError("Stripe payments are disabled.")
    api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
    if not api_key:
        raise StripeConfigurationError("Stripe secret key not configured.")
    return api_key


def _stripe_value(obj: Any, field_name: str, default: Any = None) -> Any:
    """Safely fetch a field from a Stripe object or dict payload."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(field_name, default)
    return getattr(obj, field_name, default)


def _stripe_id(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(_stripe_value(value, "id", "") or "")


def _handle_stripe_error(exc: stripe.error.StripeError) -> NoReturn:
    """Map Stripe SDK errors onto internal exception types."""
    if isinstance(exc, stripe.error.CardError):
        message = exc.user_message or "Your card was declined."
        raise StripePaymentError(message) from exc
    if isinstance(
        exc,
        (
            stripe.error.RateLimitError,
            stripe.error.APIConnectionError,
            stripe.error.APIError,
        ),
    ):
        raise StripeTransientError("Temporary Stripe error, please retry.") from exc
    if isinstance(exc, (stripe.error.AuthenticationError, stripe.error.PermissionError)):
        raise StripeConfigurationError("Stripe credentials are invalid or unauthorized.") from exc
    if isinstance(exc, stripe.error.InvalidRequestError):
        raise StripePaymentError(exc.user_message or "Invalid payment request.") from exc
    raise StripePaymentError(exc.user_message or "Stripe payment failure.") from exc


def _get_frontend_origin() -> str:
    """Return the configured frontend origin or a local fallback."""
    configured = (getattr(settings, "FRONTEND_ORIGIN", "") or "").strip()
    base = configured or "http://localhost:5173"
    return base.rstrip("/") or base


def checkout_urls(path: str) -> tuple[str, str]:
    """Return the success and cancel URLs for a Checkout session."""
    success_url = getattr(settings, "STRIPE_SUCCESS_URL", "") or (
        f"{_get_frontend_origin()}{path}?payment=success&session_id={{CHECKOUT_SESSION_ID}}"
    )
    cancel_url = getattr(settings, "STRIPE_CANCEL_URL", "") or (
        f"{_get_frontend_origin()}{path}?payment=cancel"
    )
    return success_url, cancel_url


def _requirements_due(account: Any) -> list[str]:
    requirements = _stripe_value(account, "requirements", None) or {}
    due = _stripe_value(requirements, "currently_due", None) or []
    return [str(item) for item in due]


def account_status_from_payload(account: Any) -> AccountStatus:
    return AccountStatus(
        account_id=_stripe_id(account),
        details_submitted=bool(_stripe_value(account, "details_submitted", False)),
        payouts_enabled=bool(_stripe_value(account, "payouts_enabled", False)),
        charges_enabled=bool(_stripe_value(account, "charges_enabled", False)),
        requirements_due=_requirements_due(account),
    )


def _checkout_session(session: Any) -> CheckoutSession:
    return CheckoutSession(
        session_id=_stripe_id(session),
        session_url=str(_stripe_value(session, "url", "") or ""),
        intent_id=_stripe_id(_stripe_value(session, "payment_intent")),
        status=str(_stripe_value(session, "status", "") or ""),
        payment_status=str(_stripe_value(session, "payment_status", "") or ""),
    )


class StripeGateway:
    """
    Blocking calls against Stripe.

    Each method is a single attempt; network retries are left to the SDK
    and callers decide what to do with the mapped exception.
    """

    def create_session(
        self,
        *,
        amount: int,
        currency: str,
        destination_account: str,
        metadata: Mapping[str, str],
        capture_method: str = MANUAL_CAPTURE,
        application_fee: int = 0,
        customer_email: str = "",
        product_name: str = "Deposit",
        description: str = "",
        success_url: str = "",
        cancel_url: str = "",
        idempotency_key: str | None = None,
    ) -> CheckoutSession:
        """Create a hosted Checkout session paying out to a connected account."""
        if amount <= 0:
            raise StripePaymentError("Checkout amount must be greater than zero.")
        if not destination_account:
            raise StripePaymentError("The payee has no connected Stripe account.")

        stripe.api_key = _get_stripe_api_key()
        session_metadata = {
            "env": getattr(settings, "STRIPE_ENV", "dev") or "dev",
            **{key: str(value) for key, value in metadata.items()},
        }
        intent_data: dict[str, Any] = {
            "capture_method": capture_method,
            "metadata": session_metadata,
            "transfer_data": {"destination": destination_account},
        }
        if application_fee > 0:
            intent_data["application_fee_amount"] = application_fee
        else:
            intent_data["on_behalf_of"] = destination_account

        product_data = {"name": product_name}
        if description:
            product_data["description"] = description
        params: dict[str, Any] = {
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": session_metadata,
            "payment_intent_data": intent_data,
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "unit_amount": amount,
                        "product_data": product_data,
                    },
                    "quantity": 1,
                }
            ],
        }
        if customer_email:
            params["customer_email"] = customer_email
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)

        result = _checkout_session(session)
        if not result.session_id or not result.session_url:
            raise StripeConfigurationError("Stripe did not return a checkout session URL.")
        logger.info(
            "stripe: checkout session created",
            extra={"session_id": result.session_id, "capture_method": capture_method},
        )
        return result

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        stripe.api_key = _get_stripe_api_key()
        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)
        return _checkout_session(session)

    def _lookup_intent(self, intent_id: str) -> Any | None:
        """Best-effort read used to reconcile a rejected capture/cancel."""
        try:
            return stripe.PaymentIntent.retrieve(intent_id)
        except stripe.error.StripeError:
            logger.warning("stripe: could not retrieve intent %s", intent_id, exc_info=True)
            return None

    def capture(self, intent_id: str) -> Any:
        """Capture a held PaymentIntent; an intent already captured counts as success."""
        if not intent_id:
            raise StripePaymentError("No PaymentIntent to capture.")
        stripe.api_key = _get_stripe_api_key()
        try:
            return stripe.PaymentIntent.capture(intent_id)
        except stripe.error.InvalidRequestError as exc:
            intent = self._lookup_intent(intent_id)
            if _stripe_value(intent, "status") == "succeeded":
                logger.info("stripe: intent %s was already captured", intent_id)
                return intent
            _handle_stripe_error(exc)
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)

    def cancel(self, intent_id: str) -> Any:
        """Release a held PaymentIntent; an intent already canceled counts as success."""
        if not intent_id:
            raise StripePaymentError("No PaymentIntent to cancel.")
        stripe.api_key = _get_stripe_api_key()
        try:
            return stripe.PaymentIntent.cancel(intent_id)
        except stripe.error.InvalidRequestError as exc:
            if getattr(exc, "code", "") == "resource_missing":
                logger.info("stripe: intent %s missing; treating as released", intent_id)
                return None
            intent = self._lookup_intent(intent_id)
            if _stripe_value(intent, "status") == "canceled":
                logger.info("stripe: intent %s was already canceled", intent_id)
                return intent
            _handle_stripe_error(exc)
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)

    def retrieve_account(self, account_id: str) -> AccountStatus:
        stripe.api_key = _get_stripe_api_key()
        try:
            account = stripe.Account.retrieve(account_id)
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)
        return account_status_from_payload(account)

    def verify_signature(self, raw_body: bytes, signature: str, secret: str) -> dict[str, Any]:
        """
        Authenticate a webhook delivery and return the decoded event.

        The HMAC is computed over the exact bytes Stripe sent, so callers
        must pass ``request.body`` and never a re-serialized payload.
        """
        if not secret:
            raise WebhookSignatureError("Webhook secret is not configured.")
        if not signature:
            raise WebhookSignatureError("Missing Stripe-Signature header.")
        if not raw_body:
            raise WebhookSignatureError("Missing raw request body.")
        try:
            payload = raw_body.decode("utf-8") if isinstance(raw_body, bytes) else str(raw_body)
        except UnicodeDecodeError as exc:
            raise WebhookSignatureError("Webhook payload is not valid UTF-8.") from exc

        tolerance = getattr(settings, "STRIPE_WEBHOOK_TOLERANCE_SECONDS", 300)
        try:
            stripe.WebhookSignature.verify_header(payload, signature, secret, tolerance)
        except stripe.error.SignatureVerificationError as exc:
            raise WebhookSignatureError("Invalid Stripe signature.") from exc

        try:
            event = json.loads(payload)
        except ValueError as exc:
            raise WebhookSignatureError("Webhook payload is not valid JSON.") from exc
        if not isinstance(event, dict):
            raise WebhookSignatureError("Webhook payload is not an event object.")
        return event
