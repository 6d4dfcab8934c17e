"""Typed view of the Stripe events the payment flows react to."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class EventType(str, Enum):
    CHECKOUT_COMPLETED = "checkout.session.completed"
    ASYNC_PAYMENT_SUCCEEDED = "checkout.session.async_payment_succeeded"
    ASYNC_PAYMENT_FAILED = "checkout.session.async_payment_failed"
    PAYMENT_AUTHORIZED = "payment_intent.amount_capturable_updated"
    PAYMENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_FAILED = "payment_intent.payment_failed"
    PAYMENT_CANCELED = "payment_intent.canceled"
    ACCOUNT_UPDATED = "account.updated"

    @classmethod
    def parse(cls, value: Any) -> EventType | None:
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_checkout(self) -> bool:
        return self.value.startswith("checkout.session.")


# Events that concern an account rather than a payable record.
FAMILY_AGNOSTIC_EVENTS = frozenset({EventType.ACCOUNT_UPDATED})


class RecordFamily(str, Enum):
    BOOKING = "booking"
    GUEST_SPOT = "guest_spot_deposit"
    TIP = "tip"

    @property
    def metadata_key(self) -> str:
        return _RECORD_METADATA_KEYS[self]


_RECORD_METADATA_KEYS = {
    RecordFamily.BOOKING: "booking_id",
    RecordFamily.GUEST_SPOT: "guest_spot_booking_id",
    RecordFamily.TIP: "tip_id",
}

# Families whose capture waits on a human reaction.
TWO_PHASE_FAMILIES = (RecordFamily.BOOKING, RecordFamily.GUEST_SPOT)


def family_metadata(family: RecordFamily, record_id: Any) -> dict[str, str]:
    """Metadata attached to a checkout session so webhooks can be routed back."""
    metadata = {family.metadata_key: str(record_id)}
    if family is not RecordFamily.BOOKING:
        metadata["type"] = family.value
    return metadata


def resolve_family(metadata: Mapping[str, Any] | None) -> RecordFamily:
    """
    Pick the record family from session/intent metadata.

    Bookings predate the other flows and are never tagged, so anything
    without a recognised tag falls back to the booking family.
    """
    metadata = metadata or {}
    tag = str(metadata.get("type") or "").strip()
    if tag == RecordFamily.TIP.value or metadata.get(RecordFamily.TIP.metadata_key):
        return RecordFamily.TIP
    if tag == RecordFamily.GUEST_SPOT.value:
        return RecordFamily.GUEST_SPOT
    return RecordFamily.BOOKING


@dataclass(frozen=True)
class PaymentEvent:
    id: str
    type: EventType
    family: RecordFamily | None
    object_id: str
    session_id: str = ""
    intent_id: str = ""
    record_ref: str = ""
    session_payment_status: str = ""
    customer_id: str = ""
    customer_email: str = ""
    account_id: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)
    payload: Mapping[str, Any] = field(default_factory=dict)


def _object_id(value: Any) -> str:
    """Return an id from either a bare id string or an expanded Stripe object."""
    if isinstance(value, Mapping):
        value = value.get("id")
    return str(value or "")


def parse_event(raw: Mapping[str, Any]) -> PaymentEvent | None:
    """Build a PaymentEvent from a verified Stripe event; None for unhandled types."""
    event_type = EventType.parse(raw.get("type"))
    if event_type is None:
        return None

    data_object = (raw.get("data") or {}).get("object") or {}
    metadata = dict(data_object.get("metadata") or {})
    object_id = _object_id(data_object.get("id"))
    event_id = str(raw.get("id") or "")

    if event_type in FAMILY_AGNOSTIC_EVENTS:
        return PaymentEvent(
            id=event_id,
            type=event_type,
            family=None,
            object_id=object_id,
            account_id=object_id,
            metadata=metadata,
            payload=data_object,
        )

    family = resolve_family(metadata)
    if event_type.is_checkout:
        session_id = object_id
        intent_id = _object_id(data_object.get("payment_intent"))
        payment_status = str(data_object.get("payment_status") or "")
    else:
        session_id = ""
        intent_id = object_id
        payment_status = ""

    customer_details = data_object.get("customer_details") or {}
    customer_email = customer_details.get("email") or data_object.get("customer_email") or ""

    return PaymentEvent(
        id=event_id,
        type=event_type,
        family=family,
        object_id=object_id,
        session_id=session_id,
        intent_id=intent_id,
        record_ref=str(metadata.get(family.metadata_key) or ""),
        session_payment_status=payment_status,
        customer_id=_object_id(data_object.get("customer")),
        customer_email=str(customer_email),
        metadata=metadata,
        payload=data_object,
    )
