"""Collaborators shared by the router, handlers, orchestrator and sweeper."""

from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Protocol

from django.utils import timezone

from notifications.notifier import NotificationMessage

from .events import RecordFamily
from .machine import PaymentMachine


class RecordStore(Protocol):
    def find_by_identifier(self, record_id: Any) -> Any | None: ...

    def find_by_session_id(self, session_id: str) -> Any | None: ...

    def find_by_intent_id(self, intent_id: str) -> Any | None: ...

    def update_fields(
        self,
        record_id: Any,
        patch: Mapping[str, Any],
        *,
        expected_status: str | None = None,
        expected: Mapping[str, Any] | None = None,
    ) -> Any: ...

    def find_expired(self, older_than: datetime, status: str) -> list[Any]: ...


class PaymentGateway(Protocol):
    def capture(self, intent_id: str) -> Any: ...

    def cancel(self, intent_id: str) -> Any: ...

    def retrieve_account(self, account_id: str) -> Any: ...

    def verify_signature(self, raw_body: bytes, signature: str, secret: str) -> dict: ...


class Notifier(Protocol):
    def notify(self, recipient_id: int, message: NotificationMessage) -> None: ...


class DedupStore(Protocol):
    def claim(self, key: str) -> bool: ...

    def release(self, key: str) -> None: ...


class RecordLock(Protocol):
    def hold(self, key: str, *, blocking: bool = True) -> AbstractContextManager: ...


@dataclass
class PaymentContext:
    stores: Mapping[RecordFamily, RecordStore]
    machines: Mapping[RecordFamily, PaymentMachine]
    gateway: PaymentGateway
    notifier: Notifier
    clock: Callable[[], datetime] = timezone.now
    dedup: DedupStore | None = None
    locks: RecordLock | None = None
    accounts: Any = None

    def store(self, family: RecordFamily) -> RecordStore:
        return self.stores[family]

    def machine(self, family: RecordFamily) -> PaymentMachine:
        return self.machines[family]

    def hold(self, family: RecordFamily, record_id: Any, *, blocking: bool = True):
        if self.locks is None:
            return nullcontext()
        return self.locks.hold(f"{family.value}:{record_id}", blocking=blocking)


def build_default_context(**overrides: Any) -> PaymentContext:
    """Wire the production collaborators; keyword overrides replace any of them."""
    from bookings.machine import BookingPaymentMachine
    from bookings.models import Booking
    from core.locks import CacheRecordLock
    from guest_spots.machine import GuestSpotPaymentMachine
    from guest_spots.models import GuestSpotBooking
    from notifications.dedup import NotificationDedupStore
    from notifications.notifier import CeleryNotifier
    from tips.machine import TipPaymentMachine
    from tips.models import Tip

    from .accounts import PayoutAccountStore
    from .gateway import StripeGateway
    from .store import DjangoRecordStore

    values: dict[str, Any] = {
        "stores": {
            RecordFamily.BOOKING: DjangoRecordStore(Booking, select_related=("owner", "artist")),
            RecordFamily.GUEST_SPOT: DjangoRecordStore(
                GuestSpotBooking, select_related=("artist", "shop")
            ),
            RecordFamily.TIP: DjangoRecordStore(Tip, select_related=("artist",)),
        },
        "machines": {
            RecordFamily.BOOKING: BookingPaymentMachine(),
            RecordFamily.GUEST_SPOT: GuestSpotPaymentMachine(),
            RecordFamily.TIP: TipPaymentMachine(),
        },
        "gateway": StripeGateway(),
        "notifier": CeleryNotifier(),
        "dedup": NotificationDedupStore(),
        "locks": CacheRecordLock(),
        "accounts": PayoutAccountStore(),
    }
    values.update(overrides)
    return PaymentContext(**values)
