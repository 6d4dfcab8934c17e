"""Dispatch table from (event type, record family) to handlers."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator, Mapping, Optional, Tuple

from django.core.exceptions import ImproperlyConfigured

from .accounts import AccountUpdateHandler
from .events import FAMILY_AGNOSTIC_EVENTS, TWO_PHASE_FAMILIES, EventType, PaymentEvent, RecordFamily
from .handlers import HandlerOutcome, PaymentEventHandler

logger = logging.getLogger(__name__)

Handler = Callable[[PaymentEvent], HandlerOutcome]
RouteKey = Tuple[EventType, Optional[RecordFamily]]


class _Ignore:
    """Explicit no-op for combinations a family has no use for."""

    def __call__(self, event: PaymentEvent) -> HandlerOutcome:
        logger.info(
            "payments: %s absorbed for %s",
            event.type.value,
            event.family.value if event.family else "account",
            extra={"event_id": event.id},
        )
        return HandlerOutcome.IGNORED

    def __repr__(self) -> str:
        return "IGNORE"


IGNORE = _Ignore()


def route_keys() -> Iterator[RouteKey]:
    """Every combination the dispatch table must cover."""
    for event_type in EventType:
        if event_type in FAMILY_AGNOSTIC_EVENTS:
            yield (event_type, None)
        else:
            for family in RecordFamily:
                yield (event_type, family)


class EventRouter:
    def __init__(
        self,
        table: Mapping[RouteKey, Handler],
        *,
        families: Iterable[RecordFamily] | None = None,
    ):
        missing = [key for key in route_keys() if key not in table]
        if missing:
            labels = ", ".join(
                f"{event_type.value}/{family.value if family else '*'}"
                for event_type, family in missing
            )
            raise ImproperlyConfigured(f"Payment event routes missing for: {labels}")
        self._table = dict(table)
        self._families = frozenset(families) if families is not None else None

    def route(self, event: PaymentEvent) -> HandlerOutcome:
        if (
            event.family is not None
            and self._families is not None
            and event.family not in self._families
        ):
            logger.info(
                "payments: %s event delivered to the wrong endpoint",
                event.family.value,
                extra={"event_id": event.id, "event_type": event.type.value},
            )
            return HandlerOutcome.IGNORED
        return self._table[(event.type, event.family)](event)


def build_dispatch_table(context) -> dict[RouteKey, Handler]:
    table: dict[RouteKey, Handler] = {}
    for family in TWO_PHASE_FAMILIES:
        handler = PaymentEventHandler(context, family)
        table.update(
            {
                (EventType.CHECKOUT_COMPLETED, family): handler,
                (EventType.ASYNC_PAYMENT_SUCCEEDED, family): IGNORE,
                (EventType.ASYNC_PAYMENT_FAILED, family): IGNORE,
                (EventType.PAYMENT_AUTHORIZED, family): handler,
                (EventType.PAYMENT_SUCCEEDED, family): handler,
                (EventType.PAYMENT_FAILED, family): handler,
                (EventType.PAYMENT_CANCELED, family): handler,
            }
        )

    tip_handler = PaymentEventHandler(context, RecordFamily.TIP)
    table.update(
        {
            (EventType.CHECKOUT_COMPLETED, RecordFamily.TIP): tip_handler,
            (EventType.ASYNC_PAYMENT_SUCCEEDED, RecordFamily.TIP): tip_handler,
            (EventType.ASYNC_PAYMENT_FAILED, RecordFamily.TIP): tip_handler,
            # Tips are captured automatically; there is no hold to track.
            (EventType.PAYMENT_AUTHORIZED, RecordFamily.TIP): IGNORE,
            (EventType.PAYMENT_SUCCEEDED, RecordFamily.TIP): tip_handler,
            (EventType.PAYMENT_FAILED, RecordFamily.TIP): tip_handler,
            (EventType.PAYMENT_CANCELED, RecordFamily.TIP): tip_handler,
        }
    )
    table[(EventType.ACCOUNT_UPDATED, None)] = AccountUpdateHandler(context)
    return table


def build_router(context, *, families: Iterable[RecordFamily] | None = None) -> EventRouter:
    return EventRouter(build_dispatch_table(context), families=families)
