"""Platform fee and amount formatting helpers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

CENTS = Decimal("100")


def _percent(value: Decimal | float | str | None) -> Decimal:
    if value is None:
        value = getattr(settings, "PLATFORM_FEE_PERCENT", Decimal("10"))
    return Decimal(str(value))


def calculate_platform_fee(amount: int, percent: Decimal | float | str | None = None) -> int:
    """Return the fee in minor units: ``round(amount * percent / 100)``."""
    rate = _percent(percent)
    if amount <= 0 or rate <= 0:
        return 0
    fee = (Decimal(amount) * rate / CENTS).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(fee)


def booking_fee_percent() -> Decimal:
    """Platform share plus Stripe processing, charged on top of deposits."""
    processing = getattr(settings, "STRIPE_PROCESSING_FEE_PERCENT", Decimal("0"))
    return _percent(None) + Decimal(str(processing))


def format_amount(amount: int | None, currency: str | None = "usd") -> str:
    """Format minor units for messages, e.g. ``USD 12.34``."""
    major = (Decimal(amount or 0) / CENTS).quantize(Decimal("0.01"))
    return f"{(currency or 'usd').upper()} {major}"
