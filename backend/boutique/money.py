"""Decimal helpers shared by models, pricing and reports."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """Lenient conversion for values that already passed validation."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def as_float(value: Any) -> float | None:
    """JSON-friendly rendering of a stored amount."""
    if value is None:
        return None
    return float(quantize_money(value))


def as_rate(value: Any) -> float | None:
    # Rates and percentages keep their precision
    if value is None:
        return None
    return float(value)
