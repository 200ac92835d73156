"""Decimal helpers for currency and percentage values."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: object) -> Decimal:
    """Convert a raw value to Decimal without passing through float.

    Accepts Decimal, int, str (with optional "$" and thousands separators).

    Raises:
        ValueError: If the value cannot be parsed as a number.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    text = str(value).strip().replace("$", "").replace(",", "")
    if not text:
        raise ValueError("Empty numeric value")
    try:
        result = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Not a number: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def quantize(value: Decimal, precision: int = 2) -> Decimal:
    """Round half-up to `precision` decimal places for reporting."""
    return value.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)


def pct_to_rate(pct: Decimal) -> Decimal:
    """Convert a 0-100 percentage to a 0-1 rate."""
    return pct / HUNDRED
