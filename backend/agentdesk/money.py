"""
Money and percentage representation.

Amounts are persisted as integer cents and percentages as integer basis
points (1% = 100 bps), the same way prices and tax rates are stored
elsewhere in the schema. Services work in Decimal.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class MoneyFormatError(ValueError):
    """Raised when a value cannot be read as a decimal amount."""


def to_decimal(value) -> Decimal:
    """
    Read a user-supplied amount as Decimal.

    Floats go through str() so 0.1 stays 0.1. Booleans are rejected even
    though they are ints.
    """
    if isinstance(value, bool):
        raise MoneyFormatError("must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise MoneyFormatError("must be a number")
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise MoneyFormatError("must be a number")
    if not result.is_finite():
        raise MoneyFormatError("must be a finite number")
    return result


def round_currency(value: Decimal) -> Decimal:
    """Half-up rounding to the currency minor unit."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal) -> int:
    return int(round_currency(value) * HUNDRED)


def from_cents(cents: int | None) -> Decimal | None:
    if cents is None:
        return None
    return (Decimal(cents) / HUNDRED).quantize(CENT)


def percent_to_bps(value: Decimal) -> int:
    return int(round_currency(value) * HUNDRED)


def bps_to_percent(bps: int | None) -> Decimal | None:
    if bps is None:
        return None
    return (Decimal(bps) / HUNDRED).quantize(CENT)


def has_sub_cent_precision(value: Decimal) -> bool:
    """True when value carries more than two decimal places."""
    return value != value.quantize(CENT)


def as_json_number(value: Decimal | None) -> float | None:
    if value is None:
        return None
    return float(value)
