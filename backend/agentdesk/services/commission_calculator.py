"""
Commission Calculator

Pure derivation of the two monetary outputs of a commission record:

    commission_amount = sale_amount * commission_rate / 100
    final_commission  = commission_amount * split_percentage / 100

Both are rounded half-up to the currency minor unit, and final_commission
is derived from the *rounded* commission_amount. Running the calculation
again on persisted values therefore reproduces the persisted values.

No I/O, no validation: callers clamp and validate inputs first.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..money import HUNDRED, bps_to_percent, from_cents, round_currency, to_cents, to_decimal


DEFAULT_SPLIT_PERCENTAGE = Decimal("100")


@dataclass(frozen=True)
class CommissionAmounts:
    commission_amount: Decimal
    final_commission: Decimal


def calculate_commission(sale_amount, commission_rate, split_percentage=None) -> CommissionAmounts:
    sale = to_decimal(sale_amount)
    rate = to_decimal(commission_rate)
    split = DEFAULT_SPLIT_PERCENTAGE if split_percentage is None else to_decimal(split_percentage)

    commission_amount = round_currency(sale * rate / HUNDRED)
    final_commission = round_currency(commission_amount * split / HUNDRED)
    return CommissionAmounts(commission_amount=commission_amount, final_commission=final_commission)


def derive_stored_amounts(
    sale_amount_cents: int,
    commission_rate_bps: int,
    split_percentage_bps: int,
) -> dict:
    """Calculator over storage units; returns the derived model columns."""
    amounts = calculate_commission(
        from_cents(sale_amount_cents),
        bps_to_percent(commission_rate_bps),
        bps_to_percent(split_percentage_bps),
    )
    return {
        "commission_amount_cents": to_cents(amounts.commission_amount),
        "final_commission_cents": to_cents(amounts.final_commission),
    }
