# Overview: Pytest coverage for commission amount derivation.

from decimal import Decimal

import pytest

from agentdesk.money import bps_to_percent, from_cents, percent_to_bps, to_cents
from agentdesk.services.commission_calculator import calculate_commission, derive_stored_amounts


class TestCalculateCommission:

    def test_full_split(self):
        amounts = calculate_commission(200000, 3, 100)
        assert amounts.commission_amount == Decimal("6000.00")
        assert amounts.final_commission == Decimal("6000.00")

    def test_half_split(self):
        amounts = calculate_commission(200000, 3, 50)
        assert amounts.commission_amount == Decimal("6000.00")
        assert amounts.final_commission == Decimal("3000.00")

    def test_missing_split_defaults_to_full(self):
        amounts = calculate_commission(Decimal("150000"), Decimal("2.5"))
        assert amounts.commission_amount == Decimal("3750.00")
        assert amounts.final_commission == amounts.commission_amount

    def test_rounds_half_up_to_cents(self):
        # 1234.57 * 2.5% = 30.86425 -> 30.86 ; 30.86 * 33.33% = 10.285638 -> 10.29
        amounts = calculate_commission(Decimal("1234.57"), Decimal("2.5"), Decimal("33.33"))
        assert amounts.commission_amount == Decimal("30.86")
        assert amounts.final_commission == Decimal("10.29")

    def test_half_cent_rounds_up(self):
        # 0.50 * 1% = 0.005 -> 0.01
        assert calculate_commission(Decimal("0.50"), 1).commission_amount == Decimal("0.01")

    def test_final_uses_rounded_commission(self):
        amounts = calculate_commission(Decimal("333.33"), Decimal("3"), Decimal("50"))
        # 9.9999 -> 10.00, then half of the rounded amount
        assert amounts.commission_amount == Decimal("10.00")
        assert amounts.final_commission == Decimal("5.00")

    def test_zero_rate_and_zero_split(self):
        assert calculate_commission(1000, 0, 100).final_commission == Decimal("0.00")
        assert calculate_commission(1000, 5, 0).final_commission == Decimal("0.00")

    def test_float_inputs_do_not_leak_binary_error(self):
        amounts = calculate_commission(0.1 + 0.2, 100, 100)
        assert amounts.commission_amount == Decimal("0.30")

    @pytest.mark.parametrize(
        "sale,rate,split",
        [
            ("200000", "3", "100"),
            ("987654.32", "2.75", "60"),
            ("1.01", "99.99", "0.01"),
            ("45000", "7.5", "33.33"),
        ],
    )
    def test_derivation_invariant(self, sale, rate, split):
        sale, rate, split = Decimal(sale), Decimal(rate), Decimal(split)
        amounts = calculate_commission(sale, rate, split)
        assert abs(amounts.commission_amount - sale * rate / 100) <= Decimal("0.005")
        assert abs(amounts.final_commission - amounts.commission_amount * split / 100) <= Decimal("0.005")


class TestStoredAmounts:

    def test_derives_cents(self):
        derived = derive_stored_amounts(20_000_000, 300, 5000)
        assert derived == {"commission_amount_cents": 600_000, "final_commission_cents": 300_000}

    def test_recalculation_is_idempotent(self):
        first = derive_stored_amounts(123_457, 275, 3333)
        second = derive_stored_amounts(123_457, 275, 3333)
        assert first == second

    def test_unit_conversions(self):
        assert to_cents(Decimal("1234.565")) == 123457
        assert from_cents(123457) == Decimal("1234.57")
        assert percent_to_bps(Decimal("2.75")) == 275
        assert bps_to_percent(10000) == Decimal("100.00")
        assert from_cents(None) is None
