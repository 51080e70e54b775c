"""
Tests for the weighted-average Costing Engine.

Covers:
- First receipt of an uncosted product
- Weighted average of old stock and a receipt
- Half-up rounding to 2 decimal places
- Input validation
- Property: the result lies between the two input costs
"""

from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from warehouse_engines.costing import (
    extended_cost,
    recompute_average_cost,
    round_money,
)
from warehouse_kernel.exceptions import InvalidPriceError, InvalidQuantityError

money = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("100000.00"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


class TestRecomputeAverageCost:
    """Weighted-average cost after a receipt."""

    def test_weighted_average_of_old_stock_and_receipt(self):
        """10 @ 5.00 plus 5 @ 8.00 averages to 6.00."""
        assert recompute_average_cost(10, Decimal("5.00"), 5, Decimal("8.00")) == Decimal("6.00")

    def test_no_prior_stock_takes_received_cost(self):
        assert recompute_average_cost(0, None, 10, Decimal("4.50")) == Decimal("4.50")

    def test_zero_quantity_with_stale_cost_takes_received_cost(self):
        assert recompute_average_cost(0, Decimal("9.99"), 3, Decimal("2.00")) == Decimal("2.00")

    def test_stock_without_cost_takes_received_cost(self):
        """Stock-in lots carry no cost; the first costed receipt sets it."""
        assert recompute_average_cost(7, None, 3, Decimal("2.00")) == Decimal("2.00")

    def test_result_rounds_half_up(self):
        # (1 * 1.00 + 2 * 1.01) / 3 = 1.00666... -> 1.01
        assert recompute_average_cost(1, Decimal("1.00"), 2, Decimal("1.01")) == Decimal("1.01")
        # (1 * 0.01 + 1 * 0.02) / 2 = 0.015 -> 0.02
        assert recompute_average_cost(1, Decimal("0.01"), 1, Decimal("0.02")) == Decimal("0.02")

    def test_received_cost_is_rounded(self):
        assert recompute_average_cost(0, None, 1, Decimal("3.145")) == Decimal("3.15")

    @pytest.mark.parametrize("quantity", [0, -1, None])
    def test_non_positive_received_quantity_rejected(self, quantity):
        with pytest.raises(InvalidQuantityError):
            recompute_average_cost(10, Decimal("5.00"), quantity, Decimal("8.00"))

    def test_negative_cost_rejected(self):
        with pytest.raises(InvalidPriceError):
            recompute_average_cost(10, Decimal("5.00"), 5, Decimal("-0.01"))

    @given(
        old_quantity=st.integers(min_value=1, max_value=100_000),
        old_cost=money,
        received_quantity=st.integers(min_value=1, max_value=100_000),
        received_cost=money,
    )
    @settings(max_examples=200)
    def test_average_matches_formula_and_is_bounded(
        self, old_quantity, old_cost, received_quantity, received_cost,
    ):
        result = recompute_average_cost(old_quantity, old_cost, received_quantity, received_cost)

        expected = round_money(
            (old_cost * old_quantity + received_cost * received_quantity)
            / (old_quantity + received_quantity)
        )
        assert result == expected
        assert min(old_cost, received_cost) <= result <= max(old_cost, received_cost)


class TestMoneyHelpers:

    def test_round_money_half_up(self):
        assert round_money(Decimal("2.005")) == Decimal("2.01")
        assert round_money(Decimal("2.004")) == Decimal("2.00")

    def test_extended_cost(self):
        assert extended_cost(Decimal("4.50"), 10) == Decimal("45.00")
        assert extended_cost(Decimal("0.33"), 3) == Decimal("0.99")
