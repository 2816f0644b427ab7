"""
Straight-line depreciation helper tests.

Pure functions only; no database.
"""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from inventory_modules.assets.helpers import (
    calculate_depreciation,
    months_in_use,
    straight_line_monthly,
)


class TestMonthsInUse:
    def test_same_month(self):
        assert months_in_use(date(2024, 6, 1), date(2024, 6, 30)) == 0

    def test_across_year(self):
        assert months_in_use(date(2024, 6, 15), date(2025, 2, 1)) == 8

    def test_future_acquisition_negative(self):
        assert months_in_use(date(2025, 3, 1), date(2025, 2, 1)) == -1


class TestStraightLineMonthly:
    def test_monthly_charge(self):
        assert straight_line_monthly(Decimal("1200000"), 48) == Decimal("25000")

    def test_zero_life(self):
        assert straight_line_monthly(Decimal("1200000"), 0) == Decimal("0")


class TestCalculateDepreciation:
    def test_eight_months_into_four_years(self):
        result = calculate_depreciation(
            Decimal("1200000"), 4, date(2024, 6, 1), date(2025, 2, 1),
        )
        assert result.economic_life_months == 48
        assert result.accumulated_depreciation == Decimal("200000.00")
        assert result.residual_value == Decimal("1000000.00")

    def test_capped_at_full_life(self):
        result = calculate_depreciation(
            Decimal("1200000"), 1, date(2020, 1, 1), date(2025, 2, 1),
        )
        assert result.accumulated_depreciation == Decimal("1200000.00")
        assert result.residual_value == Decimal("0.00")

    def test_zero_life_keeps_full_value(self):
        result = calculate_depreciation(
            Decimal("750000"), 0, date(2020, 1, 1), date(2025, 2, 1),
        )
        assert result.economic_life_months == 0
        assert result.accumulated_depreciation == Decimal("0.00")
        assert result.residual_value == Decimal("750000.00")

    def test_future_dated_not_negative(self):
        result = calculate_depreciation(
            Decimal("1000"), 2, date(2025, 5, 1), date(2025, 2, 1),
        )
        assert result.accumulated_depreciation == Decimal("0.00")
        assert result.residual_value == Decimal("1000.00")

    def test_half_up_rounding(self):
        # 1000 / 36 * 1 = 27.777... -> 27.78
        result = calculate_depreciation(
            Decimal("1000"), 3, date(2025, 1, 1), date(2025, 2, 1),
        )
        assert result.accumulated_depreciation == Decimal("27.78")
        assert result.residual_value == Decimal("972.22")

    @given(
        price=st.decimals(min_value=0, max_value=10**9, places=2),
        years=st.integers(min_value=0, max_value=50),
        elapsed=st.integers(min_value=-24, max_value=800),
    )
    def test_bounds(self, price, years, elapsed):
        acquired = date(2000, 1, 1)
        as_of = date(2000 + (elapsed // 12) if elapsed >= 0 else 1998, (elapsed % 12) + 1, 1)
        result = calculate_depreciation(price, years, acquired, as_of)
        assert Decimal("0") <= result.accumulated_depreciation <= price
        assert Decimal("0") <= result.residual_value <= price
        assert result.accumulated_depreciation + result.residual_value == price

    @pytest.mark.parametrize("years", [1, 4, 10])
    def test_fully_depreciated_at_end_of_life(self, years):
        result = calculate_depreciation(
            Decimal("999.99"), years, date(2010, 3, 1), date(2010 + years, 3, 1),
        )
        assert result.accumulated_depreciation == Decimal("999.99")
        assert result.residual_value == Decimal("0.00")
