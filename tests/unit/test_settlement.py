"""Tests for the settlement calculator."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.assignx.lifecycle import (
    calculate_settlement,
    default_rate_and_count,
    split_quote,
    to_money,
    urgency_tier_for,
)
from src.assignx.models.enums import ComplexityTier, UrgencyTier

pytestmark = pytest.mark.unit


class TestCalculateSettlement:
    def test_standard_easy_split(self):
        """10 units at 1000 split 65/15/20."""
        settlement = calculate_settlement(Decimal("1000"), 10, UrgencyTier.STANDARD, ComplexityTier.EASY)

        assert settlement.client_quote == Decimal("10000.00")
        assert settlement.doer_payout == Decimal("6500.00")
        assert settlement.supervisor_commission == Decimal("1500.00")
        assert settlement.platform_fee == Decimal("2000.00")

    def test_same_inputs_give_same_outputs(self):
        first = calculate_settlement(Decimal("500"), 1000, UrgencyTier.HOURS_48, ComplexityTier.MEDIUM)
        second = calculate_settlement(Decimal("500"), 1000, UrgencyTier.HOURS_48, ComplexityTier.MEDIUM)

        assert first == second

    def test_multipliers_compound(self):
        # 100 * 2 * 1.5 (24h) * 1.5 (hard)
        settlement = calculate_settlement("100", 2, "24h", "hard")

        assert settlement.client_quote == Decimal("450.00")

    def test_rounding_remainder_goes_to_platform(self):
        settlement = split_quote(Decimal("0.03"))

        # 0.0195 -> 0.02 and 0.0045 -> 0.00, platform absorbs the rest
        assert settlement.doer_payout == Decimal("0.02")
        assert settlement.supervisor_commission == Decimal("0.00")
        assert settlement.platform_fee == Decimal("0.01")

    def test_zero_count_prices_at_zero(self):
        settlement = calculate_settlement(Decimal("10"), 0, UrgencyTier.STANDARD, ComplexityTier.EASY)

        assert settlement.client_quote == Decimal("0.00")
        assert settlement.platform_fee == Decimal("0.00")

    @pytest.mark.parametrize(
        ("base_rate", "count"),
        [(Decimal("-1"), 1), (Decimal("10"), -1)],
    )
    def test_negative_inputs_rejected(self, base_rate, count):
        with pytest.raises(ValueError):
            calculate_settlement(base_rate, count, UrgencyTier.STANDARD, ComplexityTier.EASY)

    def test_unknown_tier_rejected(self):
        with pytest.raises(ValueError):
            calculate_settlement(Decimal("10"), 1, "next-week", ComplexityTier.EASY)

    def test_as_dict_uses_strings(self):
        settlement = split_quote(Decimal("100"))

        assert settlement.as_dict() == {
            "client_quote": "100.00",
            "doer_payout": "65.00",
            "supervisor_commission": "15.00",
            "platform_fee": "20.00",
        }


class TestSettlementProperties:
    @given(
        base_rate=st.decimals(min_value=0, max_value=10_000, places=2, allow_nan=False),
        count=st.integers(min_value=0, max_value=100_000),
        urgency=st.sampled_from(list(UrgencyTier)),
        complexity=st.sampled_from(list(ComplexityTier)),
    )
    def test_shares_add_up_to_quote(self, base_rate, count, urgency, complexity):
        settlement = calculate_settlement(base_rate, count, urgency, complexity)

        total = settlement.doer_payout + settlement.supervisor_commission + settlement.platform_fee
        assert total == settlement.client_quote
        assert min(settlement.doer_payout, settlement.supervisor_commission, settlement.platform_fee) >= 0

    @given(quote=st.decimals(min_value=0, max_value=1_000_000, places=2, allow_nan=False))
    def test_split_never_loses_a_cent(self, quote):
        settlement = split_quote(quote)

        assert settlement.client_quote == quote
        assert (
            settlement.doer_payout + settlement.supervisor_commission + settlement.platform_fee
            == quote
        )


class TestToMoney:
    def test_rounds_half_up(self):
        assert to_money(Decimal("2.675")) == Decimal("2.68")
        assert to_money(Decimal("2.665")) == Decimal("2.67")

    def test_float_goes_through_string(self):
        assert to_money(0.1) == Decimal("0.10")


class TestUrgencyTierFor:
    now = datetime(2026, 3, 2, 9, 0)

    @pytest.mark.parametrize(
        ("hours", "expected"),
        [
            (12, UrgencyTier.HOURS_24),
            (24, UrgencyTier.HOURS_24),
            (36, UrgencyTier.HOURS_48),
            (60, UrgencyTier.HOURS_72),
            (96, UrgencyTier.STANDARD),
        ],
    )
    def test_tier_from_hours_left(self, hours, expected):
        assert urgency_tier_for(self.now + timedelta(hours=hours), self.now) == expected

    def test_no_deadline_is_standard(self):
        assert urgency_tier_for(None, self.now) == UrgencyTier.STANDARD


class TestDefaultRateAndCount:
    pricing = {
        "price_per_word": Decimal("0.50"),
        "price_per_page": Decimal("150"),
        "minimum_base_price": Decimal("500"),
    }

    def test_word_count_wins(self):
        assert default_rate_and_count(2000, 8, **self.pricing) == (Decimal("0.50"), 2000)

    def test_page_count_used_without_words(self):
        assert default_rate_and_count(None, 8, **self.pricing) == (Decimal("150"), 8)

    def test_flat_minimum_without_size(self):
        assert default_rate_and_count(None, None, **self.pricing) == (Decimal("500"), 1)
