"""
Accounting engine tests

Weighted-average update, sell profit and stock sufficiency.
"""

from decimal import Decimal

import pytest

from exceptions import InsufficientStockError, ValidationError
from services.accounting import (
    ZERO,
    compute_sell_profit,
    position_value,
    require_positive,
    to_decimal,
    update_average_on_buy,
    validate_sell,
)


class TestUpdateAverageOnBuy:
    """Weighted-average cost on purchase"""

    def test_two_buys_blend_by_amount(self):
        amount, avg = update_average_on_buy(ZERO, Decimal("80"), Decimal("100"), Decimal("80.00"))
        amount, avg = update_average_on_buy(amount, avg, Decimal("50"), Decimal("83.00"))

        assert amount == Decimal("150")
        assert avg == Decimal("81.00")

    def test_matches_sum_formula_for_many_buys(self):
        buys = [("10", "82.10"), ("25.5", "83.40"), ("7", "81.95"), ("120", "82.875")]
        amount, avg = ZERO, Decimal("1")
        for qty, price in buys:
            amount, avg = update_average_on_buy(amount, avg, Decimal(qty), Decimal(price))

        expected = sum(Decimal(q) * Decimal(p) for q, p in buys) / sum(Decimal(q) for q, _ in buys)
        assert amount == sum(Decimal(q) for q, _ in buys)
        assert abs(avg - expected) < Decimal("1e-20")

    def test_zero_holdings_takes_incoming_price_exactly(self):
        """Nothing held: the stale average is ignored, no division artifacts"""
        amount, avg = update_average_on_buy(ZERO, Decimal("999.99"), Decimal("3"), Decimal("0.333"))

        assert amount == Decimal("3")
        assert avg == Decimal("0.333")
        assert str(avg) == "0.333"

    def test_buy_at_same_price_keeps_average(self):
        _, avg = update_average_on_buy(Decimal("40"), Decimal("90.12"), Decimal("60"), Decimal("90.12"))
        assert avg == Decimal("90.12")

    @pytest.mark.parametrize("amount,price", [("0", "80"), ("-1", "80"), ("10", "0"), ("10", "-5")])
    def test_rejects_non_positive_incoming(self, amount, price):
        with pytest.raises(ValidationError):
            update_average_on_buy(ZERO, Decimal("80"), Decimal(amount), Decimal(price))

    def test_rejects_negative_holdings(self):
        with pytest.raises(ValidationError, match="current_amount"):
            update_average_on_buy(Decimal("-1"), Decimal("80"), Decimal("1"), Decimal("80"))


class TestSellProfit:
    """Realized profit against the average cost"""

    def test_gain(self):
        assert compute_sell_profit(Decimal("40"), Decimal("90.00"), Decimal("80.00")) == Decimal("400.00")

    def test_loss_is_negative(self):
        assert compute_sell_profit(Decimal("10"), Decimal("79.50"), Decimal("81")) == Decimal("-15.00")

    def test_at_cost_is_zero(self):
        assert compute_sell_profit(Decimal("10"), Decimal("81"), Decimal("81")) == ZERO


class TestValidateSell:
    """Stock sufficiency check"""

    def test_exact_amount_allowed(self):
        validate_sell(Decimal("60"), Decimal("60"))

    def test_oversell_rejected_with_available(self):
        with pytest.raises(InsufficientStockError) as exc_info:
            validate_sell(Decimal("100"), Decimal("60"))

        assert exc_info.value.available == Decimal("60")
        assert exc_info.value.requested == Decimal("100")
        assert "60" in str(exc_info.value)


class TestToDecimal:
    """Input conversion"""

    def test_float_goes_through_str(self):
        assert to_decimal(0.1, "amount") == Decimal("0.1")

    def test_string_is_stripped(self):
        assert to_decimal(" 83.45 ", "rate") == Decimal("83.45")

    def test_decimal_passthrough(self):
        value = Decimal("1.50")
        assert to_decimal(value, "rate") is value

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", True, "NaN", "Infinity", float("inf")])
    def test_rejects_bad_input(self, value):
        with pytest.raises(ValidationError) as exc_info:
            to_decimal(value, "amount")
        assert exc_info.value.field == "amount"

    def test_require_positive(self):
        assert require_positive("5", "amount") == Decimal("5")
        with pytest.raises(ValidationError, match="greater than zero"):
            require_positive("0", "amount")


def test_position_value():
    assert position_value(Decimal("150"), Decimal("81")) == Decimal("12150")
