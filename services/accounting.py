"""
Accounting engine for weighted-average-cost currency inventory.
Pure functions with no I/O: buy-side average update, sell-side profit and
the stock sufficiency check. All arithmetic is done in Decimal.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Tuple

from exceptions import InsufficientStockError, ValidationError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def to_decimal(value: Any, field: str) -> Decimal:
    """
    Convert an external value into Decimal.

    This is the one conversion point between caller input and the ledger's
    canonical numeric type. Floats go through ``str`` so 0.1 becomes
    Decimal("0.1") rather than its binary expansion.

    Args:
        value: str, int, float or Decimal
        field: Field name reported on failure

    Returns:
        Finite Decimal value

    Raises:
        ValidationError: If the value is missing, not numeric, NaN or infinite
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field, "is required")
    if isinstance(value, bool):
        raise ValidationError(field, "must be a number")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(field, f"must be a number, got {value!r}")
    if not result.is_finite():
        raise ValidationError(field, "must be finite")
    return result


def require_positive(value: Any, field: str) -> Decimal:
    """Convert to Decimal and reject zero or negative values."""
    result = to_decimal(value, field)
    if result <= ZERO:
        raise ValidationError(field, "must be greater than zero")
    return result


def update_average_on_buy(
    current_amount: Decimal,
    current_avg_price: Decimal,
    incoming_amount: Decimal,
    incoming_price: Decimal,
) -> Tuple[Decimal, Decimal]:
    """
    Blend a purchase into the running weighted-average cost.

    new_amount    = current_amount + incoming_amount
    new_avg_price = (current_amount * current_avg_price
                     + incoming_amount * incoming_price) / new_amount

    With nothing held the result is exactly incoming_price.

    Args:
        current_amount: Units currently held (>= 0)
        current_avg_price: Average cost of the units held
        incoming_amount: Units purchased (> 0)
        incoming_price: Price per purchased unit (> 0)

    Returns:
        Tuple of (new_amount, new_avg_price)
    """
    if current_amount < ZERO:
        raise ValidationError("current_amount", "must not be negative")
    if incoming_amount <= ZERO:
        raise ValidationError("amount", "must be greater than zero")
    if incoming_price <= ZERO:
        raise ValidationError("rate", "must be greater than zero")

    new_amount = current_amount + incoming_amount
    if current_amount == ZERO:
        return new_amount, incoming_price

    total_cost = current_amount * current_avg_price + incoming_amount * incoming_price
    return new_amount, total_cost / new_amount


def compute_sell_profit(sell_amount: Decimal, sell_rate: Decimal, avg_buy_price: Decimal) -> Decimal:
    """
    Realized profit of a sale against the average cost basis.
    Positive is a gain, negative a loss.
    """
    return sell_amount * (sell_rate - avg_buy_price)


def validate_sell(requested_amount: Decimal, available_amount: Decimal) -> None:
    """
    Check that holdings cover a sale. No partial fills.

    Raises:
        InsufficientStockError: If requested_amount exceeds available_amount
    """
    if requested_amount > available_amount:
        logger.warning(
            f"Sell rejected: requested {requested_amount}, available {available_amount}"
        )
        raise InsufficientStockError(requested_amount, available_amount)


def position_value(amount: Decimal, avg_buy_price: Decimal) -> Decimal:
    """Value of a position at cost."""
    return amount * avg_buy_price
