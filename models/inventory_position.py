"""
InventoryPosition model - current holdings and cost basis for one currency.
"""

from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from models.types import DecimalText


class InventoryPosition(SQLModel, table=True):
    """
    Materialized running aggregate of a currency's transactions.
    total_value is amount * avg_buy_price and is rewritten on every update.
    """
    __tablename__ = "inventory_position"

    id: Optional[int] = Field(default=None, primary_key=True)
    currency_id: int = Field(foreign_key="currency.id", unique=True, index=True)
    amount: Decimal = Field(default=Decimal("0"), sa_type=DecimalText, nullable=False)
    avg_buy_price: Decimal = Field(default=Decimal("0"), sa_type=DecimalText, nullable=False)
    total_value: Decimal = Field(default=Decimal("0"), sa_type=DecimalText, nullable=False)
    last_updated: datetime = Field(default_factory=datetime.now, sa_type=DateTime)  # Naive local time

    def apply(self, amount: Decimal, avg_buy_price: Decimal, when: datetime) -> None:
        """Set amount and cost basis, keeping total_value in sync."""
        self.amount = amount
        self.avg_buy_price = avg_buy_price
        self.total_value = amount * avg_buy_price
        self.last_updated = when
