"""
Transaction model - an immutable buy/sell record for a currency.
"""

from enum import Enum
from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from models.types import DecimalText


class TransactionType(str, Enum):
    """Closed two-value tag for transaction direction."""
    BUY = "BUY"
    SELL = "SELL"


class Transaction(SQLModel, table=True):
    """Represents a buy/sell of a currency at an executed rate."""
    __tablename__ = "ledger_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    currency_id: int = Field(foreign_key="currency.id", index=True)
    type: TransactionType
    amount: Decimal = Field(sa_type=DecimalText, nullable=False)
    rate: Decimal = Field(sa_type=DecimalText, nullable=False)  # Price executed at
    total: Decimal = Field(sa_type=DecimalText, nullable=False)  # amount * rate, kept for audit
    notes: Optional[str] = Field(default=None)
    profit: Decimal = Field(default=Decimal("0"), sa_type=DecimalText, nullable=False)  # 0 for BUY
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime, index=True)  # Naive local time
