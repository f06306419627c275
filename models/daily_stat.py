"""
DailyStat model - realized profit aggregated per calendar date.
"""

from typing import Optional
from decimal import Decimal
from sqlmodel import SQLModel, Field

from models.types import DecimalText


class DailyStat(SQLModel, table=True):
    """One row per ISO date ("YYYY-MM-DD") with cumulative realized profit."""
    __tablename__ = "daily_stat"

    id: Optional[int] = Field(default=None, primary_key=True)
    date: str = Field(index=True, unique=True)
    profit: Decimal = Field(default=Decimal("0"), sa_type=DecimalText, nullable=False)
    transaction_count: int = Field(default=0)
