"""
Currency model - a foreign currency held in inventory.
"""

from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from models.types import DecimalText


class Currency(SQLModel, table=True):
    """Represents a tradable currency and its current market rate."""
    __tablename__ = "currency"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True, unique=True)  # e.g., "USD", "EUR", "JPY"
    name: str  # e.g., "US Dollar"
    country: str  # e.g., "United States"
    current_rate: Decimal = Field(sa_type=DecimalText, nullable=False)  # In base currency units
    last_updated: datetime = Field(default_factory=datetime.now, sa_type=DateTime)  # Naive local time
