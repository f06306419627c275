"""
Column types shared by the ledger tables.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator


class DecimalText(TypeDecorator):
    """
    Store Decimal values as their exact string form.

    SQLite has no native decimal type and SQLAlchemy's Numeric round-trips
    through float there, so amounts, rates and profits are kept as text.
    """

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return str(value)

    def process_result_value(self, value, dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return Decimal(value)
