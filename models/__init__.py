"""
Database models for the currency ledger.
All SQLModel table definitions are centralized here.
"""

from models.currency import Currency
from models.inventory_position import InventoryPosition
from models.transaction import Transaction, TransactionType
from models.daily_stat import DailyStat

__all__ = [
    'Currency',
    'InventoryPosition',
    'Transaction',
    'TransactionType',
    'DailyStat',
]
