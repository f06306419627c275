"""
Repositories package for the currency ledger.
Provides the LedgerStore port, its SQL and in-memory backends, and the
per-entity data access classes used by the SQL backend.
"""

from repositories.base import LedgerStore
from repositories.currency_repository import CurrencyRepository
from repositories.inventory_repository import InventoryRepository
from repositories.transaction_repository import TransactionRepository
from repositories.daily_stat_repository import DailyStatRepository
from repositories.sql_store import SqlLedgerStore
from repositories.memory_store import InMemoryLedgerStore
from repositories.factory import create_ledger_store

__all__ = [
    'LedgerStore',
    'CurrencyRepository',
    'InventoryRepository',
    'TransactionRepository',
    'DailyStatRepository',
    'SqlLedgerStore',
    'InMemoryLedgerStore',
    'create_ledger_store',
]
