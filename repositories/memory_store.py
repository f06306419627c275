"""
In-memory ledger store.
Keeps detached copies of the SQLModel records in dictionaries; useful for
tests and throwaway sessions. A re-entrant lock serializes units of work and
a snapshot taken at the start of each unit is restored on failure.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, TypeVar

from sqlmodel import SQLModel

from exceptions import ConflictError
from models import Currency, DailyStat, InventoryPosition, Transaction

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


def _clone(record: ModelT) -> ModelT:
    """Return an independent copy so callers never alias stored state."""
    return type(record)(**record.model_dump())


class InMemoryLedgerStore:
    """LedgerStore implementation held entirely in process memory."""

    def __init__(self):
        self._lock = threading.RLock()
        self._depth = 0
        self._currencies: Dict[int, Currency] = {}
        self._positions: Dict[int, InventoryPosition] = {}  # keyed by currency_id
        self._transactions: Dict[int, Transaction] = {}
        self._daily_stats: Dict[str, DailyStat] = {}  # keyed by ISO date
        self._sequences: Dict[str, int] = {
            "currency": 0,
            "position": 0,
            "transaction": 0,
            "daily_stat": 0,
        }

    def _next_id(self, name: str) -> int:
        self._sequences[name] += 1
        return self._sequences[name]

    def _snapshot(self) -> dict:
        # Stored records are replaced, never mutated, so shallow copies suffice
        return {
            "currencies": dict(self._currencies),
            "positions": dict(self._positions),
            "transactions": dict(self._transactions),
            "daily_stats": dict(self._daily_stats),
            "sequences": dict(self._sequences),
        }

    def _restore(self, snapshot: dict) -> None:
        self._currencies = snapshot["currencies"]
        self._positions = snapshot["positions"]
        self._transactions = snapshot["transactions"]
        self._daily_stats = snapshot["daily_stats"]
        self._sequences = snapshot["sequences"]

    @contextmanager
    def atomic(self) -> Iterator["InMemoryLedgerStore"]:
        """Hold the store lock for the unit; roll back to the snapshot on failure."""
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            snapshot = self._snapshot()
            self._depth = 1
            try:
                yield self
            except BaseException:
                self._restore(snapshot)
                logger.debug("In-memory unit of work rolled back")
                raise
            finally:
                self._depth = 0

    # ==================== Currencies ====================
    def get_currency(self, currency_id: int) -> Optional[Currency]:
        with self._lock:
            currency = self._currencies.get(currency_id)
            return _clone(currency) if currency else None

    def get_currency_by_code(self, code: str) -> Optional[Currency]:
        with self._lock:
            for currency in self._currencies.values():
                if currency.code == code:
                    return _clone(currency)
            return None

    def list_currencies(self) -> List[Currency]:
        with self._lock:
            return [_clone(self._currencies[key]) for key in sorted(self._currencies)]

    def add_currency(self, currency: Currency) -> Currency:
        with self._lock:
            if any(existing.code == currency.code for existing in self._currencies.values()):
                raise ConflictError("code", currency.code)
            stored = _clone(currency)
            stored.id = self._next_id("currency")
            self._currencies[stored.id] = stored
            return _clone(stored)

    def save_currency(self, currency: Currency) -> Currency:
        with self._lock:
            stored = _clone(currency)
            self._currencies[stored.id] = stored
            return _clone(stored)

    # ==================== Inventory positions ====================
    def get_position(self, currency_id: int, for_update: bool = False) -> Optional[InventoryPosition]:
        with self._lock:
            position = self._positions.get(currency_id)
            return _clone(position) if position else None

    def list_positions(self) -> List[InventoryPosition]:
        with self._lock:
            return [_clone(self._positions[key]) for key in sorted(self._positions)]

    def upsert_position(self, position: InventoryPosition) -> InventoryPosition:
        with self._lock:
            stored = _clone(position)
            existing = self._positions.get(stored.currency_id)
            if existing is not None:
                stored.id = existing.id
            elif stored.id is None:
                stored.id = self._next_id("position")
            self._positions[stored.currency_id] = stored
            return _clone(stored)

    # ==================== Transactions ====================
    def add_transaction(self, transaction: Transaction) -> Transaction:
        with self._lock:
            stored = _clone(transaction)
            stored.id = self._next_id("transaction")
            self._transactions[stored.id] = stored
            return _clone(stored)

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            return _clone(transaction) if transaction else None

    def list_transactions(
        self, currency_id: Optional[int] = None, limit: Optional[int] = None
    ) -> List[Transaction]:
        with self._lock:
            rows = [
                tx for tx in self._transactions.values()
                if currency_id is None or tx.currency_id == currency_id
            ]
            rows.sort(key=lambda tx: (tx.created_at, tx.id), reverse=True)
            if limit is not None:
                rows = rows[:limit]
            return [_clone(tx) for tx in rows]

    def save_transaction(self, transaction: Transaction) -> Transaction:
        with self._lock:
            stored = _clone(transaction)
            self._transactions[stored.id] = stored
            return _clone(stored)

    def delete_transaction(self, transaction_id: int) -> bool:
        with self._lock:
            return self._transactions.pop(transaction_id, None) is not None

    def delete_all_transactions(self) -> int:
        with self._lock:
            count = len(self._transactions)
            self._transactions = {}
            return count

    # ==================== Daily stats ====================
    def get_daily_stat(self, stat_date: str) -> Optional[DailyStat]:
        with self._lock:
            stat = self._daily_stats.get(stat_date)
            return _clone(stat) if stat else None

    def upsert_daily_stat(self, stat: DailyStat) -> DailyStat:
        with self._lock:
            stored = _clone(stat)
            existing = self._daily_stats.get(stored.date)
            stored.id = existing.id if existing is not None else self._next_id("daily_stat")
            self._daily_stats[stored.date] = stored
            return _clone(stored)

    def list_daily_stats(self, days: Optional[int] = None) -> List[DailyStat]:
        with self._lock:
            dates = sorted(self._daily_stats, reverse=True)
            if days is not None:
                dates = dates[:days]
            return [_clone(self._daily_stats[key]) for key in dates]
