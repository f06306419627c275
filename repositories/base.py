"""
Ledger store port.

The accounting services depend only on this protocol; the SQL and in-memory
backends are independent implementations of it.
"""

from typing import ContextManager, List, Optional, Protocol

from models import Currency, DailyStat, InventoryPosition, Transaction


class LedgerStore(Protocol):
    """
    Capability interface for the four ledger record types.

    Every call made inside ``atomic()`` belongs to one all-or-nothing unit:
    it commits when the block exits normally and rolls back on any
    exception. Calls made outside a unit are committed individually.
    Reads inside a unit see that unit's writes.
    """

    def atomic(self) -> ContextManager["LedgerStore"]:
        """Open (or join) a unit of work."""

    # Currencies
    def get_currency(self, currency_id: int) -> Optional[Currency]:
        """Get a currency by ID."""

    def get_currency_by_code(self, code: str) -> Optional[Currency]:
        """Get a currency by its unique code."""

    def list_currencies(self) -> List[Currency]:
        """List all currencies ordered by ID."""

    def add_currency(self, currency: Currency) -> Currency:
        """Insert a currency; raises ConflictError on a duplicate code."""

    def save_currency(self, currency: Currency) -> Currency:
        """Persist changes to an existing currency."""

    # Inventory positions
    def get_position(self, currency_id: int, for_update: bool = False) -> Optional[InventoryPosition]:
        """Get the position for a currency."""

    def list_positions(self) -> List[InventoryPosition]:
        """List all positions ordered by currency ID."""

    def upsert_position(self, position: InventoryPosition) -> InventoryPosition:
        """Insert or update the position keyed by currency ID."""

    # Transactions
    def add_transaction(self, transaction: Transaction) -> Transaction:
        """Insert a transaction; the store assigns its ID."""

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get a transaction by ID."""

    def list_transactions(
        self, currency_id: Optional[int] = None, limit: Optional[int] = None
    ) -> List[Transaction]:
        """List transactions newest first, optionally for one currency."""

    def save_transaction(self, transaction: Transaction) -> Transaction:
        """Persist changes to an existing transaction."""

    def delete_transaction(self, transaction_id: int) -> bool:
        """Delete one transaction; returns False if it did not exist."""

    def delete_all_transactions(self) -> int:
        """Delete every transaction; returns the number deleted."""

    # Daily stats
    def get_daily_stat(self, stat_date: str) -> Optional[DailyStat]:
        """Get the stat row for an ISO date."""

    def upsert_daily_stat(self, stat: DailyStat) -> DailyStat:
        """Insert or update the stat row keyed by date."""

    def list_daily_stats(self, days: Optional[int] = None) -> List[DailyStat]:
        """List stat rows, most recent date first."""


__all__ = ["LedgerStore"]
