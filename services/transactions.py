"""
Transaction processor for currency buys and sells.
Each operation re-reads the current position inside one store unit of work,
runs the accounting engine, and persists the position, the transaction and
the day's statistics together.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, List, Optional

from config import Settings, get_settings
from exceptions import NotFoundError
from models import DailyStat, InventoryPosition, Transaction, TransactionType
from repositories.base import LedgerStore
from services.accounting import (
    ZERO,
    compute_sell_profit,
    require_positive,
    to_decimal,
    update_average_on_buy,
    validate_sell,
)

logger = logging.getLogger(__name__)


def _clean_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    notes = notes.strip()
    return notes or None


class TransactionProcessor:
    """
    Turns one buy or sell intent into a consistent set of persisted changes,
    or fails with nothing committed.
    """

    def __init__(
        self,
        store: LedgerStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.store = store
        self.settings = settings or get_settings()
        self._clock = clock

    def process_buy(
        self,
        currency_id: int,
        amount: Any,
        rate: Any,
        notes: Optional[str] = None
    ) -> Transaction:
        """
        Record a purchase of foreign currency.

        Args:
            currency_id: Currency being bought
            amount: Units bought (> 0)
            rate: Price paid per unit (> 0)
            notes: Optional free-text notes

        Returns:
            The created BUY Transaction (profit 0)

        Raises:
            ValidationError: amount or rate not positive
            NotFoundError: currency does not exist
        """
        amount = require_positive(amount, "amount")
        rate = require_positive(rate, "rate")
        notes = _clean_notes(notes)

        with self.store.atomic():
            currency = self.store.get_currency(currency_id)
            if currency is None:
                raise NotFoundError("Currency", currency_id)

            now = self._clock()
            position = self.store.get_position(currency_id, for_update=True)
            if position is None:
                position = InventoryPosition(
                    currency_id=currency_id,
                    amount=ZERO,
                    avg_buy_price=rate,
                    total_value=ZERO,
                    last_updated=now
                )

            new_amount, new_avg_price = update_average_on_buy(
                position.amount, position.avg_buy_price, amount, rate
            )
            position.apply(new_amount, new_avg_price, now)
            self.store.upsert_position(position)

            transaction = self.store.add_transaction(Transaction(
                currency_id=currency_id,
                type=TransactionType.BUY,
                amount=amount,
                rate=rate,
                total=amount * rate,
                notes=notes,
                profit=ZERO,
                created_at=now
            ))

            if self.settings.count_buys_in_daily_stat:
                self._fold_into_daily_stat(now.date(), ZERO)

        logger.info(
            f"BUY {amount} {currency.code} @ {rate}: holding {new_amount}, avg {new_avg_price}"
        )
        return transaction

    def process_sell(
        self,
        currency_id: int,
        amount: Any,
        rate: Any,
        notes: Optional[str] = None
    ) -> Transaction:
        """
        Record a sale of foreign currency and realize its profit.

        The average buy price is carried forward unchanged; only the held
        amount shrinks.

        Args:
            currency_id: Currency being sold
            amount: Units sold (> 0, at most the amount held)
            rate: Price received per unit (> 0)
            notes: Optional free-text notes

        Returns:
            The created SELL Transaction with its signed profit

        Raises:
            ValidationError: amount or rate not positive
            NotFoundError: no position exists for the currency
            InsufficientStockError: amount exceeds holdings
        """
        amount = require_positive(amount, "amount")
        rate = require_positive(rate, "rate")
        notes = _clean_notes(notes)

        with self.store.atomic():
            position = self.store.get_position(currency_id, for_update=True)
            if position is None:
                raise NotFoundError("InventoryPosition", currency_id)

            validate_sell(amount, position.amount)

            now = self._clock()
            profit = compute_sell_profit(amount, rate, position.avg_buy_price)
            new_amount = position.amount - amount
            position.apply(new_amount, position.avg_buy_price, now)
            self.store.upsert_position(position)

            transaction = self.store.add_transaction(Transaction(
                currency_id=currency_id,
                type=TransactionType.SELL,
                amount=amount,
                rate=rate,
                total=amount * rate,
                notes=notes,
                profit=profit,
                created_at=now
            ))

            self._fold_into_daily_stat(now.date(), profit)

        logger.info(
            f"SELL {amount} of currency {currency_id} @ {rate}: profit {profit}, holding {new_amount}"
        )
        return transaction

    def _fold_into_daily_stat(self, day: date, profit: Decimal) -> DailyStat:
        """Add one transaction's profit to the stat row for its date."""
        stat_date = day.isoformat()
        stat = self.store.get_daily_stat(stat_date)
        if stat is None:
            stat = DailyStat(date=stat_date, profit=profit, transaction_count=1)
        else:
            stat.profit = stat.profit + profit
            stat.transaction_count = stat.transaction_count + 1
        return self.store.upsert_daily_stat(stat)

    # ==================== Queries ====================
    def list_transactions(
        self,
        currency_id: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[Transaction]:
        """List transactions newest first, optionally for one currency."""
        return self.store.list_transactions(currency_id=currency_id, limit=limit)

    def get_transaction(self, transaction_id: int) -> Transaction:
        """Get one transaction or raise NotFoundError."""
        transaction = self.store.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    # ==================== Administrative corrections ====================
    def update_transaction(
        self,
        transaction_id: int,
        amount: Any = None,
        rate: Any = None,
        notes: Optional[str] = None,
        profit: Any = None
    ) -> Transaction:
        """
        Correct a recorded transaction in place.
        Only fields that are provided (not None) change; total is recomputed
        when amount or rate changes.

        Positions and daily stats are not recomputed. Run
        ReconciliationService.find_drift() afterwards to see the effect.
        """
        with self.store.atomic():
            transaction = self.get_transaction(transaction_id)
            if amount is not None:
                transaction.amount = require_positive(amount, "amount")
            if rate is not None:
                transaction.rate = require_positive(rate, "rate")
            if amount is not None or rate is not None:
                transaction.total = transaction.amount * transaction.rate
            if notes is not None:
                transaction.notes = _clean_notes(notes)
            if profit is not None:
                transaction.profit = to_decimal(profit, "profit")
            transaction = self.store.save_transaction(transaction)

        logger.warning(
            f"Transaction {transaction_id} corrected; positions and daily stats were not recomputed"
        )
        return transaction

    def delete_transaction(self, transaction_id: int) -> None:
        """
        Remove a transaction from the log.
        Like update_transaction, this leaves positions and stats untouched.
        """
        with self.store.atomic():
            if not self.store.delete_transaction(transaction_id):
                raise NotFoundError("Transaction", transaction_id)

        logger.warning(
            f"Transaction {transaction_id} deleted; positions and daily stats were not recomputed"
        )
