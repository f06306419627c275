"""
Reset and reconciliation for the currency ledger.

reset_all() wipes history and zeroes every position in one unit of work.
find_drift() replays the transaction log through the accounting engine and
reports where the stored positions and daily stats disagree with it, which
happens after administrative corrections to the log.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from config import Settings, get_settings
from models import DailyStat, InventoryPosition, TransactionType
from repositories.base import LedgerStore
from services.accounting import ZERO, compute_sell_profit, update_average_on_buy

logger = logging.getLogger(__name__)


@dataclass
class DriftInfo:
    """One disagreement between a stored aggregate and the replayed log."""
    drift_kind: str  # position, transaction, daily_stat
    key: str
    field: str
    expected: Any
    actual: Any

    @property
    def description(self) -> str:
        return f"{self.drift_kind} {self.key}: {self.field} expected {self.expected}, found {self.actual}"


@dataclass
class ReconciliationReport:
    """Result of a drift check."""
    checked_currencies: int = 0
    checked_transactions: int = 0
    checked_stats: int = 0
    drifts: List[DriftInfo] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.drifts


class ReconciliationService:
    """Bulk reset and consistency checks over the whole ledger."""

    def __init__(
        self,
        store: LedgerStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.store = store
        self.settings = settings or get_settings()
        self._clock = clock

    def reset_all(self) -> None:
        """
        Zero every position, delete all transactions and zero today's stat.

        Each position's avg_buy_price is re-seeded from its currency's current
        rate. Destructive and irreversible; callers confirm before invoking.
        Calling it twice leaves the same state as calling it once.
        """
        with self.store.atomic():
            now = self._clock()
            currencies = self.store.list_currencies()
            for currency in currencies:
                position = self.store.get_position(currency.id, for_update=True)
                if position is None:
                    position = InventoryPosition(currency_id=currency.id)
                position.apply(ZERO, currency.current_rate, now)
                self.store.upsert_position(position)

            deleted = self.store.delete_all_transactions()
            self.store.upsert_daily_stat(DailyStat(
                date=now.date().isoformat(),
                profit=ZERO,
                transaction_count=0
            ))

        logger.info(
            f"Inventory reset: {len(currencies)} positions zeroed, {deleted} transactions deleted"
        )

    def find_drift(self) -> ReconciliationReport:
        """
        Replay the transaction log oldest-first and compare with stored state.

        Checks, per currency: held amount, average buy price (when anything
        is held), total value, and each SELL's recorded profit. Daily stats
        are checked for every date that has transactions, plus today.
        """
        report = ReconciliationReport()

        with self.store.atomic():
            currencies = self.store.list_currencies()
            positions = {p.currency_id: p for p in self.store.list_positions()}
            transactions = list(reversed(self.store.list_transactions()))
            stats = {s.date: s for s in self.store.list_daily_stats()}

        by_currency = defaultdict(list)
        for tx in transactions:
            by_currency[tx.currency_id].append(tx)

        expected_profit: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        expected_count: Dict[str, int] = defaultdict(int)

        for currency in currencies:
            report.checked_currencies += 1
            amount = ZERO
            avg_price = currency.current_rate
            for tx in by_currency.get(currency.id, []):
                report.checked_transactions += 1
                day = tx.created_at.date().isoformat()
                if tx.type == TransactionType.BUY:
                    amount, avg_price = update_average_on_buy(amount, avg_price, tx.amount, tx.rate)
                    if self.settings.count_buys_in_daily_stat:
                        expected_count[day] += 1
                else:
                    profit = compute_sell_profit(tx.amount, tx.rate, avg_price)
                    if profit != tx.profit:
                        report.drifts.append(DriftInfo(
                            "transaction", str(tx.id), "profit", profit, tx.profit
                        ))
                    if tx.amount > amount:
                        # Oversold after a correction; continue from empty holdings
                        report.drifts.append(DriftInfo(
                            "transaction", str(tx.id), "amount", f"<= {amount}", tx.amount
                        ))
                        amount = ZERO
                    else:
                        amount = amount - tx.amount
                    expected_profit[day] += tx.profit
                    expected_count[day] += 1

            self._compare_position(report, currency.code, positions.get(currency.id), amount, avg_price)

        days = set(expected_count) | {self._clock().date().isoformat()}
        for day in sorted(days):
            stat = stats.get(day)
            profit = expected_profit[day]
            count = expected_count[day]
            if stat is None:
                if count:
                    report.drifts.append(DriftInfo("daily_stat", day, "transaction_count", count, None))
                continue
            report.checked_stats += 1
            if stat.profit != profit:
                report.drifts.append(DriftInfo("daily_stat", day, "profit", profit, stat.profit))
            if stat.transaction_count != count:
                report.drifts.append(DriftInfo(
                    "daily_stat", day, "transaction_count", count, stat.transaction_count
                ))

        if report.drifts:
            for drift in report.drifts:
                logger.warning(f"Ledger drift: {drift.description}")
        else:
            logger.info(
                f"Ledger consistent: {report.checked_currencies} currencies, "
                f"{report.checked_transactions} transactions"
            )
        return report

    @staticmethod
    def _compare_position(
        report: ReconciliationReport,
        code: str,
        position: Optional[InventoryPosition],
        amount: Decimal,
        avg_price: Decimal
    ) -> None:
        if position is None:
            report.drifts.append(DriftInfo("position", code, "amount", amount, None))
            return
        if position.amount != amount:
            report.drifts.append(DriftInfo("position", code, "amount", amount, position.amount))
        # The average is only meaningful while something is held
        if amount > ZERO and position.avg_buy_price != avg_price:
            report.drifts.append(DriftInfo(
                "position", code, "avg_buy_price", avg_price, position.avg_buy_price
            ))
        if position.total_value != position.amount * position.avg_buy_price:
            report.drifts.append(DriftInfo(
                "position", code, "total_value",
                position.amount * position.avg_buy_price, position.total_value
            ))
