"""
Statistics service for daily realized profit and inventory valuation.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, List, Optional, Union

from models import DailyStat
from repositories.base import LedgerStore
from services.accounting import ZERO, position_value

logger = logging.getLogger(__name__)


@dataclass
class PositionValuation:
    """One currency's holdings valued at cost and at the current rate."""
    currency_id: int
    code: str
    amount: Decimal
    avg_buy_price: Decimal
    current_rate: Decimal
    cost_value: Decimal
    market_value: Decimal
    unrealized_profit: Decimal
    unrealized_pct: Decimal  # (current_rate - avg_buy_price) / avg_buy_price * 100


@dataclass
class InventorySummary:
    """Dashboard totals across all currencies."""
    total_cost_value: Decimal
    total_market_value: Decimal
    total_unrealized_profit: Decimal
    currency_count: int
    held_currency_count: int
    today_profit: Decimal
    today_transaction_count: int
    positions: List[PositionValuation] = field(default_factory=list)


class StatsService:
    """Read-side queries over daily stats and positions."""

    def __init__(self, store: LedgerStore, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self._clock = clock

    def today(self) -> str:
        """Today's date in the stat key format (YYYY-MM-DD)."""
        return self._clock().date().isoformat()

    def get_today_stat(self) -> Optional[DailyStat]:
        """
        Get today's stat row.

        Returns:
            DailyStat, or None when nothing has been recorded today
        """
        return self.store.get_daily_stat(self.today())

    def get_stat(self, stat_date: Union[str, date]) -> Optional[DailyStat]:
        """Get the stat row for a date given as ISO string or date."""
        if isinstance(stat_date, datetime):
            stat_date = stat_date.date()
        if isinstance(stat_date, date):
            stat_date = stat_date.isoformat()
        return self.store.get_daily_stat(stat_date)

    def list_stats(self, days: Optional[int] = None) -> List[DailyStat]:
        """Get stat rows, most recent first."""
        return self.store.list_daily_stats(days=days)

    def get_inventory_summary(self) -> InventorySummary:
        """
        Value every position at cost and at the currency's current rate.
        Unrealized figures are informational; they never touch the ledger.
        """
        with self.store.atomic():
            currencies = self.store.list_currencies()
            positions = {p.currency_id: p for p in self.store.list_positions()}
            today_stat = self.store.get_daily_stat(self.today())

        valuations = []
        for currency in currencies:
            position = positions.get(currency.id)
            if position is None:
                continue
            cost_value = position_value(position.amount, position.avg_buy_price)
            market_value = position_value(position.amount, currency.current_rate)
            if position.avg_buy_price > ZERO:
                pct = (currency.current_rate - position.avg_buy_price) / position.avg_buy_price * 100
            else:
                pct = ZERO
            valuations.append(PositionValuation(
                currency_id=currency.id,
                code=currency.code,
                amount=position.amount,
                avg_buy_price=position.avg_buy_price,
                current_rate=currency.current_rate,
                cost_value=cost_value,
                market_value=market_value,
                unrealized_profit=market_value - cost_value,
                unrealized_pct=pct
            ))

        total_cost = sum((v.cost_value for v in valuations), ZERO)
        total_market = sum((v.market_value for v in valuations), ZERO)

        return InventorySummary(
            total_cost_value=total_cost,
            total_market_value=total_market,
            total_unrealized_profit=total_market - total_cost,
            currency_count=len(currencies),
            held_currency_count=sum(1 for v in valuations if v.amount > ZERO),
            today_profit=today_stat.profit if today_stat else ZERO,
            today_transaction_count=today_stat.transaction_count if today_stat else 0,
            positions=valuations
        )
