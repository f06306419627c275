"""
Services package for the currency ledger.
Provides core business logic separated from presentation and data layers.
"""

from services.accounting import (
    to_decimal,
    require_positive,
    update_average_on_buy,
    compute_sell_profit,
    validate_sell,
    position_value,
)
from services.currency import CurrencyService, CurrencyHolding, DEFAULT_CURRENCIES
from services.transactions import TransactionProcessor
from services.stats import StatsService, InventorySummary, PositionValuation
from services.reconciliation import ReconciliationService, ReconciliationReport, DriftInfo
from services.market_rates import MarketRateService

__all__ = [
    # Accounting engine
    'to_decimal',
    'require_positive',
    'update_average_on_buy',
    'compute_sell_profit',
    'validate_sell',
    'position_value',
    # Services
    'CurrencyService',
    'CurrencyHolding',
    'DEFAULT_CURRENCIES',
    'TransactionProcessor',
    'StatsService',
    'InventorySummary',
    'PositionValuation',
    'ReconciliationService',
    'ReconciliationReport',
    'DriftInfo',
    'MarketRateService',
]
