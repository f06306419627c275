"""
Currency service for adding currencies, updating market rates and listing
holdings. Every new currency gets a zeroed inventory position seeded with
its creation rate.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, List, Optional

from config import Settings, get_settings
from exceptions import ConflictError, NotFoundError, ValidationError
from models import Currency, DailyStat, InventoryPosition
from repositories.base import LedgerStore
from services.accounting import ZERO, require_positive

logger = logging.getLogger(__name__)


# Sample book used to initialize an empty store (rates in base currency units)
DEFAULT_CURRENCIES = [
    {"code": "USD", "name": "US Dollar", "country": "United States", "rate": "83.45"},
    {"code": "EUR", "name": "Euro", "country": "European Union", "rate": "90.12"},
    {"code": "GBP", "name": "British Pound", "country": "United Kingdom", "rate": "105.78"},
    {"code": "JPY", "name": "Japanese Yen", "country": "Japan", "rate": "0.55"},
]


@dataclass
class CurrencyHolding:
    """A currency together with its inventory position."""
    currency: Currency
    position: Optional[InventoryPosition]

    @property
    def amount(self) -> Decimal:
        return self.position.amount if self.position else ZERO

    @property
    def avg_buy_price(self) -> Decimal:
        return self.position.avg_buy_price if self.position else ZERO

    @property
    def total_value(self) -> Decimal:
        return self.position.total_value if self.position else ZERO


def normalize_code(code: Optional[str]) -> str:
    """
    Normalize a currency code for storage and lookup.

    Examples:
        >>> normalize_code(" usd ")
        'USD'
    """
    if code is None or not code.strip():
        raise ValidationError("code", "is required")
    return code.strip().upper()


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, "is required")
    return value.strip()


class CurrencyService:
    """Service for currency master data and the inventory listing."""

    def __init__(
        self,
        store: LedgerStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.store = store
        self.settings = settings or get_settings()
        self._clock = clock

    def create_currency(self, code: str, name: str, country: str, rate: Any) -> CurrencyHolding:
        """
        Add a currency and its zeroed inventory position.

        Args:
            code: Unique currency code (case-insensitive, stored upper-case)
            name: Display name
            country: Issuing country or region
            rate: Current market rate (> 0)

        Returns:
            CurrencyHolding with amount 0 and avg_buy_price equal to rate

        Raises:
            ValidationError: Missing field or non-positive rate
            ConflictError: Code already exists
        """
        code = normalize_code(code)
        name = _require_text(name, "name")
        country = _require_text(country, "country")
        rate = require_positive(rate, "rate")

        with self.store.atomic():
            if self.store.get_currency_by_code(code) is not None:
                logger.warning(f"Currency code already exists: {code}")
                raise ConflictError("code", code)

            now = self._clock()
            currency = self.store.add_currency(Currency(
                code=code,
                name=name,
                country=country,
                current_rate=rate,
                last_updated=now
            ))
            position = self.store.upsert_position(InventoryPosition(
                currency_id=currency.id,
                amount=ZERO,
                avg_buy_price=rate,
                total_value=ZERO,
                last_updated=now
            ))

        logger.info(f"Added currency {code} ({name}) at rate {rate}")
        return CurrencyHolding(currency=currency, position=position)

    def update_rate(self, currency_id: int, new_rate: Any) -> Currency:
        """
        Set a currency's current market rate.
        Positions are untouched; the rate only seeds positions on reset.
        """
        new_rate = require_positive(new_rate, "rate")

        with self.store.atomic():
            currency = self.store.get_currency(currency_id)
            if currency is None:
                raise NotFoundError("Currency", currency_id)
            currency.current_rate = new_rate
            currency.last_updated = self._clock()
            currency = self.store.save_currency(currency)

        logger.info(f"Updated {currency.code} rate to {new_rate}")
        return currency

    def refresh_rate(self, currency_id: int, rate_source) -> Optional[Currency]:
        """
        Update a currency's rate from a live quote.

        Args:
            currency_id: Currency to refresh
            rate_source: Object with ``fetch_rate(code, base_currency)``
                returning a Decimal or None (e.g. MarketRateService)

        Returns:
            Updated Currency, or None if no quote was available
        """
        currency = self.get_currency(currency_id)
        rate = rate_source.fetch_rate(currency.code, self.settings.base_currency)
        if rate is None:
            logger.warning(
                f"No market quote for {currency.code}/{self.settings.base_currency}; rate unchanged"
            )
            return None
        return self.update_rate(currency_id, rate)

    def get_currency(self, currency_id: int) -> Currency:
        """Get a currency or raise NotFoundError."""
        currency = self.store.get_currency(currency_id)
        if currency is None:
            raise NotFoundError("Currency", currency_id)
        return currency

    def get_by_code(self, code: str) -> Optional[Currency]:
        """Find a currency by code (case-insensitive)."""
        return self.store.get_currency_by_code(normalize_code(code))

    def list_currencies(self) -> List[Currency]:
        """List all currencies."""
        return self.store.list_currencies()

    def get_currencies_with_inventory(self) -> List[CurrencyHolding]:
        """List every currency with its position, read in one unit of work."""
        with self.store.atomic():
            currencies = self.store.list_currencies()
            positions = {p.currency_id: p for p in self.store.list_positions()}
        return [
            CurrencyHolding(currency=currency, position=positions.get(currency.id))
            for currency in currencies
        ]

    def seed_defaults(self) -> int:
        """
        Populate an empty store with the sample currencies and a zeroed stat
        row for today. Does nothing when any currency exists.

        Returns:
            Number of currencies created
        """
        with self.store.atomic():
            if self.store.list_currencies():
                return 0
            for entry in DEFAULT_CURRENCIES:
                self.create_currency(entry["code"], entry["name"], entry["country"], entry["rate"])
            today = self._clock().date().isoformat()
            if self.store.get_daily_stat(today) is None:
                self.store.upsert_daily_stat(DailyStat(date=today, profit=ZERO, transaction_count=0))

        logger.info(f"Seeded {len(DEFAULT_CURRENCIES)} default currencies")
        return len(DEFAULT_CURRENCIES)
