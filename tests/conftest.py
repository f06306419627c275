"""
Shared pytest fixtures for the currency ledger.

Every test that takes ``store`` runs twice: once against the in-memory
backend and once against SQLite held in memory.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.pool import StaticPool

from config import Settings
from db_engine import build_engine, init_db
from repositories import InMemoryLedgerStore, SqlLedgerStore
from services import (
    CurrencyService,
    TransactionProcessor,
    StatsService,
    ReconciliationService,
)


class FixedClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 14, 10, 30, 0))


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, store_backend="memory", seed_default_currencies=False)


@pytest.fixture
def sql_engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """SQLite on disk, so separate connections really contend for locks."""
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return InMemoryLedgerStore()
    return SqlLedgerStore(request.getfixturevalue("sql_engine"))


@pytest.fixture
def currency_service(store, settings, clock) -> CurrencyService:
    return CurrencyService(store, settings, clock=clock)


@pytest.fixture
def processor(store, settings, clock) -> TransactionProcessor:
    return TransactionProcessor(store, settings, clock=clock)


@pytest.fixture
def stats_service(store, clock) -> StatsService:
    return StatsService(store, clock=clock)


@pytest.fixture
def reconciliation_service(store, settings, clock) -> ReconciliationService:
    return ReconciliationService(store, settings, clock=clock)


@pytest.fixture
def usd(currency_service):
    """A USD currency with an empty position."""
    return currency_service.create_currency("USD", "US Dollar", "United States", "83.45").currency
