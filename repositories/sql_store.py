"""
Relational ledger store backed by SQLModel sessions.
Delegates to the per-entity repositories, passing the session of the
current unit of work so that a whole buy, sell or reset commits together.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from db_engine import SQLITE_BEGIN_OPTION, get_engine
from exceptions import ConflictError, StorageError
from models import Currency, DailyStat, InventoryPosition, Transaction
from repositories.currency_repository import CurrencyRepository
from repositories.daily_stat_repository import DailyStatRepository
from repositories.inventory_repository import InventoryRepository
from repositories.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class SqlLedgerStore:
    """LedgerStore implementation over a SQLAlchemy engine."""

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine or get_engine()
        self._local = threading.local()

    def _current_session(self) -> Optional[Session]:
        return getattr(self._local, "session", None)

    @contextmanager
    def atomic(self) -> Iterator["SqlLedgerStore"]:
        """
        Run the enclosed calls in one database transaction.
        Nested calls join the outermost unit.
        """
        if self._current_session() is not None:
            yield self
            return

        session = Session(self._engine, expire_on_commit=False)
        self._local.session = session
        try:
            with session.begin():
                yield self
        except SQLAlchemyError as e:
            logger.error(f"Ledger unit of work rolled back: {e}")
            raise StorageError(str(e)) from e
        finally:
            self._local.session = None
            session.close()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self.atomic():
            yield self._local.session

    @contextmanager
    def _read_session(self) -> Iterator[Session]:
        """
        Session for a read. Joins the current unit if there is one;
        otherwise opens a deferred transaction that never takes the write lock.
        """
        session = self._current_session()
        if session is not None:
            yield session
            return

        with Session(self._engine, expire_on_commit=False) as session:
            try:
                session.connection(execution_options={SQLITE_BEGIN_OPTION: "DEFERRED"})
                yield session
            except SQLAlchemyError as e:
                logger.error(f"Ledger read failed: {e}")
                raise StorageError(str(e)) from e

    # ==================== Currencies ====================
    def get_currency(self, currency_id: int) -> Optional[Currency]:
        with self._read_session() as session:
            return CurrencyRepository.get_by_id(currency_id, session=session)

    def get_currency_by_code(self, code: str) -> Optional[Currency]:
        with self._read_session() as session:
            return CurrencyRepository.get_by_code(code, session=session)

    def list_currencies(self) -> List[Currency]:
        with self._read_session() as session:
            return CurrencyRepository.get_all(session=session)

    def add_currency(self, currency: Currency) -> Currency:
        with self._session() as session:
            try:
                return CurrencyRepository.add(
                    code=currency.code,
                    name=currency.name,
                    country=currency.country,
                    current_rate=currency.current_rate,
                    last_updated=currency.last_updated,
                    session=session
                )
            except IntegrityError as e:
                raise ConflictError("code", currency.code) from e

    def save_currency(self, currency: Currency) -> Currency:
        with self._session() as session:
            return CurrencyRepository.save(currency, session=session)

    # ==================== Inventory positions ====================
    def get_position(self, currency_id: int, for_update: bool = False) -> Optional[InventoryPosition]:
        with self._read_session() as session:
            return InventoryRepository.get_by_currency(
                currency_id, for_update=for_update, session=session
            )

    def list_positions(self) -> List[InventoryPosition]:
        with self._read_session() as session:
            return InventoryRepository.get_all(session=session)

    def upsert_position(self, position: InventoryPosition) -> InventoryPosition:
        with self._session() as session:
            return InventoryRepository.upsert(position, session=session)

    # ==================== Transactions ====================
    def add_transaction(self, transaction: Transaction) -> Transaction:
        with self._session() as session:
            return TransactionRepository.add(
                currency_id=transaction.currency_id,
                transaction_type=transaction.type,
                amount=transaction.amount,
                rate=transaction.rate,
                total=transaction.total,
                profit=transaction.profit,
                notes=transaction.notes,
                created_at=transaction.created_at,
                session=session
            )

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        with self._read_session() as session:
            return TransactionRepository.get_by_id(transaction_id, session=session)

    def list_transactions(
        self, currency_id: Optional[int] = None, limit: Optional[int] = None
    ) -> List[Transaction]:
        with self._read_session() as session:
            return TransactionRepository.get_all(
                currency_id=currency_id, limit=limit, session=session
            )

    def save_transaction(self, transaction: Transaction) -> Transaction:
        with self._session() as session:
            return TransactionRepository.save(transaction, session=session)

    def delete_transaction(self, transaction_id: int) -> bool:
        with self._session() as session:
            return TransactionRepository.delete(transaction_id, session=session)

    def delete_all_transactions(self) -> int:
        with self._session() as session:
            return TransactionRepository.delete_all(session=session)

    # ==================== Daily stats ====================
    def get_daily_stat(self, stat_date: str) -> Optional[DailyStat]:
        with self._read_session() as session:
            return DailyStatRepository.get_by_date(stat_date, session=session)

    def upsert_daily_stat(self, stat: DailyStat) -> DailyStat:
        with self._session() as session:
            return DailyStatRepository.upsert(
                stat.date, stat.profit, stat.transaction_count, session=session
            )

    def list_daily_stats(self, days: Optional[int] = None) -> List[DailyStat]:
        with self._read_session() as session:
            return DailyStatRepository.get_history(days=days, session=session)
