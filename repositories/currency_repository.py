"""
Currency Repository - data access layer for Currency model.
Optimized with optional session parameter for transaction reuse.
"""

from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from sqlmodel import Session, select

from db_engine import get_engine
from models import Currency


class CurrencyRepository:
    """Repository for Currency CRUD operations."""

    @staticmethod
    def add(
        code: str,
        name: str,
        country: str,
        current_rate: Decimal,
        last_updated: Optional[datetime] = None,
        session: Optional[Session] = None
    ) -> Currency:
        """
        Add a new currency to the database.

        Args:
            code: Unique currency code (e.g., "USD")
            name: Display name
            country: Issuing country or region
            current_rate: Market rate in base currency units
            last_updated: Timestamp, defaults to now
            session: Optional existing session for transaction reuse

        Returns:
            Created Currency object
        """
        def _create_currency(sess: Session) -> Currency:
            currency = Currency(
                code=code,
                name=name,
                country=country,
                current_rate=current_rate,
                last_updated=last_updated or datetime.now()
            )
            sess.add(currency)
            sess.flush()
            sess.refresh(currency)
            return currency

        if session is not None:
            return _create_currency(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                currency = _create_currency(session)
                session.commit()
                return currency

    @staticmethod
    def get_all(session: Optional[Session] = None) -> List[Currency]:
        """Retrieve all currencies ordered by ID."""
        def _get_all(sess: Session) -> List[Currency]:
            statement = select(Currency).order_by(Currency.id)
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _get_all(session)

    @staticmethod
    def get_by_id(currency_id: int, session: Optional[Session] = None) -> Optional[Currency]:
        """Retrieve a currency by its ID."""
        def _get_by_id(sess: Session) -> Optional[Currency]:
            return sess.get(Currency, currency_id)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _get_by_id(session)

    @staticmethod
    def get_by_code(code: str, session: Optional[Session] = None) -> Optional[Currency]:
        """Retrieve a currency by its exact code."""
        def _get_by_code(sess: Session) -> Optional[Currency]:
            statement = select(Currency).where(Currency.code == code)
            return sess.exec(statement).first()

        if session is not None:
            return _get_by_code(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _get_by_code(session)

    @staticmethod
    def save(currency: Currency, session: Optional[Session] = None) -> Currency:
        """Persist changes to an existing currency (e.g. a new rate)."""
        def _save(sess: Session) -> Currency:
            merged = sess.merge(currency)
            sess.flush()
            sess.refresh(merged)
            return merged

        if session is not None:
            return _save(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                merged = _save(session)
                session.commit()
                return merged
