"""
DailyStat Repository - data access layer for DailyStat model.
"""

from typing import Optional, List
from decimal import Decimal
from sqlmodel import Session, select

from db_engine import get_engine
from models import DailyStat


class DailyStatRepository:
    """Repository for DailyStat CRUD operations."""

    @staticmethod
    def upsert(
        stat_date: str,
        profit: Decimal,
        transaction_count: int,
        session: Optional[Session] = None
    ) -> DailyStat:
        """
        Save or update the stat row for a date.
        Uses upsert logic: if a row exists for the date, update; otherwise insert.
        """
        def _upsert(sess: Session) -> DailyStat:
            statement = select(DailyStat).where(DailyStat.date == stat_date)
            existing = sess.exec(statement).first()

            if existing:
                existing.profit = profit
                existing.transaction_count = transaction_count
                sess.add(existing)
                sess.flush()
                sess.refresh(existing)
                return existing
            else:
                stat = DailyStat(
                    date=stat_date,
                    profit=profit,
                    transaction_count=transaction_count
                )
                sess.add(stat)
                sess.flush()
                sess.refresh(stat)
                return stat

        if session is not None:
            return _upsert(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                stat = _upsert(session)
                session.commit()
                return stat

    @staticmethod
    def get_by_date(stat_date: str, session: Optional[Session] = None) -> Optional[DailyStat]:
        """Get the stat row for a specific date."""
        def _get(sess: Session) -> Optional[DailyStat]:
            statement = select(DailyStat).where(DailyStat.date == stat_date)
            return sess.exec(statement).first()

        if session is not None:
            return _get(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _get(session)

    @staticmethod
    def get_history(days: Optional[int] = None, session: Optional[Session] = None) -> List[DailyStat]:
        """Get stat rows, most recent date first."""
        def _get_history(sess: Session) -> List[DailyStat]:
            statement = select(DailyStat).order_by(DailyStat.date.desc())
            if days is not None:
                statement = statement.limit(days)
            return list(sess.exec(statement).all())

        if session is not None:
            return _get_history(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _get_history(session)
