"""
Inventory Repository - data access layer for InventoryPosition model.
"""

from typing import Optional, List
from sqlmodel import Session, select

from db_engine import get_engine
from models import InventoryPosition


class InventoryRepository:
    """Repository for InventoryPosition reads and upserts."""

    @staticmethod
    def get_by_currency(
        currency_id: int,
        for_update: bool = False,
        session: Optional[Session] = None
    ) -> Optional[InventoryPosition]:
        """
        Get the position held for a currency.

        Args:
            currency_id: Currency ID to look up
            for_update: Lock the row for the rest of the transaction
                (no-op on SQLite, where the whole database is locked on BEGIN)
            session: Optional existing session for transaction reuse
        """
        def _get(sess: Session) -> Optional[InventoryPosition]:
            statement = select(InventoryPosition).where(
                InventoryPosition.currency_id == currency_id
            )
            if for_update:
                statement = statement.with_for_update()
            return sess.exec(statement).first()

        if session is not None:
            return _get(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _get(session)

    @staticmethod
    def get_all(session: Optional[Session] = None) -> List[InventoryPosition]:
        """Get all positions ordered by currency."""
        def _get_all(sess: Session) -> List[InventoryPosition]:
            statement = select(InventoryPosition).order_by(InventoryPosition.currency_id)
            return list(sess.exec(statement).all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _get_all(session)

    @staticmethod
    def upsert(position: InventoryPosition, session: Optional[Session] = None) -> InventoryPosition:
        """
        Insert or update a position.
        Uses merge: a position without an ID is inserted, otherwise updated.
        """
        def _upsert(sess: Session) -> InventoryPosition:
            merged = sess.merge(position)
            sess.flush()
            sess.refresh(merged)
            return merged

        if session is not None:
            return _upsert(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                merged = _upsert(session)
                session.commit()
                return merged
