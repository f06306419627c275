"""
Transaction Repository - data access layer for Transaction model.
Optimized with optional session parameter for transaction reuse.
"""

from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from sqlmodel import Session, select

from db_engine import get_engine
from models import Transaction, TransactionType


class TransactionRepository:
    """Repository for Transaction CRUD operations."""

    @staticmethod
    def add(
        currency_id: int,
        transaction_type: TransactionType,
        amount: Decimal,
        rate: Decimal,
        total: Decimal,
        profit: Decimal,
        notes: Optional[str] = None,
        created_at: Optional[datetime] = None,
        session: Optional[Session] = None
    ) -> Transaction:
        """
        Add a new transaction to the database.

        Args:
            currency_id: Currency ID for the transaction
            transaction_type: TransactionType.BUY or TransactionType.SELL
            amount: Units of foreign currency moved
            rate: Executed price per unit
            total: amount * rate
            profit: Realized profit (zero for buys)
            notes: Optional free-text notes
            created_at: Timestamp, defaults to now
            session: Optional existing session for transaction reuse

        Returns:
            Created Transaction object
        """
        def _create_transaction(sess: Session) -> Transaction:
            transaction = Transaction(
                currency_id=currency_id,
                type=transaction_type,
                amount=amount,
                rate=rate,
                total=total,
                profit=profit,
                notes=notes,
                created_at=created_at or datetime.now()
            )
            sess.add(transaction)
            sess.flush()
            sess.refresh(transaction)
            return transaction

        if session is not None:
            return _create_transaction(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                transaction = _create_transaction(session)
                session.commit()
                return transaction

    @staticmethod
    def get_all(
        currency_id: Optional[int] = None,
        limit: Optional[int] = None,
        session: Optional[Session] = None
    ) -> List[Transaction]:
        """
        Retrieve transactions newest first, optionally filtered by currency.

        Args:
            currency_id: Optional currency filter
            limit: Optional maximum number of rows
            session: Optional existing session for transaction reuse

        Returns:
            List of Transaction objects
        """
        def _get_all(sess: Session) -> List[Transaction]:
            statement = select(Transaction)
            if currency_id is not None:
                statement = statement.where(Transaction.currency_id == currency_id)
            statement = statement.order_by(Transaction.created_at.desc(), Transaction.id.desc())
            if limit is not None:
                statement = statement.limit(limit)
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _get_all(session)

    @staticmethod
    def get_by_id(transaction_id: int, session: Optional[Session] = None) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Args:
            transaction_id: Transaction ID to look up
            session: Optional existing session for transaction reuse

        Returns:
            Transaction object or None if not found
        """
        def _get_by_id(sess: Session) -> Optional[Transaction]:
            return sess.get(Transaction, transaction_id)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _get_by_id(session)

    @staticmethod
    def save(transaction: Transaction, session: Optional[Session] = None) -> Transaction:
        """
        Persist changes to an existing transaction.

        Args:
            transaction: Transaction carrying the new field values
            session: Optional existing session for transaction reuse

        Returns:
            The persisted Transaction object
        """
        def _save(sess: Session) -> Transaction:
            merged = sess.merge(transaction)
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

    @staticmethod
    def delete(transaction_id: int, session: Optional[Session] = None) -> bool:
        """
        Delete a transaction by its ID.

        Args:
            transaction_id: Transaction ID to delete
            session: Optional existing session for transaction reuse

        Returns:
            True if a row was deleted, False otherwise
        """
        def _delete(sess: Session) -> bool:
            transaction = sess.get(Transaction, transaction_id)
            if transaction:
                sess.delete(transaction)
                sess.flush()
                return True
            return False

        if session is not None:
            return _delete(session)
        else:
            with Session(get_engine()) as session:
                deleted = _delete(session)
                session.commit()
                return deleted

    @staticmethod
    def delete_all(session: Optional[Session] = None) -> int:
        """
        Delete every transaction.

        Args:
            session: Optional existing session for transaction reuse

        Returns:
            Number of transactions deleted
        """
        def _delete_all(sess: Session) -> int:
            transactions = sess.exec(select(Transaction)).all()
            count = 0
            for tx in transactions:
                sess.delete(tx)
                count += 1
            sess.flush()
            return count

        if session is not None:
            return _delete_all(session)
        else:
            with Session(get_engine()) as session:
                count = _delete_all(session)
                session.commit()
                return count
