"""
Database engine and session management for the currency ledger.
Uses SQLModel with SQLite for persistent storage by default.
Features Write-Ahead Logging (WAL) mode and write-locking transactions so
that concurrent sells cannot both read a stale inventory amount.
"""

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine
from typing import Optional
import logging

from config import get_settings

logger = logging.getLogger(__name__)

# Connection execution option selecting the SQLite BEGIN mode (default IMMEDIATE)
SQLITE_BEGIN_OPTION = "sqlite_begin"

# Global engine instance
_engine: Optional[Engine] = None


def build_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    """
    Create an engine for the given URL.
    SQLite connections get WAL mode, a busy timeout and BEGIN IMMEDIATE
    transactions; other backends are used as configured.
    """
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)  # Allow use across threads
        engine = create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)
        _configure_sqlite(engine)
        return engine
    return create_engine(database_url, echo=echo, **kwargs)


def _configure_sqlite(engine: Engine) -> None:
    """Enable WAL mode and take the write lock at the start of each transaction."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA journal_mode=WAL")
            # Set busy timeout to 5 seconds to handle concurrent access
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()
        # Let SQLAlchemy emit BEGIN itself (pysqlite defers it otherwise)
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "IMMEDIATE")
        conn.exec_driver_sql(f"BEGIN {mode}")

    logger.info("SQLite WAL mode and immediate transactions enabled")


def get_engine() -> Engine:
    """Get or create the database engine from settings."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = build_engine(settings.database_url, echo=settings.db_echo)
    return _engine


def init_db(engine: Optional[Engine] = None) -> Engine:
    """Initialize the database and create all tables."""
    from models import Currency, InventoryPosition, Transaction, DailyStat

    engine = engine or get_engine()
    SQLModel.metadata.create_all(engine)
    logger.info("Database initialized")
    return engine


