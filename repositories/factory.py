"""Factory helpers to select the ledger store backend."""

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from config import Settings, get_settings
from db_engine import build_engine, init_db
from repositories.base import LedgerStore
from repositories.memory_store import InMemoryLedgerStore
from repositories.sql_store import SqlLedgerStore

logger = logging.getLogger(__name__)


def create_ledger_store(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    backend: Optional[str] = None,
) -> LedgerStore:
    """Return a ledger store implementation based on configuration.

    Args:
        settings: Optional settings override; defaults to the global settings.
        engine: Optional engine for the SQL backend; built from
            ``settings.database_url`` when omitted.
        backend: Optional backend override ("sql" or "memory").

    Returns:
        LedgerStore: Concrete store with its schema initialized.
    """
    settings = settings or get_settings()
    selected_backend = (backend or settings.store_backend).strip().lower()

    if selected_backend == "memory":
        logger.info("Using in-memory ledger store")
        return InMemoryLedgerStore()

    if selected_backend == "sql":
        engine = engine or build_engine(settings.database_url, echo=settings.db_echo)
        init_db(engine)
        logger.info(f"Using SQL ledger store at {engine.url}")
        return SqlLedgerStore(engine)

    raise ValueError(
        "Unsupported ledger store backend: "
        f"{selected_backend}. Expected sql or memory."
    )


__all__ = ["create_ledger_store"]
