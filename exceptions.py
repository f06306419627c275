"""
Typed failures raised by the ledger core.
Each carries enough context for the caller to render a user-facing message.
"""

from decimal import Decimal
from typing import Any


class LedgerError(Exception):
    """Base class for all ledger failures."""


class ValidationError(LedgerError):
    """Malformed or out-of-range input (non-positive amount/rate, missing field)."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class NotFoundError(LedgerError):
    """A referenced Currency, Inventory Position or Transaction does not exist."""

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class ConflictError(LedgerError):
    """A unique field already holds the given value (e.g. duplicate currency code)."""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"{field} already exists: {value}")


class InsufficientStockError(LedgerError):
    """Sell amount exceeds current holdings."""

    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough currency in stock: requested {requested}, available {available}"
        )


class StorageError(LedgerError):
    """Underlying persistence failure; the unit of work has been rolled back."""
