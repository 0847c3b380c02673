"""
Storage Services Package

Provides abstract interfaces and concrete implementations for reading a
household's records. Ships an in-memory backend and a Google Sheets
backend; designed to be swappable.
"""

from housesplit.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from housesplit.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
)
from housesplit.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
]
