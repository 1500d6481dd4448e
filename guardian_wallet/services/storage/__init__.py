"""
Storage Services Package

Provides the audit storage interface and its implementations.
Google Sheets is the persistent backend; the in-memory store is the default.
"""

from guardian_wallet.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    StorageError,
)
from guardian_wallet.services.storage.memory import InMemoryAuditStorage
from guardian_wallet.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "InMemoryAuditStorage",
]
