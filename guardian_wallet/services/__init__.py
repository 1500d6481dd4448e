"""Services package."""

from guardian_wallet.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    InMemoryAuditStorage,
    StorageError,
)
from guardian_wallet.services.transfer import (
    InMemoryTransferExecutor,
    TransferExecutionError,
    TransferExecutorInterface,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "InMemoryAuditStorage",
    "StorageError",
    # Transfer services
    "InMemoryTransferExecutor",
    "TransferExecutionError",
    "TransferExecutorInterface",
]
