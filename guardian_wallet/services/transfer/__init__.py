"""
Transfer Services Package

Provides the executor interface and an in-memory pool implementation.
"""

from guardian_wallet.services.transfer.interface import (
    TransferExecutionError,
    TransferExecutorInterface,
)
from guardian_wallet.services.transfer.in_memory import InMemoryTransferExecutor

__all__ = [
    "InMemoryTransferExecutor",
    "TransferExecutionError",
    "TransferExecutorInterface",
]
