"""
Data Models Package

This package contains all Pydantic models used by the Guardian Wallet.
Wallet state and audit events must conform to these schemas.
"""

from guardian_wallet.models.wallet import (
    AllowanceEntry,
    Amount,
    Identity,
    OwnershipRecord,
    TransferAuthorization,
    TransferReceipt,
    TransferResult,
    VotingRound,
    VotingState,
    WalletSnapshot,
    WalletState,
)
from guardian_wallet.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Wallet models
    "AllowanceEntry",
    "Amount",
    "Identity",
    "OwnershipRecord",
    "TransferAuthorization",
    "TransferReceipt",
    "TransferResult",
    "VotingRound",
    "VotingState",
    "WalletSnapshot",
    "WalletState",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
