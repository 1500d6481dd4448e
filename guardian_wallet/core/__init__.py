"""Wallet core: voting state machine, allowance ledger and their errors."""

from guardian_wallet.core.allowances import AllowanceTable
from guardian_wallet.core.errors import (
    AllowanceExceeded,
    AlreadyVoted,
    DuplicateGuardian,
    ExternalTransferFailed,
    InsufficientPoolBalance,
    NoActiveProposal,
    SpendingNotPermitted,
    Unauthorized,
    UnknownGuardian,
    WalletError,
)
from guardian_wallet.core.guardians import GuardianSet
from guardian_wallet.core.ledger import LedgerGuard
from guardian_wallet.core.voting import (
    QUORUM_MAJORITY_APPROVAL,
    QUORUM_REPEATED_PROPOSALS,
    VoteOutcome,
    VotingController,
)

__all__ = [
    # Components
    "AllowanceTable",
    "GuardianSet",
    "LedgerGuard",
    "VotingController",
    "VoteOutcome",
    "QUORUM_MAJORITY_APPROVAL",
    "QUORUM_REPEATED_PROPOSALS",
    # Errors
    "AllowanceExceeded",
    "AlreadyVoted",
    "DuplicateGuardian",
    "ExternalTransferFailed",
    "InsufficientPoolBalance",
    "NoActiveProposal",
    "SpendingNotPermitted",
    "Unauthorized",
    "UnknownGuardian",
    "WalletError",
]
