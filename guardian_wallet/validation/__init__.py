"""State validation package."""

from guardian_wallet.validation.invariants import (
    InvariantReport,
    InvariantViolation,
    WalletInvariantChecker,
)

__all__ = ["InvariantReport", "InvariantViolation", "WalletInvariantChecker"]
