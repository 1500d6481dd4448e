"""
Wallet Errors

Every failure is a synchronous, non-retryable rejection of the current call.
Nothing here is recovered internally: the error surfaces to the caller and
the wallet state is exactly as it was before the call.

Each error carries a stable `code` used in audit events.
"""

from typing import Optional


class WalletError(Exception):
    """Base exception for wallet operations."""

    code = "wallet_error"


class Unauthorized(WalletError):
    """Caller lacks the role the operation requires."""

    code = "unauthorized"

    def __init__(self, caller: str, required_role: str):
        self.caller = caller
        self.required_role = required_role
        article = "a" if required_role == "guardian" else "the"
        super().__init__(f"{caller} is not {article} {required_role}")


class NoActiveProposal(WalletError):
    """Vote cast while no ownership proposal is open."""

    code = "no_active_proposal"

    def __init__(self):
        super().__init__("There is no active ownership proposal")


class AlreadyVoted(WalletError):
    """Guardian already voted in the active round."""

    code = "already_voted"

    def __init__(self, guardian: str, candidate: str):
        self.guardian = guardian
        self.candidate = candidate
        super().__init__(f"{guardian} already voted on the proposal for {candidate}")


class InsufficientPoolBalance(WalletError):
    """Requested amount exceeds what the pool holds."""

    code = "insufficient_pool_balance"

    def __init__(self, amount: int, pool_balance: int):
        self.amount = amount
        self.pool_balance = pool_balance
        super().__init__(
            f"Cannot send {amount}: the pool only holds {pool_balance}"
        )


class SpendingNotPermitted(WalletError):
    """Caller has no allowance or has been denied sending."""

    code = "spending_not_permitted"

    def __init__(self, caller: str):
        self.caller = caller
        super().__init__(f"{caller} is not allowed to send")


class AllowanceExceeded(WalletError):
    """Requested amount exceeds the caller's remaining allowance."""

    code = "allowance_exceeded"

    def __init__(self, caller: str, amount: int, limit: int):
        self.caller = caller
        self.amount = amount
        self.limit = limit
        super().__init__(
            f"{caller} tried to send {amount} but is only allowed {limit}"
        )


class ExternalTransferFailed(WalletError):
    """The external value transfer reported failure; the request was rolled back."""

    code = "external_transfer_failed"

    def __init__(
        self,
        recipient: str,
        amount: int,
        reason: Optional[str] = None,
        returned_data: bytes = b"",
    ):
        self.recipient = recipient
        self.amount = amount
        self.reason = reason
        self.returned_data = returned_data
        message = f"Transfer of {amount} to {recipient} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DuplicateGuardian(WalletError):
    """Identity is already a guardian."""

    code = "duplicate_guardian"

    def __init__(self, guardian: str):
        self.guardian = guardian
        super().__init__(f"{guardian} is already a guardian")


class UnknownGuardian(WalletError):
    """Identity is not a guardian."""

    code = "unknown_guardian"

    def __init__(self, guardian: str):
        self.guardian = guardian
        super().__init__(f"{guardian} is not a guardian")
