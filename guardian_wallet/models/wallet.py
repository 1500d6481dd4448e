"""
Core Data Models for Guardian Wallet

These models define the state held by the wallet controller and the
values passed across its public surface.

DESIGN DECISION: All wallet state lives in ONE explicit WalletState object.
It is owned by a single controller (CustodialWallet) and mutated only
through its methods. There are no module-level globals.

Amounts are integers in the smallest currency unit. They are never negative.
"""

from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
)


Identity = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]
Amount = Annotated[int, Field(ge=0)]


# =============================================================================
# ENUMS
# =============================================================================

class VotingState(str, Enum):
    """
    State of the ownership-transfer state machine.

    IDLE: no proposed owner.
    VOTING: a round is open for the proposed owner.
    """
    IDLE = "idle"
    VOTING = "voting"


# =============================================================================
# OWNERSHIP AND VOTING
# =============================================================================

class OwnershipRecord(BaseModel):
    """
    The live owner plus the candidate of the active round (if any).

    Mutated only by the VotingController. Read by the LedgerGuard.
    """
    model_config = ConfigDict(validate_assignment=True)

    owner: Identity = Field(
        ...,
        description="Identity currently allowed to spend without allowance checks"
    )
    proposed_owner: Optional[Identity] = Field(
        default=None,
        description="Candidate of the active voting round"
    )


class VotingRound(BaseModel):
    """
    Vote bookkeeping for one ownership-transfer round.

    When proposed_owner is None every counter is zero and both
    vote sets are empty.
    """

    proposed_owner: Optional[Identity] = None
    propose_count: int = Field(default=0, ge=0)
    approval_count: int = Field(default=0, ge=0)
    rejection_count: int = Field(default=0, ge=0)
    approved: set[str] = Field(default_factory=set)
    rejected: set[str] = Field(default_factory=set)

    @property
    def is_active(self) -> bool:
        return self.proposed_owner is not None

    def has_voted(self, guardian: str) -> bool:
        """True if the guardian approved or rejected in this round."""
        return guardian in self.approved or guardian in self.rejected

    def start(self, candidate: str) -> None:
        """Open a fresh round for candidate, discarding every prior vote."""
        self.clear()
        self.proposed_owner = candidate

    def clear(self) -> None:
        """Terminate the round: no candidate, zero counters, no votes."""
        self.proposed_owner = None
        self.propose_count = 0
        self.approval_count = 0
        self.rejection_count = 0
        self.approved.clear()
        self.rejected.clear()


# =============================================================================
# ALLOWANCES
# =============================================================================

class AllowanceEntry(BaseModel):
    """
    Spending rights delegated by the owner to one identity.

    limit is consumed by successful non-owner transfers.
    permitted=False blocks spending but keeps the limit.
    """
    model_config = ConfigDict(validate_assignment=True)

    limit: Amount = Field(
        default=0,
        description="Remaining amount this identity may spend"
    )
    permitted: bool = Field(
        default=False,
        description="Whether this identity may initiate a spend at all"
    )


# =============================================================================
# TRANSFERS
# =============================================================================

class TransferAuthorization(BaseModel):
    """
    The LedgerGuard's decision for one transfer request.

    Carries enough to undo the allowance decrement if the
    external execution fails.
    """

    authorization_id: UUID = Field(default_factory=uuid4)
    caller: Identity
    recipient: Identity
    amount: Amount
    owner_spend: bool = Field(
        ...,
        description="True if the caller was the owner (no allowance consumed)"
    )
    allowance_before: Optional[int] = Field(
        default=None,
        description="Caller's limit before this authorization (non-owner only)"
    )
    rolled_back: bool = False


class TransferResult(BaseModel):
    """Outcome reported by the external transfer executor."""

    success: bool
    returned_data: bytes = b""
    error_message: Optional[str] = None


class TransferReceipt(BaseModel):
    """What a successful CustodialWallet.transfer returns to its caller."""

    authorization_id: UUID
    caller: Identity
    recipient: Identity
    amount: Amount
    owner_spend: bool
    returned_data: bytes = b""


# =============================================================================
# AGGREGATE STATE
# =============================================================================

class WalletState(BaseModel):
    """
    Everything the wallet controller owns.

    guardians is a dict used as an insertion-ordered set.
    """

    ownership: OwnershipRecord
    voting: VotingRound = Field(default_factory=VotingRound)
    guardians: dict[str, None] = Field(default_factory=dict)
    allowances: dict[str, AllowanceEntry] = Field(default_factory=dict)
    proposal_threshold: int = Field(
        default=3,
        ge=1,
        description="Raw proposal count that commits a candidate on its own"
    )


class WalletSnapshot(BaseModel):
    """
    Read-only copy of the wallet's externally visible state.

    Safe to hand out: mutating it does not affect the wallet.
    """

    owner: str
    proposed_owner: Optional[str] = None
    state: VotingState
    guardians: list[str] = Field(default_factory=list)
    propose_count: int = 0
    approval_count: int = 0
    rejection_count: int = 0
    approved: list[str] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    allowances: dict[str, AllowanceEntry] = Field(default_factory=dict)
    proposal_threshold: int
    pool_balance: int = 0

    @field_validator("approved", "rejected")
    @classmethod
    def sort_votes(cls, v: list[str]) -> list[str]:
        """Vote sets are unordered; present them sorted."""
        return sorted(v)
