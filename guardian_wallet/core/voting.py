"""
Ownership-Transfer Voting

The VotingController runs the state machine guardians use to replace
the owner:

    IDLE    --propose_owner-->                 VOTING
    VOTING  --propose_owner(other candidate)-> VOTING  (full reset)
    VOTING  --propose_owner(same candidate)->  VOTING  (propose_count + 1)
    VOTING  --quorum A or quorum B-->          IDLE    (owner = candidate)
    VOTING  --rejection majority-->            IDLE    (owner unchanged)

Two independent quorums commit a candidate:

A. Raw repetition: propose_count reaches the fixed proposal_threshold.
   This ignores the size of the guardian set, and one guardian can reach
   it by proposing the same candidate repeatedly.
B. Majority approval: approval_count > guardians // 2, computed against
   the guardian set as it is at the time of the vote.

Both paths are kept as-is. See DESIGN.md for the open question about
their interaction.

IMPORTANT: Every method validates all preconditions before touching state.
A method that raises has changed nothing.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter

from guardian_wallet.core.errors import AlreadyVoted, NoActiveProposal, Unauthorized
from guardian_wallet.core.guardians import GuardianSet
from guardian_wallet.models.audit import AuditEvent, AuditEventBuilder
from guardian_wallet.models.wallet import Identity, OwnershipRecord, VotingRound, VotingState


QUORUM_REPEATED_PROPOSALS = "repeated_proposals"
QUORUM_MAJORITY_APPROVAL = "majority_approval"

_IDENTITY = TypeAdapter(Identity)


class VoteOutcome(BaseModel):
    """What a single guardian action did to the round."""

    state: VotingState
    owner: str
    proposed_owner: Optional[str] = None
    owner_changed: bool = False
    aborted: bool = False
    quorum_path: Optional[str] = None
    events: list[AuditEvent] = Field(default_factory=list)


class VotingController:
    """
    Owns the proposal, approval and rejection bookkeeping.

    The guardian set is read on every call so quorum always uses the
    current guardian count.
    """

    def __init__(
        self,
        ownership: OwnershipRecord,
        voting_round: VotingRound,
        guardians: GuardianSet,
        proposal_threshold: int,
    ):
        if proposal_threshold < 1:
            raise ValueError("proposal_threshold must be at least 1")
        self._ownership = ownership
        self._round = voting_round
        self._guardians = guardians
        self._threshold = proposal_threshold

    @property
    def state(self) -> VotingState:
        if self._round.is_active:
            return VotingState.VOTING
        return VotingState.IDLE

    @property
    def proposal_threshold(self) -> int:
        return self._threshold

    def majority_quorum(self) -> int:
        """Smallest vote count that is a strict majority of current guardians."""
        return self._guardians.size() // 2 + 1

    # =========================================================================
    # Guardian actions
    # =========================================================================

    def propose_owner(
        self,
        caller: str,
        candidate: str,
        correlation_id: Optional[UUID] = None,
    ) -> VoteOutcome:
        self._require_guardian(caller)
        candidate = _IDENTITY.validate_python(candidate)

        if candidate != self._round.proposed_owner:
            self._round.start(candidate)
            self._ownership.proposed_owner = candidate

        self._round.propose_count += 1
        events = [
            AuditEventBuilder.proposal_recorded(
                guardian=caller,
                candidate=candidate,
                propose_count=self._round.propose_count,
                correlation_id=correlation_id,
            )
        ]

        if self._round.propose_count >= self._threshold:
            return self._commit(QUORUM_REPEATED_PROPOSALS, events, correlation_id)

        return self._outcome(events)

    def approve_proposal(
        self,
        caller: str,
        correlation_id: Optional[UUID] = None,
    ) -> VoteOutcome:
        candidate = self._require_open_vote(caller)

        self._round.approved.add(caller)
        self._round.approval_count += 1
        events = [
            AuditEventBuilder.approval_recorded(
                guardian=caller,
                candidate=candidate,
                approval_count=self._round.approval_count,
                correlation_id=correlation_id,
            )
        ]

        if self._round.approval_count >= self.majority_quorum():
            return self._commit(QUORUM_MAJORITY_APPROVAL, events, correlation_id)

        return self._outcome(events)

    def reject_proposal(
        self,
        caller: str,
        correlation_id: Optional[UUID] = None,
    ) -> VoteOutcome:
        candidate = self._require_open_vote(caller)

        self._round.rejected.add(caller)
        self._round.rejection_count += 1
        events = [
            AuditEventBuilder.rejection_recorded(
                guardian=caller,
                candidate=candidate,
                rejection_count=self._round.rejection_count,
                correlation_id=correlation_id,
            )
        ]

        if self._round.rejection_count >= self.majority_quorum():
            events.append(
                AuditEventBuilder.proposal_aborted(
                    candidate=candidate,
                    rejection_count=self._round.rejection_count,
                    guardian_count=self._guardians.size(),
                    correlation_id=correlation_id,
                )
            )
            self._terminate_round()
            outcome = self._outcome(events)
            outcome.aborted = True
            return outcome

        return self._outcome(events)

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_guardian(self, caller: str) -> None:
        if not self._guardians.contains(caller):
            raise Unauthorized(caller, "guardian")

    def _require_open_vote(self, caller: str) -> str:
        """Checks shared by approve and reject. Returns the candidate."""
        self._require_guardian(caller)
        if not self._round.is_active:
            raise NoActiveProposal()
        candidate = self._round.proposed_owner
        # A guardian holds at most one vote per round, in either direction.
        if self._round.has_voted(caller):
            raise AlreadyVoted(caller, candidate)
        return candidate

    def _commit(
        self,
        quorum_path: str,
        events: list[AuditEvent],
        correlation_id: Optional[UUID],
    ) -> VoteOutcome:
        previous_owner = self._ownership.owner
        new_owner = self._round.proposed_owner
        self._ownership.owner = new_owner
        self._terminate_round()
        events.append(
            AuditEventBuilder.ownership_changed(
                previous_owner=previous_owner,
                new_owner=new_owner,
                quorum_path=quorum_path,
                correlation_id=correlation_id,
            )
        )
        outcome = self._outcome(events)
        outcome.owner_changed = True
        outcome.quorum_path = quorum_path
        return outcome

    def _terminate_round(self) -> None:
        self._round.clear()
        self._ownership.proposed_owner = None

    def _outcome(self, events: list[AuditEvent]) -> VoteOutcome:
        return VoteOutcome(
            state=self.state,
            owner=self._ownership.owner,
            proposed_owner=self._round.proposed_owner,
            events=events,
        )
