"""
Wallet Invariant Checker

DESIGN DECISION: Invariants are checked by a separate, read-only pass over
WalletState rather than asserted inline. This gives us:
1. One place that lists every rule the state must satisfy
2. Clear reports naming the field and rule that broke
3. A checker tests can run after every single operation

The rules:

VOTING:
- No active round => all counters zero and both vote sets empty
- A guardian is in at most one of approved / rejected
- approval_count == len(approved), rejection_count == len(rejected)
- An active round has 1 <= propose_count < proposal_threshold
- OwnershipRecord and VotingRound agree on the proposed owner

LEDGER:
- No allowance limit is negative

IMPORTANT: The checker NEVER repairs state. It only reports.
"""

from typing import Literal

from pydantic import BaseModel, Field

from guardian_wallet.models.wallet import WalletState


class InvariantViolation(BaseModel):
    """A single broken rule."""

    field: str = Field(..., description="State field the rule is about")
    rule: str = Field(..., description="Short machine-readable rule name")
    message: str
    area: Literal["voting", "ledger", "ownership"]


class InvariantReport(BaseModel):
    """Result of checking one WalletState."""

    violations: list[InvariantViolation] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def violation_count(self) -> int:
        return len(self.violations)

    def rules(self) -> list[str]:
        return [v.rule for v in self.violations]


class WalletInvariantChecker:
    """Checks a WalletState against every wallet invariant."""

    def check(self, state: WalletState) -> InvariantReport:
        violations: list[InvariantViolation] = []
        violations.extend(self._check_ownership(state))
        violations.extend(self._check_voting(state))
        violations.extend(self._check_ledger(state))
        return InvariantReport(violations=violations)

    def _check_ownership(self, state: WalletState) -> list[InvariantViolation]:
        issues = []
        if state.ownership.proposed_owner != state.voting.proposed_owner:
            issues.append(InvariantViolation(
                field="ownership.proposed_owner",
                rule="proposed_owner_mismatch",
                message=(
                    f"Ownership record proposes {state.ownership.proposed_owner!r} "
                    f"but the voting round proposes {state.voting.proposed_owner!r}"
                ),
                area="ownership",
            ))
        return issues

    def _check_voting(self, state: WalletState) -> list[InvariantViolation]:
        issues = []
        voting = state.voting

        if voting.proposed_owner is None:
            if voting.propose_count or voting.approval_count or voting.rejection_count:
                issues.append(InvariantViolation(
                    field="voting",
                    rule="idle_counters_not_zero",
                    message=(
                        "No active proposal but counters are "
                        f"{voting.propose_count}/{voting.approval_count}/{voting.rejection_count}"
                    ),
                    area="voting",
                ))
            if voting.approved or voting.rejected:
                issues.append(InvariantViolation(
                    field="voting",
                    rule="idle_votes_not_empty",
                    message="No active proposal but vote sets are not empty",
                    area="voting",
                ))
        elif not 1 <= voting.propose_count < state.proposal_threshold:
            issues.append(InvariantViolation(
                field="voting.propose_count",
                rule="propose_count_out_of_range",
                message=(
                    f"Active round has propose_count={voting.propose_count}, "
                    f"expected 1..{state.proposal_threshold - 1}"
                ),
                area="voting",
            ))

        both = voting.approved & voting.rejected
        if both:
            issues.append(InvariantViolation(
                field="voting",
                rule="guardian_voted_both_ways",
                message=f"Guardians in both approved and rejected: {sorted(both)}",
                area="voting",
            ))

        if voting.approval_count != len(voting.approved):
            issues.append(InvariantViolation(
                field="voting.approval_count",
                rule="approval_count_mismatch",
                message=(
                    f"approval_count={voting.approval_count} but "
                    f"{len(voting.approved)} guardians approved"
                ),
                area="voting",
            ))

        if voting.rejection_count != len(voting.rejected):
            issues.append(InvariantViolation(
                field="voting.rejection_count",
                rule="rejection_count_mismatch",
                message=(
                    f"rejection_count={voting.rejection_count} but "
                    f"{len(voting.rejected)} guardians rejected"
                ),
                area="voting",
            ))

        return issues

    def _check_ledger(self, state: WalletState) -> list[InvariantViolation]:
        return [
            InvariantViolation(
                field=f"allowances.{identity}",
                rule="negative_limit",
                message=f"Allowance limit for {identity} is {entry.limit}",
                area="ledger",
            )
            for identity, entry in state.allowances.items()
            if entry.limit < 0
        ]
