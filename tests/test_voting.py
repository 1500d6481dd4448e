"""Tests for the ownership-transfer voting state machine."""

import pytest
from pydantic import ValidationError

from guardian_wallet.core import (
    QUORUM_MAJORITY_APPROVAL,
    QUORUM_REPEATED_PROPOSALS,
    AlreadyVoted,
    GuardianSet,
    NoActiveProposal,
    Unauthorized,
    VotingController,
)
from guardian_wallet.models.audit import AuditEventType
from guardian_wallet.models.wallet import OwnershipRecord, VotingState, WalletState
from guardian_wallet.validation import WalletInvariantChecker


def make_controller(guardians=("g1", "g2", "g3"), threshold=3):
    state = WalletState(ownership=OwnershipRecord(owner="alice"), proposal_threshold=threshold)
    guardian_set = GuardianSet(state.guardians)
    for g in guardians:
        guardian_set.add(g)
    controller = VotingController(
        ownership=state.ownership,
        voting_round=state.voting,
        guardians=guardian_set,
        proposal_threshold=threshold,
    )
    return state, guardian_set, controller


def assert_invariants(state):
    report = WalletInvariantChecker().check(state)
    assert report.is_valid, report.rules()


class TestProposeOwner:
    """Tests for propose_owner."""

    def test_first_proposal_opens_round(self):
        """Test Idle -> Voting on the first proposal."""
        state, _, controller = make_controller()
        outcome = controller.propose_owner("g1", "bob")

        assert outcome.state == VotingState.VOTING
        assert state.ownership.proposed_owner == "bob"
        assert state.voting.propose_count == 1
        assert [e.event_type for e in outcome.events] == [AuditEventType.PROPOSAL_RECORDED]
        assert_invariants(state)

    def test_non_guardian_cannot_propose(self):
        """Test that only guardians may propose."""
        state, _, controller = make_controller()
        with pytest.raises(Unauthorized):
            controller.propose_owner("mallory", "mallory")
        assert controller.state == VotingState.IDLE
        assert_invariants(state)

    def test_owner_is_not_implicitly_a_guardian(self):
        """Test that the owner cannot vote unless also a guardian."""
        _, _, controller = make_controller()
        with pytest.raises(Unauthorized) as exc:
            controller.propose_owner("alice", "bob")
        assert str(exc.value) == "alice is not a guardian"
        assert exc.value.required_role == "guardian"

    def test_blank_candidate_leaves_round_untouched(self):
        """Test an invalid candidate is refused before the open round is reset."""
        state, _, controller = make_controller(guardians=("g1", "g2", "g3", "g4", "g5"), threshold=5)
        controller.propose_owner("g1", "bob")
        controller.approve_proposal("g2")

        with pytest.raises(ValidationError):
            controller.propose_owner("g3", "  ")

        assert state.ownership.proposed_owner == "bob"
        assert state.voting.proposed_owner == "bob"
        assert state.voting.propose_count == 1
        assert state.voting.approved == {"g2"}
        assert_invariants(state)

    def test_candidate_is_normalised(self):
        """Test surrounding whitespace does not open a second round."""
        state, _, controller = make_controller(threshold=5)
        controller.propose_owner("g1", "bob")
        controller.propose_owner("g2", " bob ")
        assert state.voting.propose_count == 2
        assert state.voting.proposed_owner == "bob"
        assert_invariants(state)

    def test_same_candidate_only_bumps_counter(self):
        """Test repeat proposals keep existing votes."""
        state, _, controller = make_controller(guardians=("g1", "g2", "g3", "g4", "g5"), threshold=5)
        controller.propose_owner("g1", "bob")
        controller.approve_proposal("g2")
        controller.propose_owner("g3", "bob")

        assert state.voting.propose_count == 2
        assert state.voting.approved == {"g2"}
        assert state.voting.approval_count == 1
        assert_invariants(state)

    def test_different_candidate_resets_round(self):
        """Test a new candidate wipes every counter and vote."""
        state, _, controller = make_controller(guardians=("g1", "g2", "g3", "g4", "g5"), threshold=5)
        controller.propose_owner("g1", "bob")
        controller.propose_owner("g1", "bob")
        controller.approve_proposal("g2")
        controller.reject_proposal("g3")

        controller.propose_owner("g4", "carol")

        assert state.voting.proposed_owner == "carol"
        assert state.voting.propose_count == 1
        assert state.voting.approval_count == 0
        assert state.voting.rejection_count == 0
        assert state.voting.approved == set()
        assert state.voting.rejected == set()
        assert_invariants(state)

    def test_votes_from_previous_round_do_not_block(self):
        """Test a guardian may vote again after a reset."""
        state, _, controller = make_controller(guardians=("g1", "g2", "g3", "g4", "g5"), threshold=5)
        controller.propose_owner("g1", "bob")
        controller.approve_proposal("g2")
        controller.propose_owner("g1", "carol")

        outcome = controller.approve_proposal("g2")
        assert outcome.owner_changed is False
        assert state.voting.approved == {"g2"}

    def test_repeated_proposals_commit_without_approvals(self):
        """Test quorum A: threshold proposals commit with zero approvals."""
        state, _, controller = make_controller(threshold=3)
        controller.propose_owner("g1", "bob")
        controller.propose_owner("g1", "bob")
        outcome = controller.propose_owner("g1", "bob")

        assert outcome.owner_changed is True
        assert outcome.quorum_path == QUORUM_REPEATED_PROPOSALS
        assert state.ownership.owner == "bob"
        assert state.ownership.proposed_owner is None
        assert controller.state == VotingState.IDLE
        assert [e.event_type for e in outcome.events] == [
            AuditEventType.PROPOSAL_RECORDED,
            AuditEventType.OWNERSHIP_CHANGED,
        ]
        assert_invariants(state)

    def test_one_below_threshold_does_not_commit(self):
        """Test threshold - 1 proposals leave the round open."""
        state, _, controller = make_controller(threshold=3)
        controller.propose_owner("g1", "bob")
        outcome = controller.propose_owner("g2", "bob")

        assert outcome.owner_changed is False
        assert state.ownership.owner == "alice"
        assert state.voting.propose_count == 2

    def test_repetition_quorum_ignores_guardian_count(self):
        """
        Test quorum A fires on raw count even when no majority approved.

        With five guardians and a threshold of 3, one guardian alone
        commits a candidate by proposing three times.
        """
        state, _, controller = make_controller(guardians=("g1", "g2", "g3", "g4", "g5"), threshold=3)
        for _ in range(3):
            outcome = controller.propose_owner("g1", "mallory")

        assert outcome.owner_changed is True
        assert state.ownership.owner == "mallory"

    def test_threshold_of_one_commits_immediately(self):
        """Test a threshold of one makes every proposal final."""
        state, _, controller = make_controller(threshold=1)
        outcome = controller.propose_owner("g1", "bob")
        assert outcome.owner_changed is True
        assert state.ownership.owner == "bob"
        assert_invariants(state)

    def test_invalid_threshold_rejected(self):
        """Test the controller refuses a threshold below one."""
        state = WalletState(ownership=OwnershipRecord(owner="alice"))
        with pytest.raises(ValueError):
            VotingController(state.ownership, state.voting, GuardianSet(state.guardians), 0)


class TestApproveProposal:
    """Tests for approve_proposal and majority quorum."""

    def test_approve_without_proposal(self):
        """Test approving in Idle fails."""
        _, _, controller = make_controller()
        with pytest.raises(NoActiveProposal):
            controller.approve_proposal("g1")

    def test_non_guardian_cannot_approve(self):
        """Test role check happens before the round check."""
        _, _, controller = make_controller()
        with pytest.raises(Unauthorized):
            controller.approve_proposal("mallory")

    def test_one_approval_of_three_does_not_commit(self):
        """Test 1 approval is not > 3 // 2."""
        state, _, controller = make_controller()
        controller.propose_owner("g1", "bob")
        outcome = controller.approve_proposal("g1")

        assert outcome.owner_changed is False
        assert state.voting.approval_count == 1
        assert state.ownership.owner == "alice"
        assert_invariants(state)

    def test_two_approvals_of_three_commit(self):
        """Test 2 approvals (> 3 // 2 = 1) commit immediately."""
        state, _, controller = make_controller()
        controller.propose_owner("g1", "bob")
        controller.approve_proposal("g1")
        outcome = controller.approve_proposal("g2")

        assert outcome.owner_changed is True
        assert outcome.quorum_path == QUORUM_MAJORITY_APPROVAL
        assert state.ownership.owner == "bob"
        assert controller.state == VotingState.IDLE
        assert [e.event_type for e in outcome.events] == [
            AuditEventType.APPROVAL_RECORDED,
            AuditEventType.OWNERSHIP_CHANGED,
        ]
        assert_invariants(state)

    def test_even_guardian_count_needs_strict_majority(self):
        """Test 4 guardians need 3 approvals, not 2."""
        state, _, controller = make_controller(guardians=("g1", "g2", "g3", "g4"), threshold=10)
        assert controller.majority_quorum() == 3
        controller.propose_owner("g1", "bob")
        controller.approve_proposal("g1")
        assert controller.approve_proposal("g2").owner_changed is False
        assert controller.approve_proposal("g3").owner_changed is True
        assert state.ownership.owner == "bob"

    def test_double_approval(self):
        """Test a guardian cannot approve twice."""
        state, _, controller = make_controller(guardians=("g1", "g2", "g3", "g4", "g5"))
        controller.propose_owner("g1", "bob")
        controller.approve_proposal("g2")
        with pytest.raises(AlreadyVoted):
            controller.approve_proposal("g2")
        assert state.voting.approval_count == 1
        assert_invariants(state)

    def test_cannot_approve_after_rejecting(self):
        """Test a guardian holds one vote per round in either direction."""
        state, _, controller = make_controller(guardians=("g1", "g2", "g3", "g4", "g5"))
        controller.propose_owner("g1", "bob")
        controller.reject_proposal("g2")
        with pytest.raises(AlreadyVoted):
            controller.approve_proposal("g2")
        assert state.voting.approved == set()
        assert_invariants(state)

    def test_quorum_uses_current_guardian_count(self):
        """Test adding guardians mid-round raises the bar."""
        state, guardians, controller = make_controller()
        controller.propose_owner("g1", "bob")
        controller.approve_proposal("g1")
        guardians.add("g4")
        guardians.add("g5")

        assert controller.approve_proposal("g2").owner_changed is False
        assert controller.approve_proposal("g3").owner_changed is True

    def test_removed_guardian_vote_still_counts(self):
        """Test removal keeps the in-flight vote but shrinks the divisor."""
        state, guardians, controller = make_controller()
        controller.propose_owner("g1", "bob")
        controller.approve_proposal("g3")
        guardians.remove("g3")

        # 2 guardians remain: 2 approvals (g3's + g1's) > 2 // 2
        outcome = controller.approve_proposal("g1")
        assert outcome.owner_changed is True
        assert state.ownership.owner == "bob"
        assert_invariants(state)

    def test_removed_guardian_cannot_vote(self):
        """Test a removed guardian loses its vote."""
        _, guardians, controller = make_controller()
        controller.propose_owner("g1", "bob")
        guardians.remove("g2")
        with pytest.raises(Unauthorized):
            controller.approve_proposal("g2")


class TestRejectProposal:
    """Tests for reject_proposal and abort quorum."""

    def test_reject_without_proposal(self):
        """Test rejecting in Idle fails."""
        _, _, controller = make_controller()
        with pytest.raises(NoActiveProposal):
            controller.reject_proposal("g1")

    def test_one_rejection_keeps_round(self):
        """Test 1 rejection of 3 keeps the round open."""
        state, _, controller = make_controller()
        controller.propose_owner("g1", "bob")
        outcome = controller.reject_proposal("g2")

        assert outcome.aborted is False
        assert state.voting.rejection_count == 1
        assert controller.state == VotingState.VOTING

    def test_two_rejections_of_three_abort(self):
        """Test 2 rejections clear the round without changing owner."""
        state, _, controller = make_controller()
        controller.propose_owner("g1", "bob")
        controller.propose_owner("g1", "bob")
        controller.approve_proposal("g1")
        controller.reject_proposal("g2")
        outcome = controller.reject_proposal("g3")

        assert outcome.aborted is True
        assert outcome.owner_changed is False
        assert state.ownership.owner == "alice"
        assert state.ownership.proposed_owner is None
        assert state.voting.propose_count == 0
        assert state.voting.approved == set()
        assert state.voting.rejected == set()
        assert [e.event_type for e in outcome.events] == [
            AuditEventType.REJECTION_RECORDED,
            AuditEventType.PROPOSAL_ABORTED,
        ]
        assert_invariants(state)

    def test_double_rejection(self):
        """Test a guardian cannot reject twice."""
        _, _, controller = make_controller(guardians=("g1", "g2", "g3", "g4", "g5"))
        controller.propose_owner("g1", "bob")
        controller.reject_proposal("g2")
        with pytest.raises(AlreadyVoted):
            controller.reject_proposal("g2")

    def test_round_can_restart_after_abort(self):
        """Test the machine cycles back to Voting after an abort."""
        state, _, controller = make_controller()
        controller.propose_owner("g1", "bob")
        controller.reject_proposal("g2")
        controller.reject_proposal("g3")

        outcome = controller.propose_owner("g1", "bob")
        assert outcome.state == VotingState.VOTING
        assert state.voting.propose_count == 1
        controller.reject_proposal("g2")  # g2's earlier vote was cleared
        assert_invariants(state)


class TestInvariantSweep:
    """Drive a long mixed sequence and check invariants after every step."""

    def test_mixed_sequence_keeps_invariants(self):
        """Test invariants hold after every operation, successful or not."""
        state, guardians, controller = make_controller(guardians=("g1", "g2", "g3", "g4", "g5"), threshold=4)
        actions = [
            lambda: controller.propose_owner("g1", "bob"),
            lambda: controller.approve_proposal("g2"),
            lambda: controller.approve_proposal("g2"),
            lambda: controller.reject_proposal("g3"),
            lambda: controller.propose_owner("g4", "carol"),
            lambda: controller.reject_proposal("g1"),
            lambda: controller.reject_proposal("g2"),
            lambda: controller.reject_proposal("g3"),
            lambda: controller.approve_proposal("g4"),
            lambda: controller.propose_owner("g5", "dave"),
            lambda: guardians.remove("g5"),
            lambda: controller.propose_owner("g5", "dave"),
            lambda: controller.approve_proposal("g1"),
            lambda: controller.approve_proposal("g2"),
            lambda: controller.approve_proposal("g3"),
            lambda: controller.propose_owner("g1", "erin"),
            lambda: controller.propose_owner("g1", "erin"),
            lambda: controller.propose_owner("g1", "erin"),
            lambda: controller.propose_owner("g1", "erin"),
        ]
        for action in actions:
            try:
                action()
            except (AlreadyVoted, NoActiveProposal, Unauthorized):
                pass
            assert_invariants(state)

        assert state.ownership.owner == "erin"
