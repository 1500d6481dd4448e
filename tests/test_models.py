"""
Tests for Guardian Wallet models

Test strategy:
1. Unit tests for individual components (models, core, validators)
2. Integration tests for the wallet facade (with in-memory services)
3. No real API calls in tests (use mocks)
"""

import pytest
from uuid import uuid4

from pydantic import ValidationError

from guardian_wallet.models.wallet import (
    AllowanceEntry,
    OwnershipRecord,
    TransferAuthorization,
    VotingRound,
    WalletSnapshot,
    VotingState,
)
from guardian_wallet.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestWalletModels:
    """Tests for wallet state models."""

    def test_ownership_record_strips_whitespace(self):
        """Test that identities are stripped."""
        record = OwnershipRecord(owner="  alice  ")
        assert record.owner == "alice"
        assert record.proposed_owner is None

    def test_ownership_record_rejects_empty_owner(self):
        """Test that an empty owner is rejected."""
        with pytest.raises(ValidationError):
            OwnershipRecord(owner="   ")

    def test_allowance_entry_defaults(self):
        """Test a fresh allowance entry forbids spending."""
        entry = AllowanceEntry()
        assert entry.limit == 0
        assert entry.permitted is False

    def test_allowance_entry_rejects_negative_limit(self):
        """Test that negative limits are rejected, including on assignment."""
        with pytest.raises(ValidationError):
            AllowanceEntry(limit=-1)
        entry = AllowanceEntry(limit=5, permitted=True)
        with pytest.raises(ValidationError):
            entry.limit = -1

    def test_voting_round_start_clears_previous_votes(self):
        """Test that starting a round wipes every vote of the previous one."""
        voting = VotingRound(
            proposed_owner="bob",
            propose_count=2,
            approval_count=1,
            rejection_count=1,
            approved={"g1"},
            rejected={"g2"},
        )
        voting.start("carol")
        assert voting.proposed_owner == "carol"
        assert voting.propose_count == 0
        assert voting.approval_count == 0
        assert voting.rejection_count == 0
        assert voting.approved == set()
        assert voting.rejected == set()

    def test_voting_round_has_voted(self):
        """Test has_voted looks at both vote sets."""
        voting = VotingRound(proposed_owner="bob", approved={"g1"}, rejected={"g2"})
        assert voting.has_voted("g1")
        assert voting.has_voted("g2")
        assert not voting.has_voted("g3")

    def test_transfer_authorization_defaults(self):
        """Test a new authorization is not rolled back."""
        auth = TransferAuthorization(
            caller="bob", recipient="carol", amount=10, owner_spend=False, allowance_before=50
        )
        assert auth.rolled_back is False
        assert auth.authorization_id is not None

    def test_snapshot_sorts_votes(self):
        """Test that vote lists are presented sorted."""
        snapshot = WalletSnapshot(
            owner="alice",
            state=VotingState.VOTING,
            approved=["g3", "g1"],
            rejected=["g2"],
            proposal_threshold=3,
        )
        assert snapshot.approved == ["g1", "g3"]


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.GUARDIAN_ADDED,
            description="Guardian added",
        )
        assert event.event_type == AuditEventType.GUARDIAN_ADDED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.allowance_set("alice", "bob", 100)
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "allowance_set"
        assert log_dict["entity_id"] == "bob"
        assert log_dict["actor"] == "alice"
        assert log_dict["details"]["amount"] == 100

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        correlation_id = uuid4()
        event = AuditEventBuilder.sending_denied("alice", "bob", correlation_id)
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "sending_denied"
        assert row[5] == "bob"
        assert row[6] == "alice"
        assert row[7] == str(correlation_id)

    def test_ownership_changed_is_warning(self):
        """Test ownership changes stand out in the log."""
        event = AuditEventBuilder.ownership_changed("alice", "bob", "majority_approval")
        assert event.severity == AuditSeverity.WARNING
        assert event.details["previous_owner"] == "alice"
        assert event.details["quorum_path"] == "majority_approval"

    def test_transfer_failed_carries_error(self):
        """Test failed transfers carry the error code and message."""
        event = AuditEventBuilder.transfer_failed(
            caller="bob",
            recipient="carol",
            amount=5,
            error_message="recipient rejected",
            authorization_id=uuid4(),
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_code == "external_transfer_failed"
        assert event.error_message == "recipient rejected"

    def test_operation_rejected(self):
        """Test AuditEventBuilder.operation_rejected."""
        event = AuditEventBuilder.operation_rejected(
            operation="approve_proposal",
            caller="mallory",
            error_code="unauthorized",
            error_message="mallory is not a guardian",
        )
        assert event.event_type == AuditEventType.OPERATION_REJECTED
        assert event.severity == AuditSeverity.WARNING
        assert event.details["operation"] == "approve_proposal"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
