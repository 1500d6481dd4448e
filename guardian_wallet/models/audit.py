"""
Audit Models for Guardian Wallet

Every state change and every rejected request is recorded as an audit event.
This provides:
1. Complete traceability of ownership changes and fund movements
2. Evidence when guardians dispute a vote
3. Debugging information when a transfer fails

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
Events are emitted only for operations that completed. A request that fails
produces an `operation_rejected` (or `transfer_failed`) event instead of the
events it would have produced on success.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    The first nine are the events the wallet exposes to observers.
    The rest are audit-only.
    """
    # Voting
    PROPOSAL_RECORDED = "proposal_recorded"
    OWNERSHIP_CHANGED = "ownership_changed"
    APPROVAL_RECORDED = "approval_recorded"
    REJECTION_RECORDED = "rejection_recorded"

    # Allowances and transfers
    ALLOWANCE_SET = "allowance_set"
    SENDING_DENIED = "sending_denied"
    TRANSFER_AUTHORIZED = "transfer_authorized"

    # Guardian management
    GUARDIAN_ADDED = "guardian_added"
    GUARDIAN_REMOVED = "guardian_removed"

    # Audit-only
    PROPOSAL_ABORTED = "proposal_aborted"
    TRANSFER_FAILED = "transfer_failed"
    DEPOSIT_RECEIVED = "deposit_received"
    OPERATION_REJECTED = "operation_rejected"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - who or what is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'owner', 'guardian', 'allowance', 'transfer')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Identity (or transfer id) this event relates to"
    )
    actor: Optional[str] = Field(
        default=None,
        description="Identity that issued the request"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events produced by one request"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor": self.actor,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         actor, correlation_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.actor or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.approval_recorded(guardian, candidate, 2)
        event = AuditEventBuilder.ownership_changed(old, new, "majority_approval")
    """

    # -- voting ---------------------------------------------------------------

    @staticmethod
    def proposal_recorded(
        guardian: str,
        candidate: str,
        propose_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROPOSAL_RECORDED,
            entity_type="owner",
            entity_id=candidate,
            actor=guardian,
            correlation_id=correlation_id,
            description=f"Guardian {guardian} proposed {candidate} as owner",
            details={
                "candidate": candidate,
                "propose_count": propose_count,
            },
        )

    @staticmethod
    def ownership_changed(
        previous_owner: str,
        new_owner: str,
        quorum_path: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OWNERSHIP_CHANGED,
            severity=AuditSeverity.WARNING,
            entity_type="owner",
            entity_id=new_owner,
            correlation_id=correlation_id,
            description=f"Ownership transferred from {previous_owner} to {new_owner}",
            details={
                "previous_owner": previous_owner,
                "new_owner": new_owner,
                "quorum_path": quorum_path,
            },
        )

    @staticmethod
    def approval_recorded(
        guardian: str,
        candidate: str,
        approval_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APPROVAL_RECORDED,
            entity_type="owner",
            entity_id=candidate,
            actor=guardian,
            correlation_id=correlation_id,
            description=f"Guardian {guardian} approved {candidate}",
            details={
                "candidate": candidate,
                "approval_count": approval_count,
            },
        )

    @staticmethod
    def rejection_recorded(
        guardian: str,
        candidate: str,
        rejection_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REJECTION_RECORDED,
            entity_type="owner",
            entity_id=candidate,
            actor=guardian,
            correlation_id=correlation_id,
            description=f"Guardian {guardian} rejected {candidate}",
            details={
                "candidate": candidate,
                "rejection_count": rejection_count,
            },
        )

    @staticmethod
    def proposal_aborted(
        candidate: str,
        rejection_count: int,
        guardian_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROPOSAL_ABORTED,
            entity_type="owner",
            entity_id=candidate,
            correlation_id=correlation_id,
            description=f"Proposal for {candidate} aborted by a majority of guardians",
            details={
                "candidate": candidate,
                "rejection_count": rejection_count,
                "guardian_count": guardian_count,
            },
        )

    # -- allowances and transfers -------------------------------------------

    @staticmethod
    def allowance_set(
        owner: str,
        identity: str,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALLOWANCE_SET,
            entity_type="allowance",
            entity_id=identity,
            actor=owner,
            correlation_id=correlation_id,
            description=f"Allowance for {identity} set to {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def sending_denied(
        owner: str,
        identity: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SENDING_DENIED,
            entity_type="allowance",
            entity_id=identity,
            actor=owner,
            correlation_id=correlation_id,
            description=f"Sending denied for {identity}",
        )

    @staticmethod
    def transfer_authorized(
        caller: str,
        recipient: str,
        amount: int,
        owner_spend: bool,
        authorization_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_AUTHORIZED,
            entity_type="transfer",
            entity_id=str(authorization_id),
            actor=caller,
            correlation_id=correlation_id,
            description=f"Transfer of {amount} to {recipient} authorized",
            details={
                "recipient": recipient,
                "amount": amount,
                "owner_spend": owner_spend,
            },
        )

    @staticmethod
    def transfer_failed(
        caller: str,
        recipient: str,
        amount: int,
        error_message: str,
        authorization_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="transfer",
            entity_id=str(authorization_id),
            actor=caller,
            correlation_id=correlation_id,
            description=f"Transfer of {amount} to {recipient} failed and was rolled back",
            details={
                "recipient": recipient,
                "amount": amount,
            },
            error_code="external_transfer_failed",
            error_message=error_message,
        )

    @staticmethod
    def deposit_received(
        sender: str,
        amount: int,
        pool_balance: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEPOSIT_RECEIVED,
            entity_type="pool",
            actor=sender,
            correlation_id=correlation_id,
            description=f"Deposit of {amount} received from {sender}",
            details={
                "amount": amount,
                "pool_balance": pool_balance,
            },
        )

    # -- guardians ------------------------------------------------------------

    @staticmethod
    def guardian_added(
        owner: str,
        guardian: str,
        guardian_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GUARDIAN_ADDED,
            entity_type="guardian",
            entity_id=guardian,
            actor=owner,
            correlation_id=correlation_id,
            description=f"Guardian {guardian} added",
            details={"guardian_count": guardian_count},
        )

    @staticmethod
    def guardian_removed(
        owner: str,
        guardian: str,
        guardian_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GUARDIAN_REMOVED,
            entity_type="guardian",
            entity_id=guardian,
            actor=owner,
            correlation_id=correlation_id,
            description=f"Guardian {guardian} removed",
            details={"guardian_count": guardian_count},
        )

    # -- failures -------------------------------------------------------------

    @staticmethod
    def operation_rejected(
        operation: str,
        caller: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            actor=caller,
            correlation_id=correlation_id,
            description=f"{operation} rejected: {error_code}",
            details={"operation": operation},
            error_code=error_code,
            error_message=error_message,
        )
