"""
Main Orchestrator for Guardian Wallet

This module ties together the voting controller, the ledger guard, the
transfer executor and the audit logger behind one controller entity,
CustodialWallet.

DESIGN DECISION: The wallet enforces the boundaries:
- Every public operation runs under one exclusive lock over ALL state, so
  operations are applied in a strict total order
- Core components are synchronous; a request never suspends while it
  is mutating state
- Funds move only after the ledger guard's decision is committed, and a
  failed movement undoes the allowance decrement before the call returns
- Every completed request is audited; every refused request is audited
  as rejected
"""

import asyncio
from typing import Callable, Iterable, Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import TypeAdapter

from guardian_wallet.audit import AuditLogger, configure_logging, create_correlation_id
from guardian_wallet.config import AppSettings, WalletSettings, get_settings
from guardian_wallet.core import (
    AllowanceTable,
    ExternalTransferFailed,
    GuardianSet,
    LedgerGuard,
    Unauthorized,
    VoteOutcome,
    VotingController,
    WalletError,
)
from guardian_wallet.models.audit import AuditEvent, AuditEventBuilder
from guardian_wallet.models.wallet import (
    AllowanceEntry,
    Amount,
    Identity,
    OwnershipRecord,
    TransferAuthorization,
    TransferReceipt,
    VotingState,
    WalletSnapshot,
    WalletState,
)
from guardian_wallet.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
)
from guardian_wallet.services.transfer import (
    InMemoryTransferExecutor,
    TransferExecutorInterface,
)
from guardian_wallet.validation import InvariantReport, WalletInvariantChecker


T = TypeVar("T")

_IDENTITY = TypeAdapter(Identity)
_AMOUNT = TypeAdapter(Amount)

logger = structlog.get_logger(__name__)


class CustodialWallet:
    """
    The single controller entity that owns all wallet state.

    Guardian actions:   propose_owner, approve_proposal, reject_proposal
    Owner actions:      add_guardian, remove_guardian, set_allowance, deny_sending
    Spending:           transfer (owner, or a spender within allowance)
    Funding:            deposit (anyone)

    All of the above are async and serialized. Read accessors are not
    locked; they see the state between two operations.
    """

    def __init__(
        self,
        owner: str,
        guardians: Iterable[str] = (),
        proposal_threshold: int = 3,
        executor: Optional[TransferExecutorInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._state = WalletState(
            ownership=OwnershipRecord(owner=owner),
            proposal_threshold=proposal_threshold,
        )
        self._guardians = GuardianSet(self._state.guardians)
        for guardian in guardians:
            self._guardians.add(_IDENTITY.validate_python(guardian))
        self._allowances = AllowanceTable(self._state.allowances)

        self._voting = VotingController(
            ownership=self._state.ownership,
            voting_round=self._state.voting,
            guardians=self._guardians,
            proposal_threshold=proposal_threshold,
        )
        self._ledger = LedgerGuard(self._state.ownership, self._allowances)

        self._executor = executor or InMemoryTransferExecutor()
        self._audit = audit_logger or AuditLogger()
        self._checker = WalletInvariantChecker()
        self._lock = asyncio.Lock()

    # =========================================================================
    # Read accessors
    # =========================================================================

    @property
    def owner(self) -> str:
        return self._state.ownership.owner

    @property
    def proposed_owner(self) -> Optional[str]:
        return self._state.ownership.proposed_owner

    @property
    def state(self) -> VotingState:
        return self._voting.state

    @property
    def guardians(self) -> list[str]:
        """Guardians in insertion order."""
        return self._guardians.members()

    @property
    def proposal_threshold(self) -> int:
        return self._voting.proposal_threshold

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    def is_guardian(self, identity: str) -> bool:
        return self._guardians.contains(identity)

    def allowance_of(self, identity: str) -> Optional[AllowanceEntry]:
        entry = self._allowances.get(identity)
        return entry.model_copy() if entry else None

    async def pool_balance(self) -> int:
        return await self._executor.balance()

    async def snapshot(self) -> WalletSnapshot:
        """Consistent copy of the wallet's visible state."""
        async with self._lock:
            voting = self._state.voting
            return WalletSnapshot(
                owner=self.owner,
                proposed_owner=self.proposed_owner,
                state=self.state,
                guardians=self.guardians,
                propose_count=voting.propose_count,
                approval_count=voting.approval_count,
                rejection_count=voting.rejection_count,
                approved=list(voting.approved),
                rejected=list(voting.rejected),
                allowances=self._allowances.snapshot(),
                proposal_threshold=self.proposal_threshold,
                pool_balance=await self._executor.balance(),
            )

    def verify_invariants(self) -> InvariantReport:
        return self._checker.check(self._state)

    # =========================================================================
    # Guardian actions
    # =========================================================================

    async def propose_owner(
        self,
        caller: str,
        candidate: str,
        correlation_id: Optional[UUID] = None,
    ) -> VoteOutcome:
        candidate = _IDENTITY.validate_python(candidate)
        return await self._run(
            "propose_owner",
            caller,
            correlation_id,
            lambda cid: self._vote(self._voting.propose_owner(caller, candidate, cid)),
        )

    async def approve_proposal(
        self,
        caller: str,
        correlation_id: Optional[UUID] = None,
    ) -> VoteOutcome:
        return await self._run(
            "approve_proposal",
            caller,
            correlation_id,
            lambda cid: self._vote(self._voting.approve_proposal(caller, cid)),
        )

    async def reject_proposal(
        self,
        caller: str,
        correlation_id: Optional[UUID] = None,
    ) -> VoteOutcome:
        return await self._run(
            "reject_proposal",
            caller,
            correlation_id,
            lambda cid: self._vote(self._voting.reject_proposal(caller, cid)),
        )

    # =========================================================================
    # Owner actions
    # =========================================================================

    async def add_guardian(
        self,
        caller: str,
        guardian: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        guardian = _IDENTITY.validate_python(guardian)

        def action(cid: UUID) -> tuple[None, list[AuditEvent]]:
            self._require_owner(caller)
            self._guardians.add(guardian)
            return None, [
                AuditEventBuilder.guardian_added(caller, guardian, self._guardians.size(), cid)
            ]

        await self._run("add_guardian", caller, correlation_id, action)

    async def remove_guardian(
        self,
        caller: str,
        guardian: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        def action(cid: UUID) -> tuple[None, list[AuditEvent]]:
            self._require_owner(caller)
            self._guardians.remove(guardian)
            return None, [
                AuditEventBuilder.guardian_removed(caller, guardian, self._guardians.size(), cid)
            ]

        await self._run("remove_guardian", caller, correlation_id, action)

    async def set_allowance(
        self,
        caller: str,
        identity: str,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> AllowanceEntry:
        identity = _IDENTITY.validate_python(identity)
        amount = _AMOUNT.validate_python(amount)

        def action(cid: UUID) -> tuple[AllowanceEntry, list[AuditEvent]]:
            self._require_owner(caller)
            entry = self._allowances.set(identity, amount)
            return entry.model_copy(), [
                AuditEventBuilder.allowance_set(caller, identity, amount, cid)
            ]

        return await self._run("set_allowance", caller, correlation_id, action)

    async def deny_sending(
        self,
        caller: str,
        identity: str,
        correlation_id: Optional[UUID] = None,
    ) -> AllowanceEntry:
        identity = _IDENTITY.validate_python(identity)

        def action(cid: UUID) -> tuple[AllowanceEntry, list[AuditEvent]]:
            self._require_owner(caller)
            entry = self._allowances.deny(identity)
            return entry.model_copy(), [
                AuditEventBuilder.sending_denied(caller, identity, cid)
            ]

        return await self._run("deny_sending", caller, correlation_id, action)

    # =========================================================================
    # Funds
    # =========================================================================

    async def transfer(
        self,
        caller: str,
        recipient: str,
        amount: int,
        payload: bytes = b"",
        correlation_id: Optional[UUID] = None,
    ) -> TransferReceipt:
        """
        Send amount from the pool to recipient, delivering payload.

        FLOW:
        1. Read the pool balance from the executor
        2. LedgerGuard authorizes (and consumes allowance for non-owners)
        3. Executor moves the funds
        4. On executor failure: allowance restored, ExternalTransferFailed raised

        Returns:
            TransferReceipt with whatever the recipient returned
        """
        recipient = _IDENTITY.validate_python(recipient)
        amount = _AMOUNT.validate_python(amount)
        correlation_id = correlation_id or create_correlation_id()

        async with self._lock:
            try:
                pool_balance = await self._executor.balance()
                authorization = self._ledger.authorize_transfer(
                    caller, recipient, amount, pool_balance
                )
            except WalletError as e:
                await self._reject("transfer", caller, e, correlation_id)
                raise

            try:
                result = await self._executor.execute(recipient, amount, payload)
            except Exception as e:
                await self._fail_transfer(authorization, str(e), correlation_id)
                raise ExternalTransferFailed(recipient, amount, str(e)) from e
            except BaseException:
                self._ledger.rollback(authorization)
                raise

            if not result.success:
                reason = result.error_message or "executor reported failure"
                await self._fail_transfer(authorization, reason, correlation_id)
                raise ExternalTransferFailed(
                    recipient, amount, reason, result.returned_data
                )

            await self._audit.log(
                AuditEventBuilder.transfer_authorized(
                    caller=caller,
                    recipient=recipient,
                    amount=amount,
                    owner_spend=authorization.owner_spend,
                    authorization_id=authorization.authorization_id,
                    correlation_id=correlation_id,
                )
            )
            return TransferReceipt(
                authorization_id=authorization.authorization_id,
                caller=caller,
                recipient=recipient,
                amount=amount,
                owner_spend=authorization.owner_spend,
                returned_data=result.returned_data,
            )

    async def deposit(
        self,
        sender: str,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """Fund the pool. Returns the new pool balance."""
        sender = _IDENTITY.validate_python(sender)
        amount = _AMOUNT.validate_python(amount)
        correlation_id = correlation_id or create_correlation_id()

        async with self._lock:
            balance = await self._executor.deposit(sender, amount)
            await self._audit.log(
                AuditEventBuilder.deposit_received(sender, amount, balance, correlation_id)
            )
            return balance

    # =========================================================================
    # Internals
    # =========================================================================

    async def _run(
        self,
        operation: str,
        caller: str,
        correlation_id: Optional[UUID],
        action: Callable[[UUID], tuple[T, list[AuditEvent]]],
    ) -> T:
        """Apply a synchronous state change under the lock, then audit it."""
        correlation_id = correlation_id or create_correlation_id()
        async with self._lock:
            try:
                result, events = action(correlation_id)
            except WalletError as e:
                await self._reject(operation, caller, e, correlation_id)
                raise
            await self._audit.log_all(events)
            return result

    @staticmethod
    def _vote(outcome: VoteOutcome) -> tuple[VoteOutcome, list[AuditEvent]]:
        if outcome.owner_changed:
            logger.info(
                "owner_changed",
                owner=outcome.owner,
                quorum_path=outcome.quorum_path,
            )
        return outcome, outcome.events

    def _require_owner(self, caller: str) -> None:
        if caller != self._state.ownership.owner:
            raise Unauthorized(caller, "owner")

    async def _reject(
        self,
        operation: str,
        caller: str,
        error: WalletError,
        correlation_id: UUID,
    ) -> None:
        await self._audit.log_operation_rejected(
            operation=operation,
            caller=caller,
            error_code=error.code,
            error_message=str(error),
            correlation_id=correlation_id,
        )

    async def _fail_transfer(
        self,
        authorization: TransferAuthorization,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        self._ledger.rollback(authorization)
        await self._audit.log(
            AuditEventBuilder.transfer_failed(
                caller=authorization.caller,
                recipient=authorization.recipient,
                amount=authorization.amount,
                error_message=reason,
                authorization_id=authorization.authorization_id,
                correlation_id=correlation_id,
            )
        )


def create_wallet(
    settings: Optional[WalletSettings] = None,
    executor: Optional[TransferExecutorInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    use_storage: Optional[bool] = None,
    app_settings: Optional[AppSettings] = None,
) -> CustodialWallet:
    """
    Factory function to create a wallet from configuration.

    Args:
        settings: Wallet settings. Loaded from the environment if None.
        executor: Transfer executor. An in-memory pool seeded with
                  settings.initial_pool_balance if None.
        audit_storage: Explicit audit storage. Takes precedence over use_storage.
        use_storage: Whether to persist audit events to Google Sheets.
                     Defaults to AppSettings.persist_audit_events.
        app_settings: Application settings (debug_mode, persist_audit_events).
                      Loaded from the environment if None.

    Returns:
        A ready CustodialWallet
    """
    settings = settings or get_settings().wallet
    app_settings = app_settings or get_settings().app
    configure_logging(app_settings.debug_mode)

    executor = executor or InMemoryTransferExecutor(settings.initial_pool_balance)

    if audit_storage is None:
        if use_storage is None:
            use_storage = app_settings.persist_audit_events
        if use_storage:
            try:
                audit_storage = GoogleSheetsAuditStorage(GoogleSheetsClient())
            except Exception as e:
                # Storage not configured - continue with local-only logging
                logger.warning("audit_storage_not_configured", error=str(e))
                audit_storage = None

    return CustodialWallet(
        owner=settings.owner,
        guardians=settings.guardians_list,
        proposal_threshold=settings.proposal_threshold,
        executor=executor,
        audit_logger=AuditLogger(audit_storage),
    )
