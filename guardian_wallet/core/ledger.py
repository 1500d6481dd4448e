"""
Ledger Guard

Decides whether an outbound transfer may proceed.

Order of checks:
1. The pool must hold at least the requested amount (for everyone).
2. The owner is authorized without touching the allowance table.
3. Anyone else needs permitted=True and a limit >= amount. The limit
   is decremented as part of the authorization.

The guard never moves funds itself. The caller executes the transfer
after authorization and calls `rollback` if the execution fails.
"""

import structlog

from guardian_wallet.core.allowances import AllowanceTable
from guardian_wallet.core.errors import (
    AllowanceExceeded,
    InsufficientPoolBalance,
    SpendingNotPermitted,
)
from guardian_wallet.models.wallet import OwnershipRecord, TransferAuthorization


logger = structlog.get_logger(__name__)


class LedgerGuard:
    """Enforces the spend-gating rule against the allowance table."""

    def __init__(self, ownership: OwnershipRecord, allowances: AllowanceTable):
        self._ownership = ownership
        self._allowances = allowances

    def is_owner(self, identity: str) -> bool:
        return identity == self._ownership.owner

    def authorize_transfer(
        self,
        caller: str,
        recipient: str,
        amount: int,
        pool_balance: int,
    ) -> TransferAuthorization:
        """
        Authorize (or refuse) moving `amount` to `recipient`.

        Raises:
            InsufficientPoolBalance: amount exceeds pool_balance
            SpendingNotPermitted: non-owner without a permitted allowance
            AllowanceExceeded: non-owner whose limit is below amount
        """
        if amount < 0:
            raise ValueError("Transfer amount cannot be negative")
        if amount > pool_balance:
            raise InsufficientPoolBalance(amount, pool_balance)

        if self.is_owner(caller):
            return TransferAuthorization(
                caller=caller,
                recipient=recipient,
                amount=amount,
                owner_spend=True,
            )

        if not self._allowances.is_permitted(caller):
            raise SpendingNotPermitted(caller)

        limit = self._allowances.limit_of(caller)
        if limit < amount:
            raise AllowanceExceeded(caller, amount, limit)

        before = self._allowances.consume(caller, amount)
        return TransferAuthorization(
            caller=caller,
            recipient=recipient,
            amount=amount,
            owner_spend=False,
            allowance_before=before,
        )

    def rollback(self, authorization: TransferAuthorization) -> None:
        """Undo the allowance decrement of an authorization whose transfer failed."""
        if authorization.rolled_back:
            return
        if not authorization.owner_spend and authorization.allowance_before is not None:
            self._allowances.restore(authorization.caller, authorization.allowance_before)
        authorization.rolled_back = True
        logger.info(
            "transfer_authorization_rolled_back",
            authorization_id=str(authorization.authorization_id),
            caller=authorization.caller,
            amount=authorization.amount,
        )
