"""
In-Memory Transfer Executor

Holds the pool balance in process memory. Used by default when no real
payment rail is wired in, and throughout the test-suite.

Recipients may register a handler that receives (amount, payload) and
returns the bytes handed back to the sender. A handler that raises makes
the transfer fail. The balance is debited only after the handler returns.
"""

from typing import Callable, Optional

import structlog

from guardian_wallet.models.wallet import TransferResult
from guardian_wallet.services.transfer.interface import TransferExecutorInterface


RecipientHandler = Callable[[int, bytes], Optional[bytes]]


logger = structlog.get_logger(__name__)


class InMemoryTransferExecutor(TransferExecutorInterface):
    """Pool balance plus a registry of recipient handlers."""

    def __init__(self, initial_balance: int = 0):
        if initial_balance < 0:
            raise ValueError("Initial balance cannot be negative")
        self._balance = initial_balance
        self._handlers: dict[str, RecipientHandler] = {}
        self._rejecting: dict[str, str] = {}
        self.executed: list[tuple[str, int, bytes]] = []

    def register_recipient(self, recipient: str, handler: RecipientHandler) -> None:
        """Call handler(amount, payload) whenever recipient is paid."""
        self._handlers[recipient] = handler

    def reject_recipient(self, recipient: str, reason: str = "recipient rejected the transfer") -> None:
        """Make every transfer to recipient fail with reason."""
        self._rejecting[recipient] = reason

    async def balance(self) -> int:
        return self._balance

    async def deposit(self, sender: str, amount: int) -> int:
        if amount < 0:
            raise ValueError("Deposit amount cannot be negative")
        self._balance += amount
        logger.debug("pool_deposit", sender=sender, amount=amount, balance=self._balance)
        return self._balance

    async def execute(
        self,
        recipient: str,
        amount: int,
        payload: bytes = b"",
    ) -> TransferResult:
        if recipient in self._rejecting:
            return TransferResult(success=False, error_message=self._rejecting[recipient])

        if amount > self._balance:
            return TransferResult(
                success=False,
                error_message=f"pool holds {self._balance}, cannot move {amount}",
            )

        returned = b""
        handler = self._handlers.get(recipient)
        if handler is not None:
            try:
                returned = handler(amount, payload) or b""
            except Exception as e:
                logger.warning("recipient_handler_failed", recipient=recipient, error=str(e))
                return TransferResult(success=False, error_message=str(e))

        self._balance -= amount
        self.executed.append((recipient, amount, payload))
        return TransferResult(success=True, returned_data=returned)
