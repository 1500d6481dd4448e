"""
Abstract Transfer Executor Interface

DESIGN DECISION: The wallet never moves funds itself. It decides whether a
transfer is allowed and then hands the movement (plus an arbitrary payload)
to an executor. This allows us to:
1. Plug in a real payment rail or chain client later
2. Use an in-memory pool for testing
3. Keep the authorization rules independent of how value moves

The executor is the authority on the pool balance.
"""

from abc import ABC, abstractmethod

from guardian_wallet.models.wallet import TransferResult


class TransferExecutorInterface(ABC):
    """
    Abstract interface for the pool that holds and moves funds.

    Any implementation must report failure either by returning
    TransferResult(success=False) or by raising TransferExecutionError.
    A failed execution must not have moved any funds.
    """

    @abstractmethod
    async def balance(self) -> int:
        """
        Current total balance of the pool.

        Returns:
            Balance in the smallest currency unit
        """
        pass

    @abstractmethod
    async def deposit(self, sender: str, amount: int) -> int:
        """
        Credit the pool.

        Args:
            sender: Identity funding the pool
            amount: Amount to credit

        Returns:
            The pool balance after the deposit
        """
        pass

    @abstractmethod
    async def execute(
        self,
        recipient: str,
        amount: int,
        payload: bytes = b"",
    ) -> TransferResult:
        """
        Move amount to recipient and deliver payload.

        Args:
            recipient: Identity receiving the funds
            amount: Amount to move
            payload: Opaque data delivered with the transfer

        Returns:
            TransferResult with success flag and whatever the recipient returned

        Raises:
            TransferExecutionError: If the executor itself fails
        """
        pass


class TransferExecutionError(Exception):
    """The executor could not carry out a transfer."""
    pass
