"""
Allowance Table

Per-identity spending rights delegated by the owner.

A missing entry and an entry with permitted=False both mean the identity
may not initiate a spend. The limit only grows through `set`; `consume`
only shrinks it and `restore` only puts back what a failed transfer took.
"""

from typing import Optional

from guardian_wallet.models.wallet import AllowanceEntry


class AllowanceTable:
    """Mapping of identity -> AllowanceEntry, backed by WalletState.allowances."""

    def __init__(self, entries: dict[str, AllowanceEntry]):
        self._entries = entries

    def get(self, identity: str) -> Optional[AllowanceEntry]:
        return self._entries.get(identity)

    def limit_of(self, identity: str) -> int:
        entry = self._entries.get(identity)
        return entry.limit if entry else 0

    def is_permitted(self, identity: str) -> bool:
        entry = self._entries.get(identity)
        return bool(entry and entry.permitted)

    def set(self, identity: str, amount: int) -> AllowanceEntry:
        """Replace the limit and allow the identity to send."""
        if amount < 0:
            raise ValueError("Allowance cannot be negative")
        entry = AllowanceEntry(limit=amount, permitted=True)
        self._entries[identity] = entry
        return entry

    def deny(self, identity: str) -> AllowanceEntry:
        """Block sending. The remaining limit is kept."""
        entry = self._entries.get(identity)
        if entry is None:
            entry = AllowanceEntry(limit=0, permitted=False)
            self._entries[identity] = entry
        else:
            entry.permitted = False
        return entry

    def consume(self, identity: str, amount: int) -> int:
        """
        Decrease the identity's limit by amount.

        Callers check the limit first; this only guards against going
        negative. Returns the limit before the decrement.
        """
        entry = self._entries[identity]
        if amount > entry.limit:
            raise ValueError(
                f"Cannot consume {amount} from a limit of {entry.limit}"
            )
        before = entry.limit
        entry.limit = before - amount
        return before

    def restore(self, identity: str, limit: int) -> None:
        """Put back the limit held before a transfer that was rolled back."""
        self._entries[identity].limit = limit

    def snapshot(self) -> dict[str, AllowanceEntry]:
        return {
            identity: entry.model_copy()
            for identity, entry in self._entries.items()
        }
