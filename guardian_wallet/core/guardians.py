"""
Guardian Set

Membership of the identities allowed to vote on ownership transfers.

Membership changes carry no voting protection: the wallet only checks that
the caller is the owner. Removing a guardian does not touch the active
round. A vote already cast stays counted; the removed guardian simply
stops counting toward the quorum divisor.
"""

from typing import Iterable, Iterator

from guardian_wallet.core.errors import DuplicateGuardian, UnknownGuardian


class GuardianSet:
    """
    Insertion-ordered set of guardian identities.

    Backed by the dict held in WalletState so the aggregate state stays the
    single source of truth.
    """

    def __init__(self, members: dict[str, None]):
        self._members = members

    @classmethod
    def from_identities(cls, identities: Iterable[str]) -> "GuardianSet":
        guardians = cls({})
        for identity in identities:
            guardians.add(identity)
        return guardians

    def contains(self, identity: str) -> bool:
        return identity in self._members

    def size(self) -> int:
        return len(self._members)

    def add(self, identity: str) -> None:
        if identity in self._members:
            raise DuplicateGuardian(identity)
        self._members[identity] = None

    def remove(self, identity: str) -> None:
        if identity not in self._members:
            raise UnknownGuardian(identity)
        del self._members[identity]

    def members(self) -> list[str]:
        """Guardians in the order they were added."""
        return list(self._members)

    def __contains__(self, identity: object) -> bool:
        return identity in self._members

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._members))
