"""Shared fixtures: a wallet with three guardians, an in-memory pool and audit store."""

import pytest

from guardian_wallet.audit import AuditLogger
from guardian_wallet.orchestrator import CustodialWallet
from guardian_wallet.services.storage import InMemoryAuditStorage
from guardian_wallet.services.transfer import InMemoryTransferExecutor


OWNER = "alice"
GUARDIANS = ["g1", "g2", "g3"]


@pytest.fixture
def executor():
    return InMemoryTransferExecutor(initial_balance=1000)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def wallet(executor, audit_storage):
    return CustodialWallet(
        owner=OWNER,
        guardians=GUARDIANS,
        proposal_threshold=3,
        executor=executor,
        audit_logger=AuditLogger(audit_storage),
    )
