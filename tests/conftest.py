"""
conftest.py - Shared pytest fixtures for vesting ledger tests

Provides common fixtures used across unit, functional and conformance tests:
- Empty and funded ledgers
- A ledger holding the reference schedule (1,000,000 over 500, cliff 100)

All ledgers start at t=1000 with "deployer" as administrator.
"""

import pytest

from vesting import VestingLedger


@pytest.fixture
def ledger():
    """Fresh ledger at t=1000 with no schedules and an empty escrow."""
    return VestingLedger("test", admin="deployer", initial_time=1000, verbose=False)


@pytest.fixture
def funded_ledger(ledger):
    """Ledger whose escrow holds 2,000,000."""
    ledger.fund("deployer", 2_000_000)
    return ledger


@pytest.fixture
def scheduled_ledger(funded_ledger):
    """Funded ledger with wallet_1 on the reference schedule starting at t=1000."""
    funded_ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500)
    return funded_ledger
