"""
test_ledger.py - Unit tests for ledger.py

Tests:
- Ledger creation and configuration
- create_schedule (authorization, uniqueness, parameter validation, counters)
- claim (cliff, linear unlock, escrow shortfall, revoked schedules)
- revoke and fund
- Read queries and NotFound handling
- snapshot(), clone() and the solvency/conservation checks
"""

import pytest

from vesting import (
    VestingLedger, LogicalClock, EventType, ScheduleFilter,
    Unauthorized, NotFound, AlreadyExists, NoTokensAvailable,
    InvalidSchedule, InvalidAmount, InsufficientEscrow,
)
from tests.fake_clock import FakeClock
from tests.ledger_state import capture_state


class TestLedgerCreation:
    """Tests for VestingLedger initialization."""

    def test_create_ledger(self):
        ledger = VestingLedger("test", admin="deployer", verbose=False)
        assert ledger.name == "test"
        assert ledger.admin == "deployer"
        assert ledger.verbose is False
        assert ledger.get_current_time() == 0

    def test_create_with_initial_time(self):
        ledger = VestingLedger("test", admin="deployer", initial_time=42, verbose=False)
        assert ledger.current_time == 42

    def test_starts_empty(self, ledger):
        assert ledger.get_total_schedules() == 0
        assert ledger.get_beneficiary_count() == 0
        assert ledger.get_contract_balance() == 0
        assert ledger.get_event_count() == 0

    def test_empty_admin_rejected(self):
        with pytest.raises(ValueError):
            VestingLedger("test", admin="  ", verbose=False)

    def test_independent_instances(self):
        a = VestingLedger("a", admin="deployer", verbose=False)
        b = VestingLedger("b", admin="other", verbose=False)
        a.fund("x", 10)
        assert b.get_contract_balance() == 0
        with pytest.raises(Unauthorized):
            b.create_schedule("deployer", "alice", 100, 0, 10)

    def test_injected_clock(self):
        clock = FakeClock(500)
        ledger = VestingLedger("test", admin="deployer", clock=clock, verbose=False)
        ledger.create_schedule("deployer", "alice", 1000, 0, 100)
        assert ledger.get_schedule("alice").start_time == 500
        clock.time = 550
        assert ledger.calculate_vested_amount("alice") == 500

    def test_verbose_prints(self, capsys):
        ledger = VestingLedger("test", admin="deployer", verbose=True)
        ledger.fund("deployer", 10)
        with pytest.raises(InvalidAmount):
            ledger.fund("deployer", 0)
        out = capsys.readouterr().out
        assert "APPLIED" in out
        assert "REJECTED fund" in out


class TestTime:
    """Tests for clock handling."""

    def test_advance_time(self, ledger):
        ledger.advance_time(1500)
        assert ledger.get_current_time() == 1500

    def test_advance_time_rejects_past(self, ledger):
        with pytest.raises(ValueError, match="backwards"):
            ledger.advance_time(999)

    def test_external_clock_cannot_be_advanced(self):
        ledger = VestingLedger("test", admin="deployer", clock=FakeClock(0), verbose=False)
        with pytest.raises(TypeError):
            ledger.advance_time(10)

    def test_backwards_external_clock_detected(self):
        clock = FakeClock(100)
        ledger = VestingLedger("test", admin="deployer", clock=clock, verbose=False)
        assert ledger.get_current_time() == 100
        clock.time = 90
        with pytest.raises(ValueError, match="backwards"):
            ledger.get_current_time()

    def test_non_integer_clock_rejected(self):
        ledger = VestingLedger("test", admin="deployer", clock=FakeClock(1.5), verbose=False)
        with pytest.raises(ValueError):
            ledger.get_current_time()


class TestCreateSchedule:
    """Tests for create_schedule."""

    def test_admin_creates_schedule(self, ledger):
        assert ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500) is True
        schedule = ledger.get_schedule("wallet_1")
        assert schedule.total_amount == 1_000_000
        assert schedule.claimed_amount == 0
        assert schedule.start_time == 1000
        assert schedule.cliff_duration == 100
        assert schedule.vesting_duration == 500
        assert schedule.is_active is True

    def test_creation_moves_no_funds(self, ledger):
        ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500)
        assert ledger.get_contract_balance() == 0

    def test_creation_logs_event(self, ledger):
        ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500)
        event = ledger.get_vesting_event(0)
        assert event.event_type == EventType.CREATED
        assert event.beneficiary == "wallet_1"
        assert event.amount == 1_000_000
        assert event.timestamp == 1000

    def test_non_admin_rejected(self, ledger):
        before = capture_state(ledger)
        with pytest.raises(Unauthorized) as exc_info:
            ledger.create_schedule("wallet_1", "wallet_2", 1_000_000, 100, 500)
        assert exc_info.value.code == 100
        assert capture_state(ledger) == before

    def test_duplicate_rejected(self, ledger):
        ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500)
        with pytest.raises(AlreadyExists) as exc_info:
            ledger.create_schedule("deployer", "wallet_1", 2_000_000, 200, 600)
        assert exc_info.value.code == 102
        assert ledger.get_total_schedules() == 1
        assert ledger.get_schedule("wallet_1").total_amount == 1_000_000

    def test_duplicate_rejected_after_revocation(self, ledger):
        ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500)
        ledger.revoke("deployer", "wallet_1")
        with pytest.raises(AlreadyExists):
            ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500)

    def test_authorization_checked_before_existence(self, ledger):
        ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500)
        with pytest.raises(Unauthorized):
            ledger.create_schedule("wallet_2", "wallet_1", 1_000_000, 100, 500)

    def test_existence_checked_before_parameters(self, ledger):
        ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500)
        with pytest.raises(AlreadyExists):
            ledger.create_schedule("deployer", "wallet_1", 0, 100, 500)

    @pytest.mark.parametrize("total, cliff, duration", [
        (0, 100, 500),
        (1_000_000, 600, 500),
        (1_000_000, 0, 0),
        (-5, 0, 10),
        (1_000_000, -1, 10),
        (True, 0, 10),
        (1.5, 0, 10),
        (2 ** 128, 0, 10),
    ])
    def test_invalid_parameters_rejected(self, ledger, total, cliff, duration):
        before = capture_state(ledger)
        with pytest.raises(InvalidSchedule) as exc_info:
            ledger.create_schedule("deployer", "wallet_1", total, cliff, duration)
        assert exc_info.value.code == 106
        assert capture_state(ledger) == before

    def test_empty_beneficiary_rejected(self, ledger):
        with pytest.raises(InvalidSchedule):
            ledger.create_schedule("deployer", "", 100, 0, 10)

    @pytest.mark.parametrize("beneficiary", [["wallet_1"], {"a": 1}, None, 42])
    def test_non_string_beneficiary_rejected(self, ledger, beneficiary):
        before = capture_state(ledger)
        with pytest.raises(InvalidSchedule):
            ledger.create_schedule("deployer", beneficiary, 100, 0, 10)
        assert capture_state(ledger) == before

    def test_cliff_equal_to_duration_allowed(self, ledger):
        assert ledger.create_schedule("deployer", "wallet_1", 100, 10, 10)

    def test_counters(self, ledger):
        ledger.create_schedule("deployer", "wallet_1", 100, 0, 10)
        ledger.create_schedule("deployer", "wallet_2", 100, 0, 10)
        assert ledger.get_total_schedules() == 2
        assert ledger.get_beneficiary_count() == 2
        ledger.revoke("deployer", "wallet_1")
        assert ledger.get_total_schedules() == 2
        assert ledger.get_beneficiary_count() == 2


class TestClaim:
    """Tests for claim."""

    def test_claim_before_cliff(self, scheduled_ledger):
        before = capture_state(scheduled_ledger)
        with pytest.raises(NoTokensAvailable) as exc_info:
            scheduled_ledger.claim("wallet_1")
        assert exc_info.value.code == 104
        assert capture_state(scheduled_ledger) == before

    def test_claim_without_schedule(self, scheduled_ledger):
        with pytest.raises(NotFound) as exc_info:
            scheduled_ledger.claim("wallet_2")
        assert exc_info.value.code == 101

    def test_claim_halfway(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        assert scheduled_ledger.claim("wallet_1") == 500_000
        assert scheduled_ledger.get_schedule("wallet_1").claimed_amount == 500_000
        assert scheduled_ledger.get_contract_balance() == 1_500_000

    def test_second_claim_same_instant(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        scheduled_ledger.claim("wallet_1")
        with pytest.raises(NoTokensAvailable):
            scheduled_ledger.claim("wallet_1")

    def test_subsequent_claim(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        scheduled_ledger.claim("wallet_1")
        scheduled_ledger.advance_time(1375)
        assert scheduled_ledger.claim("wallet_1") == 250_000

    def test_claim_after_full_vest(self, scheduled_ledger):
        scheduled_ledger.advance_time(5000)
        assert scheduled_ledger.claim("wallet_1") == 1_000_000
        with pytest.raises(NoTokensAvailable):
            scheduled_ledger.claim("wallet_1")

    def test_claim_logs_event(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        scheduled_ledger.claim("wallet_1")
        event = scheduled_ledger.get_vesting_event(2)
        assert event.event_type == EventType.CLAIMED
        assert event.amount == 500_000
        assert event.timestamp == 1250
        assert event.beneficiary == "wallet_1"

    def test_insufficient_escrow_no_partial_payout(self, ledger):
        ledger.fund("deployer", 100_000)
        ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500)
        ledger.advance_time(1250)
        before = capture_state(ledger)
        with pytest.raises(InsufficientEscrow) as exc_info:
            ledger.claim("wallet_1")
        assert exc_info.value.code == 107
        assert capture_state(ledger) == before
        assert ledger.get_schedule("wallet_1").claimed_amount == 0

    def test_claim_succeeds_after_top_up(self, ledger):
        ledger.create_schedule("deployer", "wallet_1", 1_000_000, 100, 500)
        ledger.advance_time(1250)
        with pytest.raises(InsufficientEscrow):
            ledger.claim("wallet_1")
        ledger.fund("wallet_2", 500_000)
        assert ledger.claim("wallet_1") == 500_000
        assert ledger.get_contract_balance() == 0

    def test_revoked_schedule_cannot_claim(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        scheduled_ledger.revoke("deployer", "wallet_1")
        with pytest.raises(NoTokensAvailable):
            scheduled_ledger.claim("wallet_1")
        scheduled_ledger.advance_time(9999)
        with pytest.raises(NoTokensAvailable):
            scheduled_ledger.claim("wallet_1")


class TestRevoke:
    """Tests for revoke."""

    def test_admin_revokes(self, scheduled_ledger):
        assert scheduled_ledger.revoke("deployer", "wallet_1") is True
        schedule = scheduled_ledger.get_schedule("wallet_1")
        assert schedule.is_active is False
        assert schedule.total_amount == 1_000_000
        assert schedule.claimed_amount == 0

    def test_non_admin_rejected(self, scheduled_ledger):
        with pytest.raises(Unauthorized):
            scheduled_ledger.revoke("wallet_1", "wallet_1")
        assert scheduled_ledger.get_schedule("wallet_1").is_active is True

    def test_revoke_missing(self, scheduled_ledger):
        with pytest.raises(NotFound):
            scheduled_ledger.revoke("deployer", "wallet_2")

    def test_revoke_event_records_remainder(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        scheduled_ledger.claim("wallet_1")
        scheduled_ledger.revoke("deployer", "wallet_1")
        event = scheduled_ledger.get_events(event_type=EventType.REVOKED)[0]
        assert event.amount == 500_000
        assert event.beneficiary == "wallet_1"

    def test_unvested_funds_stay_in_escrow(self, scheduled_ledger):
        scheduled_ledger.revoke("deployer", "wallet_1")
        assert scheduled_ledger.get_contract_balance() == 2_000_000

    def test_repeat_revoke_logs_again(self, scheduled_ledger):
        scheduled_ledger.revoke("deployer", "wallet_1")
        assert scheduled_ledger.revoke("deployer", "wallet_1") is True
        revoked = scheduled_ledger.get_events(event_type=EventType.REVOKED)
        assert len(revoked) == 2
        assert revoked[0].amount == revoked[1].amount == 1_000_000

    def test_revoked_schedule_stays_queryable(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        scheduled_ledger.revoke("deployer", "wallet_1")
        assert scheduled_ledger.calculate_vested_amount("wallet_1") == 500_000
        assert scheduled_ledger.get_claimable_amount("wallet_1") == 0


class TestFund:
    """Tests for fund."""

    def test_anyone_can_fund(self, ledger):
        assert ledger.fund("wallet_1", 5_000_000) is True
        assert ledger.get_contract_balance() == 5_000_000

    def test_funding_accumulates(self, ledger):
        ledger.fund("wallet_1", 1_000_000)
        ledger.fund("wallet_2", 2_000_000)
        assert ledger.get_contract_balance() == 3_000_000

    def test_fund_event(self, ledger):
        ledger.fund("wallet_1", 1_000_000)
        event = ledger.get_vesting_event(0)
        assert event.event_type == EventType.FUNDED
        assert event.beneficiary == "wallet_1"
        assert event.amount == 1_000_000

    @pytest.mark.parametrize("amount", [0, -1, 1.0, True, 2 ** 128])
    def test_invalid_amount(self, ledger, amount):
        with pytest.raises(InvalidAmount) as exc_info:
            ledger.fund("wallet_1", amount)
        assert exc_info.value.code == 106
        assert ledger.get_contract_balance() == 0
        assert ledger.get_event_count() == 0


class TestReadQueries:
    """Tests for read-only queries."""

    @pytest.mark.parametrize("query", [
        "calculate_vested_amount",
        "get_vesting_progress",
        "is_cliff_passed",
        "get_claimable_amount",
        "get_vesting_stats",
        "get_milestones",
        "get_next_milestone",
        "get_vesting_curve",
    ])
    def test_unknown_beneficiary_not_found(self, ledger, query):
        with pytest.raises(NotFound):
            getattr(ledger, query)("nobody")

    def test_get_schedule_absent(self, ledger):
        assert ledger.get_schedule("nobody") is None

    def test_get_event_absent(self, scheduled_ledger):
        assert scheduled_ledger.get_vesting_event(2) is None
        assert scheduled_ledger.get_vesting_event(-1) is None
        assert scheduled_ledger.get_vesting_event("0") is None
        assert scheduled_ledger.get_vesting_event(None) is None

    def test_curve_for_maximum_duration(self, funded_ledger):
        funded_ledger.create_schedule("deployer", "wallet_1", 1_000_000, 0, 2 ** 128 - 1)
        curve = funded_ledger.get_vesting_curve("wallet_1", points=5)
        assert len(curve) == 5
        assert curve[-1] == (1000 + 2 ** 128 - 1, 1_000_000)

    def test_initial_state_queries(self, scheduled_ledger):
        assert scheduled_ledger.calculate_vested_amount("wallet_1") == 0
        assert scheduled_ledger.is_cliff_passed("wallet_1") is False
        assert scheduled_ledger.get_vesting_progress("wallet_1") == 0

    def test_queries_after_cliff(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        assert scheduled_ledger.calculate_vested_amount("wallet_1") == 500_000
        assert scheduled_ledger.is_cliff_passed("wallet_1") is True
        assert scheduled_ledger.get_vesting_progress("wallet_1") == 50

    def test_reads_do_not_mutate(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        before = capture_state(scheduled_ledger)
        scheduled_ledger.calculate_vested_amount("wallet_1")
        scheduled_ledger.get_vesting_stats("wallet_1")
        scheduled_ledger.list_schedules()
        scheduled_ledger.verify_solvency()
        assert capture_state(scheduled_ledger) == before

    def test_vesting_stats(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        scheduled_ledger.claim("wallet_1")
        scheduled_ledger.advance_time(1300)
        stats = scheduled_ledger.get_vesting_stats("wallet_1")
        assert stats.total_allocated == 1_000_000
        assert stats.currently_vested == 600_000
        assert stats.available_to_claim == 100_000
        assert stats.still_locked == 400_000
        assert stats.progress_percent == 60
        assert stats.cliff_passed is True

    def test_get_events_filters(self, scheduled_ledger):
        scheduled_ledger.create_schedule("deployer", "wallet_2", 10, 0, 10)
        assert [e.event_id for e in scheduled_ledger.get_events()] == [0, 1, 2]
        assert [e.event_id for e in scheduled_ledger.get_events(beneficiary="wallet_2")] == [2]
        created = scheduled_ledger.get_events(event_type=EventType.CREATED)
        assert [e.beneficiary for e in created] == ["wallet_1", "wallet_2"]

    def test_list_schedules(self, ledger):
        for name, amount in [("c", 300), ("a", 100), ("b", 200)]:
            ledger.create_schedule("deployer", name, amount, 0, 10)
        ledger.revoke("deployer", "b")

        page = ledger.list_schedules()
        assert [b for b, _ in page.data] == ["a", "b", "c"]
        assert page.total == 3
        assert page.has_more is False

        active = ledger.list_schedules(ScheduleFilter(is_active=True))
        assert [b for b, _ in active.data] == ["a", "c"]

        big = ledger.list_schedules(ScheduleFilter(min_amount=200), per_page=1)
        assert [b for b, _ in big.data] == ["b"]
        assert big.has_more is True


class TestVerification:
    """Tests for solvency and conservation checks."""

    def test_solvent(self, scheduled_ledger):
        result = scheduled_ledger.verify_solvency()
        assert result == {
            'valid': True, 'balance': 2_000_000, 'outstanding': 1_000_000, 'shortfall': 0,
        }

    def test_shortfall(self, ledger):
        ledger.fund("deployer", 300_000)
        ledger.create_schedule("deployer", "wallet_1", 1_000_000, 0, 10)
        result = ledger.verify_solvency()
        assert result['valid'] is False
        assert result['shortfall'] == 700_000

    def test_revoked_schedules_not_outstanding(self, scheduled_ledger):
        scheduled_ledger.revoke("deployer", "wallet_1")
        assert scheduled_ledger.verify_solvency()['outstanding'] == 0

    def test_conservation(self, scheduled_ledger):
        scheduled_ledger.advance_time(1250)
        scheduled_ledger.claim("wallet_1")
        result = scheduled_ledger.verify_conservation()
        assert result == {
            'valid': True, 'funded': 2_000_000, 'claimed': 500_000, 'balance': 1_500_000,
        }


class TestSnapshotAndClone:
    """Tests for snapshot() and clone()."""

    def test_snapshot(self, scheduled_ledger):
        snap = scheduled_ledger.snapshot()
        assert snap.current_time == 1000
        assert snap.balance == 2_000_000
        assert snap.total_schedules == 1
        assert snap.event_count == 2
        assert snap.get_schedule("wallet_1").total_amount == 1_000_000
        assert snap.get_schedule("wallet_2") is None

    def test_snapshot_is_stable(self, scheduled_ledger):
        snap = scheduled_ledger.snapshot()
        scheduled_ledger.advance_time(1250)
        scheduled_ledger.claim("wallet_1")
        assert snap.balance == 2_000_000
        assert snap.get_schedule("wallet_1").claimed_amount == 0

    def test_clone_is_independent(self, scheduled_ledger):
        clone = scheduled_ledger.clone()
        clone.advance_time(1250)
        clone.claim("wallet_1")
        clone.create_schedule("deployer", "wallet_2", 10, 0, 10)

        assert scheduled_ledger.get_current_time() == 1000
        assert scheduled_ledger.get_contract_balance() == 2_000_000
        assert scheduled_ledger.get_total_schedules() == 1
        assert scheduled_ledger.get_event_count() == 2
        assert clone.get_contract_balance() == 1_500_000
        assert clone.get_total_schedules() == 2

    def test_clone_of_externally_clocked_ledger(self):
        clock = FakeClock(700)
        ledger = VestingLedger("test", admin="deployer", clock=clock, verbose=False)
        clone = ledger.clone()
        assert isinstance(clone.clock, LogicalClock)
        assert clone.get_current_time() == 700
