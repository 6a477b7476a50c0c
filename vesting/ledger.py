"""
ledger.py - Stateful Vesting Ledger

The VestingLedger class is the central state manager for the vesting system.
It is the only module that mutates the escrow, the schedule store and the
event log, ensuring controlled and auditable changes.

Key responsibilities:
    - Authorizes admin-only operations against an injected administrator identity
    - Enforces the one-schedule-per-beneficiary invariant
    - Computes unlock amounts with the pure functions in calculations.py
    - Applies each mutation atomically (all effects or none) and logs exactly one event
    - Serializes mutations behind a single writer lock
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple
import threading

from .core import (
    # Types
    Clock, EventType, VestingEvent, VestingSchedule,
    # Exceptions
    VestingError, Unauthorized, AlreadyExists, NoTokensAvailable, InvalidSchedule,
    # Helpers
    is_uint, require_uint,
)
from .calculations import (
    VestingMilestone, VestingStats,
    calculate_claimable, calculate_milestones, calculate_progress,
    calculate_vested_amount, calculate_vesting_stats, next_milestone,
    vesting_curve,
    is_cliff_passed as _cliff_passed,
)
from .clock import LogicalClock
from .escrow import EscrowAccount
from .event_log import EventLog
from .schedule_store import Page, ScheduleFilter, ScheduleStore, paginate


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """Consistent, immutable view of the ledger as of the last committed mutation."""
    name: str
    current_time: int
    balance: int
    total_schedules: int
    beneficiary_count: int
    event_count: int
    schedules: Tuple[Tuple[str, VestingSchedule], ...]

    def get_schedule(self, beneficiary: str) -> Optional[VestingSchedule]:
        for b, schedule in self.schedules:
            if b == beneficiary:
                return schedule
        return None


class VestingLedger:
    """
    Token vesting ledger with authorization, escrow and an audit trail.

    Design Principles:
        - Always validates: authorization, existence and parameter checks run
          before any state changes. A failed call leaves no trace.
        - Always logs: every successful mutation appends exactly one event
          whose id equals the log length just before the call.

    Thread Safety:
        Mutations run under a single re-entrant writer lock. Reads take the
        same lock briefly and return immutable values.

    Example:
        ledger = VestingLedger("main", admin="deployer")
        ledger.fund("deployer", 2_000_000)
        ledger.create_schedule("deployer", "alice", 1_000_000, 100, 500)
        ledger.advance_time(250)
        paid = ledger.claim("alice")    # 500_000
    """

    def __init__(
        self,
        name: str,
        admin: str,
        clock: Optional[Clock] = None,
        initial_time: int = 0,
        verbose: bool = True,
    ):
        """
        Create a vesting ledger.

        Args:
            name: Ledger identifier
            admin: Administrator identity allowed to create and revoke schedules
            clock: Logical time source (default: a LogicalClock at initial_time)
            initial_time: Starting time when no clock is supplied
            verbose: Print a line for every applied or rejected mutation
        """
        if not admin or not admin.strip():
            raise ValueError("admin identity cannot be empty")
        self.name = name
        self._admin = admin
        self._clock: Clock = clock if clock is not None else LogicalClock(initial_time)
        self.verbose = verbose
        self._escrow = EscrowAccount()
        self._schedules = ScheduleStore()
        self._log = EventLog()
        self._total_schedules = 0
        self._beneficiary_count = 0
        # Highest time observed, to detect a clock that runs backwards
        self._last_time = 0
        self._lock = threading.RLock()

    # ========================================================================
    # TIME
    # ========================================================================

    @property
    def admin(self) -> str:
        return self._admin

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def current_time(self) -> int:
        with self._lock:
            return self._now()

    def _now(self) -> int:
        t = self._clock.now()
        if not is_uint(t):
            raise ValueError(f"clock returned a non-integer timestamp: {t!r}")
        if t < self._last_time:
            raise ValueError(f"Clock moved backwards: {t} < {self._last_time}")
        self._last_time = t
        return t

    def advance_time(self, new_time: int) -> None:
        """
        Move the ledger's logical clock forward to new_time.

        Raises:
            ValueError: If new_time is before the current time
            TypeError: If the injected clock cannot be advanced by the ledger
        """
        advance_to = getattr(self._clock, "advance_to", None)
        if advance_to is None:
            raise TypeError(f"{type(self._clock).__name__} is advanced externally")
        with self._lock:
            advance_to(new_time)
            self._now()

    # ========================================================================
    # MUTATING OPERATIONS
    # ========================================================================

    def _require_admin(self, caller: str) -> None:
        if caller != self._admin:
            raise Unauthorized(f"{caller} is not the administrator")

    def _rejected(self, operation: str, error: VestingError) -> VestingError:
        if self.verbose:
            print(f"✗ REJECTED {operation}: [{error.code}] {error}")
        return error

    def _applied(self, event: VestingEvent) -> None:
        if self.verbose:
            print(f"✓ APPLIED {event!r}")

    def create_schedule(
        self,
        caller: str,
        beneficiary: str,
        total_amount: int,
        cliff_duration: int,
        vesting_duration: int,
    ) -> bool:
        """
        Lock total_amount for beneficiary, unlocking linearly after the cliff.

        No funds move: escrow is funded separately, and an under-funded escrow
        only surfaces when the beneficiary claims.

        Returns:
            True on success

        Raises:
            Unauthorized: If caller is not the administrator
            AlreadyExists: If beneficiary has (or ever had) a schedule
            InvalidSchedule: If total_amount is 0, vesting_duration is 0,
                             cliff_duration > vesting_duration, or a value is
                             not an unsigned integer
        """
        with self._lock:
            try:
                self._require_admin(caller)
                if not isinstance(beneficiary, str):
                    raise InvalidSchedule(f"beneficiary must be a string, got {type(beneficiary).__name__}")
                if beneficiary in self._schedules:
                    raise AlreadyExists(f"vesting schedule already exists for {beneficiary}")
                if not beneficiary.strip():
                    raise InvalidSchedule("beneficiary cannot be empty")
                require_uint("total_amount", total_amount)
                require_uint("cliff_duration", cliff_duration)
                require_uint("vesting_duration", vesting_duration)
                if total_amount == 0:
                    raise InvalidSchedule("total_amount must be positive")
                if vesting_duration == 0:
                    raise InvalidSchedule("vesting_duration must be positive")
                if cliff_duration > vesting_duration:
                    raise InvalidSchedule(
                        f"cliff_duration {cliff_duration} exceeds vesting_duration {vesting_duration}"
                    )
            except VestingError as e:
                raise self._rejected("create_schedule", e)

            now = self._now()
            schedule = VestingSchedule(
                total_amount=total_amount,
                claimed_amount=0,
                start_time=now,
                cliff_duration=cliff_duration,
                vesting_duration=vesting_duration,
                is_active=True,
            )
            first_time = self._schedules.insert(beneficiary, schedule)
            try:
                event = self._log.append(beneficiary, total_amount, now, EventType.CREATED)
            except Exception:
                # Rollback: the schedule must not exist without its event
                self._schedules.undo_insert(beneficiary, first_time)
                raise
            self._total_schedules += 1
            if first_time:
                self._beneficiary_count += 1
            self._applied(event)
            return True

    def claim(self, caller: str) -> int:
        """
        Withdraw everything currently claimable on caller's schedule.

        Returns:
            The amount paid

        Raises:
            NotFound: If caller has no schedule
            NoTokensAvailable: If the schedule is revoked, the cliff has not
                               passed, or claims have caught up with vesting
            InsufficientEscrow: If escrow cannot cover the full payout
                                (no partial payout is made)
        """
        with self._lock:
            now = self._now()
            try:
                schedule = self._schedules.require(caller)
                if not schedule.is_active:
                    raise NoTokensAvailable(f"schedule for {caller} has been revoked")
                claimable = calculate_claimable(schedule, now)
                if claimable == 0:
                    raise NoTokensAvailable(f"nothing claimable for {caller} at t={now}")
                self._escrow.withdraw(claimable)
            except VestingError as e:
                raise self._rejected("claim", e)

            updated = replace(schedule, claimed_amount=schedule.claimed_amount + claimable)
            self._schedules.replace(caller, updated)
            try:
                event = self._log.append(caller, claimable, now, EventType.CLAIMED)
            except Exception:
                # Rollback: withdraw-then-log is one unit
                self._schedules.replace(caller, schedule)
                self._escrow.deposit(claimable)
                raise
            self._applied(event)
            return claimable

    def revoke(self, caller: str, beneficiary: str) -> bool:
        """
        Deactivate beneficiary's schedule.

        Totals are left untouched and unvested tokens stay in escrow. The
        revoked event records the unvested remainder (total - claimed).
        Revoking an already-revoked schedule succeeds again and logs again.

        Raises:
            Unauthorized: If caller is not the administrator
            NotFound: If beneficiary has no schedule
        """
        with self._lock:
            try:
                self._require_admin(caller)
                schedule = self._schedules.require(beneficiary)
            except VestingError as e:
                raise self._rejected("revoke", e)

            now = self._now()
            self._schedules.replace(beneficiary, replace(schedule, is_active=False))
            try:
                event = self._log.append(
                    beneficiary, schedule.unvested_remainder, now, EventType.REVOKED
                )
            except Exception:
                self._schedules.replace(beneficiary, schedule)
                raise
            self._applied(event)
            return True

    def fund(self, caller: str, amount: int) -> bool:
        """
        Add amount to the escrow pool. Open to any caller.

        Raises:
            InvalidAmount: If amount is zero, negative, or not an unsigned integer
        """
        with self._lock:
            now = self._now()
            try:
                self._escrow.deposit(amount)
            except VestingError as e:
                raise self._rejected("fund", e)

            try:
                event = self._log.append(caller, amount, now, EventType.FUNDED)
            except Exception:
                self._escrow.withdraw(amount)
                raise
            self._applied(event)
            return True

    # ========================================================================
    # READ QUERIES
    # ========================================================================

    def get_schedule(self, beneficiary: str) -> Optional[VestingSchedule]:
        with self._lock:
            return self._schedules.get(beneficiary)

    def _with_schedule(self, beneficiary: str) -> Tuple[VestingSchedule, int]:
        with self._lock:
            return self._schedules.require(beneficiary), self._now()

    def calculate_vested_amount(self, beneficiary: str) -> int:
        """Amount vested so far. Raises NotFound for an unknown beneficiary."""
        schedule, now = self._with_schedule(beneficiary)
        return calculate_vested_amount(schedule, now)

    def get_claimable_amount(self, beneficiary: str) -> int:
        schedule, now = self._with_schedule(beneficiary)
        return calculate_claimable(schedule, now)

    def get_vesting_progress(self, beneficiary: str) -> int:
        """Whole-percent progress (0-100). Raises NotFound for an unknown beneficiary."""
        schedule, now = self._with_schedule(beneficiary)
        return calculate_progress(schedule, now)

    def is_cliff_passed(self, beneficiary: str) -> bool:
        schedule, now = self._with_schedule(beneficiary)
        return _cliff_passed(schedule, now)

    def get_vesting_stats(self, beneficiary: str) -> VestingStats:
        schedule, now = self._with_schedule(beneficiary)
        return calculate_vesting_stats(schedule, now)

    def get_milestones(self, beneficiary: str) -> List[VestingMilestone]:
        schedule, now = self._with_schedule(beneficiary)
        return calculate_milestones(schedule, now)

    def get_next_milestone(self, beneficiary: str) -> Optional[VestingMilestone]:
        schedule, now = self._with_schedule(beneficiary)
        return next_milestone(schedule, now)

    def get_vesting_curve(self, beneficiary: str, points: int = 50) -> List[Tuple[int, int]]:
        schedule, _ = self._with_schedule(beneficiary)
        return vesting_curve(schedule, points)

    def get_contract_balance(self) -> int:
        with self._lock:
            return self._escrow.balance

    def get_total_schedules(self) -> int:
        with self._lock:
            return self._total_schedules

    def get_beneficiary_count(self) -> int:
        with self._lock:
            return self._beneficiary_count

    def get_current_time(self) -> int:
        with self._lock:
            return self._now()

    def get_vesting_event(self, event_id: int) -> Optional[VestingEvent]:
        """Event at sequence event_id, or None if absent."""
        with self._lock:
            return self._log.get(event_id)

    def get_event_count(self) -> int:
        with self._lock:
            return len(self._log)

    def get_events(
        self,
        beneficiary: Optional[str] = None,
        event_type: Optional[EventType] = None,
    ) -> List[VestingEvent]:
        """Events in log order, optionally narrowed to one beneficiary and/or type."""
        with self._lock:
            if beneficiary is not None:
                events = self._log.for_beneficiary(beneficiary)
            else:
                events = list(self._log)
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        return events

    def list_schedules(
        self,
        filters: Optional[ScheduleFilter] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Page:
        """Page of (beneficiary, schedule) pairs, sorted by beneficiary."""
        with self._lock:
            matched = self._schedules.filter(filters)
        return paginate(matched, page, per_page)

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                name=self.name,
                current_time=self._now(),
                balance=self._escrow.balance,
                total_schedules=self._total_schedules,
                beneficiary_count=self._beneficiary_count,
                event_count=len(self._log),
                schedules=tuple(self._schedules.items()),
            )

    # ========================================================================
    # VERIFICATION
    # ========================================================================

    def verify_solvency(self) -> Dict[str, Any]:
        """
        Compare the escrow balance with what active schedules could still claim.

        Returns:
            Dict with keys:
            - 'valid': bool - True if escrow covers every active schedule's remainder
            - 'balance': int - Current escrow balance
            - 'outstanding': int - Sum of total - claimed over active schedules
            - 'shortfall': int - outstanding - balance, or 0
        """
        with self._lock:
            balance = self._escrow.balance
            outstanding = sum(
                s.unvested_remainder for _, s in self._schedules.items() if s.is_active
            )
        shortfall = max(0, outstanding - balance)
        return {
            'valid': shortfall == 0,
            'balance': balance,
            'outstanding': outstanding,
            'shortfall': shortfall,
        }

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Check that the escrow balance equals funded minus claimed, per the event log.

        Example:
            result = ledger.verify_conservation()
            assert result['valid'], result
        """
        with self._lock:
            funded = self._log.total(EventType.FUNDED)
            claimed = self._log.total(EventType.CLAIMED)
            balance = self._escrow.balance
        return {
            'valid': funded - claimed == balance,
            'funded': funded,
            'claimed': claimed,
            'balance': balance,
        }

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> VestingLedger:
        """
        Create an independent copy of this ledger.

        The clone gets its own LogicalClock at the current time, so it can be
        advanced for what-if projections without touching the original.
        """
        with self._lock:
            now = self._now()
            cloned = VestingLedger(
                self.name, self._admin, clock=LogicalClock(now), verbose=self.verbose
            )
            cloned._escrow = EscrowAccount(self._escrow.balance)
            cloned._schedules = self._schedules.copy()
            cloned._log = self._log.copy()
            cloned._total_schedules = self._total_schedules
            cloned._beneficiary_count = self._beneficiary_count
            cloned._last_time = now
            return cloned

    def __repr__(self) -> str:
        return (f"VestingLedger({self.name!r}, admin={self._admin!r}, "
                f"schedules={self._total_schedules}, balance={self._escrow.balance})")
