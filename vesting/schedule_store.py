"""
schedule_store.py - Per-Beneficiary Schedule Storage

Maps each beneficiary to at most one VestingSchedule. Schedules are never
deleted: a revoked schedule stays in the store as an audit record and keeps
its beneficiary's key occupied.

Also provides the filtering and pagination used by schedule listings.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple, TypeVar

from .core import VestingSchedule, AlreadyExists, NotFound


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ScheduleFilter:
    """
    Criteria for listing schedules. None means "don't filter on this field".

    Attributes:
        is_active: Match only active (True) or only revoked (False) schedules.
        min_amount: Minimum total_amount, inclusive.
        max_amount: Maximum total_amount, inclusive.
        beneficiary: Case-sensitive substring of the beneficiary identity.
    """
    is_active: Optional[bool] = None
    min_amount: Optional[int] = None
    max_amount: Optional[int] = None
    beneficiary: Optional[str] = None

    def matches(self, beneficiary: str, schedule: VestingSchedule) -> bool:
        if self.is_active is not None and schedule.is_active != self.is_active:
            return False
        if self.min_amount is not None and schedule.total_amount < self.min_amount:
            return False
        if self.max_amount is not None and schedule.total_amount > self.max_amount:
            return False
        if self.beneficiary and self.beneficiary not in beneficiary:
            return False
        return True


@dataclass(frozen=True, slots=True)
class Page:
    """One page of a listing."""
    data: Tuple
    total: int
    page: int
    per_page: int
    has_more: bool


def paginate(items: Sequence[T], page: int = 1, per_page: int = 20) -> Page:
    """
    Slice items into a 1-based page.

    Raises:
        ValueError: If page or per_page is less than 1
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if per_page < 1:
        raise ValueError(f"per_page must be >= 1, got {per_page}")
    start = (page - 1) * per_page
    end = start + per_page
    return Page(
        data=tuple(items[start:end]),
        total=len(items),
        page=page,
        per_page=per_page,
        has_more=end < len(items),
    )


class ScheduleStore:
    """
    beneficiary -> VestingSchedule, at most one per beneficiary.

    Only VestingLedger should call the mutating methods (insert, replace).
    """

    def __init__(self):
        self._schedules: Dict[str, VestingSchedule] = {}
        # Every beneficiary that has ever held a schedule
        self._seen: Set[str] = set()

    def __contains__(self, beneficiary: str) -> bool:
        return beneficiary in self._schedules

    def __len__(self) -> int:
        return len(self._schedules)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._schedules))

    def has_ever_held(self, beneficiary: str) -> bool:
        return beneficiary in self._seen

    def get(self, beneficiary: str) -> Optional[VestingSchedule]:
        return self._schedules.get(beneficiary)

    def require(self, beneficiary: str) -> VestingSchedule:
        """
        Return the beneficiary's schedule.

        Raises:
            NotFound: If no schedule exists for beneficiary
        """
        schedule = self._schedules.get(beneficiary)
        if schedule is None:
            raise NotFound(f"no vesting schedule for {beneficiary}")
        return schedule

    def insert(self, beneficiary: str, schedule: VestingSchedule) -> bool:
        """
        Add a schedule for a beneficiary with no existing schedule.

        Returns:
            True if this is the first schedule the beneficiary has ever held

        Raises:
            AlreadyExists: If the key is occupied (active or revoked)
        """
        if beneficiary in self._schedules:
            raise AlreadyExists(f"vesting schedule already exists for {beneficiary}")
        first_time = beneficiary not in self._seen
        self._schedules[beneficiary] = schedule
        self._seen.add(beneficiary)
        return first_time

    def undo_insert(self, beneficiary: str, first_time: bool) -> None:
        """Reverse an insert() whose enclosing mutation failed."""
        self._schedules.pop(beneficiary, None)
        if first_time:
            self._seen.discard(beneficiary)

    def replace(self, beneficiary: str, schedule: VestingSchedule) -> VestingSchedule:
        """
        Swap in an updated schedule for an existing beneficiary.

        Returns:
            The schedule that was replaced

        Raises:
            NotFound: If no schedule exists for beneficiary
        """
        old = self.require(beneficiary)
        self._schedules[beneficiary] = schedule
        return old

    def items(self) -> List[Tuple[str, VestingSchedule]]:
        """All (beneficiary, schedule) pairs sorted by beneficiary."""
        return sorted(self._schedules.items())

    def filter(self, criteria: Optional[ScheduleFilter] = None) -> List[Tuple[str, VestingSchedule]]:
        """Sorted (beneficiary, schedule) pairs matching criteria."""
        if criteria is None:
            return self.items()
        return [(b, s) for b, s in self.items() if criteria.matches(b, s)]

    def copy(self) -> ScheduleStore:
        cloned = ScheduleStore()
        cloned._schedules = dict(self._schedules)
        cloned._seen = set(self._seen)
        return cloned
