"""
clock.py - Logical Clock

Integer logical time for the vesting ledger. The clock never goes backward and
only advances when the external ordering mechanism (block or transaction
sequencing) tells it to.
"""

from __future__ import annotations

from .core import is_uint


class LogicalClock:
    """
    Monotonically non-decreasing integer clock.

    Example:
        clock = LogicalClock(1000)
        clock.advance(250)
        clock.now()         # 1250
        clock.advance_to(1200)   # ValueError: cannot move backwards
    """

    def __init__(self, initial_time: int = 0):
        if not is_uint(initial_time):
            raise ValueError(f"initial_time must be a non-negative integer, got {initial_time!r}")
        self._now = initial_time

    def now(self) -> int:
        """Current logical timestamp."""
        return self._now

    def advance_to(self, new_time: int) -> int:
        """
        Move the clock to new_time.

        Raises:
            ValueError: If new_time is before the current time or not an unsigned integer
        """
        if not is_uint(new_time):
            raise ValueError(f"time must be a non-negative integer, got {new_time!r}")
        if new_time < self._now:
            raise ValueError(f"Cannot move time backwards: {new_time} < {self._now}")
        self._now = new_time
        return self._now

    def advance(self, delta: int = 1) -> int:
        """Move the clock forward by delta units and return the new time."""
        if not is_uint(delta):
            raise ValueError(f"delta must be a non-negative integer, got {delta!r}")
        return self.advance_to(self._now + delta)

    def __repr__(self) -> str:
        return f"LogicalClock(now={self._now})"
