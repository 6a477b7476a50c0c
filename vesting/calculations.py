"""
calculations.py - Pure Vesting Math

All unlock arithmetic for the vesting ledger, as pure functions with explicit
inputs (a VestingSchedule and the current logical time). No ledger access, no
hidden state.

Key Formulas:
    elapsed = max(0, now - start_time)
    vested  = 0                                        if elapsed < cliff
            = total                                    if elapsed >= duration
            = floor(total * elapsed / duration)        otherwise
    claimable = vested - claimed     (0 once revoked)
    progress  = min(100, floor(vested * 100 / total))

Arithmetic is exact integer math. Python ints are unbounded, so
total * elapsed cannot overflow for any 128-bit inputs.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .core import VestingSchedule, PROGRESS_SCALE


# Fractions of the allocation reported as milestones, in percent
MILESTONE_PERCENTS = (25, 50, 75, 100)


# ============================================================================
# FROZEN RESULTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class VestingStats:
    """Summary of a schedule at one instant."""
    total_allocated: int
    currently_vested: int
    available_to_claim: int
    still_locked: int
    progress_percent: int
    cliff_passed: bool


@dataclass(frozen=True, slots=True)
class VestingMilestone:
    """A point on the unlock timeline."""
    timestamp: int
    amount: int
    description: str
    is_passed: bool


# ============================================================================
# PURE CALCULATION FUNCTIONS
# ============================================================================

def elapsed(schedule: VestingSchedule, now: int) -> int:
    return max(0, now - schedule.start_time)


def calculate_vested_amount(schedule: VestingSchedule, now: int) -> int:
    """
    Amount unlocked at time now, ignoring what has been claimed.

    Non-decreasing in now and never above total_amount.
    """
    e = elapsed(schedule, now)
    if e < schedule.cliff_duration:
        return 0
    if e >= schedule.vesting_duration:
        return schedule.total_amount
    return schedule.total_amount * e // schedule.vesting_duration


def calculate_claimable(schedule: VestingSchedule, now: int) -> int:
    """Vested amount not yet withdrawn. Always 0 for a revoked schedule."""
    if not schedule.is_active:
        return 0
    return max(0, calculate_vested_amount(schedule, now) - schedule.claimed_amount)


def calculate_progress(schedule: VestingSchedule, now: int) -> int:
    """Whole-percent share of the allocation that has vested (0-100)."""
    vested = calculate_vested_amount(schedule, now)
    return min(PROGRESS_SCALE, vested * PROGRESS_SCALE // schedule.total_amount)


def is_cliff_passed(schedule: VestingSchedule, now: int) -> bool:
    return elapsed(schedule, now) >= schedule.cliff_duration


def calculate_vesting_stats(schedule: VestingSchedule, now: int) -> VestingStats:
    vested = calculate_vested_amount(schedule, now)
    return VestingStats(
        total_allocated=schedule.total_amount,
        currently_vested=vested,
        available_to_claim=calculate_claimable(schedule, now),
        still_locked=schedule.total_amount - vested,
        progress_percent=calculate_progress(schedule, now),
        cliff_passed=is_cliff_passed(schedule, now),
    )


def time_to_vest(schedule: VestingSchedule, amount: int) -> int:
    """
    Earliest timestamp at which at least amount has vested.

    Inverse of calculate_vested_amount: the smallest elapsed e >= cliff with
    floor(total * e / duration) >= amount, i.e. e = ceil(amount * duration / total).
    """
    if amount <= 0:
        return schedule.start_time
    if amount >= schedule.total_amount:
        return schedule.end_time
    needed = -(-amount * schedule.vesting_duration // schedule.total_amount)
    return schedule.start_time + max(schedule.cliff_duration, needed)


def calculate_milestones(schedule: VestingSchedule, now: int) -> List[VestingMilestone]:
    """
    Cliff end plus the 25/50/75/100 percent unlock points, in time order.
    """
    cliff_at = schedule.cliff_time
    milestones = [
        VestingMilestone(
            timestamp=cliff_at,
            amount=calculate_vested_amount(schedule, cliff_at),
            description="Cliff ends",
            is_passed=now >= cliff_at,
        )
    ]
    for pct in MILESTONE_PERCENTS:
        target = schedule.total_amount * pct // PROGRESS_SCALE
        if target == 0:
            # Allocation too small for this fraction to unlock anything
            continue
        at = time_to_vest(schedule, target)
        description = "Fully vested" if pct == PROGRESS_SCALE else f"{pct}% vested"
        milestones.append(VestingMilestone(
            timestamp=at,
            amount=calculate_vested_amount(schedule, at),
            description=description,
            is_passed=now >= at,
        ))
    milestones.sort(key=lambda m: m.timestamp)
    return milestones


def next_milestone(schedule: VestingSchedule, now: int) -> Optional[VestingMilestone]:
    """First milestone not yet reached, or None once fully vested."""
    for milestone in calculate_milestones(schedule, now):
        if not milestone.is_passed:
            return milestone
    return None


def vesting_curve(schedule: VestingSchedule, points: int = 50) -> List[Tuple[int, int]]:
    """
    Sample the unlock curve from start_time to end_time for charting.

    Sample times are spread evenly with numpy.linspace; each vested amount is
    computed with exact integer math, so the curve agrees with
    calculate_vested_amount at every sampled time.

    Returns:
        List of (timestamp, vested_amount), strictly ordered by timestamp

    Raises:
        ValueError: If points < 2
    """
    if points < 2:
        raise ValueError(f"points must be >= 2, got {points}")
    duration = schedule.vesting_duration
    # float64 spacing keeps durations past 2**64 out of numpy object arrays;
    # int() of the rounded offsets is clamped back onto the schedule
    offsets = np.linspace(0.0, float(duration), num=points)
    times = [schedule.start_time + min(duration, int(o)) for o in offsets]
    times[-1] = schedule.end_time
    curve: List[Tuple[int, int]] = []
    for t in times:
        if curve and curve[-1][0] == t:
            continue
        curve.append((t, calculate_vested_amount(schedule, t)))
    return curve
