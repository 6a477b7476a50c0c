"""
Core types and constants for the token vesting ledger.

This module provides the foundational data structures for the vesting engine:
1. Protocols: Clock for the logical time source
2. Immutable data structures: VestingSchedule, VestingEvent
3. Exceptions: VestingError and the stable error taxonomy
4. Enums: EventType
5. Validation helpers for unsigned integer inputs

Nothing in this module mutates ledger state. VestingLedger is the only
component that changes schedules, escrow or the event log.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional, Protocol, Union, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# All amounts, durations and timestamps are unsigned integers of this width.
# Python ints never overflow; the bound keeps values representable by the
# fixed-width collaborators that index the event log.
UINT_MAX = 2 ** 128 - 1

# Progress is reported as a whole percentage.
PROGRESS_SCALE = 100

# Stable error codes (shared with the collaborator layer).
ERR_OWNER_ONLY = 100
ERR_NOT_FOUND = 101
ERR_ALREADY_EXISTS = 102
ERR_VESTING_NOT_STARTED = 103
ERR_NO_TOKENS_AVAILABLE = 104
ERR_UNAUTHORIZED = 105
ERR_INVALID_SCHEDULE = 106
ERR_INSUFFICIENT_ESCROW = 107

ERROR_MESSAGES: Dict[int, str] = {
    ERR_OWNER_ONLY: "Only the contract owner can perform this action",
    ERR_NOT_FOUND: "Vesting schedule not found",
    ERR_ALREADY_EXISTS: "Vesting schedule already exists for this beneficiary",
    ERR_VESTING_NOT_STARTED: "Cliff period has not passed yet",
    ERR_NO_TOKENS_AVAILABLE: "No tokens available to claim at this time",
    ERR_UNAUTHORIZED: "Unauthorized to perform this action",
    ERR_INVALID_SCHEDULE: "Invalid vesting schedule parameters",
    ERR_INSUFFICIENT_ESCROW: "Escrow balance is too low to pay this claim",
}


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class Clock(Protocol):
    """
    Source of logical time for the ledger.

    Implementations must be monotonically non-decreasing. Time advances only
    when the enclosing ordering system (block or transaction sequencing)
    advances it, never from the wall clock.
    """

    def now(self) -> int:
        """Return the current logical timestamp."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class EventType(Enum):
    """Kinds of ledger-affecting actions recorded in the event log."""
    CREATED = "created"
    CLAIMED = "claimed"
    FUNDED = "funded"
    REVOKED = "revoked"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class VestingError(Exception):
    """Base exception for all vesting ledger errors."""
    code: int = 0

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or ERROR_MESSAGES.get(self.code, self.__class__.__name__))


class Unauthorized(VestingError):
    """Raised when a non-administrator calls an admin-only operation."""
    code = ERR_OWNER_ONLY


class NotFound(VestingError):
    """Raised when no schedule exists for the referenced beneficiary."""
    code = ERR_NOT_FOUND


class AlreadyExists(VestingError):
    """Raised when a creation targets a beneficiary that already has a schedule."""
    code = ERR_ALREADY_EXISTS


class NoTokensAvailable(VestingError):
    """Raised when a claim finds nothing claimable (before cliff, caught up, or revoked)."""
    code = ERR_NO_TOKENS_AVAILABLE


class InvalidSchedule(VestingError):
    """Raised when schedule parameters violate the creation constraints."""
    code = ERR_INVALID_SCHEDULE


class InvalidAmount(InvalidSchedule):
    """Raised when a funding amount is zero, negative or out of range."""
    pass


class InsufficientEscrow(VestingError):
    """Raised when the pooled escrow balance cannot cover a payout."""
    code = ERR_INSUFFICIENT_ESCROW


def get_error_message(error: Union[BaseException, int]) -> str:
    """
    Translate a vesting error (or a raw error code) into a user-facing message.

    Non-vesting exceptions fall back to their own string form.
    """
    if isinstance(error, int) and not isinstance(error, bool):
        return ERROR_MESSAGES.get(error, "Unknown contract error")
    if isinstance(error, VestingError):
        return ERROR_MESSAGES.get(error.code, "Unknown contract error")
    if isinstance(error, BaseException):
        return str(error)
    return "An unknown error occurred"


# ============================================================================
# VALIDATION
# ============================================================================

def is_uint(value: Any) -> bool:
    """Return True if value is an int (not bool) within [0, UINT_MAX]."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= UINT_MAX


def require_uint(name: str, value: Any, error: type = InvalidSchedule) -> int:
    """
    Check that value is an unsigned integer in range.

    Raises:
        error: (InvalidSchedule by default) if the check fails
    """
    if not is_uint(value):
        raise error(f"{name} must be an unsigned integer <= 2**128-1, got {value!r}")
    return value


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class VestingSchedule:
    """
    One beneficiary's vesting allocation.

    Attributes:
        total_amount: Allocation in base units, fixed at creation (> 0).
        claimed_amount: Amount already withdrawn; only ever grows.
        start_time: Logical timestamp captured at creation.
        cliff_duration: Time units during which nothing unlocks (<= vesting_duration).
        vesting_duration: Time units over which the allocation unlocks linearly (> 0).
        is_active: False once revoked; never reset.

    Immutable: claims and revocations produce a new instance via
    dataclasses.replace().
    """
    total_amount: int
    claimed_amount: int
    start_time: int
    cliff_duration: int
    vesting_duration: int
    is_active: bool = True

    @property
    def end_time(self) -> int:
        """Timestamp at which the full allocation is vested."""
        return self.start_time + self.vesting_duration

    @property
    def cliff_time(self) -> int:
        """Timestamp at which the cliff ends."""
        return self.start_time + self.cliff_duration

    @property
    def unvested_remainder(self) -> int:
        """Allocation not yet paid out (total - claimed)."""
        return self.total_amount - self.claimed_amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_amount': self.total_amount,
            'claimed_amount': self.claimed_amount,
            'start_time': self.start_time,
            'cliff_duration': self.cliff_duration,
            'vesting_duration': self.vesting_duration,
            'is_active': self.is_active,
        }

    def __repr__(self) -> str:
        status = "active" if self.is_active else "revoked"
        return (f"VestingSchedule({self.claimed_amount}/{self.total_amount}, "
                f"start={self.start_time}, cliff={self.cliff_duration}, "
                f"duration={self.vesting_duration}, {status})")


@dataclass(frozen=True, slots=True)
class VestingEvent:
    """
    Immutable entry in the ledger's event log.

    Attributes:
        event_id: Zero-based sequence number in the log.
        beneficiary: Identity the event concerns (the funder for FUNDED events).
        amount: Amount associated with the event.
        timestamp: Logical time at which the event was recorded.
        event_type: One of EventType.
    """
    event_id: int
    beneficiary: str
    amount: int
    timestamp: int
    event_type: EventType

    def to_dict(self) -> Dict[str, Any]:
        """Return the shape consumed by off-ledger indexers."""
        return {
            'beneficiary': self.beneficiary,
            'amount': self.amount,
            'timestamp': self.timestamp,
            'event_type': self.event_type.value,
        }

    def __repr__(self) -> str:
        return (f"VestingEvent(#{self.event_id} {self.event_type.value} "
                f"{self.amount} {self.beneficiary} @{self.timestamp})")
