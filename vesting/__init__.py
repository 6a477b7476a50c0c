"""
vesting - Token Vesting Ledger

An administrator locks a token allocation for a beneficiary; it unlocks
linearly after a cliff, and the beneficiary claims unlocked tokens from a
pooled escrow. Every mutation is atomic and leaves one entry in an
append-only event log.

Usage:
    from vesting import VestingLedger, NoTokensAvailable

    ledger = VestingLedger("main", admin="deployer", verbose=False)
    ledger.fund("deployer", 2_000_000)
    ledger.create_schedule("deployer", "alice", 1_000_000,
                           cliff_duration=100, vesting_duration=500)

    ledger.advance_time(250)
    ledger.claim("alice")                      # 500_000
    ledger.get_vesting_progress("alice")       # 50

    try:
        ledger.claim("alice")                  # same instant, nothing new
    except NoTokensAvailable:
        pass
"""

# Core types
from .core import (
    Clock,
    EventType,
    VestingSchedule,
    VestingEvent,
    VestingError,
    Unauthorized,
    NotFound,
    AlreadyExists,
    NoTokensAvailable,
    InvalidSchedule,
    InvalidAmount,
    InsufficientEscrow,
    get_error_message,
    is_uint,
    UINT_MAX,
    PROGRESS_SCALE,
    ERROR_MESSAGES,
    ERR_OWNER_ONLY,
    ERR_NOT_FOUND,
    ERR_ALREADY_EXISTS,
    ERR_VESTING_NOT_STARTED,
    ERR_NO_TOKENS_AVAILABLE,
    ERR_UNAUTHORIZED,
    ERR_INVALID_SCHEDULE,
    ERR_INSUFFICIENT_ESCROW,
)

# Components
from .clock import LogicalClock
from .escrow import EscrowAccount
from .event_log import EventLog
from .schedule_store import ScheduleStore, ScheduleFilter, Page, paginate

# Ledger
from .ledger import VestingLedger, LedgerSnapshot

# Vesting math
from .calculations import (
    VestingStats,
    VestingMilestone,
    elapsed,
    calculate_vested_amount,
    calculate_claimable,
    calculate_progress,
    is_cliff_passed,
    calculate_vesting_stats,
    calculate_milestones,
    next_milestone,
    time_to_vest,
    vesting_curve,
)

# Amounts and display
from .amounts import (
    TimeDuration,
    BASE_UNITS_PER_TOKEN,
    MINUTES_PER_BLOCK,
    to_base_units,
    from_base_units,
    format_amount,
    blocks_to_duration,
    format_duration,
    truncate_identity,
)

# Transaction status oracle
from .gateway import (
    TransactionStatus,
    TransactionStatusOracle,
    TransactionReceipt,
    TransactionGateway,
    classify_tx_status,
)

__all__ = [
    # Core
    'Clock', 'EventType', 'VestingSchedule', 'VestingEvent',
    'VestingError', 'Unauthorized', 'NotFound', 'AlreadyExists',
    'NoTokensAvailable', 'InvalidSchedule', 'InvalidAmount', 'InsufficientEscrow',
    'get_error_message', 'is_uint', 'UINT_MAX', 'PROGRESS_SCALE', 'ERROR_MESSAGES',
    'ERR_OWNER_ONLY', 'ERR_NOT_FOUND', 'ERR_ALREADY_EXISTS', 'ERR_VESTING_NOT_STARTED',
    'ERR_NO_TOKENS_AVAILABLE', 'ERR_UNAUTHORIZED', 'ERR_INVALID_SCHEDULE',
    'ERR_INSUFFICIENT_ESCROW',
    # Components
    'LogicalClock', 'EscrowAccount', 'EventLog',
    'ScheduleStore', 'ScheduleFilter', 'Page', 'paginate',
    # Ledger
    'VestingLedger', 'LedgerSnapshot',
    # Vesting math
    'VestingStats', 'VestingMilestone', 'elapsed',
    'calculate_vested_amount', 'calculate_claimable', 'calculate_progress',
    'is_cliff_passed', 'calculate_vesting_stats', 'calculate_milestones',
    'next_milestone', 'time_to_vest', 'vesting_curve',
    # Amounts
    'TimeDuration', 'BASE_UNITS_PER_TOKEN', 'MINUTES_PER_BLOCK',
    'to_base_units', 'from_base_units', 'format_amount',
    'blocks_to_duration', 'format_duration', 'truncate_identity',
    # Gateway
    'TransactionStatus', 'TransactionStatusOracle', 'TransactionReceipt',
    'TransactionGateway', 'classify_tx_status',
]

__version__ = '1.0.0'
