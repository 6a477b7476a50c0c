"""
gateway.py - Transaction Submission and Status Oracle

Collaborators (wallet and UI layers) never see ledger exceptions directly.
They submit a mutation, get back a transaction id, and later poll its status:
pending, success or failed. This module provides that seam.

1. TransactionStatus - the three states a submitted mutation can be in
2. classify_tx_status() - maps a node API status string to TransactionStatus
3. TransactionGateway - submits mutations to a VestingLedger and records receipts
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol
import threading

from .core import VestingError, get_error_message
from .ledger import VestingLedger


class TransactionStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


# Node API statuses that mean the transaction was mined but rejected
_FAILED_API_STATUSES = frozenset({"abort_by_response", "abort_by_post_condition"})


def classify_tx_status(raw_status: Optional[str]) -> TransactionStatus:
    """
    Map a raw node API tx_status onto TransactionStatus.

    Unknown or missing statuses are still pending: the poller keeps asking.
    """
    if raw_status == "success":
        return TransactionStatus.SUCCESS
    if raw_status in _FAILED_API_STATUSES:
        return TransactionStatus.FAILED
    return TransactionStatus.PENDING


class TransactionStatusOracle(Protocol):
    """Anything that can report whether a submitted mutation was accepted."""

    def status(self, tx_id: str) -> TransactionStatus:
        ...


@dataclass(frozen=True, slots=True)
class TransactionReceipt:
    """
    Outcome of one submitted mutation.

    Attributes:
        tx_id: Identifier returned by submit()
        operation: Ledger operation name ("create_schedule", "claim", "revoke", "fund")
        caller: Identity that submitted the mutation
        status: SUCCESS or FAILED
        submitted_at: Ledger time at submission
        result: Operation return value on success (bool, or the amount claimed)
        error_code: VestingError code on failure
        error_message: User-facing message on failure
        event_id: Id of the event the mutation logged, on success
    """
    tx_id: str
    operation: str
    caller: str
    status: TransactionStatus
    submitted_at: int
    result: Any = None
    error_code: Optional[int] = None
    error_message: Optional[str] = None
    event_id: Optional[int] = None


class TransactionGateway:
    """
    Submits mutations to a ledger and answers status queries about them.

    Example:
        gateway = TransactionGateway(ledger)
        tx_id = gateway.submit("fund", "alice", 1_000_000)
        gateway.status(tx_id)       # TransactionStatus.SUCCESS
        tx_id = gateway.submit("claim", "bob")
        gateway.receipt(tx_id).error_code   # 101 if bob has no schedule
    """

    OPERATIONS = ("create_schedule", "claim", "revoke", "fund")

    def __init__(self, ledger: VestingLedger):
        self.ledger = ledger
        self._receipts: Dict[str, TransactionReceipt] = {}
        self._order: List[str] = []
        self._next_sequence = 0
        self._lock = threading.Lock()

    def _generate_tx_id(self, sequence: int, timestamp: int) -> str:
        """Format: tx:{ledger_name}:{sequence:012d}:{timestamp}"""
        return f"tx:{self.ledger.name}:{sequence:012d}:{timestamp}"

    def submit(self, operation: str, caller: str, *args: Any) -> str:
        """
        Run a ledger mutation on behalf of caller and record its outcome.

        Ledger errors are captured in the receipt instead of propagating.

        Returns:
            The transaction id

        Raises:
            ValueError: If operation is not a mutating ledger operation
        """
        if operation not in self.OPERATIONS:
            raise ValueError(f"unknown operation {operation!r}; expected one of {self.OPERATIONS}")
        method: Callable[..., Any] = getattr(self.ledger, operation)

        with self._lock:
            sequence = self._next_sequence
            self._next_sequence += 1
            submitted_at = self.ledger.get_current_time()
            tx_id = self._generate_tx_id(sequence, submitted_at)
            events_before = self.ledger.get_event_count()
            try:
                result = method(caller, *args)
            except VestingError as e:
                receipt = TransactionReceipt(
                    tx_id=tx_id,
                    operation=operation,
                    caller=caller,
                    status=TransactionStatus.FAILED,
                    submitted_at=submitted_at,
                    error_code=e.code,
                    error_message=get_error_message(e),
                )
            else:
                receipt = TransactionReceipt(
                    tx_id=tx_id,
                    operation=operation,
                    caller=caller,
                    status=TransactionStatus.SUCCESS,
                    submitted_at=submitted_at,
                    result=result,
                    event_id=events_before,
                )
            self._receipts[tx_id] = receipt
            self._order.append(tx_id)
            return tx_id

    def status(self, tx_id: str) -> TransactionStatus:
        """Status of tx_id; ids this gateway has not seen are PENDING."""
        receipt = self._receipts.get(tx_id)
        if receipt is None:
            return TransactionStatus.PENDING
        return receipt.status

    def receipt(self, tx_id: str) -> Optional[TransactionReceipt]:
        return self._receipts.get(tx_id)

    def history(self, caller: Optional[str] = None) -> List[TransactionReceipt]:
        """Receipts in submission order, optionally for one caller."""
        receipts = [self._receipts[t] for t in self._order]
        if caller is not None:
            receipts = [r for r in receipts if r.caller == caller]
        return receipts
