"""
event_log.py - Append-Only Vesting Event Log

Sequentially indexed record of every ledger-affecting action. Entries are
frozen VestingEvent instances; ids start at 0 and equal the log length at the
moment of appending. Nothing is ever removed or rewritten.
"""

from __future__ import annotations
from typing import Iterator, List, Optional

from .core import EventType, VestingEvent, is_uint


class EventLog:
    """Append-only sequence of VestingEvent."""

    def __init__(self):
        self._events: List[VestingEvent] = []

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[VestingEvent]:
        return iter(list(self._events))

    @property
    def next_id(self) -> int:
        """The id the next appended event will receive."""
        return len(self._events)

    def append(
        self,
        beneficiary: str,
        amount: int,
        timestamp: int,
        event_type: EventType,
    ) -> VestingEvent:
        """Record an event and return it."""
        if not isinstance(event_type, EventType):
            raise TypeError(f"event_type must be EventType, got {type(event_type).__name__}")
        event = VestingEvent(
            event_id=len(self._events),
            beneficiary=beneficiary,
            amount=amount,
            timestamp=timestamp,
            event_type=event_type,
        )
        self._events.append(event)
        return event

    def get(self, event_id: int) -> Optional[VestingEvent]:
        """Return the event at event_id, or None if absent."""
        if not is_uint(event_id) or event_id >= len(self._events):
            return None
        return self._events[event_id]

    def for_beneficiary(self, beneficiary: str) -> List[VestingEvent]:
        return [e for e in self._events if e.beneficiary == beneficiary]

    def of_type(self, event_type: EventType) -> List[VestingEvent]:
        return [e for e in self._events if e.event_type == event_type]

    def total(self, event_type: EventType) -> int:
        """Sum of amounts across events of one type."""
        return sum(e.amount for e in self._events if e.event_type == event_type)

    def copy(self) -> EventLog:
        cloned = EventLog()
        cloned._events = list(self._events)
        return cloned
