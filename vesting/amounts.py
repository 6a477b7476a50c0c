"""
amounts.py - Base-Unit Conversion and Display Helpers

The ledger counts tokens in integer base units (1 token = 1,000,000 base
units) and time in blocks. These helpers convert to and from human-facing
values for collaborators that render them. Decimal is used for token amounts
so conversions are exact.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_EVEN
from typing import Union

from .core import UINT_MAX


BASE_UNITS_PER_TOKEN = 1_000_000

# Average block interval used to translate block counts into wall time.
MINUTES_PER_BLOCK = 10


@dataclass(frozen=True, slots=True)
class TimeDuration:
    days: int
    hours: int
    minutes: int


def to_base_units(tokens: Union[Decimal, int, str]) -> int:
    """
    Convert a token amount to base units, truncating sub-unit dust.

    Raises:
        ValueError: If tokens is not a number, negative, not finite, or out of range
    """
    if isinstance(tokens, float):
        # str() keeps the shortest repr (0.1 -> "0.1") instead of the binary expansion
        tokens = str(tokens)
    try:
        value = Decimal(tokens)
    except InvalidOperation:
        raise ValueError(f"token amount is not a number: {tokens!r}") from None
    if not value.is_finite():
        raise ValueError(f"token amount must be finite, got {tokens!r}")
    if value < 0:
        raise ValueError(f"token amount must be non-negative, got {tokens!r}")
    base = int((value * BASE_UNITS_PER_TOKEN).to_integral_value(rounding=ROUND_DOWN))
    if base > UINT_MAX:
        raise ValueError(f"token amount {tokens!r} exceeds 2**128-1 base units")
    return base


def from_base_units(base_units: int) -> Decimal:
    """Convert base units to an exact token Decimal."""
    return Decimal(base_units) / Decimal(BASE_UNITS_PER_TOKEN)


def format_amount(base_units: int, decimals: int = 2) -> str:
    """Format base units as a token amount with thousands separators, e.g. '1,234.50'."""
    quantizer = Decimal(10) ** -decimals
    tokens = from_base_units(base_units).quantize(quantizer, rounding=ROUND_HALF_EVEN)
    return f"{tokens:,.{decimals}f}"


def blocks_to_duration(blocks: int) -> TimeDuration:
    total_minutes = blocks * MINUTES_PER_BLOCK
    days = total_minutes // (60 * 24)
    hours = (total_minutes % (60 * 24)) // 60
    minutes = total_minutes % 60
    return TimeDuration(days=days, hours=hours, minutes=minutes)


def format_duration(blocks: int) -> str:
    """Compact duration string: '3d 4h', '2h 10m' or '40m'."""
    d = blocks_to_duration(blocks)
    if d.days > 0:
        return f"{d.days}d {d.hours}h"
    if d.hours > 0:
        return f"{d.hours}h {d.minutes}m"
    return f"{d.minutes}m"


def truncate_identity(identity: str, chars: int = 4) -> str:
    """Shorten an identity for display: 'SP2J6Z...9EJ7'."""
    if not identity:
        return ""
    if len(identity) <= 2 * chars + 2:
        return identity
    return f"{identity[:chars + 2]}...{identity[-chars:]}"
