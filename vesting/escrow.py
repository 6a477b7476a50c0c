"""
escrow.py - Pooled Escrow Balance

Holds the single balance backing every schedule's payouts. Deposits are open
to anyone; withdrawals are made only by the ledger and never below zero.
"""

from __future__ import annotations

from .core import UINT_MAX, InsufficientEscrow, InvalidAmount, require_uint


class EscrowAccount:
    """Unsigned integer balance with all-or-nothing withdrawals."""

    def __init__(self, balance: int = 0):
        self._balance = require_uint("balance", balance, InvalidAmount)

    @property
    def balance(self) -> int:
        return self._balance

    def deposit(self, amount: int) -> int:
        """
        Add amount to the pool and return the new balance.

        Raises:
            InvalidAmount: If amount is zero, not an unsigned integer, or would
                           push the balance past UINT_MAX
        """
        require_uint("amount", amount, InvalidAmount)
        if amount == 0:
            raise InvalidAmount("funding amount must be positive")
        if self._balance + amount > UINT_MAX:
            raise InvalidAmount("escrow balance would exceed 2**128-1")
        self._balance += amount
        return self._balance

    def withdraw(self, amount: int) -> int:
        """
        Remove amount from the pool and return the new balance.

        A withdrawal larger than the balance fails with no state change.

        Raises:
            InsufficientEscrow: If amount exceeds the balance
        """
        require_uint("amount", amount, InvalidAmount)
        if amount > self._balance:
            raise InsufficientEscrow(
                f"escrow holds {self._balance}, cannot pay {amount}"
            )
        self._balance -= amount
        return self._balance

    def __repr__(self) -> str:
        return f"EscrowAccount(balance={self._balance})"
