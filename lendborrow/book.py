"""
book.py - Non-negative balance book keyed by (token, account)

Shared storage for the lender and borrower ledgers. Balances are held as
token -> {account -> amount}, which doubles as the position index: a zero
balance is removed from the map, so "no entry" and "zero" are the same
state (NoPosition).

Every mutation goes through credit() or debit(). debit() refuses to go below
zero, so no sequence of calls can produce a negative balance.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Dict, List

from .core import Address, Amount, Positions, InsufficientBalance


class BalanceBook:
    """
    Mapping (token, account) -> non-negative int.

    Args:
        label: Name used in error messages (e.g. "lent", "borrowed").
    """

    def __init__(self, label: str):
        self.label = label
        self._balances: Dict[Address, Dict[Address, Amount]] = defaultdict(dict)

    def get(self, token_address: Address, account: Address) -> Amount:
        return self._balances.get(token_address, {}).get(account, 0)

    def credit(self, token_address: Address, account: Address, amount: Amount) -> Amount:
        """Add amount to the balance and return the new balance."""
        new_balance = self.get(token_address, account) + amount
        self._set(token_address, account, new_balance)
        return new_balance

    def debit(self, token_address: Address, account: Address, amount: Amount) -> Amount:
        """
        Subtract amount from the balance and return the new balance.

        Raises:
            InsufficientBalance: If amount exceeds the current balance.
        """
        current = self.get(token_address, account)
        if amount > current:
            raise InsufficientBalance(
                f"{account} {self.label} {token_address}: {amount} > balance {current}"
            )
        self._set(token_address, account, current - amount)
        return current - amount

    def _set(self, token_address: Address, account: Address, amount: Amount) -> None:
        if amount:
            self._balances[token_address][account] = amount
        else:
            self._balances[token_address].pop(account, None)
            if not self._balances[token_address]:
                del self._balances[token_address]

    def positions(self, token_address: Address) -> Positions:
        """All non-zero balances for a token."""
        return dict(self._balances.get(token_address, {}))

    def total(self, token_address: Address) -> Amount:
        """Sum of all balances for a token, accumulated in account order."""
        positions = self._balances.get(token_address, {})
        return sum(positions[a] for a in sorted(positions))

    def tokens(self) -> List[Address]:
        """Tokens with at least one non-zero balance."""
        return sorted(self._balances)

    def snapshot(self) -> Dict[Address, Dict[Address, Amount]]:
        return {token: dict(positions) for token, positions in self._balances.items()}

    def restore(self, snap: Dict[Address, Dict[Address, Amount]]) -> None:
        self._balances = defaultdict(dict, {token: dict(p) for token, p in snap.items()})
