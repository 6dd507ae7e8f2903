"""
borrower.py - BorrowerLedger

Tracks how much of each borrowing token each borrower currently owes.

=== ORDERING ===

Both operations record the debt change before the token moves:

    borrow     credit debt, then push tokens to the borrower
    pay_debt   debit debt, then pull tokens from the borrower

A token that calls back into the pool mid-transfer therefore always sees the
post-operation debt. If the transfer fails, the pool's atomic unit restores
the debt as it was.

=== LIQUIDITY ===

Available liquidity for a token is Σ lent - Σ borrowed. borrow() does not
compute it: the ceiling is the balance actually held in custody, and a push
beyond it fails with TransferFailed.

No collateral-sufficiency check is made on borrow.
"""

from __future__ import annotations
from typing import List

from .book import BalanceBook
from .core import Address, Amount, Positions, TokenTransfer, require_amount
from .gateway import TransferGateway
from .registry import TokenRegistry


class BorrowerLedger:
    """Per-(token, borrower) outstanding debt."""

    def __init__(self, registry: TokenRegistry, gateway: TransferGateway):
        self.registry = registry
        self.gateway = gateway
        self.book = BalanceBook("borrowed")

    def borrow(self, caller: Address, token_address: Address, amount: Amount) -> List[TokenTransfer]:
        """
        Draw amount of a listed borrowing token from pooled liquidity.

        Raises:
            InvalidToken: token is not listed for borrowing.
            InvalidAmount: amount is not a positive integer.
            TransferFailed: custody does not hold enough of the token.
        """
        self.registry.require_borrowing_token(token_address)
        require_amount(amount, positive=True)
        self.book.credit(token_address, caller, amount)
        return [self.gateway.push_to(token_address, caller, amount)]

    def pay_debt(self, caller: Address, token_address: Address, amount: Amount) -> List[TokenTransfer]:
        """
        Repay amount of outstanding debt.

        Raises:
            InvalidAmount: amount is negative or not an integer.
            InsufficientBalance: amount exceeds the caller's debt.
            TransferFailed: the pull did not succeed (e.g. missing approval).
        """
        require_amount(amount)
        self.book.debit(token_address, caller, amount)
        return [self.gateway.pull_from(token_address, caller, amount)]

    def balance_of(self, token_address: Address, account: Address) -> Amount:
        return self.book.get(token_address, account)

    def positions(self, token_address: Address) -> Positions:
        return self.book.positions(token_address)

    def total(self, token_address: Address) -> Amount:
        return self.book.total(token_address)
