"""
lender.py - LenderLedger

Tracks how much of each lending token each lender has supplied and not yet
withdrawn.

    to_lend                  pull from lender, then credit
    to_withdraw_lent_tokens  debit, then push to lender

The withdrawal updates the balance before the token leaves custody, so a
token that calls back into the pool during the push sees the reduced
balance. The pool wraps both operations in one atomic unit, which undoes
the debit if the push fails.
"""

from __future__ import annotations
from typing import List

from .book import BalanceBook
from .core import Address, Amount, Positions, TokenTransfer, require_amount
from .gateway import TransferGateway
from .registry import TokenRegistry


class LenderLedger:
    """Per-(token, lender) supplied balances."""

    def __init__(self, registry: TokenRegistry, gateway: TransferGateway):
        self.registry = registry
        self.gateway = gateway
        self.book = BalanceBook("lent")

    def to_lend(self, caller: Address, token_address: Address, amount: Amount) -> List[TokenTransfer]:
        """
        Supply amount of a listed lending token.

        Raises:
            InvalidToken: token is not listed for lending.
            InvalidAmount: amount is not a positive integer.
            TransferFailed: the pull did not succeed (e.g. missing approval).
        """
        self.registry.require_lending_token(token_address)
        require_amount(amount, positive=True)
        transfer = self.gateway.pull_from(token_address, caller, amount)
        self.book.credit(token_address, caller, amount)
        return [transfer]

    def to_withdraw_lent_tokens(self, caller: Address, token_address: Address, amount: Amount) -> List[TokenTransfer]:
        """
        Take back amount of previously lent tokens.

        Raises:
            InvalidAmount: amount is negative or not an integer.
            InsufficientBalance: amount exceeds what caller has lent.
            TransferFailed: custody could not pay out (liquidity is borrowed).
        """
        require_amount(amount)
        self.book.debit(token_address, caller, amount)
        return [self.gateway.push_to(token_address, caller, amount)]

    def balance_of(self, token_address: Address, account: Address) -> Amount:
        return self.book.get(token_address, account)

    def positions(self, token_address: Address) -> Positions:
        return self.book.positions(token_address)

    def total(self, token_address: Address) -> Amount:
        return self.book.total(token_address)
