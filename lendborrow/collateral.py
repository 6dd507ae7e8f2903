"""
collateral.py - CollateralVault

One designated asset backs all borrowing. The vault keeps a single
account -> amount map; which token that amount is denominated in is read
from the registry at the time of each operation.

Deposits are additive. Releasing collateral does not look at the caller's
outstanding debt.
"""

from __future__ import annotations
from typing import Dict, List

from .core import (
    Address, Amount, Positions, TokenTransfer,
    InsufficientBalance, require_amount,
)
from .gateway import TransferGateway
from .registry import TokenRegistry


class CollateralVault:
    """Per-borrower collateral balances for the global collateral token."""

    def __init__(self, registry: TokenRegistry, gateway: TransferGateway):
        self.registry = registry
        self.gateway = gateway
        self._balances: Dict[Address, Amount] = {}

    def deposit_collateral(self, caller: Address, amount: Amount) -> List[TokenTransfer]:
        """
        Post amount of the collateral token.

        Raises:
            InvalidToken: no collateral token has been set.
            InvalidAmount: amount is not a positive integer.
            TransferFailed: the pull did not succeed.
        """
        token_address = self.registry.require_collateral_token()
        require_amount(amount, positive=True)
        transfer = self.gateway.pull_from(token_address, caller, amount)
        self._balances[caller] = self.balance_of(caller) + amount
        return [transfer]

    def release_collateral(self, caller: Address, amount: Amount) -> List[TokenTransfer]:
        """
        Take back amount of posted collateral.

        Raises:
            InvalidToken: no collateral token has been set.
            InvalidAmount: amount is negative or not an integer.
            InsufficientBalance: amount exceeds the caller's collateral.
            TransferFailed: the push did not succeed.
        """
        token_address = self.registry.require_collateral_token()
        require_amount(amount)
        current = self.balance_of(caller)
        if amount > current:
            raise InsufficientBalance(f"{caller} collateral: {amount} > balance {current}")
        if current - amount:
            self._balances[caller] = current - amount
        else:
            self._balances.pop(caller, None)
        return [self.gateway.push_to(token_address, caller, amount)]

    def balance_of(self, account: Address) -> Amount:
        return self._balances.get(account, 0)

    def positions(self) -> Positions:
        return dict(self._balances)

    def total(self) -> Amount:
        return sum(self._balances[a] for a in sorted(self._balances))

    def snapshot(self) -> Dict[Address, Amount]:
        return dict(self._balances)

    def restore(self, snap: Dict[Address, Amount]) -> None:
        self._balances = dict(snap)
