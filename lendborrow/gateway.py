"""
gateway.py - TransferGateway between the pool and external token contracts

The gateway has no ledger state of its own. It knows the pool's custody
account and a directory of token contracts by address, and it turns the two
movements the pool needs into TokenTransfer records:

    pull_from(token, holder, amount)    holder -> custody (needs prior approve)
    push_to(token, recipient, amount)   custody -> recipient

Any failure of the underlying token (False result, unexpected exception,
unknown address) becomes TransferFailed. LendingError raised from inside a
token callback is passed through as-is, so a blocked reentrant call surfaces
as ReentrancyError rather than as a generic transfer failure.
"""

from __future__ import annotations
from typing import Dict, Iterable, List

from .core import (
    Address, Amount, TokenContract, TokenTransfer,
    DIRECTION_PULL, DIRECTION_PUSH,
    LendingError, TransferFailed,
)


class TransferGateway:
    """
    Thin adapter over TokenContract transfer operations.

    Args:
        custodian: The pool's own account; pulls credit it, pushes debit it.
        tokens: Token contracts to register up front.
        read_only: Refuse every pull and push; balance reads still work.
    """

    def __init__(self, custodian: Address, tokens: Iterable[TokenContract] = (), read_only: bool = False):
        self.custodian = custodian
        self.read_only = read_only
        self.tokens: Dict[Address, TokenContract] = {}
        for token in tokens:
            self.register_token(token)

    def register_token(self, token: TokenContract) -> None:
        """Make a token contract reachable by its address."""
        self.tokens[token.address] = token

    def resolve(self, token_address: Address) -> TokenContract:
        """
        Return the contract deployed at token_address.

        Raises:
            TransferFailed: If no contract is known at that address.
        """
        token = self.tokens.get(token_address)
        if token is None:
            raise TransferFailed(f"No token contract at {token_address}")
        return token

    def known_tokens(self) -> List[Address]:
        return sorted(self.tokens)

    def detached(self) -> TransferGateway:
        """
        A read-only gateway over the same custody account and token contracts.

        Used by cloned pools, which can inspect custody but never move it.
        """
        return TransferGateway(self.custodian, self.tokens.values(), read_only=True)

    def balance_of(self, token_address: Address) -> Amount:
        """Amount of token_address held in custody."""
        return self.resolve(token_address).balance_of(self.custodian)

    def pull_from(self, token_address: Address, holder: Address, amount: Amount) -> TokenTransfer:
        """Move amount of token from holder into custody using holder's allowance."""
        token = self.resolve(token_address)
        self._call(
            token.transfer_from, token_address,
            self.custodian, holder, self.custodian, amount,
        )
        return TokenTransfer(token_address, holder, self.custodian, amount, DIRECTION_PULL)

    def push_to(self, token_address: Address, recipient: Address, amount: Amount) -> TokenTransfer:
        """Move amount of token out of custody to recipient."""
        token = self.resolve(token_address)
        self._call(token.transfer, token_address, self.custodian, recipient, amount)
        return TokenTransfer(token_address, self.custodian, recipient, amount, DIRECTION_PUSH)

    def _call(self, method, token_address: Address, *args) -> None:
        if self.read_only:
            raise TransferFailed(f"Gateway for {self.custodian} is read-only; cannot move {token_address}")
        try:
            ok = method(*args)
        except LendingError:
            raise
        except Exception as e:
            raise TransferFailed(f"Token {token_address} raised during transfer: {e}") from e
        if not ok:
            raise TransferFailed(f"Token {token_address} rejected transfer {args}")
