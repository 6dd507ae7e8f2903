"""
token.py - In-memory ERC20-style fungible token

The pool never owns a token: it only asks a token contract to move balances
through the TransferGateway. FungibleToken is the reference collaborator used
by the demo and the test suite. It follows the ERC20 shape:

    - The deployer receives the initial supply
    - approve() sets a spender allowance; transfer_from() consumes it
    - transfer() and transfer_from() return False instead of raising when the
      sender lacks balance or allowance

A receive hook can be attached to any account. It runs after the recipient is
credited, which lets tests model tokens that call back into the receiver
(ERC777-style). If the hook raises, the token restores every balance,
allowance and the supply to what they were before the transfer, including
anything the hook itself moved, and re-raises.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Optional, Tuple

from .core import Address, Amount, make_address


# Hook signature: (token, sender, recipient, amount) -> None
ReceiveHook = Callable[['FungibleToken', Address, Address, Amount], None]


class FungibleToken:
    """
    ERC20-style token with balances and allowances.

    Implements the TokenContract protocol.

    Example:
        token = FungibleToken("Token A", "TKA", deployer="owner",
                              initial_supply=parse_units("1000000"))
        token.transfer("owner", "alice", parse_units("1000"))
        token.approve("alice", pool.address, parse_units("100"))
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        decimals: int = 18,
        deployer: Optional[Address] = None,
        initial_supply: Amount = 0,
        address: Optional[Address] = None,
    ):
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._address = address or make_address(f"token:{symbol}:{name}")
        self.balances: Dict[Address, Amount] = {}
        self.allowances: Dict[Tuple[Address, Address], Amount] = {}
        self.total_supply: Amount = 0
        self._receive_hooks: Dict[Address, ReceiveHook] = {}
        if initial_supply:
            if deployer is None:
                raise ValueError("initial_supply requires a deployer")
            self.mint(deployer, initial_supply)

    @property
    def address(self) -> Address:
        return self._address

    def __repr__(self) -> str:
        return f"FungibleToken({self.symbol} @ {self._address})"

    # ========================================================================
    # READS
    # ========================================================================

    def balance_of(self, account: Address) -> Amount:
        return self.balances.get(account, 0)

    def allowance(self, holder: Address, spender: Address) -> Amount:
        return self.allowances.get((holder, spender), 0)

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def mint(self, recipient: Address, amount: Amount) -> bool:
        """Create amount new tokens in recipient's balance."""
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")
        self.balances[recipient] = self.balance_of(recipient) + amount
        self.total_supply += amount
        return True

    def approve(self, holder: Address, spender: Address, amount: Amount) -> bool:
        """Set (not add to) the amount spender may move out of holder's balance."""
        if amount < 0:
            return False
        self.allowances[(holder, spender)] = amount
        return True

    def transfer(self, sender: Address, recipient: Address, amount: Amount) -> bool:
        """
        Move amount from sender to recipient.

        Returns:
            True if the transfer happened, False if the amount is negative or
            sender's balance is too small.
        """
        return self._move(sender, recipient, amount)

    def transfer_from(
        self,
        spender: Address,
        holder: Address,
        recipient: Address,
        amount: Amount,
    ) -> bool:
        """
        Move amount from holder to recipient, spending spender's allowance.

        The allowance is only consumed when the move itself succeeds.
        """
        allowed = self.allowance(holder, spender)
        if amount < 0 or allowed < amount:
            return False
        self.allowances[(holder, spender)] = allowed - amount
        try:
            moved = self._move(holder, recipient, amount)
        except Exception:
            self.allowances[(holder, spender)] = allowed
            raise
        if not moved:
            self.allowances[(holder, spender)] = allowed
        return moved

    def set_receive_hook(self, account: Address, hook: Optional[ReceiveHook]) -> None:
        """Attach (or with None, detach) a callback run whenever account is credited."""
        if hook is None:
            self._receive_hooks.pop(account, None)
        else:
            self._receive_hooks[account] = hook

    def _move(self, sender: Address, recipient: Address, amount: Amount) -> bool:
        if amount < 0:
            return False
        sender_balance = self.balance_of(sender)
        if sender_balance < amount:
            return False

        hook = self._receive_hooks.get(recipient)
        snapshot = self._snapshot() if hook is not None else None

        self.balances[sender] = sender_balance - amount
        self.balances[recipient] = self.balance_of(recipient) + amount

        if hook is not None:
            try:
                hook(self, sender, recipient, amount)
            except Exception:
                # Everything the hook did is undone along with the transfer
                self._restore(snapshot)
                raise
        return True

    def _snapshot(self) -> Dict[str, Any]:
        return {
            'balances': dict(self.balances),
            'allowances': dict(self.allowances),
            'total_supply': self.total_supply,
        }

    def _restore(self, snap: Dict[str, Any]) -> None:
        self.balances = dict(snap['balances'])
        self.allowances = dict(snap['allowances'])
        self.total_supply = snap['total_supply']
