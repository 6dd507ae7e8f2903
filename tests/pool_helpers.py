"""
pool_helpers.py - Test helpers for the lending pool

Provides:
- Named accounts and a token factory
- approve-then-act shortcuts mirroring the approve/call pairs of an ERC20 flow
- ledger_state() for before/after comparisons in atomicity tests
- Hostile token doubles: a token that refuses transfers, a token that raises,
  and a reentry hook that calls back into the pool while being paid
"""

from __future__ import annotations
from typing import Callable, List, Tuple

from lendborrow import LendingAndBorrowing, FungibleToken, parse_units


OWNER = "owner"
LENDER = "lender"
BORROWER = "borrower"
OTHER = "other"

INITIAL_SUPPLY = parse_units("1000000")


def make_token(name: str, symbol: str, deployer: str = OWNER, cls=FungibleToken) -> FungibleToken:
    """Deploy a test token with the full supply held by deployer."""
    return cls(name, symbol, decimals=18, deployer=deployer, initial_supply=INITIAL_SUPPLY)


def build_pool(token_cls=FungibleToken, name: str = "test") -> Tuple[LendingAndBorrowing, FungibleToken, FungibleToken, FungibleToken]:
    """
    Build a quiet pool outside of pytest fixtures (for hypothesis tests).

    Token A is lendable, Token B is lendable and borrowable, CLT is the
    collateral token. All three are instances of token_cls. Lender holds
    1000 A and 1000 B, borrower holds 1000 CLT and 1000 B.

    Returns:
        (pool, token_a, token_b, collateral_token)
    """
    token_a = make_token("Token A", "TKA", cls=token_cls)
    token_b = make_token("Token B", "TKB", cls=token_cls)
    clt = make_token("Collateral Token", "CLT", cls=token_cls)
    pool = LendingAndBorrowing(name, admin=OWNER, tokens=[token_a, token_b, clt], verbose=False)
    pool.add_tokens_for_lending(OWNER, "Token A", token_a.address)
    pool.add_tokens_for_lending(OWNER, "Token B", token_b.address)
    pool.add_tokens_for_borrowing(OWNER, "Token B", token_b.address)
    pool.set_collateral_token(OWNER, clt.address)

    token_a.transfer(OWNER, LENDER, parse_units("1000"))
    token_b.transfer(OWNER, LENDER, parse_units("1000"))
    token_b.transfer(OWNER, BORROWER, parse_units("1000"))
    clt.transfer(OWNER, BORROWER, parse_units("1000"))
    return pool, token_a, token_b, clt


def approve_and_lend(pool: LendingAndBorrowing, token: FungibleToken, account: str, amount: int):
    """Approve the pool for amount, then lend it."""
    token.approve(account, pool.address, amount)
    return pool.to_lend(account, token.address, amount)


def approve_and_deposit(pool: LendingAndBorrowing, token: FungibleToken, account: str, amount: int):
    """Approve the pool for amount of collateral, then deposit it."""
    token.approve(account, pool.address, amount)
    return pool.deposit_collateral(account, amount)


def approve_and_repay(pool: LendingAndBorrowing, token: FungibleToken, account: str, amount: int):
    """Approve the pool for amount, then repay it."""
    token.approve(account, pool.address, amount)
    return pool.pay_debt(account, token.address, amount)


def ledger_state(pool: LendingAndBorrowing) -> dict:
    """Capture every piece of registry and ledger state."""
    tokens = sorted(pool.gateway.tokens)
    return {
        'lending': pool.get_tokens_for_lending_array(),
        'borrowing': pool.get_tokens_for_borrowing_array(),
        'collateral_token': pool.collateral_token,
        'lent': {t: pool.get_lender_positions(t) for t in tokens},
        'borrowed': {t: pool.get_borrower_positions(t) for t in tokens},
        'collateral': pool.get_collateral_positions(),
    }


# =============================================================================
# HOSTILE TOKENS
# =============================================================================

class RefusingToken(FungibleToken):
    """Token whose transfers report failure while refuse is set."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.refuse = False

    def transfer(self, sender, recipient, amount):
        if self.refuse:
            return False
        return super().transfer(sender, recipient, amount)

    def transfer_from(self, spender, holder, recipient, amount):
        if self.refuse:
            return False
        return super().transfer_from(spender, holder, recipient, amount)


class ExplodingToken(FungibleToken):
    """Token whose transfers raise a non-lending exception while explode is set."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.explode = False

    def transfer(self, sender, recipient, amount):
        if self.explode:
            raise RuntimeError("token paused")
        return super().transfer(sender, recipient, amount)

    def transfer_from(self, spender, holder, recipient, amount):
        if self.explode:
            raise RuntimeError("token paused")
        return super().transfer_from(spender, holder, recipient, amount)


class ReentryHook:
    """
    Receive hook that calls back into the pool once.

    Attach with token.set_receive_hook(account, hook). The first time account
    is credited, attack() runs; whatever it raises is stored in self.errors
    and re-raised when propagate is True.
    """

    def __init__(self, attack: Callable[[], object], propagate: bool = True):
        self.attack = attack
        self.propagate = propagate
        self.fired = False
        self.errors: List[Exception] = []

    def __call__(self, token, sender, recipient, amount):
        if self.fired:
            return
        self.fired = True
        try:
            self.attack()
        except Exception as e:
            self.errors.append(e)
            if self.propagate:
                raise
