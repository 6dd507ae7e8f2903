"""
conftest.py - Shared pytest fixtures for lending pool tests

Provides common fixtures used across unit, conformance and functional tests:
- Three test tokens deployed by the owner (A, B, collateral)
- A pool with A lendable, B borrowable and the collateral token set,
  with tokens handed out to lender and borrower
- A liquid pool where B has also been supplied, so borrowing B succeeds
"""

import pytest

from lendborrow import LendingAndBorrowing, parse_units

from tests.pool_helpers import (
    OWNER, LENDER, BORROWER,
    make_token, approve_and_lend,
)


@pytest.fixture
def token_a():
    return make_token("Token A", "TKA")


@pytest.fixture
def token_b():
    return make_token("Token B", "TKB")


@pytest.fixture
def collateral_token():
    return make_token("Collateral Token", "CLT")


@pytest.fixture
def pool(token_a, token_b, collateral_token):
    """
    Token A listed for lending, Token B listed for borrowing, collateral set.
    Lender holds 1000 A and 1000 B, borrower holds 1000 collateral.
    """
    p = LendingAndBorrowing("test", admin=OWNER, tokens=[token_a, token_b, collateral_token], verbose=False)
    p.add_tokens_for_lending(OWNER, "Token A", token_a.address)
    p.add_tokens_for_borrowing(OWNER, "Token B", token_b.address)
    p.set_collateral_token(OWNER, collateral_token.address)

    token_a.transfer(OWNER, LENDER, parse_units("1000"))
    token_b.transfer(OWNER, LENDER, parse_units("1000"))
    collateral_token.transfer(OWNER, BORROWER, parse_units("1000"))
    return p


@pytest.fixture
def liquid_pool(pool, token_b):
    """Pool where B is also lendable and the lender has supplied 500 B."""
    pool.add_tokens_for_lending(OWNER, "Token B", token_b.address)
    approve_and_lend(pool, token_b, LENDER, parse_units("500"))
    return pool
