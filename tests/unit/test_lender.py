"""
test_lender.py - Unit tests for LenderLedger

Tests the component on its own, wired to a registry and a gateway
without a pool around it (so no atomic rollback is involved here).
"""

import pytest

from lendborrow import (
    TokenRegistry, TransferGateway, LenderLedger,
    InvalidToken, InvalidAmount, InsufficientBalance, TransferFailed,
    DIRECTION_PULL, DIRECTION_PUSH,
)

from tests.pool_helpers import make_token

POOL = "0xpool"


@pytest.fixture
def token():
    t = make_token("Token A", "TKA")
    t.transfer("owner", "alice", 1_000)
    return t


@pytest.fixture
def lenders(token):
    registry = TokenRegistry("owner")
    registry.add_tokens_for_lending("owner", "Token A", token.address)
    return LenderLedger(registry, TransferGateway(POOL, tokens=[token]))


class TestToLend:

    def test_lend_credits_and_pulls(self, lenders, token):
        token.approve("alice", POOL, 100)
        transfers = lenders.to_lend("alice", token.address, 100)
        assert lenders.balance_of(token.address, "alice") == 100
        assert token.balance_of(POOL) == 100
        assert token.balance_of("alice") == 900
        assert [t.direction for t in transfers] == [DIRECTION_PULL]

    def test_lend_accumulates(self, lenders, token):
        token.approve("alice", POOL, 300)
        lenders.to_lend("alice", token.address, 100)
        lenders.to_lend("alice", token.address, 200)
        assert lenders.balance_of(token.address, "alice") == 300

    def test_unlisted_token_rejected(self, lenders):
        other = make_token("Token B", "TKB")
        with pytest.raises(InvalidToken):
            lenders.to_lend("alice", other.address, 1)

    def test_zero_amount_rejected(self, lenders, token):
        with pytest.raises(InvalidAmount):
            lenders.to_lend("alice", token.address, 0)

    def test_missing_approval_fails_without_credit(self, lenders, token):
        with pytest.raises(TransferFailed):
            lenders.to_lend("alice", token.address, 100)
        assert lenders.balance_of(token.address, "alice") == 0


class TestWithdraw:

    def test_withdraw_debits_and_pushes(self, lenders, token):
        token.approve("alice", POOL, 100)
        lenders.to_lend("alice", token.address, 100)
        transfers = lenders.to_withdraw_lent_tokens("alice", token.address, 40)
        assert lenders.balance_of(token.address, "alice") == 60
        assert token.balance_of("alice") == 940
        assert [t.direction for t in transfers] == [DIRECTION_PUSH]

    def test_withdraw_more_than_lent_rejected(self, lenders, token):
        token.approve("alice", POOL, 100)
        lenders.to_lend("alice", token.address, 100)
        with pytest.raises(InsufficientBalance):
            lenders.to_withdraw_lent_tokens("alice", token.address, 101)
        assert token.balance_of(POOL) == 100

    def test_withdraw_other_lenders_funds_rejected(self, lenders, token):
        token.approve("alice", POOL, 100)
        lenders.to_lend("alice", token.address, 100)
        with pytest.raises(InsufficientBalance):
            lenders.to_withdraw_lent_tokens("bob", token.address, 1)

    def test_negative_withdraw_rejected(self, lenders, token):
        with pytest.raises(InvalidAmount):
            lenders.to_withdraw_lent_tokens("alice", token.address, -5)

    def test_positions_and_total(self, lenders, token):
        token.transfer("owner", "bob", 50)
        token.approve("alice", POOL, 100)
        token.approve("bob", POOL, 50)
        lenders.to_lend("alice", token.address, 100)
        lenders.to_lend("bob", token.address, 50)
        assert lenders.positions(token.address) == {"alice": 100, "bob": 50}
        assert lenders.total(token.address) == 150
