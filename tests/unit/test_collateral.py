"""
test_collateral.py - Unit tests for CollateralVault
"""

import pytest

from lendborrow import (
    TokenRegistry, TransferGateway, CollateralVault,
    InvalidToken, InvalidAmount, InsufficientBalance, TransferFailed,
)

from tests.pool_helpers import make_token

POOL = "0xpool"


@pytest.fixture
def clt():
    t = make_token("Collateral Token", "CLT")
    t.transfer("owner", "bob", 1_000)
    return t


@pytest.fixture
def registry(clt):
    r = TokenRegistry("owner")
    r.set_collateral_token("owner", clt.address)
    return r


@pytest.fixture
def vault(registry, clt):
    return CollateralVault(registry, TransferGateway(POOL, tokens=[clt]))


class TestDeposit:

    def test_deposit_credits_and_pulls(self, vault, clt):
        clt.approve("bob", POOL, 100)
        vault.deposit_collateral("bob", 100)
        assert vault.balance_of("bob") == 100
        assert clt.balance_of(POOL) == 100

    def test_deposits_are_additive(self, vault, clt):
        clt.approve("bob", POOL, 200)
        vault.deposit_collateral("bob", 100)
        vault.deposit_collateral("bob", 100)
        assert vault.balance_of("bob") == 200

    def test_unset_collateral_token_rejected(self, clt):
        vault = CollateralVault(TokenRegistry("owner"), TransferGateway(POOL, tokens=[clt]))
        with pytest.raises(InvalidToken):
            vault.deposit_collateral("bob", 100)

    def test_zero_deposit_rejected(self, vault):
        with pytest.raises(InvalidAmount):
            vault.deposit_collateral("bob", 0)

    def test_failed_pull_leaves_no_balance(self, vault):
        with pytest.raises(TransferFailed):
            vault.deposit_collateral("bob", 100)
        assert vault.balance_of("bob") == 0


class TestRelease:

    def test_release_debits_and_pushes(self, vault, clt):
        clt.approve("bob", POOL, 100)
        vault.deposit_collateral("bob", 100)
        vault.release_collateral("bob", 50)
        assert vault.balance_of("bob") == 50
        assert clt.balance_of("bob") == 950

    def test_release_all_clears_position(self, vault, clt):
        clt.approve("bob", POOL, 100)
        vault.deposit_collateral("bob", 100)
        vault.release_collateral("bob", 100)
        assert vault.positions() == {}

    def test_release_more_than_posted_rejected(self, vault, clt):
        clt.approve("bob", POOL, 100)
        vault.deposit_collateral("bob", 100)
        with pytest.raises(InsufficientBalance, match="collateral"):
            vault.release_collateral("bob", 101)
        assert vault.balance_of("bob") == 100

    def test_release_zero_is_allowed(self, vault):
        vault.release_collateral("bob", 0)
        assert vault.balance_of("bob") == 0

    def test_total(self, vault, clt):
        clt.transfer("owner", "carol", 10)
        clt.approve("bob", POOL, 100)
        clt.approve("carol", POOL, 10)
        vault.deposit_collateral("bob", 100)
        vault.deposit_collateral("carol", 10)
        assert vault.total() == 110
        assert vault.positions() == {"bob": 100, "carol": 10}
