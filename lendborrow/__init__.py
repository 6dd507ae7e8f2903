"""
lendborrow - Collateral-Backed Token Lending Engine

An accounting engine for a token lending pool: administrator-managed token
registries, per-account lending balances, a single global collateral vault,
and per-account borrowing balances.

Usage:
    from lendborrow import LendingAndBorrowing, FungibleToken, parse_units

    token_a = FungibleToken("Token A", "TKA", deployer="owner", initial_supply=parse_units("1000000"))
    token_b = FungibleToken("Token B", "TKB", deployer="owner", initial_supply=parse_units("1000000"))
    clt = FungibleToken("Collateral Token", "CLT", deployer="owner", initial_supply=parse_units("1000000"))

    pool = LendingAndBorrowing("main", admin="owner", tokens=[token_a, token_b, clt])
    pool.add_tokens_for_lending("owner", "Token A", token_a.address)
    pool.add_tokens_for_borrowing("owner", "Token B", token_b.address)
    pool.set_collateral_token("owner", clt.address)

    # Lend: approve the pool, then supply
    token_a.transfer("owner", "lender", parse_units("1000"))
    token_a.approve("lender", pool.address, parse_units("100"))
    pool.to_lend("lender", token_a.address, parse_units("100"))
    pool.tokens_lent_amount(token_a.address, "lender")   # 100 * 10**18
"""

# Core types
from .core import (
    Address,
    Amount,
    Positions,
    TokenContract,
    LendingView,
    TokenListing,
    TokenTransfer,
    Operation,
    OperationKind,
    LendingError,
    Unauthorized,
    InvalidToken,
    InvalidAmount,
    InsufficientBalance,
    TransferFailed,
    ReentrancyError,
    require_amount,
    parse_units,
    format_units,
    make_address,
    DEFAULT_DECIMALS,
    DIRECTION_PULL,
    DIRECTION_PUSH,
)

# Components
from .token import FungibleToken
from .gateway import TransferGateway
from .registry import TokenRegistry
from .book import BalanceBook
from .lender import LenderLedger
from .collateral import CollateralVault
from .borrower import BorrowerLedger

# Pool
from .pool import LendingAndBorrowing

__all__ = [
    # Core
    'Address', 'Amount', 'Positions',
    'TokenContract', 'LendingView',
    'TokenListing', 'TokenTransfer', 'Operation', 'OperationKind',
    'LendingError', 'Unauthorized', 'InvalidToken', 'InvalidAmount',
    'InsufficientBalance', 'TransferFailed', 'ReentrancyError',
    'require_amount', 'parse_units', 'format_units', 'make_address',
    'DEFAULT_DECIMALS', 'DIRECTION_PULL', 'DIRECTION_PUSH',
    # Components
    'FungibleToken', 'TransferGateway', 'TokenRegistry', 'BalanceBook',
    'LenderLedger', 'CollateralVault', 'BorrowerLedger',
    # Pool
    'LendingAndBorrowing',
]

__version__ = '1.0.0'
