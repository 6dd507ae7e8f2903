"""
Core types and pure functions for the lending/borrowing engine.

This module provides the foundational data structures and protocols for the pool:
1. Protocols: TokenContract for the external token interface, LendingView for
   read-only pool access
2. Immutable data structures: TokenListing, TokenTransfer, Operation
3. Exceptions: LendingError and domain-specific error types
4. Type aliases: Address, Amount, Positions
5. Amount helpers: parse_units, format_units, require_amount
6. Address helpers: make_address

All functions in this module are pure. No function can mutate pool state.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from enum import Enum
import hashlib
from typing import Dict, Optional, Protocol, Tuple, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Decimals used by parse_units/format_units when none are given (ERC20 default).
DEFAULT_DECIMALS = 18

# Number of hex digits in an address produced by make_address().
ADDRESS_HEX_DIGITS = 40

# Transfer directions, seen from the pool's custody account.
DIRECTION_PULL = "pull"
DIRECTION_PUSH = "push"


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Account or token identifier (e.g. "0x5fbd..." or "alice").
Address = str

# Token quantity in the token's smallest indivisible unit.
Amount = int

# Mapping from account to the non-zero amount it holds for one token.
Positions = Dict[Address, Amount]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LendingError(Exception):
    """Base exception for all lending pool errors."""
    pass


class Unauthorized(LendingError):
    """Raised when a non-administrator attempts a registry mutation."""
    pass


class InvalidToken(LendingError):
    """Raised when an operation references a token absent from the relevant registry."""
    pass


class InvalidAmount(LendingError):
    """Raised when an amount is not a non-negative integer, or is zero where a positive amount is required."""
    pass


class InsufficientBalance(LendingError):
    """Raised when a withdrawal, repayment, or release exceeds the caller's recorded balance."""
    pass


class TransferFailed(LendingError):
    """Raised when the external token movement did not succeed."""
    pass


class ReentrancyError(LendingError):
    """Raised when a mutating operation is entered while another one is still running."""
    pass


# ============================================================================
# ENUMS
# ============================================================================

class OperationKind(Enum):
    """
    Classification of an applied pool operation.

    Used for the audit trail and for verbose reporting.
    """
    ADD_LENDING_TOKEN = "add_lending_token"
    ADD_BORROWING_TOKEN = "add_borrowing_token"
    SET_COLLATERAL_TOKEN = "set_collateral_token"
    LEND = "lend"
    WITHDRAW = "withdraw"
    DEPOSIT_COLLATERAL = "deposit_collateral"
    RELEASE_COLLATERAL = "release_collateral"
    BORROW = "borrow"
    PAY_DEBT = "pay_debt"


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class TokenContract(Protocol):
    """
    Interface the pool requires from every registered fungible token.

    Both transfer methods report success synchronously with a boolean.
    A token may also raise; the TransferGateway treats a raise the same
    way as a False result.
    """

    @property
    def address(self) -> Address:
        """Return the token's own address."""
        ...

    def balance_of(self, account: Address) -> Amount:
        """Return the amount held by account (0 if none)."""
        ...

    def transfer(self, sender: Address, recipient: Address, amount: Amount) -> bool:
        """Move amount from sender to recipient."""
        ...

    def transfer_from(
        self,
        spender: Address,
        holder: Address,
        recipient: Address,
        amount: Amount,
    ) -> bool:
        """Move amount from holder to recipient using spender's allowance."""
        ...


@runtime_checkable
class LendingView(Protocol):
    """
    Read-only interface to pool state.

    Functions accepting a LendingView declare their read-only intent.
    LendingAndBorrowing implements this protocol but also provides the
    mutating operations.
    """

    def get_tokens_for_lending_array(self) -> Tuple['TokenListing', ...]:
        ...

    def get_tokens_for_borrowing_array(self) -> Tuple['TokenListing', ...]:
        ...

    @property
    def collateral_token(self) -> Optional[Address]:
        ...

    def tokens_lent_amount(self, token_address: Address, account: Address) -> Amount:
        ...

    def tokens_collateral_amount(self, account: Address) -> Amount:
        ...

    def tokens_borrowed_amount(self, token_address: Address, account: Address) -> Amount:
        ...


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class TokenListing:
    """
    A token registered for lending or for borrowing.

    Attributes:
        name: Display name given by the administrator (e.g. "Token A").
        token_address: Address of the token contract.
    """
    name: str
    token_address: Address

    def __repr__(self) -> str:
        return f"TokenListing({self.name!r} @ {self.token_address})"


@dataclass(frozen=True, slots=True)
class TokenTransfer:
    """
    A single token movement performed through the TransferGateway.

    Attributes:
        token_address: Token that moved.
        source: Account debited.
        dest: Account credited.
        amount: Quantity moved, in smallest units.
        direction: DIRECTION_PULL (into custody) or DIRECTION_PUSH (out of custody).
    """
    token_address: Address
    source: Address
    dest: Address
    amount: Amount
    direction: str

    def __repr__(self) -> str:
        return f"TokenTransfer({self.direction} {self.amount} {self.token_address}: {self.source}→{self.dest})"


@dataclass(frozen=True, slots=True)
class Operation:
    """
    An applied, immutable record of one pool operation.

    Created by the pool after an operation completes. Rejected operations
    never produce a record.

    Attributes:
        kind: What the operation did.
        caller: Account that invoked it.
        token_address: Token involved (None for operations without one).
        amount: Amount involved (None for registry operations).
        transfers: Token movements performed, in order.
        exec_id: Unique execution identifier (pool + sequence).
        pool_name: Name of the pool that executed this.
        sequence_number: Monotonic sequence within the pool.
        detail: Free-form detail (listing name for registry operations).
    """
    kind: OperationKind
    caller: Address
    token_address: Optional[Address]
    amount: Optional[Amount]
    transfers: Tuple[TokenTransfer, ...]
    exec_id: str
    pool_name: str
    sequence_number: int
    detail: Optional[str] = None

    def __repr__(self) -> str:
        w = 100
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Operation: ' + self.exec_id)}│",
            f"├{bar}┤",
            f"│{pad('   kind     : ' + self.kind.value)}│",
            f"│{pad('   caller   : ' + str(self.caller))}│",
            f"│{pad('   token    : ' + str(self.token_address))}│",
            f"│{pad('   amount   : ' + str(self.amount))}│",
            f"│{pad('   sequence : ' + str(self.sequence_number))}│",
        ]
        if self.detail:
            lines.append(f"│{pad('   detail   : ' + str(self.detail))}│")
        lines.append(f"├{bar}┤")
        lines.append(f"│{pad(' Transfers (' + str(len(self.transfers)) + '):')}│")
        for i, t in enumerate(self.transfers):
            lines.append(f"│{pad(f'   [{i}] {t.direction} {t.amount} {t.token_address}: {t.source} → {t.dest}')}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


# ============================================================================
# AMOUNT HELPERS
# ============================================================================

def require_amount(amount: Amount, positive: bool = False) -> Amount:
    """
    Validate an amount argument and return it unchanged.

    Args:
        amount: Candidate amount.
        positive: If True, zero is rejected as well.

    Raises:
        InvalidAmount: If amount is not an int (bool excluded), is negative,
                       or is zero while positive=True.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise InvalidAmount(f"Amount must not be negative, got {amount}")
    if positive and amount == 0:
        raise InvalidAmount("Amount must be greater than zero")
    return amount


def parse_units(value, decimals: int = DEFAULT_DECIMALS) -> Amount:
    """
    Convert a human-readable quantity into smallest units.

    parse_units("1.5", 18) == 1_500_000_000_000_000_000

    Args:
        value: Quantity as str, int or Decimal. Floats are rejected because
               their binary representation is not exact.
        decimals: Number of decimals of the token.

    Raises:
        ValueError: If value is malformed or has more fractional digits
                    than decimals allows.
    """
    if isinstance(value, float):
        raise ValueError("parse_units does not accept floats; pass a str or Decimal")
    try:
        d = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid quantity: {value!r}")
    if not d.is_finite():
        raise ValueError(f"Quantity must be finite, got {value!r}")
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = d.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"{value!r} has more than {decimals} decimals")
        return int(scaled)


def format_units(amount: Amount, decimals: int = DEFAULT_DECIMALS) -> str:
    """
    Convert smallest units back into a human-readable string.

    Trailing zeros are removed; at least one fractional digit is kept,
    as ethers does (format_units(10**18) == "1.0").
    """
    with localcontext() as ctx:
        ctx.prec = 100
        d = Decimal(amount).scaleb(-decimals)
        text = format(d.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_DOWN), 'f')
    if '.' not in text:
        return text + ".0"
    text = text.rstrip('0')
    if text.endswith('.'):
        text += '0'
    return text


# ============================================================================
# ADDRESS HELPERS
# ============================================================================

def make_address(label: str) -> Address:
    """
    Derive a deterministic 0x-prefixed address from a label.

    The same label always yields the same address, so tests and demos can
    refer to tokens and pools without a deployment step.
    """
    digest = hashlib.sha256(label.encode()).hexdigest()
    return "0x" + digest[:ADDRESS_HEX_DIGITS]
