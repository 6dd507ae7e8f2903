"""
pool.py - Stateful lending/borrowing pool

The LendingAndBorrowing class is the public operation surface of the engine.
It owns the token registry and the three ledgers and is the only module that
sequences their mutation.

Key responsibilities:
    - Implements the LendingView protocol for read-only access
    - Executes every mutating operation atomically (all-or-nothing)
    - Rejects reentrant calls made from inside a token transfer
    - Records every applied operation in the audit trail
    - Checks that custodied token balances cover the ledgers
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .borrower import BorrowerLedger
from .collateral import CollateralVault
from .core import (
    # Types
    Address, Amount, Positions, TokenContract, TokenListing, TokenTransfer,
    Operation, OperationKind,
    # Exceptions
    ReentrancyError, TransferFailed,
    # Helpers
    make_address,
)
from .gateway import TransferGateway
from .lender import LenderLedger
from .registry import TokenRegistry


class LendingAndBorrowing:
    """
    Collateral-backed token lending pool with full validation and audit trail.

    Design Principles:
        - Atomic: each operation either completes or leaves no trace. Registry
          and ledger state is snapshotted on entry and restored on any error.
        - Serialized: one operation at a time. A call arriving while another
          is in progress (a token callback) raises ReentrancyError.
        - Always logs: every applied operation is appended to operation_log.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own pool instance.

    Example:
        pool = LendingAndBorrowing("main", admin="owner", tokens=[token_a, clt])
        pool.add_tokens_for_lending("owner", "Token A", token_a.address)
        pool.set_collateral_token("owner", clt.address)

        token_a.approve("alice", pool.address, 100)
        pool.to_lend("alice", token_a.address, 100)
    """

    def __init__(
        self,
        name: str,
        admin: Address,
        tokens: Iterable[TokenContract] = (),
        gateway: Optional[TransferGateway] = None,
        verbose: bool = True,
    ):
        """
        Create a pool.

        Args:
            name: Pool identifier; also seeds the pool's custody address
            admin: The administrator account, fixed for the pool's lifetime
            tokens: Token contracts to make reachable through the gateway
            gateway: Existing gateway to use (its custodian becomes the pool address)
            verbose: Print registrations and operation results (default: True)
        """
        self.name = name
        self.verbose = verbose
        if gateway is None:
            gateway = TransferGateway(make_address(f"pool:{name}"))
        for token in tokens:
            gateway.register_token(token)
        self.gateway = gateway
        self.registry = TokenRegistry(admin)
        self.lenders = LenderLedger(self.registry, self.gateway)
        self.vault = CollateralVault(self.registry, self.gateway)
        self.borrowers = BorrowerLedger(self.registry, self.gateway)
        self.operation_log: List[Operation] = []
        # Monotonic sequence counter for execution ordering
        self._next_sequence: int = 0
        self._in_operation: bool = False

    @property
    def address(self) -> Address:
        """Custody account holding every token supplied to the pool."""
        return self.gateway.custodian

    @property
    def admin(self) -> Address:
        return self.registry.admin

    # ========================================================================
    # LendingView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def collateral_token(self) -> Optional[Address]:
        return self.registry.collateral_token

    def get_tokens_for_lending_array(self) -> Tuple[TokenListing, ...]:
        """All lending listings in insertion order."""
        return self.registry.get_tokens_for_lending_array()

    def get_tokens_for_borrowing_array(self) -> Tuple[TokenListing, ...]:
        """All borrowing listings in insertion order."""
        return self.registry.get_tokens_for_borrowing_array()

    def tokens_lent_amount(self, token_address: Address, account: Address) -> Amount:
        return self.lenders.balance_of(token_address, account)

    def tokens_collateral_amount(self, account: Address) -> Amount:
        return self.vault.balance_of(account)

    def tokens_borrowed_amount(self, token_address: Address, account: Address) -> Amount:
        return self.borrowers.balance_of(token_address, account)

    # ========================================================================
    # AGGREGATES
    # ========================================================================

    def total_lent(self, token_address: Address) -> Amount:
        return self.lenders.total(token_address)

    def total_borrowed(self, token_address: Address) -> Amount:
        return self.borrowers.total(token_address)

    def total_collateral(self) -> Amount:
        return self.vault.total()

    def available_liquidity(self, token_address: Address) -> Amount:
        """
        Lender-supplied liquidity not currently borrowed: Σ lent - Σ borrowed.

        Informational only. borrow() is bounded by the custodied balance,
        which can differ (direct transfers to the pool, collateral held in
        the same token).
        """
        return self.total_lent(token_address) - self.total_borrowed(token_address)

    def get_lender_positions(self, token_address: Address) -> Positions:
        return self.lenders.positions(token_address)

    def get_borrower_positions(self, token_address: Address) -> Positions:
        return self.borrowers.positions(token_address)

    def get_collateral_positions(self) -> Positions:
        return self.vault.positions()

    def verify_custody(self) -> Dict[str, Any]:
        """
        Verify that custodied token balances cover what the ledgers record.

        For every token the pool knows about:

            custody(token) >= Σ lent - Σ borrowed  (+ Σ collateral for the collateral token)

        Equality holds unless tokens were sent to the pool outside of its
        operations.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every token is covered
            - 'custody': Dict[str, int] - custodied balance per token
            - 'discrepancies': List[Dict] - token, expected, actual, shortfall
              (or 'error' when the token contract cannot be reached)

        Example:
            result = pool.verify_custody()
            assert result['valid'], f"Custody shortfall: {result['discrepancies']}"
        """
        tokens = set(self.registry.listed_tokens())
        tokens.update(self.lenders.book.tokens())
        tokens.update(self.borrowers.book.tokens())

        custody = {}
        discrepancies = []
        for token_address in sorted(tokens):
            expected = self.total_lent(token_address) - self.total_borrowed(token_address)
            if token_address == self.collateral_token:
                expected += self.total_collateral()
            try:
                actual = self.gateway.balance_of(token_address)
            except TransferFailed as e:
                if expected:
                    discrepancies.append({
                        'token': token_address,
                        'expected': expected,
                        'actual': None,
                        'error': str(e),
                    })
                continue
            custody[token_address] = actual
            if actual < expected:
                discrepancies.append({
                    'token': token_address,
                    'expected': expected,
                    'actual': actual,
                    'shortfall': expected - actual,
                })

        return {
            'valid': len(discrepancies) == 0,
            'custody': custody,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # REGISTRY OPERATIONS (administrator only)
    # ========================================================================

    def add_tokens_for_lending(self, caller: Address, name: str, token_address: Address) -> Operation:
        def action():
            self.registry.add_tokens_for_lending(caller, name, token_address)
            if self.verbose:
                print(f"📝 Listed for lending: {name} ({token_address})")
            return []
        return self._execute(OperationKind.ADD_LENDING_TOKEN, caller, token_address, None, action, detail=name)

    def add_tokens_for_borrowing(self, caller: Address, name: str, token_address: Address) -> Operation:
        def action():
            self.registry.add_tokens_for_borrowing(caller, name, token_address)
            if self.verbose:
                print(f"📝 Listed for borrowing: {name} ({token_address})")
            return []
        return self._execute(OperationKind.ADD_BORROWING_TOKEN, caller, token_address, None, action, detail=name)

    def set_collateral_token(self, caller: Address, token_address: Address) -> Operation:
        def action():
            self.registry.set_collateral_token(caller, token_address)
            if self.verbose:
                print(f"📝 Collateral token: {token_address}")
            return []
        return self._execute(OperationKind.SET_COLLATERAL_TOKEN, caller, token_address, None, action)

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def to_lend(self, caller: Address, token_address: Address, amount: Amount) -> Operation:
        return self._execute(
            OperationKind.LEND, caller, token_address, amount,
            lambda: self.lenders.to_lend(caller, token_address, amount),
        )

    def to_withdraw_lent_tokens(self, caller: Address, token_address: Address, amount: Amount) -> Operation:
        return self._execute(
            OperationKind.WITHDRAW, caller, token_address, amount,
            lambda: self.lenders.to_withdraw_lent_tokens(caller, token_address, amount),
        )

    def deposit_collateral(self, caller: Address, amount: Amount) -> Operation:
        return self._execute(
            OperationKind.DEPOSIT_COLLATERAL, caller, self.collateral_token, amount,
            lambda: self.vault.deposit_collateral(caller, amount),
        )

    def release_collateral(self, caller: Address, amount: Amount) -> Operation:
        return self._execute(
            OperationKind.RELEASE_COLLATERAL, caller, self.collateral_token, amount,
            lambda: self.vault.release_collateral(caller, amount),
        )

    def borrow(self, caller: Address, token_address: Address, amount: Amount) -> Operation:
        return self._execute(
            OperationKind.BORROW, caller, token_address, amount,
            lambda: self.borrowers.borrow(caller, token_address, amount),
        )

    def pay_debt(self, caller: Address, token_address: Address, amount: Amount) -> Operation:
        return self._execute(
            OperationKind.PAY_DEBT, caller, token_address, amount,
            lambda: self.borrowers.pay_debt(caller, token_address, amount),
        )

    # ========================================================================
    # ATOMIC EXECUTION
    # ========================================================================

    def _execute(
        self,
        kind: OperationKind,
        caller: Address,
        token_address: Optional[Address],
        amount: Optional[Amount],
        action: Callable[[], List[TokenTransfer]],
        detail: Optional[str] = None,
    ) -> Operation:
        """
        Run action as one all-or-nothing operation.

        Returns:
            The Operation appended to operation_log

        Raises:
            ReentrancyError: If another operation is still in progress
            LendingError: Whatever the action raised; state is restored first
        """
        if self._in_operation:
            error = ReentrancyError(f"{kind.value} by {caller} while another operation is in progress")
            if self.verbose:
                self._print_rejection(kind, caller, token_address, amount, detail, error)
            raise error

        self._in_operation = True
        snapshot = self._snapshot()
        try:
            transfers = action()
        except Exception as e:
            self._restore(snapshot)
            if self.verbose:
                self._print_rejection(kind, caller, token_address, amount, detail, e)
            raise
        finally:
            self._in_operation = False

        sequence = self._next_sequence
        self._next_sequence += 1
        op = Operation(
            kind=kind,
            caller=caller,
            token_address=token_address,
            amount=amount,
            transfers=tuple(transfers),
            exec_id=f"op:{self.name}:{sequence:012d}",
            pool_name=self.name,
            sequence_number=sequence,
            detail=detail,
        )
        self.operation_log.append(op)

        if self.verbose:
            self._print_op_result(op, "APPLIED", "✓")
        return op

    def _print_op_result(self, op: Operation, result: str, icon: str) -> None:
        """Print the operation box with a result line in place of its closing bar."""
        lines = repr(op).split('\n')
        w = 100
        bar = "─" * w
        text = ' ' + icon + ' ' + result
        if len(text) > w:
            text = text[:w-3] + "..."
        lines[-1] = f"├{bar}┤"
        lines.append(f"│{text + ' ' * (w - len(text))}│")
        lines.append(f"└{bar}┘")
        print("\n".join(lines))

    def _print_rejection(
        self,
        kind: OperationKind,
        caller: Address,
        token_address: Optional[Address],
        amount: Optional[Amount],
        detail: Optional[str],
        error: Exception,
    ) -> None:
        """Print the box of an operation that was not applied. No sequence number is consumed."""
        attempted = Operation(
            kind=kind,
            caller=caller,
            token_address=token_address,
            amount=amount,
            transfers=(),
            exec_id=f"op:{self.name}:rejected",
            pool_name=self.name,
            sequence_number=self._next_sequence,
            detail=detail,
        )
        self._print_op_result(attempted, f"REJECTED: {type(error).__name__}: {error}", "✗")

    def _snapshot(self) -> Dict[str, Any]:
        return {
            'registry': self.registry.snapshot(),
            'lenders': self.lenders.book.snapshot(),
            'vault': self.vault.snapshot(),
            'borrowers': self.borrowers.book.snapshot(),
        }

    def _restore(self, snapshot: Dict[str, Any]) -> None:
        self.registry.restore(snapshot['registry'])
        self.lenders.book.restore(snapshot['lenders'])
        self.vault.restore(snapshot['vault'])
        self.borrowers.book.restore(snapshot['borrowers'])

    # ========================================================================
    # CLONING
    # ========================================================================

    def clone(self) -> LendingAndBorrowing:
        """
        Create a copy of this pool's registry and ledger state.

        Modifications to the clone's ledgers do not affect the original and
        vice versa. Token contracts are external and cannot be copied, so the
        clone gets a read-only gateway over the same custody account: its
        reads and verify_custody() work, and every operation that would move
        tokens fails with TransferFailed. Registry operations still apply.

        Returns:
            A new LendingAndBorrowing instance with identical state
        """
        cloned = LendingAndBorrowing(
            self.name, self.admin, gateway=self.gateway.detached(), verbose=self.verbose,
        )
        cloned._restore(self._snapshot())
        cloned.operation_log = list(self.operation_log)
        cloned._next_sequence = self._next_sequence
        return cloned
