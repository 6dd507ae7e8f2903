#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Lending Pool Step by Step

This is a pedagogical demonstration of how the lending pool works.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Setup           - Deploying the pool, listing tokens, funding accounts
  4-6:   Core Mechanics  - Lending, posting collateral, borrowing
  7-8:   Safety          - Rejections, atomic rollback, reentrancy
  9-10:  Closing Out     - Repaying, releasing, the audit trail

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from lendborrow import (
    # Core classes
    LendingAndBorrowing, FungibleToken,
    # Errors
    LendingError, ReentrancyError,
    # Helpers
    parse_units, format_units,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    pool_name: str = "LendingAndBorrowing"

    # Accounts
    owner: str = "owner"
    lender: str = "lender"
    borrower: str = "borrower"
    other: str = "other"

    # Token supply and starting balances (human-readable units)
    initial_supply: str = "1000000"
    starting_balance: str = "1000"

    # Amounts used in the walkthrough
    lend_amount: str = "100"
    withdraw_amount: str = "50"
    liquidity_amount: str = "500"
    collateral_amount: str = "100"
    borrow_amount: str = "50"
    release_amount: str = "50"


CONFIG = DemoConfig()

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def units(value: str) -> int:
    return parse_units(value)


def show(amount: int) -> str:
    return format_units(amount)


# ============================================================================
# PHASE 1: SETUP (Steps 1-3)
# ============================================================================

def step_01_deploy():
    """Deploy an empty pool."""
    step_header(1, "Deploying the Pool",
        "A pool starts empty: no listed tokens, no collateral token, no balances.")

    print(f">>> pool = LendingAndBorrowing({CONFIG.pool_name!r}, admin={CONFIG.owner!r})")
    pool = LendingAndBorrowing(CONFIG.pool_name, admin=CONFIG.owner, verbose=True)

    print(f"\n{CONFIG.pool_name} deployed to: {pool.address}")

    section_header("Initial State")
    print(f"Administrator:      {pool.admin}")
    print(f"Lending tokens:     {list(pool.get_tokens_for_lending_array())}")
    print(f"Borrowing tokens:   {list(pool.get_tokens_for_borrowing_array())}")
    print(f"Collateral token:   {pool.collateral_token}")
    print(f"Operation log:      {len(pool.operation_log)} entries")
    return pool


def step_02_list_tokens(pool: LendingAndBorrowing):
    """Deploy three tokens and register them."""
    step_header(2, "Listing Tokens",
        "Only the administrator decides which tokens can be lent, borrowed, or posted.")

    supply = units(CONFIG.initial_supply)
    token_a = FungibleToken("Token A", "TKA", 18, deployer=CONFIG.owner, initial_supply=supply)
    token_b = FungibleToken("Token B", "TKB", 18, deployer=CONFIG.owner, initial_supply=supply)
    clt = FungibleToken("Collateral Token", "CLT", 18, deployer=CONFIG.owner, initial_supply=supply)
    for token in (token_a, token_b, clt):
        pool.gateway.register_token(token)
        print(f"Deployed {token}")

    print()
    pool.add_tokens_for_lending(CONFIG.owner, "Token A", token_a.address)
    pool.add_tokens_for_lending(CONFIG.owner, "Token B", token_b.address)
    pool.add_tokens_for_borrowing(CONFIG.owner, "Token B", token_b.address)
    pool.set_collateral_token(CONFIG.owner, clt.address)

    section_header("Registry")
    for listing in pool.get_tokens_for_lending_array():
        print(f"  lend:    {listing.name:<10} {listing.token_address}")
    for listing in pool.get_tokens_for_borrowing_array():
        print(f"  borrow:  {listing.name:<10} {listing.token_address}")
    print(f"  collateral:         {pool.collateral_token}")
    return token_a, token_b, clt


def step_03_fund_accounts(token_a, token_b, clt):
    """Hand out starting balances."""
    step_header(3, "Funding Accounts",
        "Tokens live in their own contracts. The pool only sees what users approve.")

    amount = units(CONFIG.starting_balance)
    token_a.transfer(CONFIG.owner, CONFIG.lender, amount)
    token_b.transfer(CONFIG.owner, CONFIG.lender, amount)
    clt.transfer(CONFIG.owner, CONFIG.borrower, amount)

    print(f"{CONFIG.lender}:   {show(token_a.balance_of(CONFIG.lender))} TKA, "
          f"{show(token_b.balance_of(CONFIG.lender))} TKB")
    print(f"{CONFIG.borrower}: {show(clt.balance_of(CONFIG.borrower))} CLT")


# ============================================================================
# PHASE 2: CORE MECHANICS (Steps 4-6)
# ============================================================================

def step_04_lend_and_withdraw(pool, token_a, token_b):
    """Lend, withdraw part, and supply liquidity for borrowers."""
    step_header(4, "Lending",
        "A lender approves the pool, lends, and can withdraw up to what they lent.")

    lend = units(CONFIG.lend_amount)
    print(f">>> token_a.approve({CONFIG.lender!r}, pool.address, {CONFIG.lend_amount})")
    print(f">>> pool.to_lend({CONFIG.lender!r}, token_a.address, {CONFIG.lend_amount})")
    token_a.approve(CONFIG.lender, pool.address, lend)
    pool.to_lend(CONFIG.lender, token_a.address, lend)

    print(f">>> pool.to_withdraw_lent_tokens({CONFIG.lender!r}, token_a.address, {CONFIG.withdraw_amount})")
    pool.to_withdraw_lent_tokens(CONFIG.lender, token_a.address, units(CONFIG.withdraw_amount))

    section_header("Balances")
    print(f"Lent TKA:          {show(pool.tokens_lent_amount(token_a.address, CONFIG.lender))}")
    print(f"Pool holds TKA:    {show(token_a.balance_of(pool.address))}")

    section_header("Liquidity for Borrowers")
    liquidity = units(CONFIG.liquidity_amount)
    token_b.approve(CONFIG.lender, pool.address, liquidity)
    pool.to_lend(CONFIG.lender, token_b.address, liquidity)
    print(f"Available TKB:     {show(pool.available_liquidity(token_b.address))}")


def step_05_deposit_collateral(pool, clt):
    """Post collateral twice to see deposits accumulate."""
    step_header(5, "Posting Collateral",
        "Collateral is one designated token. Deposits add up.")

    amount = units(CONFIG.collateral_amount)
    clt.approve(CONFIG.borrower, pool.address, amount * 2)
    pool.deposit_collateral(CONFIG.borrower, amount)
    print(f"After first deposit:  {show(pool.tokens_collateral_amount(CONFIG.borrower))}")
    pool.deposit_collateral(CONFIG.borrower, amount)
    print(f"After second deposit: {show(pool.tokens_collateral_amount(CONFIG.borrower))}")


def step_06_borrow(pool, token_b):
    """Borrow against the pool's liquidity."""
    step_header(6, "Borrowing",
        "Debt is recorded before tokens leave the pool.")

    amount = units(CONFIG.borrow_amount)
    print(f">>> pool.borrow({CONFIG.borrower!r}, token_b.address, {CONFIG.borrow_amount})")
    pool.borrow(CONFIG.borrower, token_b.address, amount)

    section_header("Balances")
    print(f"Debt TKB:          {show(pool.tokens_borrowed_amount(token_b.address, CONFIG.borrower))}")
    print(f"Borrower holds:    {show(token_b.balance_of(CONFIG.borrower))} TKB")
    print(f"Available TKB:     {show(pool.available_liquidity(token_b.address))}")

    section_header("Note")
    print("""
    There is no collateral-ratio check. Any account can borrow any listed
    token while the pool holds enough of it.
    """)


# ============================================================================
# PHASE 3: SAFETY (Steps 7-8)
# ============================================================================

def step_07_rejections(pool, token_a, token_b):
    """Watch invalid operations get rejected with state unchanged."""
    step_header(7, "Rejected Operations",
        "Every failure leaves the registry and the ledgers exactly as they were.")

    log_before = len(pool.operation_log)
    attempts = [
        ("Non-admin listing", lambda: pool.add_tokens_for_lending(CONFIG.other, "Token X", token_a.address)),
        ("Withdraw more than lent", lambda: pool.to_withdraw_lent_tokens(CONFIG.lender, token_a.address, units("51"))),
        ("Borrow unlisted token", lambda: pool.borrow(CONFIG.borrower, token_a.address, units("1"))),
        ("Borrow beyond liquidity", lambda: pool.borrow(CONFIG.borrower, token_b.address, units("10000"))),
        ("Repay without approval", lambda: pool.pay_debt(CONFIG.borrower, token_b.address, units("1"))),
    ]
    for label, attempt in attempts:
        section_header(label)
        try:
            attempt()
        except LendingError as e:
            print(f"  -> {type(e).__name__}")

    section_header("Result")
    print(f"Operations logged during this step: {len(pool.operation_log) - log_before}")
    print(f"Debt TKB still:    {show(pool.tokens_borrowed_amount(token_b.address, CONFIG.borrower))}")


def step_08_reentrancy(pool, token_a):
    """A token callback tries to withdraw twice."""
    step_header(8, "Reentrancy",
        "A token that calls back into the pool mid-transfer is stopped.")

    lent = pool.tokens_lent_amount(token_a.address, CONFIG.lender)

    def attack(token, sender, recipient, amount):
        print(f"  (callback) lent balance seen: {show(pool.tokens_lent_amount(token.address, recipient))}")
        pool.to_withdraw_lent_tokens(recipient, token.address, amount)

    token_a.set_receive_hook(CONFIG.lender, attack)
    try:
        pool.to_withdraw_lent_tokens(CONFIG.lender, token_a.address, lent)
    except ReentrancyError as e:
        print(f"\nReentrancyError: {e}")
    finally:
        token_a.set_receive_hook(CONFIG.lender, None)

    section_header("Result")
    print(f"Lent TKA still:    {show(pool.tokens_lent_amount(token_a.address, CONFIG.lender))}")
    print(f"Pool holds TKA:    {show(token_a.balance_of(pool.address))}")


# ============================================================================
# PHASE 4: CLOSING OUT (Steps 9-10)
# ============================================================================

def step_09_repay_and_release(pool, token_b, clt):
    """Repay the loan and take collateral back."""
    step_header(9, "Repaying and Releasing",
        "Repayment pulls tokens back in; release sends collateral out.")

    debt = pool.tokens_borrowed_amount(token_b.address, CONFIG.borrower)
    token_b.approve(CONFIG.borrower, pool.address, debt)
    pool.pay_debt(CONFIG.borrower, token_b.address, debt)
    pool.release_collateral(CONFIG.borrower, units(CONFIG.release_amount))

    section_header("Balances")
    print(f"Debt TKB:          {show(pool.tokens_borrowed_amount(token_b.address, CONFIG.borrower))}")
    print(f"Collateral:        {show(pool.tokens_collateral_amount(CONFIG.borrower))}")
    print(f"Borrower holds:    {show(clt.balance_of(CONFIG.borrower))} CLT")


def step_10_audit(pool):
    """Review the operation log and check custody."""
    step_header(10, "The Audit Trail",
        "Every applied operation is logged; custody always covers the ledgers.")

    for op in pool.operation_log:
        amount = show(op.amount) if op.amount is not None else "-"
        print(f"  #{op.sequence_number:<3} {op.kind.value:<22} {op.caller:<10} {amount}")

    result = pool.verify_custody()
    section_header("Custody")
    for token_address, held in result['custody'].items():
        print(f"  {token_address}: {show(held)}")
    print(f"\nCustody valid: {result['valid']}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       LENDING POOL - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    pool = step_01_deploy()
    wait_for_enter()

    token_a, token_b, clt = step_02_list_tokens(pool)
    wait_for_enter()

    step_03_fund_accounts(token_a, token_b, clt)
    wait_for_enter()

    step_04_lend_and_withdraw(pool, token_a, token_b)
    wait_for_enter()

    step_05_deposit_collateral(pool, clt)
    wait_for_enter()

    step_06_borrow(pool, token_b)
    wait_for_enter()

    step_07_rejections(pool, token_a, token_b)
    wait_for_enter()

    step_08_reentrancy(pool, token_a)
    wait_for_enter()

    step_09_repay_and_release(pool, token_b, clt)
    wait_for_enter()

    step_10_audit(pool)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
