"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the lending pool.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. atomicity.py - All-or-nothing operation semantics
2. authorization.py - Administrator-only registry changes
3. registry_order.py - Registry arrays preserve registration order
4. round_trips.py - Lend/withdraw, deposit/release, borrow/repay
5. non_negative.py - Balances never go negative under any operation sequence
6. reentrancy.py - Token callbacks cannot re-enter the pool

These tests use hypothesis for property-based testing.
"""
