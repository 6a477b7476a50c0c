"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the vesting ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Escrow balance equals funded minus claimed
2. atomicity.py - Failed mutations leave no trace
3. bounds.py - Vested, claimable and progress stay within their ranges
4. monotonicity.py - Time, vesting and claims only move forward
5. event_sequencing.py - Gapless, ordered event ids
6. determinism.py - Same inputs, same ledger

These tests use hypothesis for property-based testing. Operation sequences
are generated by vesting_strategies.py.
"""
