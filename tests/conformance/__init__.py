"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the vault and its ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Token supply and debt accounting invariants
2. atomicity.py - All-or-nothing entry points and batches
3. idempotency.py - Accrual and duplicate execution handling

These tests use hypothesis for property-based testing.
"""
