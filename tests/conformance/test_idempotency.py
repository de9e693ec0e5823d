"""
Idempotency Conformance Tests

INVARIANT: Re-running something that already happened changes nothing.

- Accruing twice at the same timestamp equals accruing once
- Views never move the accrual index
- A PendingTransaction applies at most once
- Distinct vault calls with identical arguments are distinct operations
"""

from datetime import timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from nftvault import (
    Rate, ExecuteResult, Move, SYSTEM_WALLET, build_transaction,
    initial_accrual_state, calculate_accrual,
)
from nftvault.accrual import add_debt

from tests.vault_env import build_vault_env, units, T0


class TestAccrualIdempotency:

    @settings(max_examples=50, deadline=None)
    @given(
        debt=st.integers(min_value=0, max_value=units(10**7)),
        seconds=st.integers(min_value=0, max_value=10 * 365 * 86400),
        apr=st.integers(min_value=0, max_value=100),
    )
    def test_same_timestamp_twice(self, debt, seconds, apr):
        state = add_debt(initial_accrual_state(T0), debt)
        now = T0 + timedelta(seconds=seconds)
        once = calculate_accrual(state, Rate(apr, 100), now)
        assert calculate_accrual(once, Rate(apr, 100), now) == once

    @settings(max_examples=50, deadline=None)
    @given(hours=st.integers(min_value=1, max_value=24 * 365))
    def test_views_do_not_accrue(self, hours):
        env = build_vault_env()
        env.mint_and_approve("user", 7000)
        env.vault.borrow("user", 7000, units(1000))
        env.advance(hours=hours)
        accrual = env.vault.accrual
        first = env.vault.get_debt_amount(7000)
        env.vault.is_liquidatable(7000)
        env.vault.total_debt_amount()
        assert env.vault.get_debt_amount(7000) == first
        assert env.vault.accrual == accrual

    def test_second_collect_is_empty(self):
        env = build_vault_env()
        env.mint_and_approve("user", 7000)
        env.vault.borrow("user", 7000, units(1000))
        env.advance(days=7)
        assert env.vault.collect("dao") > 0
        assert env.vault.collect("dao") == 0


class TestLedgerIdempotency:

    def test_pending_applies_once(self):
        env = build_vault_env()
        pending = build_transaction(
            env.ledger, [Move(units(1), "PUSD", SYSTEM_WALLET, "user", "airdrop")]
        )
        assert env.ledger.execute(pending) == ExecuteResult.APPLIED
        assert env.ledger.execute(pending) == ExecuteResult.ALREADY_APPLIED
        assert env.pusd.balance_of("user") == units(1)


class TestDistinctCalls:

    @settings(max_examples=30, deadline=None)
    @given(amount=st.integers(min_value=1, max_value=units(20000)))
    def test_identical_borrows_both_apply(self, amount):
        env = build_vault_env()
        env.mint_and_approve("user", 7000)
        env.vault.borrow("user", 7000, amount)
        env.vault.borrow("user", 7000, amount)
        fee = Rate(5, 1000).apply(amount)
        assert env.pusd.balance_of("user") == 2 * (amount - fee)
        assert env.vault.positions(7000).debt_principal == 2 * amount
