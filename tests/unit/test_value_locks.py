"""
test_value_locks.py - Unit tests for trait boosts and escrow settlement

Tests:
- Required escrow from floor, multiplier, credit and lock rates
- Same-owner re-locks settle the difference
- A new owner funds the full requirement and refunds the previous owner
- unlock_jpeg after expiry
"""

import pytest
from datetime import timedelta

from nftvault import (
    Rate, ValueLock, LockSettlement,
    calculate_escrow_to_lock, calculate_lock_settlement, is_lock_active,
    InvalidNFTType, InvalidUnlockTime, NoOracleSet, Unauthorized, InvalidNFT,
    InsufficientAllowance,
)

from tests.vault_env import units, T0


class TestEscrowMath:

    def test_required_escrow(self):
        required = calculate_escrow_to_lock(units(500), Rate(32, 100), Rate(25, 100), 10**15)
        assert required == units(40000)

    def test_first_lock_charges_in_full(self):
        assert calculate_lock_settlement(None, "a", 100) == LockSettlement(charge=100, refund=0)

    def test_same_owner_tops_up(self):
        lock = ValueLock("a", 100, T0)
        assert calculate_lock_settlement(lock, "a", 130) == LockSettlement(charge=30, refund=0)

    def test_same_owner_refunded(self):
        lock = ValueLock("a", 100, T0)
        assert calculate_lock_settlement(lock, "a", 60) == LockSettlement(0, 40, "a")

    def test_new_owner_pays_full(self):
        lock = ValueLock("a", 100, T0)
        assert calculate_lock_settlement(lock, "b", 60) == LockSettlement(60, 100, "a")

    def test_lock_active_until_unlock(self):
        lock = ValueLock("a", 1, T0 + timedelta(seconds=1))
        assert is_lock_active(lock, T0)
        assert not is_lock_active(lock, T0 + timedelta(seconds=1))
        assert not is_lock_active(None, T0)


class TestApplyTraitBoost:
    """Tests for NFTVault.apply_trait_boost."""

    def test_lock_escrows_tokens(self, boosted_env):
        env = boosted_env
        lock = env.vault.lock_positions(7350)
        assert lock.owner == "user"
        assert lock.locked_value == units(40000)
        assert lock.unlock_at == T0.replace(day=11)
        assert env.jpeg.balance_of("user") == 0
        assert env.jpeg.balance_of(env.vault.name) == units(40000)

    def test_relock_after_price_rise_refunds(self, boosted_env):
        env = boosted_env
        env.jpeg_oracle.update_answer(2 * 10**15)
        env.vault.apply_trait_boost("user", 7350, T0.replace(day=12))
        assert env.jpeg.balance_of("user") == units(20000)
        assert env.jpeg.balance_of(env.vault.name) == units(20000)
        assert env.vault.lock_positions(7350).locked_value == units(20000)

    def test_relock_sequence(self, boosted_env):
        env = boosted_env
        env.jpeg_oracle.update_answer(2 * 10**15)
        env.vault.apply_trait_boost("user", 7350, T0.replace(day=12))
        env.jpeg.issue("user", units(40000))
        env.jpeg.approve("user", env.vault.name, units(60000))
        env.jpeg_oracle.update_answer(5 * 10**14)
        env.vault.apply_trait_boost("user", 7350, T0.replace(day=13))
        assert env.jpeg.balance_of("user") == 0
        assert env.jpeg.balance_of(env.vault.name) == units(80000)

        # a new holder of the asset takes the lock over
        env.punks.transfer_from("user", "user", "stranger", 7350)
        env.fund_jpeg("stranger", units(80000))
        env.vault.apply_trait_boost("stranger", 7350, T0.replace(day=14))
        assert env.jpeg.balance_of("stranger") == 0
        assert env.jpeg.balance_of("user") == units(80000)
        assert env.jpeg.balance_of(env.vault.name) == units(80000)
        assert env.vault.lock_positions(7350).owner == "stranger"

    def test_relock_needs_later_unlock(self, boosted_env):
        with pytest.raises(InvalidUnlockTime):
            boosted_env.vault.apply_trait_boost("user", 7350, T0.replace(day=11))

    def test_unlock_in_the_past(self, env):
        env.enable_jpeg_oracle()
        env.punks.mint("user", 7350)
        with pytest.raises(InvalidUnlockTime):
            env.vault.apply_trait_boost("user", 7350, T0)

    def test_untyped_asset(self, env):
        env.enable_jpeg_oracle()
        env.punks.mint("user", 7000)
        with pytest.raises(InvalidNFTType):
            env.vault.apply_trait_boost("user", 7000, T0 + timedelta(days=1))

    def test_not_the_holder(self, env):
        env.enable_jpeg_oracle()
        env.punks.mint("owner", 7350)
        with pytest.raises(Unauthorized):
            env.vault.apply_trait_boost("user", 7350, T0 + timedelta(days=1))

    def test_not_the_position_owner(self, boosted_env):
        env = boosted_env
        env.punks.approve("user", env.vault.name, 7350)
        env.vault.borrow("user", 7350, units(1000))
        with pytest.raises(Unauthorized):
            env.vault.apply_trait_boost("stranger", 7350, T0.replace(day=12))

    def test_position_owner_may_relock(self, boosted_env):
        env = boosted_env
        env.punks.approve("user", env.vault.name, 7350)
        env.vault.borrow("user", 7350, units(1000))
        env.vault.apply_trait_boost("user", 7350, T0.replace(day=12))
        assert env.vault.lock_positions(7350).unlock_at == T0.replace(day=12)

    def test_without_jpeg_oracle(self, env):
        env.punks.mint("user", 7350)
        with pytest.raises(NoOracleSet):
            env.vault.apply_trait_boost("user", 7350, T0 + timedelta(days=1))

    def test_without_escrow_allowance(self, env):
        env.enable_jpeg_oracle()
        env.punks.mint("user", 7350)
        env.jpeg.issue("user", units(40000))
        with pytest.raises(InsufficientAllowance):
            env.vault.apply_trait_boost("user", 7350, T0 + timedelta(days=1))
        assert env.vault.lock_positions(7350) is None

    def test_invalid_index(self, env):
        with pytest.raises(InvalidNFT):
            env.vault.apply_trait_boost("user", 10001, T0 + timedelta(days=1))

    def test_alien_multiplier(self, env):
        env.enable_jpeg_oracle()
        env.punks.mint("user", 8)
        env.fund_jpeg("user", units(80000))
        env.vault.apply_trait_boost("user", 8, T0 + timedelta(days=1))
        assert env.vault.lock_positions(8).locked_value == units(80000)
        assert env.vault.get_nft_value_usd(8) == units(3000000)


class TestUnlockJpeg:
    """Tests for NFTVault.unlock_jpeg."""

    def test_unlock_after_expiry(self, boosted_env):
        env = boosted_env
        env.advance(days=10)
        env.vault.unlock_jpeg("user", 7350)
        assert env.jpeg.balance_of("user") == units(40000)
        assert env.vault.lock_positions(7350) is None

    def test_unlock_before_expiry(self, boosted_env):
        with pytest.raises(Unauthorized):
            boosted_env.vault.unlock_jpeg("user", 7350)

    def test_unlock_by_other(self, boosted_env):
        boosted_env.advance(days=10)
        with pytest.raises(Unauthorized):
            boosted_env.vault.unlock_jpeg("stranger", 7350)

    def test_unlock_without_lock(self, env):
        with pytest.raises(Unauthorized):
            env.vault.unlock_jpeg("user", 7350)
