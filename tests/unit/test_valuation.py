"""
test_valuation.py - Unit tests for collateral valuation

Tests:
- Floor source precedence (override > fallback > primary)
- Type multipliers gated by a live value lock
- Credit and liquidation limits, staked tier included
"""

import pytest
from datetime import timedelta

from nftvault import (
    Rate, ONE, StaticPriceFeed, FloorSources, ValueLock,
    calculate_floor_eth, calculate_value_eth, calculate_value_usd, type_multiplier,
    calculate_credit_limit, calculate_liquidation_limit, is_over_limit,
    default_risk_parameters,
    InvalidNFT, NoOracleSet, InvalidOracleResults,
)

from tests.vault_env import units, T0


class TestFloorSources:
    """Tests for calculate_floor_eth precedence."""

    def test_primary(self):
        assert calculate_floor_eth(FloorSources(StaticPriceFeed(units(50)))) == units(50)

    def test_fallback_when_toggled(self):
        sources = FloorSources(StaticPriceFeed(units(50)), StaticPriceFeed(units(10)), True)
        assert calculate_floor_eth(sources) == units(10)

    def test_fallback_ignored_when_off(self):
        sources = FloorSources(StaticPriceFeed(units(50)), StaticPriceFeed(units(10)), False)
        assert calculate_floor_eth(sources) == units(50)

    def test_override_beats_everything(self):
        sources = FloorSources(StaticPriceFeed(units(50)), StaticPriceFeed(units(10)), True, units(7))
        assert calculate_floor_eth(sources) == units(7)

    def test_toggled_without_fallback(self):
        with pytest.raises(NoOracleSet):
            calculate_floor_eth(FloorSources(StaticPriceFeed(units(50)), None, True))


class TestTypeMultiplier:

    multipliers = {"APE": Rate(10, 1)}

    def test_untyped_is_one(self):
        lock = ValueLock("user", 1, T0 + timedelta(days=1))
        assert type_multiplier(None, self.multipliers, lock, T0) == ONE

    def test_no_lock_is_one(self):
        assert type_multiplier("APE", self.multipliers, None, T0) == ONE

    def test_live_lock_unlocks_multiplier(self):
        lock = ValueLock("user", 1, T0 + timedelta(days=1))
        assert type_multiplier("APE", self.multipliers, lock, T0) == Rate(10, 1)

    def test_expired_lock(self):
        lock = ValueLock("user", 1, T0)
        assert type_multiplier("APE", self.multipliers, lock, T0) == ONE


class TestValueConversion:

    def test_value_usd_with_8_decimal_feed(self):
        value_eth = calculate_value_eth(units(50), ONE)
        assert calculate_value_usd(value_eth, StaticPriceFeed(3000 * 10**8, 8)) == units(150000)

    def test_boosted_value(self):
        value_eth = calculate_value_eth(units(50), Rate(10, 1))
        assert calculate_value_usd(value_eth, StaticPriceFeed(3000 * 10**8, 8)) == units(1500000)


class TestCreditLimits:

    params = default_risk_parameters()

    def test_credit_limit(self):
        assert calculate_credit_limit(units(150000), self.params, False) == units(48000)

    def test_staked_credit_limit(self):
        assert calculate_credit_limit(units(150000), self.params, True) == units(58500)

    def test_liquidation_limits(self):
        assert calculate_liquidation_limit(units(150000), self.params, False) == units(49500)
        assert calculate_liquidation_limit(units(150000), self.params, True) == units(60000)

    def test_debt_at_limit_is_safe(self):
        assert not is_over_limit(units(49500), units(49500))
        assert is_over_limit(units(49500) + 1, units(49500))


class TestVaultValuation:
    """Valuation through NFTVault views."""

    def test_floor_asset_value(self, env):
        assert env.vault.get_nft_value_usd(7000) == units(150000)
        assert env.vault.get_credit_limit(7000) == units(48000)
        assert env.vault.get_liquidation_limit(7000) == units(49500)

    def test_typed_asset_without_lock_uses_floor(self, env):
        assert env.vault.nft_types(7350) == "APE"
        assert env.vault.get_nft_value_usd(7350) == units(150000)

    def test_boosted_asset_value(self, boosted_env):
        assert boosted_env.vault.get_nft_value_usd(7350) == units(1500000)
        assert boosted_env.vault.get_credit_limit(7350) == units(480000)

    def test_boost_ends_at_unlock_time(self, boosted_env):
        boosted_env.advance(days=10)
        assert boosted_env.vault.get_nft_value_usd(7350) == units(150000)

    def test_staked_owner_gets_higher_tier(self, env):
        env.punks.mint("user", 7000)
        env.staking.stake("user")
        assert env.vault.get_credit_limit(7000) == units(58500)
        env.staking.unstake("user")
        assert env.vault.get_credit_limit(7000) == units(48000)

    def test_fallback_and_override(self, env):
        env.vault.set_fallback_oracle("dao", env.fallback_oracle)
        env.vault.toggle_fallback_oracle("dao", True)
        assert env.vault.get_nft_value_usd(7000) == units(30000)
        env.vault.override_floor("dao", units(20))
        assert env.vault.get_nft_value_usd(7000) == units(60000)
        env.vault.disable_floor_override("dao")
        assert env.vault.get_floor_eth() == units(10)
        env.vault.toggle_fallback_oracle("dao", False)
        assert env.vault.get_floor_eth() == units(50)

    def test_eth_price_moves_value(self, env):
        env.eth_oracle.update_answer(2900 * 10**8)
        assert env.vault.get_nft_value_usd(7000) == units(145000)

    def test_bad_oracle_answer(self, env):
        env.eth_oracle.update_answer(0)
        with pytest.raises(InvalidOracleResults):
            env.vault.get_nft_value_usd(7000)

    def test_index_out_of_range(self, env):
        with pytest.raises(InvalidNFT):
            env.vault.get_nft_value_usd(10001)
        with pytest.raises(InvalidNFT):
            env.vault.get_credit_limit(-1)
