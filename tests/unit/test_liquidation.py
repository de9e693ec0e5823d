"""
test_liquidation.py - Unit tests for the liquidation engine

Tests:
- is_liquidatable threshold
- Uninsured liquidation hands the asset to the recipient
- Insured liquidation, repurchase window and expired-insurance claims
"""

import pytest
from datetime import timedelta

from nftvault import (
    LIQUIDATOR_ROLE,
    InvalidNFT, InvalidPosition, PositionLiquidated, Unauthorized,
    PositionInsuranceExpired, PositionInsuranceNotExpired, InsufficientAllowance,
)

from tests.vault_env import units


def crash_eth(env):
    """ETH to 100 USD: a 30000 PUSD debt on a 50 ETH floor is under water."""
    env.eth_oracle.update_answer(100 * 10**8)


def fund_liquidator(env, amount=units(70000)):
    env.fund("dao", amount)
    env.pusd.approve("dao", env.vault.name, amount)


class TestIsLiquidatable:

    def test_healthy_position(self, borrowed_env):
        assert not borrowed_env.vault.is_liquidatable(7000)

    def test_no_position(self, env):
        assert not env.vault.is_liquidatable(7000)

    def test_debt_exactly_at_limit_is_safe(self, env):
        env.mint_and_approve("user", 7000)
        env.vault.borrow("user", 7000, units(29700))
        # 30 ETH * 3000 * 33% == 29700
        env.vault.override_floor("dao", units(30))
        assert env.vault.get_liquidation_limit(7000) == units(29700)
        assert not env.vault.is_liquidatable(7000)
        env.vault.override_floor("dao", units(30) - 1)
        assert env.vault.is_liquidatable(7000)

    def test_interest_pushes_over_limit(self, env):
        env.mint_and_approve("user", 7000)
        env.vault.borrow("user", 7000, units(29700))
        env.vault.override_floor("dao", units(30))
        env.advance(days=1)
        assert env.vault.is_liquidatable(7000)

    def test_eth_price_drop(self, env):
        env.mint_and_approve("user", 7000)
        env.vault.borrow("user", 7000, units(48000))
        env.eth_oracle.update_answer(2900 * 10**8)
        assert env.vault.is_liquidatable(7000)

    def test_invalid_index(self, env):
        with pytest.raises(InvalidNFT):
            env.vault.is_liquidatable(10001)


class TestUninsuredLiquidation:

    def test_asset_goes_to_recipient(self, borrowed_env):
        env = borrowed_env
        crash_eth(env)
        fund_liquidator(env)
        env.vault.liquidate("dao", 7000, "owner")
        assert env.punks.owner_of(7000) == "owner"
        assert env.vault.positions(7000) is None
        assert env.vault.open_positions_indexes() == []
        assert env.vault.total_debt_amount() == 0
        assert env.pusd.balance_of("dao") == units(40000)

    def test_borrower_keeps_proceeds(self, borrowed_env):
        env = borrowed_env
        crash_eth(env)
        fund_liquidator(env)
        env.vault.liquidate("dao", 7000, "dao")
        assert env.pusd.balance_of("user") == units(29850)

    def test_healthy_position_rejected(self, borrowed_env):
        fund_liquidator(borrowed_env)
        with pytest.raises(InvalidPosition):
            borrowed_env.vault.liquidate("dao", 7000, "dao")

    def test_missing_position_rejected(self, env):
        with pytest.raises(InvalidPosition):
            env.vault.liquidate("dao", 7000, "dao")

    def test_requires_liquidator_role(self, borrowed_env):
        crash_eth(borrowed_env)
        with pytest.raises(Unauthorized):
            borrowed_env.vault.liquidate("user", 7000, "user")

    def test_invalid_index(self, env):
        with pytest.raises(InvalidNFT):
            env.vault.liquidate("dao", 10001, "dao")

    def test_liquidator_without_allowance(self, borrowed_env):
        env = borrowed_env
        crash_eth(env)
        env.fund("dao", units(70000))
        with pytest.raises(InsufficientAllowance):
            env.vault.liquidate("dao", 7000, "dao")
        assert env.vault.positions(7000).owner == "user"
        assert env.punks.owner_of(7000) == env.vault.name
        assert env.vault.total_debt_amount() == units(30000)


class TestInsuredLiquidation:

    @pytest.fixture
    def liquidated_env(self, insured_env):
        crash_eth(insured_env)
        fund_liquidator(insured_env)
        insured_env.vault.liquidate("dao", 7000, "dao")
        return insured_env

    def test_asset_stays_in_vault(self, liquidated_env):
        env = liquidated_env
        position = env.vault.positions(7000)
        assert position.is_liquidated
        assert position.liquidator == "dao"
        assert position.debt_amount_for_repurchase == units(30000)
        assert env.punks.owner_of(7000) == env.vault.name
        assert env.vault.open_positions_indexes() == [7000]
        assert env.vault.get_debt_amount(7000) == 0

    def test_liquidated_position_not_liquidatable(self, liquidated_env):
        assert not liquidated_env.vault.is_liquidatable(7000)

    def test_second_liquidation_rejected(self, liquidated_env):
        with pytest.raises(PositionLiquidated):
            liquidated_env.vault.liquidate("dao", 7000, "dao")

    def test_owner_actions_blocked(self, liquidated_env):
        vault = liquidated_env.vault
        with pytest.raises(PositionLiquidated):
            vault.borrow("user", 7000, units(1))
        with pytest.raises(PositionLiquidated):
            vault.repay("user", 7000, units(1))
        with pytest.raises(PositionLiquidated):
            vault.close_position("user", 7000)

    def test_repurchase_pays_debt_and_penalty(self, liquidated_env):
        env = liquidated_env
        env.fund("user", units(10000))
        env.pusd.approve("user", env.vault.name, units(37500))
        env.vault.repurchase("user", 7000)
        assert env.punks.owner_of(7000) == "user"
        assert env.vault.positions(7000) is None
        assert env.vault.open_positions_indexes() == []
        # 30000 debt + 25% penalty
        assert env.pusd.balance_of("dao") == units(40000) + units(37500)
        assert env.pusd.balance_of("user") == units(29550) + units(10000) - units(37500)

    def test_repurchase_on_last_second(self, liquidated_env):
        env = liquidated_env
        env.fund("user", units(10000))
        env.pusd.approve("user", env.vault.name, units(37500))
        env.advance(days=3, seconds=-1)
        env.vault.repurchase("user", 7000)
        assert env.punks.owner_of(7000) == "user"

    def test_repurchase_after_window(self, liquidated_env):
        env = liquidated_env
        env.advance(days=3)
        with pytest.raises(PositionInsuranceExpired):
            env.vault.repurchase("user", 7000)

    def test_repurchase_by_non_owner(self, liquidated_env):
        with pytest.raises(Unauthorized):
            liquidated_env.vault.repurchase("stranger", 7000)

    def test_repurchase_healthy_position(self, insured_env):
        with pytest.raises(InvalidPosition):
            insured_env.vault.repurchase("user", 7000)

    def test_claim_before_expiry(self, liquidated_env):
        liquidated_env.advance(days=3, seconds=-1)
        with pytest.raises(PositionInsuranceNotExpired):
            liquidated_env.vault.claim_expired_insurance_nft("dao", 7000, "dao")

    def test_claim_after_expiry(self, liquidated_env):
        env = liquidated_env
        env.advance(days=3)
        env.vault.claim_expired_insurance_nft("dao", 7000, "owner")
        assert env.punks.owner_of(7000) == "owner"
        assert env.vault.positions(7000) is None
        assert env.vault.total_positions() == 0

    def test_claim_by_other_liquidator(self, liquidated_env):
        env = liquidated_env
        env.roles.grant_role(LIQUIDATOR_ROLE, "stranger")
        env.advance(days=3)
        with pytest.raises(Unauthorized):
            env.vault.claim_expired_insurance_nft("stranger", 7000, "stranger")

    def test_claim_without_role(self, liquidated_env):
        liquidated_env.advance(days=3)
        with pytest.raises(Unauthorized):
            liquidated_env.vault.claim_expired_insurance_nft("user", 7000, "user")

    def test_claim_healthy_position(self, insured_env):
        with pytest.raises(InvalidPosition):
            insured_env.vault.claim_expired_insurance_nft("dao", 7000, "dao")

    def test_repurchase_window_follows_governance(self, liquidated_env):
        env = liquidated_env
        settings = env.vault.settings
        env.vault.set_insurance_params(
            "dao",
            settings.insurance_purchase_rate,
            settings.insurance_liquidation_penalty_rate,
            timedelta(days=1),
        )
        env.advance(days=1)
        env.vault.claim_expired_insurance_nft("dao", 7000, "dao")
        assert env.punks.owner_of(7000) == "dao"
