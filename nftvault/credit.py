"""
credit.py - Credit and liquidation limits

A position may borrow up to credit_limit_rate of its collateral value and
becomes liquidatable once its debt exceeds liquidation_limit_rate of it.
Holders of a qualifying stake get the higher cig_staked_* tier.
"""

from .config import RiskParameters


def calculate_credit_limit(value_usd: int, params: RiskParameters, staked: bool) -> int:
    rate = params.cig_staked_credit_limit_rate if staked else params.credit_limit_rate
    return rate.apply(value_usd)


def calculate_liquidation_limit(value_usd: int, params: RiskParameters, staked: bool) -> int:
    rate = params.cig_staked_liquidation_limit_rate if staked else params.liquidation_limit_rate
    return rate.apply(value_usd)


def is_over_limit(debt: int, liquidation_limit: int) -> bool:
    # debt exactly at the limit is still safe
    return debt > liquidation_limit
