"""
config.py - Vault risk parameters

RiskParameters is the process-wide configuration object every vault
operation reads. It is immutable: governance setters produce a new instance
with dataclasses.replace(), which re-runs validation.

Configuration files are JSON, rates written as [numerator, denominator]:

    {
        "debt_interest_apr": [2, 100],
        "credit_limit_rate": [32, 100],
        ...
        "insurance_repurchase_limit": 259200,
        "borrow_amount_cap": 3000000000000000000000000
    }
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from datetime import timedelta
import json
from pathlib import Path
from typing import Any, Dict, Union

from .core import Rate, InvalidRate, ONE


@dataclass(frozen=True, slots=True)
class RiskParameters:
    """
    Immutable risk configuration.

    Invariants:
        liquidation_limit_rate > credit_limit_rate
        cig_staked_liquidation_limit_rate > cig_staked_credit_limit_rate
        limit, lock and fee rates are at most 1
        insurance_repurchase_limit is positive
    """
    debt_interest_apr: Rate
    credit_limit_rate: Rate
    liquidation_limit_rate: Rate
    cig_staked_credit_limit_rate: Rate
    cig_staked_liquidation_limit_rate: Rate
    value_increase_lock_rate: Rate
    organization_fee_rate: Rate
    insurance_purchase_rate: Rate
    insurance_liquidation_penalty_rate: Rate
    insurance_repurchase_limit: timedelta
    borrow_amount_cap: int

    def __post_init__(self):
        for rate in (
            self.credit_limit_rate,
            self.liquidation_limit_rate,
            self.cig_staked_credit_limit_rate,
            self.cig_staked_liquidation_limit_rate,
            self.value_increase_lock_rate,
            self.organization_fee_rate,
            self.insurance_purchase_rate,
        ):
            if rate > ONE:
                raise InvalidRate(rate)
        if self.liquidation_limit_rate <= self.credit_limit_rate:
            raise InvalidRate(self.liquidation_limit_rate)
        if self.cig_staked_liquidation_limit_rate <= self.cig_staked_credit_limit_rate:
            raise InvalidRate(self.cig_staked_liquidation_limit_rate)
        if self.insurance_repurchase_limit <= timedelta(0):
            raise ValueError(
                f"insurance_repurchase_limit must be positive, got {self.insurance_repurchase_limit}"
            )
        if isinstance(self.borrow_amount_cap, bool) or not isinstance(self.borrow_amount_cap, int) \
                or self.borrow_amount_cap < 0:
            raise ValueError(f"borrow_amount_cap must be a non-negative int, got {self.borrow_amount_cap}")

    def with_changes(self, **changes: Any) -> RiskParameters:
        """Return a validated copy with the given fields replaced."""
        return replace(self, **changes)


def default_risk_parameters() -> RiskParameters:
    """Parameters of the reference deployment."""
    return RiskParameters(
        debt_interest_apr=Rate(2, 100),
        credit_limit_rate=Rate(32, 100),
        liquidation_limit_rate=Rate(33, 100),
        cig_staked_credit_limit_rate=Rate(39, 100),
        cig_staked_liquidation_limit_rate=Rate(40, 100),
        value_increase_lock_rate=Rate(25, 100),
        organization_fee_rate=Rate(5, 1000),
        insurance_purchase_rate=Rate(1, 100),
        insurance_liquidation_penalty_rate=Rate(25, 100),
        insurance_repurchase_limit=timedelta(days=3),
        borrow_amount_cap=3_000_000 * 10 ** 18,
    )


def risk_parameters_from_dict(data: Dict[str, Any]) -> RiskParameters:
    """
    Build RiskParameters from a JSON-shaped dict.

    Raises:
        ValueError: If a key is missing or a rate is not a [numerator, denominator] pair
        InvalidRate: If the rates break an invariant
    """
    values: Dict[str, Any] = {}
    for f in fields(RiskParameters):
        if f.name not in data:
            raise ValueError(f"Missing risk parameter: {f.name}")
        raw = data[f.name]
        if f.name == "insurance_repurchase_limit":
            values[f.name] = timedelta(seconds=int(raw))
        elif f.name == "borrow_amount_cap":
            values[f.name] = int(raw)
        else:
            if not isinstance(raw, (list, tuple)) or len(raw) != 2:
                raise ValueError(f"{f.name} must be [numerator, denominator], got {raw!r}")
            values[f.name] = Rate(int(raw[0]), int(raw[1]))
    return RiskParameters(**values)


def risk_parameters_to_dict(params: RiskParameters) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for f in fields(RiskParameters):
        value = getattr(params, f.name)
        if isinstance(value, Rate):
            data[f.name] = [value.numerator, value.denominator]
        elif isinstance(value, timedelta):
            data[f.name] = int(value.total_seconds())
        else:
            data[f.name] = value
    return data


def load_risk_parameters(path: Union[str, Path]) -> RiskParameters:
    """Read RiskParameters from a JSON file."""
    with open(path, encoding="utf-8") as fh:
        return risk_parameters_from_dict(json.load(fh))
