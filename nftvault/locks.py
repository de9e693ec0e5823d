"""
locks.py - Escrow-backed value locks (trait boosts)

A ValueLock escrows tokens against an asset until unlock_at. While it is
live the asset is valued with its type multiplier.

The escrow a boost requires is the slice of the boosted credit line
covered by value_increase_lock_rate, priced in the escrow token:

    required = boosted_value_eth * credit_limit_rate * value_increase_lock_rate
               * 10**18 / escrow_price_eth

Re-locking an asset settles against the existing lock. The same owner only
moves the difference; a new owner funds the full requirement and the
previous owner gets their escrow back.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .core import Rate, PRICE_DECIMALS


@dataclass(frozen=True, slots=True)
class ValueLock:
    owner: str
    locked_value: int
    unlock_at: datetime


@dataclass(frozen=True, slots=True)
class LockSettlement:
    """Token flows needed to replace a lock."""
    charge: int                   # caller -> vault
    refund: int                   # vault -> refund_to
    refund_to: Optional[str] = None


def is_lock_active(lock: Optional[ValueLock], now: datetime) -> bool:
    return lock is not None and now < lock.unlock_at


def calculate_escrow_to_lock(
    boosted_value_eth: int,
    credit_limit_rate: Rate,
    value_increase_lock_rate: Rate,
    escrow_price_eth: int,
) -> int:
    credit_eth = value_increase_lock_rate.apply(credit_limit_rate.apply(boosted_value_eth))
    return credit_eth * 10 ** PRICE_DECIMALS // escrow_price_eth


def calculate_lock_settlement(
    existing: Optional[ValueLock],
    caller: str,
    required: int,
) -> LockSettlement:
    if existing is None:
        return LockSettlement(charge=required, refund=0)
    if existing.owner == caller:
        if required >= existing.locked_value:
            return LockSettlement(charge=required - existing.locked_value, refund=0)
        return LockSettlement(
            charge=0,
            refund=existing.locked_value - required,
            refund_to=caller,
        )
    return LockSettlement(
        charge=required,
        refund=existing.locked_value,
        refund_to=existing.owner,
    )
