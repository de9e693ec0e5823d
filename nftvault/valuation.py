"""
valuation.py - Collateral valuation pipeline

    floor (ETH) -> x type multiplier while boosted -> x ETH/USD -> value (PUSD)

Floor source precedence: DAO override > fallback feed (when toggled on) >
primary feed. The asset type multiplier is unlocked by a live value lock;
without one, or once it expires, the asset is valued at the floor. All
divisions round down.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from .core import Rate, ONE, PRICE_DECIMALS, NoOracleSet, ZeroAddress
from .locks import ValueLock, is_lock_active
from .pricing_source import PriceFeed, normalize_answer


@dataclass(frozen=True, slots=True)
class FloorSources:
    primary: PriceFeed
    fallback: Optional[PriceFeed] = None
    use_fallback: bool = False
    override_floor: Optional[int] = None


def require_feed(feed: Optional[PriceFeed]) -> PriceFeed:
    """Reject a null feed reference handed to a setter or constructor."""
    if feed is None:
        raise ZeroAddress()
    return feed


def calculate_floor_eth(sources: FloorSources) -> int:
    if sources.override_floor is not None:
        return sources.override_floor
    if sources.use_fallback:
        if sources.fallback is None:
            raise NoOracleSet()
        return normalize_answer(sources.fallback)
    return normalize_answer(sources.primary)


def type_multiplier(
    nft_type: Optional[str],
    multipliers: Mapping[str, Rate],
    lock: Optional[ValueLock],
    now: datetime,
) -> Rate:
    """Multiplier for an asset: its type's rate while a lock is live, else 1x."""
    if nft_type is None or not is_lock_active(lock, now):
        return ONE
    return multipliers.get(nft_type, ONE)


def calculate_value_eth(floor_eth: int, multiplier: Rate) -> int:
    return multiplier.apply(floor_eth)


def calculate_value_usd(value_eth: int, eth_usd: PriceFeed) -> int:
    """Convert an 18-decimal ETH value to the pegged unit through the ETH/USD feed."""
    answer = normalize_answer(eth_usd, PRICE_DECIMALS)
    return value_eth * answer // 10 ** PRICE_DECIMALS
