"""
pricing_source.py - Price feeds for collateral valuation

Provides the oracle interface the vault reads prices through.

Classes:
- PriceFeed: Protocol defining the oracle interface
- StaticPriceFeed: A single answer, updated by hand
- TimeSeriesPriceFeed: Time-varying answers read at the ledger's current time

A feed answers with (value, decimals), the way on-chain aggregators report:
3000.00 USD per ETH with 8 decimals is (300000000000, 8).
"""

from datetime import datetime
from typing import List, Optional, Tuple, Protocol, runtime_checkable
from bisect import bisect_right

from .core import LedgerView, InvalidOracleResults, PRICE_DECIMALS


@runtime_checkable
class PriceFeed(Protocol):
    """
    Protocol for price feeds.

    latest_value() returns the most recent answer and the number of decimals
    it is expressed in.
    """

    def latest_value(self) -> Tuple[int, int]:
        ...


class StaticPriceFeed:
    """
    Price feed with a single answer, changed only through update_answer().
    """

    def __init__(self, answer: int, decimals: int = PRICE_DECIMALS):
        """
        Args:
            answer: Price scaled by 10**decimals
            decimals: Number of decimals in the answer
        """
        self.answer = answer
        self.decimals = decimals

    def latest_value(self) -> Tuple[int, int]:
        return self.answer, self.decimals

    def update_answer(self, answer: int):
        """Replace the current answer."""
        self.answer = answer

    def __repr__(self):
        return f"StaticPriceFeed({self.answer}, decimals={self.decimals})"


class TimeSeriesPriceFeed:
    """
    Price feed with time-varying answers.

    Reads the clock of the ledger it is attached to and answers with the
    most recent observation at or before that time. Before the first
    observation the answer is 0, which the vault rejects.

    Examples:
        feed = TimeSeriesPriceFeed(ledger, decimals=8)
        feed.add_answer(datetime(2025, 1, 1), 3000 * 10**8)

        feed = TimeSeriesPriceFeed(ledger, 8, [(t0, 3000 * 10**8), (t1, 2900 * 10**8)])
    """

    def __init__(
        self,
        clock: LedgerView,
        decimals: int = PRICE_DECIMALS,
        path: Optional[List[Tuple[datetime, int]]] = None,
    ):
        self.clock = clock
        self.decimals = decimals
        self.history: List[Tuple[datetime, int]] = sorted(path or [], key=lambda x: x[0])

    def add_answer(self, timestamp: datetime, answer: int):
        """Add an observation, keeping the history in time order."""
        self.history.append((timestamp, answer))
        self.history.sort(key=lambda x: x[0])

    def answer_at(self, timestamp: datetime) -> int:
        """Most recent answer at or before timestamp (0 if none)."""
        timestamps = [ts for ts, _ in self.history]
        idx = bisect_right(timestamps, timestamp)
        if idx == 0:
            return 0
        return self.history[idx - 1][1]

    def latest_value(self) -> Tuple[int, int]:
        return self.answer_at(self.clock.current_time), self.decimals

    def __repr__(self):
        return f"TimeSeriesPriceFeed({len(self.history)} observations, decimals={self.decimals})"


def normalize_answer(feed: PriceFeed, target_decimals: int = PRICE_DECIMALS) -> int:
    """
    Read a feed and rescale its answer to target_decimals.

    Scaling down rounds toward zero.

    Raises:
        InvalidOracleResults: If the feed answers with a non-positive value.
    """
    answer, decimals = feed.latest_value()
    if answer <= 0:
        raise InvalidOracleResults()
    if decimals < target_decimals:
        return answer * 10 ** (target_decimals - decimals)
    return answer // 10 ** (decimals - target_decimals)
