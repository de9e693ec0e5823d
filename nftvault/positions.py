"""
positions.py - Position records and the open-positions index

A Position is keyed by asset id and replaced wholesale on every change.
The registry keeps the ids of open positions in the order they were opened;
an insured position stays in the index after liquidation until it is
repurchased or claimed.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterator, List, Optional


@dataclass(frozen=True, slots=True)
class Position:
    """
    Attributes:
        owner: Principal that opened the position
        debt_portion: Share of the global accrual index owed
        debt_principal: Borrowed amount still outstanding, excluding interest
        insurance_active: Repurchase right bought at borrow time
        liquidated_at: Liquidation time, None while the position is healthy
        liquidator: Principal that settled the debt at liquidation
        debt_amount_for_repurchase: Debt settled at liquidation
    """
    owner: str
    debt_portion: int = 0
    debt_principal: int = 0
    insurance_active: bool = False
    liquidated_at: Optional[datetime] = None
    liquidator: Optional[str] = None
    debt_amount_for_repurchase: int = 0

    @property
    def is_liquidated(self) -> bool:
        return self.liquidated_at is not None


class PositionRegistry:
    """Position records plus the ordered index of open asset ids."""

    def __init__(self):
        self._positions: Dict[int, Position] = {}
        self._open: List[int] = []

    def get(self, asset_id: int) -> Optional[Position]:
        return self._positions.get(asset_id)

    def put(self, asset_id: int, position: Position) -> None:
        if asset_id not in self._positions:
            self._open.append(asset_id)
        self._positions[asset_id] = position

    def remove(self, asset_id: int) -> Position:
        position = self._positions.pop(asset_id)
        self._open.remove(asset_id)
        return position

    def open_indexes(self) -> List[int]:
        return list(self._open)

    def copy(self) -> PositionRegistry:
        cloned = PositionRegistry()
        cloned._positions = dict(self._positions)
        cloned._open = list(self._open)
        return cloned

    def __contains__(self, asset_id: int) -> bool:
        return asset_id in self._positions

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._open))

    def __len__(self) -> int:
        return len(self._open)
