"""
accrual.py - Protocol-wide interest accrual

Debt is tracked as portions of a global accrual index rather than as raw
amounts, so interest accrues for every position at once in O(1):

    debt(portion) = portion * accrual_index // PORTION_SCALE

accrual_index starts at PORTION_SCALE and only grows. Borrowing converts an
amount to portions at the current index; repaying converts back with the
same floor formula, so a borrow and an equal repay at the same instant
cancel exactly.

All functions here are pure: they take an AccrualState and return a new one.

Key Formulas:
    growth = accrual_index * apr * elapsed_seconds / YEAR_SECONDS      (floor)
    fees  += total_debt_after - total_debt_before
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Tuple

from .core import Rate, PORTION_SCALE, YEAR_SECONDS


@dataclass(frozen=True, slots=True)
class AccrualState:
    """
    Snapshot of global debt accounting.

    fees_collected is the amount the treasury may issue but has not yet:
    accrued interest plus borrow fees since the last collect.
    """
    total_debt_portion: int
    accrual_index: int
    last_accrual_time: datetime
    fees_collected: int = 0


def initial_accrual_state(now: datetime) -> AccrualState:
    return AccrualState(
        total_debt_portion=0,
        accrual_index=PORTION_SCALE,
        last_accrual_time=now,
    )


def debt_for_portion(state: AccrualState, portion: int) -> int:
    return portion * state.accrual_index // PORTION_SCALE


def portion_for_amount(state: AccrualState, amount: int) -> int:
    return amount * PORTION_SCALE // state.accrual_index


def total_debt(state: AccrualState) -> int:
    return debt_for_portion(state, state.total_debt_portion)


def calculate_accrual(state: AccrualState, apr: Rate, now: datetime) -> AccrualState:
    """
    Advance the accrual index to `now`.

    Interest accrues per whole second. The clock only moves forward by the
    seconds charged, so a sub-second remainder is carried into the next
    accrual and stepping the clock finely charges the same seconds as one
    jump.

    Idempotent within a timestamp: elapsed == 0 returns the state unchanged.
    The clock never runs backwards, so a `now` at or before the last accrual
    is also a no-op.
    """
    elapsed = (now - state.last_accrual_time) // timedelta(seconds=1)
    if elapsed <= 0:
        return state
    growth = (
        state.accrual_index * apr.numerator * elapsed
        // (apr.denominator * YEAR_SECONDS)
    )
    new_index = state.accrual_index + growth
    interest = (
        state.total_debt_portion * new_index // PORTION_SCALE
        - state.total_debt_portion * state.accrual_index // PORTION_SCALE
    )
    return replace(
        state,
        accrual_index=new_index,
        last_accrual_time=state.last_accrual_time + timedelta(seconds=elapsed),
        fees_collected=state.fees_collected + interest,
    )


def add_debt(state: AccrualState, portion: int, fee: int = 0) -> AccrualState:
    return replace(
        state,
        total_debt_portion=state.total_debt_portion + portion,
        fees_collected=state.fees_collected + fee,
    )


def remove_debt(state: AccrualState, portion: int) -> AccrualState:
    if portion > state.total_debt_portion:
        raise ValueError(
            f"Cannot remove {portion} portions, only {state.total_debt_portion} outstanding"
        )
    return replace(state, total_debt_portion=state.total_debt_portion - portion)


def take_fees(state: AccrualState) -> Tuple[AccrualState, int]:
    """Split off the collectable fees; returns (new_state, amount)."""
    return replace(state, fees_collected=0), state.fees_collected
