"""
daily_challenge.py
------------------

Variable daily savings: split a monthly savings goal into uneven daily
targets that still add up to the goal.

The split must be the same every time it is computed for a given month,
without storing it anywhere, so it is driven by a small linear
congruential generator seeded with ``year * 100 + month``::

    s = (s * 1103515245 + 12345) & 0x7fffffff
    value = s / 0x7fffffff

The arithmetic is exact integer arithmetic, so the sequence is identical
on every run and platform.
"""

from __future__ import annotations

import calendar
import math
from datetime import date
from typing import Callable, List, Optional

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MASK = 0x7FFFFFFF


def seeded_random(seed: int) -> Callable[[], float]:
    """Return a generator of floats in ``[0, 1]`` for ``seed``."""
    state = seed

    def next_value() -> float:
        nonlocal state
        state = (state * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK
        return state / LCG_MASK

    return next_value


def _round_cents(value: float) -> float:
    # Half up, not banker's rounding
    return math.floor(value * 100 + 0.5) / 100


def daily_targets(monthly_goal: float, year: int, month: int) -> List[float]:
    """Per-day savings targets for the month; the last day takes the remainder."""
    days_in_month = calendar.monthrange(year, month)[1]
    rng = seeded_random(year * 100 + month)

    targets: List[float] = []
    remaining = monthly_goal
    for d in range(days_in_month - 1):
        days_left = days_in_month - d - 1
        high = remaining - days_left
        low = max(0, remaining - days_left * monthly_goal)
        spread = max(0, high - low)
        value = _round_cents(low + rng() * spread)
        targets.append(value)
        remaining -= value
    targets.append(_round_cents(remaining))
    return targets


def get_todays_challenge(monthly_goal: float, year: int, month: int, day: Optional[int] = None) -> float:
    """Amount to save on ``day`` (default: today's day of month)."""
    if day is None:
        day = date.today().day
    targets = daily_targets(monthly_goal, year, month)
    if 1 <= day <= len(targets):
        return targets[day - 1]
    return monthly_goal / len(targets)
