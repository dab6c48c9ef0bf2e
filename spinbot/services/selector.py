# spinbot/services/selector.py
from __future__ import annotations

import random
from typing import Callable, Iterable

from spinbot.services.prize_table import PrizeOption

Rng = Callable[[], float]


def select_prize(table: Iterable[PrizeOption], rng: Rng = random.random) -> PrizeOption:
    """
    Draw one option: walk the table in declared order, accumulating probability,
    and return the first option whose running total reaches r = rng().

    Pure apart from calling rng. If float error leaves r above the final running
    total (r right at the upper boundary of a validated table), the last option
    with a non-zero probability wins.
    """
    options = tuple(table)
    if not options:
        raise ValueError("Cannot draw from an empty prize table")

    r = rng()
    if not (0.0 <= r < 1.0):
        raise ValueError(f"rng() must return a float in [0, 1), got {r!r}")

    running = 0.0
    for option in options:
        running += option.probability
        # zero-weight options are never drawn, even at r == 0.0
        if option.probability > 0 and running >= r:
            return option

    drawable = [o for o in options if o.probability > 0]
    if not drawable:
        raise ValueError("Prize table has no option with a non-zero probability")
    return drawable[-1]
