from __future__ import annotations

import random
from collections.abc import Iterable
from typing import TypeVar

T = TypeVar("T")


def select_winners(
    participants: Iterable[T], count: int, rng: random.Random | None = None
) -> list[T]:
    """Draw ``min(count, len(participants))`` distinct winners uniformly.

    Each pick takes a random index into the remaining pool and removes it, so
    a participant can never be drawn twice. An empty pool yields ``[]``.
    """
    rng = rng or random.SystemRandom()
    pool = list(participants)
    winners: list[T] = []
    while pool and len(winners) < count:
        index = rng.randrange(len(pool))
        winners.append(pool.pop(index))
    return winners


__all__ = ["select_winners"]
