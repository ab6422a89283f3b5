"""Debt aggregation: normalized mean decay severity as a 0-100 score."""

from typing import Iterable

from accountability.constants import MAX_DEBT_SCORE, MAX_DECAY_LEVEL


def debt_score(decay_levels: Iterable[int]) -> int:
    """
    Aggregate decay levels into a debt score.

    round(100 * sum(levels) / (3 * count)), rounding halves up, clamped to
    [0, 100]. An empty sequence scores 0.

    Args:
        decay_levels: Decay levels of a user's incomplete tasks.

    Returns:
        Integer debt score in [0, 100].
    """
    levels = list(decay_levels)
    if not levels:
        return 0

    # Integer half-up rounding of 100 * total / max_total
    total = sum(levels)
    max_total = MAX_DECAY_LEVEL * len(levels)
    score = (2 * MAX_DEBT_SCORE * total + max_total) // (2 * max_total)
    return max(0, min(MAX_DEBT_SCORE, score))
