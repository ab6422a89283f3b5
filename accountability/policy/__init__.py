"""Pure policy functions: decay levels, labels, XP penalties, and debt scores."""

from accountability.policy.decay import (
    decay_level,
    decay_level_at,
    decay_label,
    xp_penalty,
)
from accountability.policy.debt import debt_score

__all__ = [
    "decay_level",
    "decay_level_at",
    "decay_label",
    "xp_penalty",
    "debt_score",
]
