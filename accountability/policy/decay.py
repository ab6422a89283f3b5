"""
Decay policy: map a task's schedule and completion state to a decay level.

Levels: 0=Fresh, 1=Stale, 2=Decaying, 3=Rotten. After the scheduled end a
task gets a grace period, then climbs one level per band. Band lower bounds
are inclusive, so a task exactly 24h overdue is already Stale.
"""

from datetime import datetime, timedelta, timezone

from accountability.constants import (
    DECAY_LABELS,
    DEFAULT_BAND_HOURS,
    DEFAULT_GRACE_HOURS,
    DEFAULT_XP_PENALTY_PER_LEVEL,
    MAX_DECAY_LEVEL,
)
from accountability.core import timeutil


def decay_level_at(
    due_at: datetime,
    is_completed: bool,
    now: datetime,
    grace_hours: int = DEFAULT_GRACE_HOURS,
    band_hours: int = DEFAULT_BAND_HOURS,
) -> int:
    """
    Compute the decay level for a task due at due_at.

    Args:
        due_at: Scheduled end of the task.
        is_completed: Completion flag; completed tasks never decay.
        now: Evaluation time.
        grace_hours: Overdue hours before the first level applies.
        band_hours: Width of each level band.

    Returns:
        Decay level in 0..3.
    """
    if is_completed:
        return 0

    overdue = now - due_at
    if overdue < timedelta(hours=grace_hours):
        return 0

    past_grace = overdue - timedelta(hours=grace_hours)
    level = 1 + int(past_grace // timedelta(hours=band_hours))
    return min(level, MAX_DECAY_LEVEL)


def decay_level(
    scheduled_date: str,
    end_time: str,
    is_completed: bool,
    now: datetime,
    grace_hours: int = DEFAULT_GRACE_HOURS,
    band_hours: int = DEFAULT_BAND_HOURS,
) -> int:
    """
    Compute the decay level from raw schedule columns.

    Args:
        scheduled_date: Task date as YYYY-MM-DD.
        end_time: Scheduled end as HH:MM[:SS]; empty means end of day.
        is_completed: Completion flag.
        now: Evaluation time (aware; naive is treated as UTC).

    Returns:
        Decay level in 0..3.
    """
    due_at = timeutil.schedule_end(scheduled_date, end_time=end_time)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return decay_level_at(
        due_at, is_completed, now, grace_hours=grace_hours, band_hours=band_hours
    )


def decay_label(level: int) -> str:
    """Display label for a decay level (unknown levels read as Fresh)."""
    if 0 <= level < len(DECAY_LABELS):
        return DECAY_LABELS[level]
    return DECAY_LABELS[0]


def xp_penalty(
    previous_level: int,
    new_level: int,
    per_level: int = DEFAULT_XP_PENALTY_PER_LEVEL,
) -> int:
    """XP lost for moving from previous_level to new_level (never negative)."""
    return max(0, new_level - previous_level) * per_level
