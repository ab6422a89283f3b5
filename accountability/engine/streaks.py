"""
Streak resolver: daily pass converting yesterday's activity into streaks.

A user was active on a day if they completed a task or logged a focus
session that day. An active day extends the streak when the last activity
is at most one day before the run date. An inactive day breaks any running
streak, even if the user has been active since.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from accountability.core.exceptions import AccountabilityError, PersistenceFailure
from accountability.core.models import ProfileRecord
from accountability.core.timeutil import days_between, parse_day
from accountability.engine.context import BatchSummary, summary_for
from accountability.store import Stores

logger = logging.getLogger(__name__)

EXTENDED = "extended"
RESTARTED = "restarted"
BROKEN = "broken"
UNCHANGED = "unchanged"


class StreakResolver:
    """Applies the daily streak rules to every profile."""

    def __init__(self, stores: Stores):
        self.stores = stores

    def was_active(self, user_id: str, day: date) -> bool:
        if self.stores.tasks.list_completed_on(user_id, day):
            return True
        return self.stores.sessions.has_session_on(user_id, day)

    def resolve_profile(
        self, profile: ProfileRecord, now: datetime, day: Optional[date] = None
    ) -> str:
        """
        Resolve one user's streak for day (default: the day before now).

        Returns:
            One of "extended", "restarted", "broken", "unchanged".
        """
        target_day = day or (now.date() - timedelta(days=1))
        last_activity = (
            parse_day(profile.last_activity_date) if profile.last_activity_date else None
        )
        days_since = days_between(last_activity, now.date())
        prior = profile.current_streak

        if self.was_active(profile.user_id, target_day):
            if days_since is not None and days_since <= 1:
                new_streak, outcome = prior + 1, EXTENDED
            else:
                new_streak, outcome = 1, RESTARTED

            self.stores.profiles.update_streak(
                profile.user_id,
                new_streak,
                longest_streak=max(new_streak, profile.longest_streak),
                last_activity_date=target_day,
            )
            logger.info(f"Streak {profile.user_id}: {prior} -> {new_streak} ({outcome})")
            return outcome

        # Activity recorded after target_day does not cover the missed day
        if prior > 0:
            self.stores.profiles.update_streak(profile.user_id, 0)
            logger.info(f"Streak {profile.user_id}: {prior} -> 0 (broken)")
            return BROKEN

        return UNCHANGED

    def run(
        self,
        now: datetime,
        day: Optional[date] = None,
        run_id: Optional[str] = None,
    ) -> BatchSummary:
        """Resolve streaks for every profile; per-user failures are collected."""
        summary = summary_for("streaks", now, run_id)
        summary.counters.update({"streaks_extended": 0, "streaks_broken": 0})

        try:
            profiles = self.stores.profiles.list_profiles()
        except PersistenceFailure as e:
            logger.error(f"Failed to list profiles: {e}")
            summary.record_error("profiles", e)
            return summary

        for profile in profiles:
            summary.processed += 1
            try:
                outcome = self.resolve_profile(profile, now, day)
            except (AccountabilityError, ValueError) as e:
                logger.error(f"Failed to resolve streak for {profile.user_id}: {e}")
                summary.record_error(profile.user_id, e)
                continue

            if outcome in (EXTENDED, RESTARTED):
                summary.updated += 1
                summary.bump("streaks_extended")
            elif outcome == BROKEN:
                summary.updated += 1
                summary.bump("streaks_broken")

        logger.info(
            f"[streaks] Run {summary.run_id}: extended={summary.counters['streaks_extended']} "
            f"broken={summary.counters['streaks_broken']}"
        )
        return summary
