"""Profile store: XP ledger with atomic deltas, debt score, and streak fields."""

import logging
from datetime import date
from typing import List, Optional, Tuple

from accountability.core.models import ProfileRecord
from accountability.core.timeutil import parse_day, to_iso, utc_now
from accountability.store.repository import JsonlTable

logger = logging.getLogger(__name__)


class ProfileStore(JsonlTable):
    """JSONL-backed user profiles keyed by user_id."""

    record_type = ProfileRecord
    key_field = "user_id"
    kind = "Profile"

    def _load_or_create(self, records: List[ProfileRecord], user_id: str) -> int:
        """Index of user_id's profile, appending a blank one if missing (within lock)."""
        for idx, r in enumerate(records):
            if r.user_id == user_id:
                return idx
        records.append(ProfileRecord(user_id=user_id, updated_at=to_iso(utc_now())))
        return len(records) - 1

    def ensure_profile(self, user_id: str) -> ProfileRecord:
        """Get a profile, creating an empty one on first use."""
        with self._locked():
            records = self._read_all_records()
            before = len(records)
            idx = self._load_or_create(records, user_id)
            if len(records) != before:
                self._write_all_records(records)
            return records[idx]

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        return self.get_record(user_id)

    def list_profiles(self) -> List[ProfileRecord]:
        return self.get_all_records()

    def get_xp(self, user_id: str) -> int:
        profile = self.get_record(user_id)
        return profile.total_xp if profile else 0

    def _apply_delta(self, user_id: str, delta: int) -> Tuple[int, int]:
        """Apply delta under the table lock; returns (previous, new) totals."""
        with self._locked():
            records = self._read_all_records()
            idx = self._load_or_create(records, user_id)
            profile = records[idx]
            previous = profile.total_xp
            profile.total_xp = max(0, previous + delta)
            profile.updated_at = to_iso(utc_now())
            self._write_all_records(records)

        logger.info(f"XP {user_id}: {previous} -> {profile.total_xp} (delta {delta:+d})")
        return previous, profile.total_xp

    def apply_xp_delta(self, user_id: str, delta: int) -> int:
        """
        Add delta to total_xp under the table lock, flooring the result at zero.

        Args:
            user_id: Profile owner (created if missing).
            delta: XP to add; negative values debit.

        Returns:
            New total_xp.
        """
        _, new_total = self._apply_delta(user_id, delta)
        return new_total

    def debit_xp(self, user_id: str, amount: int) -> int:
        """Debit up to amount XP; returns what was actually taken (min(total, amount))."""
        previous, new_total = self._apply_delta(user_id, -amount)
        return previous - new_total

    def set_debt_score(self, user_id: str, score: int) -> None:
        with self._locked():
            records = self._read_all_records()
            idx = self._load_or_create(records, user_id)
            records[idx].debt_score = score
            records[idx].updated_at = to_iso(utc_now())
            self._write_all_records(records)

    def update_streak(
        self,
        user_id: str,
        current_streak: int,
        longest_streak: Optional[int] = None,
        last_activity_date: Optional[date] = None,
    ) -> ProfileRecord:
        """
        Persist streak counters.

        longest_streak never decreases and last_activity_date never moves
        backwards, whatever the caller passes.
        """
        with self._locked():
            records = self._read_all_records()
            idx = self._load_or_create(records, user_id)
            profile = records[idx]

            profile.current_streak = current_streak
            if longest_streak is not None:
                profile.longest_streak = max(profile.longest_streak, longest_streak)
            if last_activity_date is not None:
                profile.last_activity_date = self._later_day(
                    profile.last_activity_date, last_activity_date
                )
            profile.updated_at = to_iso(utc_now())

            self._write_all_records(records)
            return profile

    def record_activity(self, user_id: str, day: date) -> ProfileRecord:
        """Move last_activity_date forward to day (no-op if already later)."""
        with self._locked():
            records = self._read_all_records()
            idx = self._load_or_create(records, user_id)
            profile = records[idx]
            latest = self._later_day(profile.last_activity_date, day)
            if latest != profile.last_activity_date:
                profile.last_activity_date = latest
                profile.updated_at = to_iso(utc_now())
                self._write_all_records(records)
            return profile

    @staticmethod
    def _later_day(existing: Optional[str], candidate: date) -> str:
        if existing and parse_day(existing) >= candidate:
            return existing
        return candidate.isoformat()
