"""Task store: incomplete-task queries and compare-and-set decay writes."""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from accountability.core.exceptions import PersistenceConflict
from accountability.core.models import TaskRecord
from accountability.core.timeutil import parse_day, parse_timestamp, to_iso, utc_now
from accountability.store.repository import JsonlTable

logger = logging.getLogger(__name__)


class TaskStore(JsonlTable):
    """JSONL-backed task rows owned by users."""

    record_type = TaskRecord
    kind = "Task"

    def add_task(self, record: TaskRecord) -> TaskRecord:
        now = to_iso(utc_now())
        record.created_at = record.created_at or now
        record.updated_at = record.updated_at or now
        self.add_record(record)
        return record

    def get_task(self, task_id: str) -> Optional[TaskRecord]:
        return self.get_record(task_id)

    def list_user_ids(self) -> List[str]:
        """Distinct task owners, in first-seen order."""
        seen = {}
        for r in self.get_all_records():
            seen.setdefault(r.user_id, None)
        return list(seen)

    def list_incomplete_tasks(self, user_id: str) -> List[TaskRecord]:
        return [
            r
            for r in self.get_all_records()
            if r.user_id == user_id and not r.is_completed
        ]

    def list_incomplete_tasks_before(
        self, user_id: Optional[str], day: date
    ) -> List[TaskRecord]:
        """
        Incomplete tasks scheduled strictly before day.

        Args:
            user_id: Owner to filter by, or None for every user (batch mode).
            day: Exclusive upper bound on scheduled_date.

        Returns:
            Matching TaskRecords in file order. Rows whose scheduled_date
            does not parse are included so callers report them per task.
        """
        return [
            r
            for r in self.get_all_records()
            if not r.is_completed
            and (user_id is None or r.user_id == user_id)
            and self._scheduled_before(r, day)
        ]

    @staticmethod
    def _scheduled_before(record: TaskRecord, day: date) -> bool:
        try:
            return parse_day(record.scheduled_date) < day
        except ValueError:
            logger.warning(
                f"Task {record.id} has unparsable scheduled_date {record.scheduled_date!r}"
            )
            return True

    def list_completed_on(self, user_id: str, day: date) -> List[TaskRecord]:
        """Tasks the user completed on day (by completed_at, else scheduled_date)."""
        result = []
        for r in self.get_all_records():
            if r.user_id != user_id or not r.is_completed:
                continue
            if r.completed_at:
                completed_day = parse_timestamp(r.completed_at).date()
            else:
                completed_day = parse_day(r.scheduled_date)
            if completed_day == day:
                result.append(r)
        return result

    def update_decay(
        self,
        task_id: str,
        expected_prior_level: int,
        new_level: int,
        decay_started_at: datetime,
    ) -> TaskRecord:
        """
        Raise a task's decay level if it still holds the observed value.

        decay_started_at is only written when the task has none yet.

        Args:
            task_id: Task to update.
            expected_prior_level: decay_level the caller read.
            new_level: Target level, strictly greater than expected_prior_level.
            decay_started_at: Timestamp to record on the first transition.

        Returns:
            Updated TaskRecord.

        Raises:
            ValueError: If new_level would not increase the level.
            RecordNotFound: If the task no longer exists.
            PersistenceConflict: If the task was completed or its level
                changed since it was read.
        """
        if new_level <= expected_prior_level:
            raise ValueError(
                f"Decay level must increase: {expected_prior_level} -> {new_level}"
            )

        with self._locked():
            records = self._read_all_records()
            idx = self._index_of(records, task_id)
            current = records[idx]

            if current.is_completed:
                raise PersistenceConflict(task_id, expected_prior_level, "completed")
            if current.decay_level != expected_prior_level:
                raise PersistenceConflict(
                    task_id, expected_prior_level, current.decay_level
                )

            current.decay_level = new_level
            if not current.decay_started_at:
                current.decay_started_at = to_iso(decay_started_at)
            current.updated_at = to_iso(utc_now())
            current.validate()

            records[idx] = current
            self._write_all_records(records)
            return current

    def mark_completed(
        self, task_id: str, completed_at: datetime
    ) -> Tuple[TaskRecord, bool]:
        """
        Complete a task and reset its decay state.

        Returns:
            (record, changed) where changed is False if it was already completed.

        Raises:
            RecordNotFound: If the task does not exist.
        """
        with self._locked():
            records = self._read_all_records()
            idx = self._index_of(records, task_id)
            current = records[idx]

            if current.is_completed:
                return current, False

            current.is_completed = True
            current.decay_level = 0
            current.decay_started_at = None
            current.completed_at = to_iso(completed_at)
            current.updated_at = to_iso(utc_now())

            records[idx] = current
            self._write_all_records(records)
            logger.info(f"Task {task_id} completed; decay reset")
            return current, True
