"""Append-only logs: decay events, focus sessions, and batch job runs."""

import json
import logging
from datetime import date
from typing import Any, Dict, List

from accountability.core.exceptions import PersistenceFailure
from accountability.core.models import DecayEvent, FocusSession
from accountability.core.timeutil import parse_timestamp
from accountability.store.repository import JsonlTable

logger = logging.getLogger(__name__)


class DecayEventLog(JsonlTable):
    """Event sink for decay transitions; rows are never mutated or deleted."""

    record_type = DecayEvent
    kind = "DecayEvent"

    def emit(self, event: DecayEvent) -> None:
        with self._locked():
            self._append_record(event)

    def list_for_user(self, user_id: str) -> List[DecayEvent]:
        return [e for e in self.get_all_records() if e.user_id == user_id]

    def list_for_task(self, task_id: str) -> List[DecayEvent]:
        return [e for e in self.get_all_records() if e.task_id == task_id]


class FocusSessionStore(JsonlTable):
    """Logged focus sessions."""

    record_type = FocusSession
    kind = "FocusSession"

    def add_session(self, session: FocusSession) -> FocusSession:
        with self._locked():
            self._append_record(session)
        return session

    def list_for_user(self, user_id: str) -> List[FocusSession]:
        return [s for s in self.get_all_records() if s.user_id == user_id]

    def has_session_on(self, user_id: str, day: date) -> bool:
        return any(
            parse_timestamp(s.started_at).date() == day
            for s in self.list_for_user(user_id)
        )


class JobRunLog:
    """JSONL log of batch summaries, one line per job run."""

    def __init__(self, log_file: str):
        self.table = JsonlTable(log_file)

    def record(self, summary: Dict[str, Any]) -> None:
        with self.table._locked():
            try:
                with open(self.table.table_file, "a") as f:
                    f.write(json.dumps(summary, default=str) + "\n")
            except OSError as e:
                raise PersistenceFailure(f"Cannot append job run: {e}", e)

    def read_all(self) -> List[Dict[str, Any]]:
        with self.table._locked():
            lines = self.table.table_file.read_text().splitlines()
        return [json.loads(line) for line in lines if line.strip()]
