"""
Store layer for task, profile, contract, and event persistence.

Canonical exports:
- Stores: Bundle of every table rooted at one data directory
- TaskStore, ProfileStore, ContractStore: Row stores with compare-and-set writes
- DecayEventLog, FocusSessionStore, JobRunLog: Append-only logs
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from accountability.constants import (
    TASKS_FILE,
    PROFILES_FILE,
    CONTRACTS_FILE,
    DECAY_EVENTS_FILE,
    FOCUS_SESSIONS_FILE,
    JOB_RUNS_FILE,
)
from accountability.store.repository import JsonlTable
from accountability.store.tasks import TaskStore
from accountability.store.profiles import ProfileStore
from accountability.store.contracts import ContractStore
from accountability.store.events import DecayEventLog, FocusSessionStore, JobRunLog
from accountability.support.paths import ensure_data_dir


@dataclass
class Stores:
    """Every table the engine reads and writes."""

    tasks: TaskStore
    profiles: ProfileStore
    contracts: ContractStore
    events: DecayEventLog
    sessions: FocusSessionStore
    job_runs: JobRunLog

    @classmethod
    def open(cls, data_dir: Optional[str] = None) -> "Stores":
        """Open (and bootstrap) all tables under data_dir."""
        root: Path = ensure_data_dir(data_dir)
        return cls(
            tasks=TaskStore(str(root / TASKS_FILE)),
            profiles=ProfileStore(str(root / PROFILES_FILE)),
            contracts=ContractStore(str(root / CONTRACTS_FILE)),
            events=DecayEventLog(str(root / DECAY_EVENTS_FILE)),
            sessions=FocusSessionStore(str(root / FOCUS_SESSIONS_FILE)),
            job_runs=JobRunLog(str(root / JOB_RUNS_FILE)),
        )


__all__ = [
    "Stores",
    "JsonlTable",
    "TaskStore",
    "ProfileStore",
    "ContractStore",
    "DecayEventLog",
    "FocusSessionStore",
    "JobRunLog",
]
