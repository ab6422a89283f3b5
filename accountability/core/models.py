"""Core domain model: task, decay event, contract, and profile records."""

from dataclasses import dataclass, asdict, fields
from datetime import datetime
from typing import Any, Dict, Optional

from accountability.constants import MAX_DECAY_LEVEL, MAX_DEBT_SCORE
from accountability.core import timeutil


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys that are not dataclass fields (rows may carry extra columns)."""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class TaskRecord:
    """A scheduled user task and its persisted decay state."""

    id: str
    user_id: str
    title: str
    scheduled_date: str
    start_time: str = ""
    end_time: str = ""
    duration_minutes: int = 0
    priority: str = "medium"
    is_completed: bool = False
    decay_level: int = 0
    decay_started_at: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    VALID_PRIORITIES = {"low", "medium", "high"}

    def validate(self) -> None:
        """Validate schedule fields and the decay invariants at write-time."""
        if not self.id or not self.user_id:
            raise ValueError("Task requires id and user_id")
        if self.priority not in self.VALID_PRIORITIES:
            raise ValueError(
                f"Invalid priority '{self.priority}'. Must be one of: {', '.join(sorted(self.VALID_PRIORITIES))}"
            )
        if not 0 <= self.decay_level <= MAX_DECAY_LEVEL:
            raise ValueError(
                f"Invalid decay_level {self.decay_level} (expected 0..{MAX_DECAY_LEVEL})"
            )
        if self.is_completed and self.decay_level != 0:
            raise ValueError(f"Completed task {self.id} must have decay_level 0")
        if self.duration_minutes < 0:
            raise ValueError("duration_minutes must not be negative")
        # Raises ValueError on malformed schedule values
        self.due_at()

    def due_at(self) -> datetime:
        """Moment this task becomes overdue."""
        return timeutil.schedule_end(
            self.scheduled_date,
            end_time=self.end_time,
            start_time=self.start_time,
            duration_minutes=self.duration_minutes,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskRecord":
        """Create TaskRecord from dictionary, coercing loosely typed columns."""
        values = _known_fields(cls, data)
        values["duration_minutes"] = int(values.get("duration_minutes") or 0)
        values["decay_level"] = int(values.get("decay_level") or 0)
        values["is_completed"] = bool(values.get("is_completed", False))
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert TaskRecord to dictionary."""
        return asdict(self)


@dataclass
class DecayEvent:
    """Append-only record of a single decay level transition."""

    id: str
    task_id: str
    user_id: str
    previous_decay_level: int
    new_decay_level: int
    xp_penalty: int
    created_at: str

    def validate(self) -> None:
        if self.new_decay_level <= self.previous_decay_level:
            raise ValueError(
                f"Decay event must move forward: {self.previous_decay_level} -> {self.new_decay_level}"
            )
        if self.xp_penalty < 0:
            raise ValueError("xp_penalty must not be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DecayEvent":
        return cls(**_known_fields(cls, data))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ContractRecord:
    """Stake-based commitment tied to a task or a goal."""

    id: str
    user_id: str
    staked_xp: int
    deadline: str
    task_id: Optional[str] = None
    goal_id: Optional[str] = None
    buddy: Optional[str] = None
    status: str = "active"
    penalty_applied: bool = False
    created_at: str = ""
    resolved_at: Optional[str] = None

    VALID_STATUSES = {"active", "completed", "failed", "cancelled"}
    TERMINAL_STATUSES = {"completed", "failed", "cancelled"}

    def validate(self) -> None:
        """Validate status, target, and resolution fields at write-time."""
        if self.status not in self.VALID_STATUSES:
            raise ValueError(
                f"Invalid status '{self.status}'. Must be one of: {', '.join(sorted(self.VALID_STATUSES))}"
            )
        if bool(self.task_id) == bool(self.goal_id):
            raise ValueError("Contract must reference exactly one of task_id or goal_id")
        if self.staked_xp <= 0:
            raise ValueError("staked_xp must be positive")
        if self.status == "active" and self.resolved_at is not None:
            raise ValueError("Active contract cannot carry resolved_at")
        if self.status in self.TERMINAL_STATUSES and not self.resolved_at:
            raise ValueError(f"Contract in '{self.status}' requires resolved_at")
        self.deadline_at()

    @property
    def is_active(self) -> bool:
        return self.status == "active" and self.resolved_at is None

    @property
    def target(self) -> str:
        """Human-readable target reference (task:<id> or goal:<id>)."""
        if self.task_id:
            return f"task:{self.task_id}"
        return f"goal:{self.goal_id}"

    def deadline_at(self) -> datetime:
        return timeutil.parse_timestamp(self.deadline)

    @staticmethod
    def is_valid_transition(from_status: str, to_status: str) -> bool:
        """
        Check if a contract status transition is legal.

        Status machine:
        - active -> completed | failed | cancelled
        - completed, failed, cancelled are terminal

        Args:
            from_status: Current status
            to_status: Target status

        Returns:
            True if transition is valid, False otherwise
        """
        transitions = {
            "active": {"completed", "failed", "cancelled"},
            "completed": set(),  # Terminal state
            "failed": set(),  # Terminal state
            "cancelled": set(),  # Terminal state
        }

        return to_status in transitions.get(from_status, set())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractRecord":
        values = _known_fields(cls, data)
        values["staked_xp"] = int(values.get("staked_xp") or 0)
        values["penalty_applied"] = bool(values.get("penalty_applied", False))
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProfileRecord:
    """XP ledger, debt score, and streak counters for one user."""

    user_id: str
    total_xp: int = 0
    debt_score: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: Optional[str] = None
    updated_at: str = ""

    def validate(self) -> None:
        if self.total_xp < 0:
            raise ValueError(f"total_xp must not be negative (got {self.total_xp})")
        if not 0 <= self.debt_score <= MAX_DEBT_SCORE:
            raise ValueError(f"debt_score out of range: {self.debt_score}")
        if self.current_streak < 0 or self.longest_streak < 0:
            raise ValueError("Streak counters must not be negative")
        if self.last_activity_date:
            timeutil.parse_day(self.last_activity_date)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProfileRecord":
        values = _known_fields(cls, data)
        for key in ("total_xp", "debt_score", "current_streak", "longest_streak"):
            values[key] = int(values.get(key) or 0)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FocusSession:
    """A logged focus session; counts as activity for streaks."""

    id: str
    user_id: str
    started_at: str
    duration_minutes: int = 0

    def validate(self) -> None:
        if self.duration_minutes < 0:
            raise ValueError("duration_minutes must not be negative")
        timeutil.parse_timestamp(self.started_at)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FocusSession":
        values = _known_fields(cls, data)
        values["duration_minutes"] = int(values.get("duration_minutes") or 0)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
