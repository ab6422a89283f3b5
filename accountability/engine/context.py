"""
Job-scoped state for batch runs.

A JobContext is built once per scheduler invocation and handed to the
engine; nothing about a run lives at module level. Each batch operation
reports through a BatchSummary instead of raising on partial failure.
"""

import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from accountability.core.timeutil import to_iso, utc_now
from accountability.store import Stores
from accountability.support.config import PolicyConfig


@dataclass
class BatchSummary:
    """Outcome of one batch operation."""

    job: str
    run_id: str
    started_at: str
    processed: int = 0
    updated: int = 0
    total_xp_penalty: int = 0
    conflicts: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)
    counters: Dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def record_error(self, item_id: str, error: Exception) -> None:
        self.errors.append(
            {"id": item_id, "type": type(error).__name__, "message": str(error)}
        )

    def bump(self, counter: str, amount: int = 1) -> None:
        self.counters[counter] = self.counters.get(counter, 0) + amount

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_run_id() -> str:
    return str(uuid.uuid4())[:8]


@dataclass
class JobContext:
    """Everything a single batch invocation needs: stores, policy, clock, run id."""

    stores: Stores
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    now: datetime = field(default_factory=utc_now)
    run_id: str = field(default_factory=new_run_id)

    def record(self, summary: BatchSummary) -> None:
        """Persist a summary to the job run log."""
        self.stores.job_runs.record(summary.to_dict())


def summary_for(job: str, now: datetime, run_id: Optional[str] = None) -> BatchSummary:
    """Fresh summary for callers that run outside a JobContext."""
    return BatchSummary(job=job, run_id=run_id or new_run_id(), started_at=to_iso(now))
