"""
Accountability engine: decay application, commitment contracts, and streaks.

Main exports:
- DecayApplier: Per-user and fleet decay reconciliation
- ContractService: Commitment contract state machine and deadline sweep
- StreakResolver: Daily streak pass
- TaskActions: Task completion and focus session logging
- JobContext, BatchSummary: Job-scoped state and run results
"""

from accountability.engine.context import BatchSummary, JobContext
from accountability.engine.decay_applier import (
    DecayApplier,
    DecayStats,
    decay_stats,
    recompute_debt,
)
from accountability.engine.contracts import ContractService, Resolution
from accountability.engine.streaks import StreakResolver
from accountability.engine.tasks import TaskActions, TaskCompletion

__all__ = [
    "BatchSummary",
    "JobContext",
    "DecayApplier",
    "DecayStats",
    "decay_stats",
    "recompute_debt",
    "ContractService",
    "Resolution",
    "StreakResolver",
    "TaskActions",
    "TaskCompletion",
]
