"""
Decay applier: bring persisted task decay in line with the decay policy.

Each detected level increase is written with compare-and-set against the
level that was read, then recorded as exactly one DecayEvent and, when the
policy says so, debited from the user's XP. A write that loses to a
concurrent change (a completion, or another sweep) is re-read once and
otherwise left for the next pass; decay is monotone, so a skipped update
is only delayed.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from accountability.constants import MAX_DECAY_LEVEL
from accountability.core.exceptions import (
    AccountabilityError,
    PersistenceConflict,
    PersistenceFailure,
    RecordNotFound,
)
from accountability.core.models import DecayEvent, TaskRecord
from accountability.core.timeutil import to_iso
from accountability.engine.context import BatchSummary, summary_for
from accountability.policy import debt_score, decay_level_at, xp_penalty
from accountability.store import Stores
from accountability.support.config import PolicyConfig

logger = logging.getLogger(__name__)


@dataclass
class DecayStats:
    """Cumulative decay statistics for one user."""

    total_events: int
    total_xp_lost: int
    rotten_tasks: int


def recompute_debt(stores: Stores, user_id: str) -> int:
    """
    Recompute and persist a user's debt score from their incomplete tasks.

    Returns:
        The persisted debt score.
    """
    levels = [t.decay_level for t in stores.tasks.list_incomplete_tasks(user_id)]
    score = debt_score(levels)
    stores.profiles.set_debt_score(user_id, score)
    logger.info(f"Debt score for {user_id}: {score} over {len(levels)} task(s)")
    return score


def decay_stats(stores: Stores, user_id: str) -> DecayStats:
    events = stores.events.list_for_user(user_id)
    return DecayStats(
        total_events=len(events),
        total_xp_lost=sum(e.xp_penalty for e in events),
        rotten_tasks=sum(1 for e in events if e.new_decay_level == MAX_DECAY_LEVEL),
    )


class DecayApplier:
    """
    Applies decay transitions for one user or the whole fleet.

    Attributes:
        stores: Task, profile, and event tables.
        policy: Grace/band hours and XP penalty settings.
    """

    def __init__(self, stores: Stores, policy: Optional[PolicyConfig] = None):
        self.stores = stores
        self.policy = policy or PolicyConfig()

    def reconcile(
        self, user_id: str, now: datetime, run_id: Optional[str] = None
    ) -> BatchSummary:
        """
        Reconcile one user's overdue tasks and refresh their debt score.

        Args:
            user_id: User to reconcile.
            now: Evaluation time.
            run_id: Optional run identifier for the summary.

        Returns:
            BatchSummary with processed/updated counts, XP penalty, and errors.
        """
        summary = summary_for("decay", now, run_id)
        logger.info(f"[decay] Reconciling {user_id} at {to_iso(now)}")

        try:
            tasks = self.stores.tasks.list_incomplete_tasks_before(user_id, now.date())
        except PersistenceFailure as e:
            logger.error(f"Failed to list tasks for {user_id}: {e}")
            summary.record_error(user_id, e)
            return summary

        for task in tasks:
            self._apply_task(task, now, summary)

        self._refresh_debt(user_id, summary)
        summary.counters["users"] = 1
        return summary

    def reconcile_all(self, now: datetime, run_id: Optional[str] = None) -> BatchSummary:
        """
        Batch mode: reconcile every user's overdue tasks, then every debt score.

        Debt scores are refreshed for all task owners and all known profiles,
        so users whose tasks were completed since the last run drop back down.
        """
        summary = summary_for("decay", now, run_id)
        logger.info(f"[decay] Fleet reconcile at {to_iso(now)}")

        try:
            tasks = self.stores.tasks.list_incomplete_tasks_before(None, now.date())
            users = self._known_users(tasks)
        except PersistenceFailure as e:
            logger.error(f"Failed to list tasks for batch: {e}")
            summary.record_error("batch", e)
            return summary

        for task in tasks:
            self._apply_task(task, now, summary)

        for user_id in users:
            self._refresh_debt(user_id, summary)

        summary.counters["users"] = len(users)
        logger.info(
            f"[decay] Run {summary.run_id}: processed={summary.processed} "
            f"updated={summary.updated} xp_penalty={summary.total_xp_penalty} "
            f"conflicts={summary.conflicts} errors={len(summary.errors)}"
        )
        return summary

    def _known_users(self, tasks: Iterable[TaskRecord]) -> List[str]:
        users: Dict[str, None] = {}
        for task in tasks:
            users.setdefault(task.user_id, None)
        for user_id in self.stores.tasks.list_user_ids():
            users.setdefault(user_id, None)
        for profile in self.stores.profiles.list_profiles():
            users.setdefault(profile.user_id, None)
        return list(users)

    def _target_level(self, task: TaskRecord, now: datetime) -> int:
        return decay_level_at(
            task.due_at(),
            task.is_completed,
            now,
            grace_hours=self.policy.grace_hours,
            band_hours=self.policy.band_hours,
        )

    def _apply_task(self, task: TaskRecord, now: datetime, summary: BatchSummary) -> None:
        """Process one task; never raises, failures land in summary."""
        summary.processed += 1

        try:
            new_level = self._target_level(task, now)
        except ValueError as e:
            logger.error(f"Task {task.id} has an invalid schedule: {e}")
            summary.record_error(task.id, e)
            return

        if new_level <= task.decay_level:
            return

        try:
            prior_level = self._write_level(task, new_level, now, summary)
        except (PersistenceFailure, RecordNotFound, ValueError) as e:
            logger.error(f"Failed to persist decay for {task.id}: {e}")
            summary.record_error(task.id, e)
            return

        if prior_level is None:
            return

        penalty = xp_penalty(prior_level, new_level, self.policy.xp_penalty_per_level)
        self._emit_event(task, prior_level, new_level, penalty, now)

        if self.policy.debit_decay_penalty and penalty > 0:
            try:
                self.stores.profiles.apply_xp_delta(task.user_id, -penalty)
            except (PersistenceFailure, ValueError) as e:
                logger.error(f"Failed to debit decay penalty for {task.id}: {e}")
                summary.record_error(task.id, e)

        summary.updated += 1
        summary.total_xp_penalty += penalty
        logger.info(
            f"Task {task.id} decayed {prior_level} -> {new_level} (-{penalty} XP)"
        )

    def _write_level(
        self, task: TaskRecord, new_level: int, now: datetime, summary: BatchSummary
    ) -> Optional[int]:
        """
        Compare-and-set the new level, retrying once on conflict.

        Returns:
            The prior level the write replaced, or None if the task was
            skipped (completed, already at or above new_level, or still
            conflicting after the re-read).
        """
        expected = task.decay_level
        for attempt in range(2):
            try:
                self.stores.tasks.update_decay(task.id, expected, new_level, now)
                return expected
            except PersistenceConflict as e:
                summary.conflicts += 1
                logger.info(f"Decay write conflict on {task.id}: {e}")

            if attempt == 1:
                break

            fresh = self.stores.tasks.get_task(task.id)
            if fresh is None or fresh.is_completed or fresh.decay_level >= new_level:
                return None
            expected = fresh.decay_level

        logger.info(f"Skipping {task.id} until next pass")
        return None

    def _emit_event(
        self,
        task: TaskRecord,
        prior_level: int,
        new_level: int,
        penalty: int,
        now: datetime,
    ) -> None:
        event = DecayEvent(
            id=str(uuid.uuid4()),
            task_id=task.id,
            user_id=task.user_id,
            previous_decay_level=prior_level,
            new_decay_level=new_level,
            xp_penalty=penalty,
            created_at=to_iso(now),
        )
        try:
            self.stores.events.emit(event)
        except AccountabilityError as e:
            # Level write is already persisted; emit failures are only logged
            logger.warning(f"Failed to emit decay event for {task.id}: {e}")

    def _refresh_debt(self, user_id: str, summary: BatchSummary) -> None:
        try:
            recompute_debt(self.stores, user_id)
        except (PersistenceFailure, ValueError) as e:
            logger.error(f"Failed to refresh debt score for {user_id}: {e}")
            summary.record_error(f"debt:{user_id}", e)
