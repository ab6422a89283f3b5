"""User-triggered actions: completing tasks and logging focus sessions."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from accountability.core.models import FocusSession, TaskRecord
from accountability.core.timeutil import to_iso, utc_now
from accountability.engine.contracts import ContractService, Resolution
from accountability.engine.decay_applier import recompute_debt
from accountability.store import Stores

logger = logging.getLogger(__name__)


@dataclass
class TaskCompletion:
    """Outcome of completing a task."""

    task: TaskRecord
    changed: bool
    contract: Optional[Resolution] = None
    debt_score: Optional[int] = None


class TaskActions:
    """Interactive task mutations that must take effect regardless of batch timing."""

    def __init__(self, stores: Stores, contracts: Optional[ContractService] = None):
        self.stores = stores
        self.contracts = contracts or ContractService(stores)

    def complete_task(self, task_id: str, now: Optional[datetime] = None) -> TaskCompletion:
        """
        Complete a task: zero its decay, count activity, settle its contract.

        Completing an already completed task changes nothing.

        Raises:
            RecordNotFound: If the task does not exist.
        """
        now = now or utc_now()
        task, changed = self.stores.tasks.mark_completed(task_id, now)
        if not changed:
            return TaskCompletion(task=task, changed=False)

        self.stores.profiles.record_activity(task.user_id, now.date())

        resolution = None
        contract = self.stores.contracts.find_active(task_id=task_id)
        if contract is not None:
            # A sweep that already failed it makes this a no-op
            resolution = self.contracts.complete(contract.id, now)

        score = recompute_debt(self.stores, task.user_id)
        return TaskCompletion(
            task=task, changed=True, contract=resolution, debt_score=score
        )

    def log_focus_session(
        self,
        user_id: str,
        started_at: datetime,
        duration_minutes: int = 0,
        session_id: Optional[str] = None,
    ) -> FocusSession:
        session = FocusSession(
            id=session_id or str(uuid.uuid4()),
            user_id=user_id,
            started_at=to_iso(started_at),
            duration_minutes=duration_minutes,
        )
        self.stores.sessions.add_session(session)
        self.stores.profiles.record_activity(user_id, started_at.date())
        logger.info(f"Focus session {session.id} logged for {user_id}")
        return session
