"""
Commitment contract service: stake validation, resolution, and deadline sweep.

Contracts move active -> completed | failed | cancelled exactly once. The
store's resolve() is the single point of truth for who won a race between
the deadline sweep and a user action; XP moves only for the winner.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from accountability.core.exceptions import (
    AccountabilityError,
    InvalidStake,
    InvalidTarget,
    InvalidTransition,
    PersistenceFailure,
    RecordNotFound,
)
from accountability.core.models import ContractRecord
from accountability.core.timeutil import parse_timestamp, to_iso, utc_now
from accountability.engine.context import BatchSummary, summary_for
from accountability.store import Stores
from accountability.support.config import PolicyConfig

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Result of a resolution attempt; applied is False for no-ops."""

    contract: ContractRecord
    applied: bool
    xp_delta: int = 0


class ContractService:
    """
    Creates and resolves commitment contracts against the XP ledger.

    Attributes:
        stores: Contract and profile tables.
        policy: Stake bounds and completion bonus ratio.
    """

    def __init__(self, stores: Stores, policy: Optional[PolicyConfig] = None):
        self.stores = stores
        self.policy = policy or PolicyConfig()

    # ========================================================================
    # Creation
    # ========================================================================

    def create(
        self,
        user_id: str,
        staked_xp: int,
        deadline: Union[datetime, str],
        task_id: Optional[str] = None,
        goal_id: Optional[str] = None,
        buddy: Optional[str] = None,
        now: Optional[datetime] = None,
        contract_id: Optional[str] = None,
    ) -> ContractRecord:
        """
        Create an active contract. The stake is a hold, nothing is debited.

        Args:
            user_id: Contract owner.
            staked_xp: XP wagered on the outcome.
            deadline: Datetime or ISO string after which the sweep fails it.
            task_id: Task the contract is bound to (exclusive with goal_id).
            goal_id: Goal the contract is bound to (exclusive with task_id).
            buddy: Optional accountability buddy identifier.
            now: Creation time (defaults to current UTC time).
            contract_id: Optional explicit id.

        Returns:
            Persisted ContractRecord.

        Raises:
            InvalidTarget: If not exactly one of task_id/goal_id is given, or
                the target already has an active contract.
            InvalidStake: If staked_xp is below the minimum, above the
                ceiling, or above the user's current total_xp.
        """
        if bool(task_id) == bool(goal_id):
            raise InvalidTarget("Contract requires exactly one of task_id or goal_id")

        self._validate_stake(user_id, staked_xp)

        if isinstance(deadline, str):
            deadline = parse_timestamp(deadline)
        now = now or utc_now()

        record = ContractRecord(
            id=contract_id or f"C-{uuid.uuid4().hex[:8]}",
            user_id=user_id,
            staked_xp=staked_xp,
            deadline=to_iso(deadline),
            task_id=task_id or None,
            goal_id=goal_id or None,
            buddy=buddy or None,
            status="active",
            created_at=to_iso(now),
        )
        self.stores.contracts.add_contract(record)
        logger.info(
            f"Contract {record.id} created for {user_id}: {staked_xp} XP on {record.target}"
        )
        return record

    def _validate_stake(self, user_id: str, staked_xp: int) -> None:
        if not isinstance(staked_xp, int) or isinstance(staked_xp, bool):
            raise InvalidStake(staked_xp, "stake must be an integer")
        if staked_xp < self.policy.min_stake:
            raise InvalidStake(staked_xp, f"minimum stake is {self.policy.min_stake}")
        if staked_xp > self.policy.max_stake:
            raise InvalidStake(staked_xp, f"maximum stake is {self.policy.max_stake}")
        available = self.stores.profiles.get_xp(user_id)
        if staked_xp > available:
            raise InvalidStake(staked_xp, f"only {available} XP available")

    # ========================================================================
    # Resolution
    # ========================================================================

    def complete(
        self, contract_id: str, now: Optional[datetime] = None, strict: bool = False
    ) -> Resolution:
        """Complete an active contract and credit floor(stake * bonus ratio)."""
        return self._resolve(contract_id, "completed", now, strict)

    def fail(
        self, contract_id: str, now: Optional[datetime] = None, strict: bool = False
    ) -> Resolution:
        """Fail an active contract and debit the stake (XP floors at zero)."""
        return self._resolve(contract_id, "failed", now, strict)

    def cancel(
        self, contract_id: str, now: Optional[datetime] = None, strict: bool = False
    ) -> Resolution:
        """Cancel an active contract; no XP moves."""
        return self._resolve(contract_id, "cancelled", now, strict)

    def _resolve(
        self, contract_id: str, status: str, now: Optional[datetime], strict: bool
    ) -> Resolution:
        """
        Shared resolution path.

        An already-resolved contract is a no-op (Resolution.applied False),
        unless strict is set, in which case InvalidTransition is raised.

        Raises:
            RecordNotFound: If the contract does not exist.
            InvalidTransition: In strict mode, if the contract is not active.
            PersistenceFailure: If the resolution or XP write fails.
        """
        now = now or utc_now()
        contract = self.stores.contracts.get_contract(contract_id)
        if contract is None:
            raise RecordNotFound("Contract", contract_id)

        resolved = None
        if contract.is_active:
            resolved = self.stores.contracts.resolve(
                contract_id,
                status,
                resolved_at=now,
                penalty_applied=(status == "failed"),
            )

        if resolved is None:
            current = self.stores.contracts.get_contract(contract_id) or contract
            if strict:
                raise InvalidTransition(contract_id, current.status, status)
            return Resolution(contract=current, applied=False)

        xp_delta = self._apply_outcome(resolved)
        logger.info(
            f"Contract {contract_id} {status} for {resolved.user_id} (XP {xp_delta:+d})"
        )
        return Resolution(contract=resolved, applied=True, xp_delta=xp_delta)

    def _apply_outcome(self, contract: ContractRecord) -> int:
        """Move XP for a freshly resolved contract; returns the signed delta."""
        try:
            if contract.status == "completed":
                bonus = math.floor(contract.staked_xp * self.policy.completion_bonus_ratio)
                if bonus:
                    self.stores.profiles.apply_xp_delta(contract.user_id, bonus)
                return bonus
            if contract.status == "failed":
                taken = self.stores.profiles.debit_xp(contract.user_id, contract.staked_xp)
                return -taken
            return 0
        except PersistenceFailure as e:
            logger.error(
                f"Contract {contract.id} resolved as {contract.status} but XP update failed: {e}"
            )
            raise

    # ========================================================================
    # Deadline sweep
    # ========================================================================

    def sweep_expired(
        self, now: Optional[datetime] = None, run_id: Optional[str] = None
    ) -> BatchSummary:
        """
        Fail every active contract whose deadline has passed.

        Safe to run alongside user completions: a contract completed first
        is skipped without error.

        Returns:
            BatchSummary; updated counts contracts failed by this run and
            counters["xp_forfeited"] the XP actually debited.
        """
        now = now or utc_now()
        summary = summary_for("contract_sweep", now, run_id)
        summary.counters["xp_forfeited"] = 0

        try:
            expired = self.stores.contracts.list_active_contracts_past_deadline(now)
        except PersistenceFailure as e:
            logger.error(f"Failed to list expired contracts: {e}")
            summary.record_error("sweep", e)
            return summary

        for contract in expired:
            summary.processed += 1
            try:
                resolution = self.fail(contract.id, now)
            except AccountabilityError as e:
                logger.error(f"Failed to expire contract {contract.id}: {e}")
                summary.record_error(contract.id, e)
                continue

            if resolution.applied:
                summary.updated += 1
                summary.bump("xp_forfeited", -resolution.xp_delta)

        logger.info(
            f"[sweep] Run {summary.run_id}: expired={summary.updated}/{summary.processed} "
            f"xp_forfeited={summary.counters['xp_forfeited']}"
        )
        return summary

    # ========================================================================
    # Queries
    # ========================================================================

    def list_contracts(self, user_id: str) -> List[ContractRecord]:
        return self.stores.contracts.list_for_user(user_id)

    def active_contracts(self, user_id: str) -> List[ContractRecord]:
        return [c for c in self.list_contracts(user_id) if c.is_active]

    def contract_for_task(self, task_id: str) -> Optional[ContractRecord]:
        return self.stores.contracts.find_active(task_id=task_id)

    def contract_for_goal(self, goal_id: str) -> Optional[ContractRecord]:
        return self.stores.contracts.find_active(goal_id=goal_id)
