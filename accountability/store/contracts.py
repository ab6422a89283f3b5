"""Contract store: commitment contracts with first-terminal-write-wins resolution."""

import logging
from datetime import datetime
from typing import List, Optional

from accountability.core.exceptions import InvalidTarget, InvalidTransition
from accountability.core.models import ContractRecord
from accountability.core.timeutil import to_iso
from accountability.store.repository import JsonlTable

logger = logging.getLogger(__name__)


class ContractStore(JsonlTable):
    """JSONL-backed commitment contracts."""

    record_type = ContractRecord
    kind = "Contract"

    def add_contract(self, record: ContractRecord) -> ContractRecord:
        """
        Insert a new active contract.

        Raises:
            InvalidTarget: If the task or goal already has an active contract.
            ValueError: If the record is invalid or its id exists.
        """
        record.validate()

        with self._locked():
            records = self._read_all_records()
            for r in records:
                if not r.is_active:
                    continue
                if (record.task_id and r.task_id == record.task_id) or (
                    record.goal_id and r.goal_id == record.goal_id
                ):
                    raise InvalidTarget(
                        f"{record.target} already has active contract {r.id}"
                    )
            if any(r.id == record.id for r in records):
                raise ValueError(f"Contract with id '{record.id}' already exists")

            records.append(record)
            self._write_all_records(records)
            return record

    def get_contract(self, contract_id: str) -> Optional[ContractRecord]:
        return self.get_record(contract_id)

    def list_for_user(self, user_id: str) -> List[ContractRecord]:
        """All contracts of a user, newest first."""
        records = [r for r in self.get_all_records() if r.user_id == user_id]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def find_active(
        self, task_id: Optional[str] = None, goal_id: Optional[str] = None
    ) -> Optional[ContractRecord]:
        """Active contract bound to task_id or goal_id, if any."""
        for r in self.get_all_records():
            if not r.is_active:
                continue
            if task_id and r.task_id == task_id:
                return r
            if goal_id and r.goal_id == goal_id:
                return r
        return None

    def list_active_contracts_past_deadline(self, now: datetime) -> List[ContractRecord]:
        return [
            r
            for r in self.get_all_records()
            if r.is_active and r.deadline_at() < now
        ]

    def resolve(
        self,
        contract_id: str,
        status: str,
        resolved_at: datetime,
        penalty_applied: bool = False,
    ) -> Optional[ContractRecord]:
        """
        Move an active contract to a terminal status.

        The first resolution wins: if the contract is already resolved this
        returns None and writes nothing.

        Args:
            contract_id: Contract to resolve.
            status: Terminal status (completed, failed, cancelled).
            resolved_at: Resolution timestamp.
            penalty_applied: Whether the stake was forfeited.

        Returns:
            The resolved ContractRecord, or None if it was already resolved.

        Raises:
            RecordNotFound: If the contract does not exist.
            InvalidTransition: If status is not a terminal status.
        """
        with self._locked():
            records = self._read_all_records()
            idx = self._index_of(records, contract_id)
            current = records[idx]

            if not ContractRecord.is_valid_transition("active", status):
                raise InvalidTransition(contract_id, current.status, status)

            if not current.is_active:
                logger.info(
                    f"Contract {contract_id} already {current.status}; ignoring {status}"
                )
                return None

            current.status = status
            current.resolved_at = to_iso(resolved_at)
            current.penalty_applied = penalty_applied
            current.validate()

            records[idx] = current
            self._write_all_records(records)
            return current
