"""
Tests for the JSONL stores.

Tests cover:
- Task compare-and-set decay writes and completion reset
- Profile XP deltas, debt score, streak and activity fields
- Contract first-terminal-write-wins resolution
- Append-only decay events and persistence across reopen
"""

from datetime import date, datetime, timezone

import pytest

from accountability.core.exceptions import (
    InvalidTarget,
    InvalidTransition,
    PersistenceConflict,
    PersistenceFailure,
    RecordNotFound,
)
from accountability.core.models import ContractRecord, DecayEvent
from accountability.store import Stores, TaskStore
from accountability.tests.conftest import make_task

T0 = datetime(2024, 1, 3, 11, 0, tzinfo=timezone.utc)


def make_contract(contract_id="C-1", **kwargs):
    return ContractRecord(
        id=contract_id,
        user_id=kwargs.get("user_id", "user-1"),
        staked_xp=kwargs.get("staked_xp", 50),
        deadline=kwargs.get("deadline", "2024-01-05T00:00:00+00:00"),
        task_id=kwargs.get("task_id", "T-1"),
        goal_id=kwargs.get("goal_id"),
        created_at=kwargs.get("created_at", "2024-01-01T00:00:00+00:00"),
    )


class TestTaskStore:
    """Test task rows and decay writes."""

    def test_add_and_get(self, stores):
        stores.tasks.add_task(make_task("T-1"))
        task = stores.tasks.get_task("T-1")
        assert task.title == "Task T-1"
        assert task.created_at

    def test_duplicate_id_rejected(self, stores):
        stores.tasks.add_task(make_task("T-1"))
        with pytest.raises(ValueError, match="already exists"):
            stores.tasks.add_task(make_task("T-1"))

    def test_completed_task_with_decay_is_invalid(self, stores):
        """Test the invariant decay_level == 0 whenever completed."""
        with pytest.raises(ValueError, match="decay_level 0"):
            stores.tasks.add_task(make_task("T-1", is_completed=True, decay_level=2))

    def test_list_incomplete_before(self, stores):
        stores.tasks.add_task(make_task("T-old", scheduled_date="2024-01-01"))
        stores.tasks.add_task(make_task("T-today", scheduled_date="2024-01-03"))
        stores.tasks.add_task(
            make_task("T-done", scheduled_date="2024-01-01", is_completed=True)
        )
        stores.tasks.add_task(make_task("T-other", user_id="user-2"))

        ids = [t.id for t in stores.tasks.list_incomplete_tasks_before("user-1", date(2024, 1, 3))]
        assert ids == ["T-old"]

        all_ids = [t.id for t in stores.tasks.list_incomplete_tasks_before(None, date(2024, 1, 3))]
        assert all_ids == ["T-old", "T-other"]

    def test_update_decay_sets_started_at_once(self, stores):
        stores.tasks.add_task(make_task("T-1"))

        first = stores.tasks.update_decay("T-1", 0, 1, T0)
        assert first.decay_level == 1
        assert first.decay_started_at == "2024-01-03T11:00:00+00:00"

        later = datetime(2024, 1, 4, 11, 0, tzinfo=timezone.utc)
        second = stores.tasks.update_decay("T-1", 1, 3, later)
        assert second.decay_level == 3
        assert second.decay_started_at == first.decay_started_at

    def test_update_decay_conflict_on_level_change(self, stores):
        stores.tasks.add_task(make_task("T-1", decay_level=2))
        with pytest.raises(PersistenceConflict):
            stores.tasks.update_decay("T-1", 1, 3, T0)
        assert stores.tasks.get_task("T-1").decay_level == 2

    def test_update_decay_conflict_when_completed(self, stores):
        """Test that completion wins over a stale batch read."""
        stores.tasks.add_task(make_task("T-1"))
        stores.tasks.mark_completed("T-1", T0)
        with pytest.raises(PersistenceConflict):
            stores.tasks.update_decay("T-1", 0, 2, T0)
        assert stores.tasks.get_task("T-1").decay_level == 0

    def test_update_decay_must_increase(self, stores):
        stores.tasks.add_task(make_task("T-1", decay_level=2))
        with pytest.raises(ValueError, match="must increase"):
            stores.tasks.update_decay("T-1", 2, 1, T0)

    def test_update_decay_missing_task(self, stores):
        with pytest.raises(RecordNotFound):
            stores.tasks.update_decay("missing", 0, 1, T0)

    def test_mark_completed_resets_decay(self, stores):
        stores.tasks.add_task(
            make_task("T-1", decay_level=3, decay_started_at="2024-01-02T00:00:00+00:00")
        )
        record, changed = stores.tasks.mark_completed("T-1", T0)
        assert changed is True
        assert record.is_completed is True
        assert record.decay_level == 0
        assert record.decay_started_at is None
        assert record.completed_at == "2024-01-03T11:00:00+00:00"

        _, changed_again = stores.tasks.mark_completed("T-1", T0)
        assert changed_again is False

    def test_list_completed_on(self, stores):
        stores.tasks.add_task(make_task("T-1"))
        stores.tasks.add_task(make_task("T-2", scheduled_date="2024-01-02", is_completed=True))
        stores.tasks.mark_completed("T-1", T0)

        assert [t.id for t in stores.tasks.list_completed_on("user-1", date(2024, 1, 3))] == ["T-1"]
        assert [t.id for t in stores.tasks.list_completed_on("user-1", date(2024, 1, 2))] == ["T-2"]

    def test_corrupt_file_raises_persistence_failure(self, data_dir):
        path = data_dir / "tasks.jsonl"
        path.write_text("{not json\n")
        store = TaskStore(str(path))
        with pytest.raises(PersistenceFailure):
            store.get_all_records()

    def test_lock_file_is_separate_from_table(self, stores):
        stores.tasks.add_task(make_task("T-1"))
        assert stores.tasks.lock_file.name == "tasks.jsonl.lock"
        assert stores.tasks.lock_file.exists()


class TestProfileStore:
    """Test XP ledger and streak fields."""

    def test_missing_profile_has_zero_xp(self, stores):
        assert stores.profiles.get_xp("nobody") == 0

    def test_apply_xp_delta_is_relative(self, stores):
        assert stores.profiles.apply_xp_delta("user-1", 100) == 100
        assert stores.profiles.apply_xp_delta("user-1", -30) == 70
        assert stores.profiles.get_xp("user-1") == 70

    def test_xp_floors_at_zero(self, stores):
        stores.profiles.apply_xp_delta("user-1", 20)
        assert stores.profiles.apply_xp_delta("user-1", -50) == 0

    def test_debit_returns_amount_taken(self, stores):
        stores.profiles.apply_xp_delta("user-1", 20)
        assert stores.profiles.debit_xp("user-1", 50) == 20
        assert stores.profiles.get_xp("user-1") == 0

    def test_set_debt_score(self, stores):
        stores.profiles.set_debt_score("user-1", 67)
        assert stores.profiles.get_profile("user-1").debt_score == 67

    def test_debt_score_out_of_range_rejected(self, stores):
        with pytest.raises(ValueError, match="debt_score"):
            stores.profiles.set_debt_score("user-1", 101)

    def test_update_streak_keeps_longest(self, stores):
        stores.profiles.update_streak("user-1", 8, longest_streak=8)
        profile = stores.profiles.update_streak("user-1", 1, longest_streak=1)
        assert profile.current_streak == 1
        assert profile.longest_streak == 8

    def test_record_activity_never_moves_backwards(self, stores):
        stores.profiles.record_activity("user-1", date(2024, 1, 3))
        profile = stores.profiles.record_activity("user-1", date(2024, 1, 1))
        assert profile.last_activity_date == "2024-01-03"

    def test_ensure_profile_creates_once(self, stores):
        stores.profiles.ensure_profile("user-1")
        stores.profiles.ensure_profile("user-1")
        assert len(stores.profiles.list_profiles()) == 1


class TestContractStore:
    """Test contract persistence and resolution."""

    def test_resolve_first_writer_wins(self, stores):
        stores.contracts.add_contract(make_contract())

        resolved = stores.contracts.resolve("C-1", "completed", T0)
        assert resolved.status == "completed"
        assert resolved.resolved_at == "2024-01-03T11:00:00+00:00"

        assert stores.contracts.resolve("C-1", "failed", T0, penalty_applied=True) is None
        current = stores.contracts.get_contract("C-1")
        assert current.status == "completed"
        assert current.penalty_applied is False

    def test_resolve_to_active_is_invalid(self, stores):
        stores.contracts.add_contract(make_contract())
        with pytest.raises(InvalidTransition):
            stores.contracts.resolve("C-1", "active", T0)

    def test_resolve_missing_contract(self, stores):
        with pytest.raises(RecordNotFound):
            stores.contracts.resolve("C-404", "failed", T0)

    def test_one_active_contract_per_target(self, stores):
        stores.contracts.add_contract(make_contract("C-1"))
        with pytest.raises(InvalidTarget, match="already has active contract"):
            stores.contracts.add_contract(make_contract("C-2"))

        stores.contracts.resolve("C-1", "cancelled", T0)
        stores.contracts.add_contract(make_contract("C-2"))
        assert stores.contracts.find_active(task_id="T-1").id == "C-2"

    def test_target_must_be_exclusive(self, stores):
        with pytest.raises(ValueError, match="exactly one"):
            stores.contracts.add_contract(make_contract(goal_id="G-1"))

    def test_list_active_past_deadline(self, stores):
        stores.contracts.add_contract(make_contract("C-1", task_id="T-1", deadline="2024-01-02T00:00:00+00:00"))
        stores.contracts.add_contract(make_contract("C-2", task_id="T-2", deadline="2024-01-09T00:00:00+00:00"))
        stores.contracts.add_contract(make_contract("C-3", task_id="T-3", deadline="2024-01-01T00:00:00+00:00"))
        stores.contracts.resolve("C-3", "completed", T0)

        expired = stores.contracts.list_active_contracts_past_deadline(T0)
        assert [c.id for c in expired] == ["C-1"]

    def test_list_for_user_newest_first(self, stores):
        stores.contracts.add_contract(make_contract("C-1", task_id="T-1", created_at="2024-01-01T00:00:00+00:00"))
        stores.contracts.add_contract(make_contract("C-2", task_id="T-2", created_at="2024-01-02T00:00:00+00:00"))
        assert [c.id for c in stores.contracts.list_for_user("user-1")] == ["C-2", "C-1"]


class TestDecayEventLog:
    """Test the append-only event sink."""

    def test_emit_appends(self, stores):
        for i, (prev, new) in enumerate([(0, 1), (1, 3)]):
            stores.events.emit(
                DecayEvent(
                    id=f"E-{i}",
                    task_id="T-1",
                    user_id="user-1",
                    previous_decay_level=prev,
                    new_decay_level=new,
                    xp_penalty=(new - prev) * 10,
                    created_at="2024-01-03T11:00:00+00:00",
                )
            )
        events = stores.events.list_for_task("T-1")
        assert [e.new_decay_level for e in events] == [1, 3]
        assert sum(e.xp_penalty for e in stores.events.list_for_user("user-1")) == 30

    def test_backward_event_rejected(self, stores):
        with pytest.raises(ValueError, match="move forward"):
            stores.events.emit(
                DecayEvent("E-1", "T-1", "user-1", 2, 1, 0, "2024-01-03T11:00:00+00:00")
            )


class TestPersistence:
    """Test that data survives reopening the data directory."""

    def test_reopen(self, data_dir):
        first = Stores.open(str(data_dir))
        first.tasks.add_task(make_task("T-1"))
        first.profiles.apply_xp_delta("user-1", 42)

        second = Stores.open(str(data_dir))
        assert second.tasks.get_task("T-1") is not None
        assert second.profiles.get_xp("user-1") == 42
