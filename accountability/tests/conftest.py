"""
Shared fixtures for the accountability test suite.

Provides temporary stores, a fixed clock, and a task factory used by the
policy, store, engine, and CLI test categories.
"""

from datetime import datetime, timezone

import pytest

from accountability.core.models import TaskRecord
from accountability.store import Stores
from accountability.support.config import PolicyConfig


@pytest.fixture
def data_dir(tmp_path):
    """Temporary data directory for JSONL tables."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def stores(data_dir):
    """Stores bundle rooted at a temporary directory."""
    return Stores.open(str(data_dir))


@pytest.fixture
def policy():
    return PolicyConfig()


@pytest.fixture
def now():
    """Fixed evaluation time: 2024-01-03 11:00 UTC."""
    return datetime(2024, 1, 3, 11, 0, tzinfo=timezone.utc)


def make_task(task_id, user_id="user-1", **kwargs):
    """Helper to create TaskRecord with sensible defaults."""
    return TaskRecord(
        id=task_id,
        user_id=user_id,
        title=kwargs.get("title", f"Task {task_id}"),
        scheduled_date=kwargs.get("scheduled_date", "2024-01-01"),
        start_time=kwargs.get("start_time", "09:00"),
        end_time=kwargs.get("end_time", "10:00"),
        duration_minutes=kwargs.get("duration_minutes", 60),
        priority=kwargs.get("priority", "medium"),
        is_completed=kwargs.get("is_completed", False),
        decay_level=kwargs.get("decay_level", 0),
        decay_started_at=kwargs.get("decay_started_at"),
        completed_at=kwargs.get("completed_at"),
    )


@pytest.fixture
def task_factory():
    return make_task
