"""Task decay and commitment accountability engine."""

from accountability.core.models import (
    TaskRecord,
    DecayEvent,
    ContractRecord,
    ProfileRecord,
    FocusSession,
)
from accountability.store import Stores
from accountability.support.config import PolicyConfig, load_policy

__all__ = [
    "TaskRecord",
    "DecayEvent",
    "ContractRecord",
    "ProfileRecord",
    "FocusSession",
    "Stores",
    "PolicyConfig",
    "load_policy",
]
