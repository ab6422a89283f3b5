"""Core package: domain records, exceptions, and timestamp helpers."""

from accountability.core.models import (
    TaskRecord,
    DecayEvent,
    ContractRecord,
    ProfileRecord,
    FocusSession,
)
from accountability.core.exceptions import (
    AccountabilityError,
    InvalidStake,
    InvalidTarget,
    InvalidTransition,
    RecordNotFound,
    PersistenceConflict,
    PersistenceFailure,
    ConfigError,
)

__all__ = [
    "TaskRecord",
    "DecayEvent",
    "ContractRecord",
    "ProfileRecord",
    "FocusSession",
    "AccountabilityError",
    "InvalidStake",
    "InvalidTarget",
    "InvalidTransition",
    "RecordNotFound",
    "PersistenceConflict",
    "PersistenceFailure",
    "ConfigError",
]
