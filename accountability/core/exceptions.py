"""Core exceptions: caller errors for contract operations and persistence errors."""


class AccountabilityError(Exception):
    """Base exception for accountability engine errors."""

    pass


class InvalidStake(AccountabilityError):
    """Raised when a contract stake is out of the allowed range."""

    def __init__(self, staked_xp: int, message: str):
        self.staked_xp = staked_xp
        self.message = message
        super().__init__(f"Invalid stake {staked_xp}: {message}")


class InvalidTarget(AccountabilityError):
    """Raised when a contract does not reference exactly one task or goal."""

    pass


class InvalidTransition(AccountabilityError):
    """Raised when a contract status change is not legal from its current state."""

    def __init__(self, contract_id: str, from_status: str, to_status: str):
        self.contract_id = contract_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid status transition for {contract_id}: {from_status} -> {to_status}"
        )


class RecordNotFound(AccountabilityError):
    """Raised when a record id does not exist in its store."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} with id '{record_id}' not found")


class PersistenceConflict(AccountabilityError):
    """Raised when a compare-and-set write observes a different prior value."""

    def __init__(self, record_id: str, expected, actual):
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Conflict on {record_id}: expected {expected!r}, found {actual!r}"
        )


class PersistenceFailure(AccountabilityError):
    """Raised when the backing store cannot be read or written."""

    def __init__(self, message: str, cause: Exception = None):
        self.cause = cause
        super().__init__(message)


class ConfigError(AccountabilityError):
    """Raised when a policy configuration file is invalid."""

    pass
