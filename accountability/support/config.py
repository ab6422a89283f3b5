"""
Policy configuration: business constants with YAML overrides.

A policy file is a flat YAML mapping, for example:

    xp_penalty_per_level: 15
    max_stake: 250
    completion_bonus_ratio: 0.25

Keys not present keep their defaults from accountability.constants.
"""

import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from accountability.constants import (
    DEFAULT_GRACE_HOURS,
    DEFAULT_BAND_HOURS,
    DEFAULT_XP_PENALTY_PER_LEVEL,
    DEFAULT_MIN_STAKE,
    DEFAULT_MAX_STAKE,
    DEFAULT_COMPLETION_BONUS_RATIO,
    ENV_CONFIG,
)
from accountability.core.exceptions import ConfigError


@dataclass(frozen=True)
class PolicyConfig:
    """Tunable numeric policy for decay, debt, and contracts."""

    grace_hours: int = DEFAULT_GRACE_HOURS
    band_hours: int = DEFAULT_BAND_HOURS
    xp_penalty_per_level: int = DEFAULT_XP_PENALTY_PER_LEVEL
    debit_decay_penalty: bool = True
    min_stake: int = DEFAULT_MIN_STAKE
    max_stake: int = DEFAULT_MAX_STAKE
    completion_bonus_ratio: float = DEFAULT_COMPLETION_BONUS_RATIO

    def validate(self) -> None:
        """
        Validate policy values.

        Raises:
            ConfigError: If any value is out of range.
        """
        if self.grace_hours < 0 or self.band_hours <= 0:
            raise ConfigError("grace_hours must be >= 0 and band_hours > 0")
        if self.xp_penalty_per_level < 0:
            raise ConfigError("xp_penalty_per_level must not be negative")
        if self.min_stake <= 0 or self.max_stake < self.min_stake:
            raise ConfigError("Stake bounds must satisfy 0 < min_stake <= max_stake")
        if not 0 <= self.completion_bonus_ratio <= 1:
            raise ConfigError("completion_bonus_ratio must be within [0, 1]")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolicyConfig":
        """Build a policy from a mapping, rejecting unknown keys."""
        known = {f.name: f for f in fields(cls)}
        unknown = set(data) - set(known)
        if unknown:
            raise ConfigError(f"Unknown policy keys: {', '.join(sorted(unknown))}")

        values = {}
        for key, value in data.items():
            expected = type(getattr(cls, key))
            if expected is float and isinstance(value, int) and not isinstance(value, bool):
                value = float(value)
            if not isinstance(value, expected) or (
                expected is int and isinstance(value, bool)
            ):
                raise ConfigError(
                    f"Policy key '{key}' expects {expected.__name__}, got {type(value).__name__}"
                )
            values[key] = value

        policy = cls(**values)
        policy.validate()
        return policy


def load_policy(config_path: Optional[str] = None) -> PolicyConfig:
    """Load policy configuration from YAML.

    Uses config_path, then the ACCOUNTQ_CONFIG environment variable. Returns
    the defaults when neither is set.

    Args:
        config_path: Optional path to a YAML policy file.

    Returns:
        Validated PolicyConfig.

    Raises:
        ConfigError: If the file is missing, unparsable, or has invalid values.
    """
    path_value = config_path or os.environ.get(ENV_CONFIG, "").strip()
    if not path_value:
        return PolicyConfig()

    path = Path(path_value).expanduser()
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")

    if data is None:
        return PolicyConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return PolicyConfig.from_dict(data)
