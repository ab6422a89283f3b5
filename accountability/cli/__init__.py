"""
accountq CLI command implementations.

This package contains individual command handlers for the accountq CLI.
Commands are organized into separate modules by area.

Public API:
- AccountQCLI: Facade class holding stores, policy, and the run clock
"""

import argparse
from datetime import datetime
from typing import Optional

# Import command modules (not functions) to avoid namespace conflicts
from accountability.cli import cmd_tasks as _cmd_tasks_module
from accountability.cli import cmd_decay as _cmd_decay_module
from accountability.cli import cmd_contracts as _cmd_contracts_module
from accountability.cli import cmd_streaks as _cmd_streaks_module
from accountability.engine.context import JobContext
from accountability.core.timeutil import utc_now
from accountability.store import Stores
from accountability.support.config import load_policy


class AccountQCLI:
    """Accountability CLI interface.

    Attributes:
        stores: Tables under the resolved data directory.
        policy: Loaded PolicyConfig.
        now: Fixed evaluation time for replays, or None for the wall clock.
    """

    def __init__(
        self,
        data_dir: Optional[str] = None,
        config: Optional[str] = None,
        now: Optional[datetime] = None,
    ):
        """Initialize CLI with stores and policy.

        Raises:
            ConfigError: If the policy file is invalid.
        """
        self.policy = load_policy(config)
        self.stores = Stores.open(data_dir)
        self.now = now

    def context(self) -> JobContext:
        """Build the job context for one command invocation."""
        return JobContext(stores=self.stores, policy=self.policy, now=self.now or utc_now())

    def cmd_task_add(self, args: argparse.Namespace) -> int:
        """Add a task (delegates to cmd_tasks module)."""
        return _cmd_tasks_module.cmd_task_add(self, args)

    def cmd_task_complete(self, args: argparse.Namespace) -> int:
        """Complete a task (delegates to cmd_tasks module)."""
        return _cmd_tasks_module.cmd_task_complete(self, args)

    def cmd_task_list(self, args: argparse.Namespace) -> int:
        """List tasks (delegates to cmd_tasks module)."""
        return _cmd_tasks_module.cmd_task_list(self, args)

    def cmd_profile_show(self, args: argparse.Namespace) -> int:
        """Show a profile (delegates to cmd_tasks module)."""
        return _cmd_tasks_module.cmd_profile_show(self, args)

    def cmd_profile_grant(self, args: argparse.Namespace) -> int:
        """Apply an XP delta (delegates to cmd_tasks module)."""
        return _cmd_tasks_module.cmd_profile_grant(self, args)

    def cmd_focus_log(self, args: argparse.Namespace) -> int:
        """Log a focus session (delegates to cmd_tasks module)."""
        return _cmd_tasks_module.cmd_focus_log(self, args)

    def cmd_decay_run(self, args: argparse.Namespace) -> int:
        """Run decay reconciliation (delegates to cmd_decay module)."""
        return _cmd_decay_module.cmd_decay_run(self, args)

    def cmd_decay_stats(self, args: argparse.Namespace) -> int:
        """Show decay statistics (delegates to cmd_decay module)."""
        return _cmd_decay_module.cmd_decay_stats(self, args)

    def cmd_contract_create(self, args: argparse.Namespace) -> int:
        """Create a contract (delegates to cmd_contracts module)."""
        return _cmd_contracts_module.cmd_contract_create(self, args)

    def cmd_contract_complete(self, args: argparse.Namespace) -> int:
        """Complete a contract (delegates to cmd_contracts module)."""
        return _cmd_contracts_module.cmd_contract_complete(self, args)

    def cmd_contract_fail(self, args: argparse.Namespace) -> int:
        """Fail a contract (delegates to cmd_contracts module)."""
        return _cmd_contracts_module.cmd_contract_fail(self, args)

    def cmd_contract_cancel(self, args: argparse.Namespace) -> int:
        """Cancel a contract (delegates to cmd_contracts module)."""
        return _cmd_contracts_module.cmd_contract_cancel(self, args)

    def cmd_contract_list(self, args: argparse.Namespace) -> int:
        """List contracts (delegates to cmd_contracts module)."""
        return _cmd_contracts_module.cmd_contract_list(self, args)

    def cmd_contract_sweep(self, args: argparse.Namespace) -> int:
        """Run the deadline sweep (delegates to cmd_contracts module)."""
        return _cmd_contracts_module.cmd_contract_sweep(self, args)

    def cmd_streak_run(self, args: argparse.Namespace) -> int:
        """Run the streak resolver (delegates to cmd_streaks module)."""
        return _cmd_streaks_module.cmd_streak_run(self, args)


__all__ = [
    "AccountQCLI",
]
