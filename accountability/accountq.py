#!/usr/bin/env python3
"""
accountq: Task decay and commitment accountability CLI.

Commands:
  task      Add, complete, or list tasks
  profile   Show a profile or apply an XP delta
  focus     Log a focus session
  decay     Run decay reconciliation or show decay stats
  contract  Create, resolve, list, or sweep commitment contracts
  streak    Run the daily streak resolver

Batch commands (decay run, contract sweep, streak run) are meant to be
triggered by an external scheduler, one invocation per period.
"""

import argparse
import logging
import sys
from typing import List, Optional

from accountability.cli import AccountQCLI
from accountability.core.exceptions import ConfigError
from accountability.core.timeutil import parse_timestamp

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _add_output_flags(parser: argparse.ArgumentParser, batch: bool = False) -> None:
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    if batch:
        parser.add_argument(
            "--record",
            action="store_true",
            help="Append the run summary to job_runs.jsonl",
        )


def build_parser() -> argparse.ArgumentParser:
    """Build the accountq argument parser."""
    parser = argparse.ArgumentParser(
        prog="accountq", description="Task decay and commitment accountability CLI"
    )
    parser.add_argument("--data-dir", help="Data directory (default: $ACCOUNTQ_DATA_DIR or ./data)")
    parser.add_argument("--config", help="YAML policy file (default: $ACCOUNTQ_CONFIG)")
    parser.add_argument("--now", help="Evaluation time as ISO timestamp (default: current UTC time)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # 'task' commands
    task_parser = subparsers.add_parser("task", help="Manage tasks")
    task_sub = task_parser.add_subparsers(dest="action")

    add_parser = task_sub.add_parser("add", help="Add a task")
    add_parser.add_argument("--id", required=True, help="Task ID")
    add_parser.add_argument("--user", required=True, help="Owner user ID")
    add_parser.add_argument("--title", required=True, help="Task title")
    add_parser.add_argument("--date", required=True, help="Scheduled date (YYYY-MM-DD)")
    add_parser.add_argument("--start", help="Start time (HH:MM)")
    add_parser.add_argument("--end", help="End time (HH:MM)")
    add_parser.add_argument("--duration", type=int, help="Duration in minutes")
    add_parser.add_argument(
        "--priority",
        choices=["low", "medium", "high"],
        default="medium",
        help="Priority (default: medium)",
    )

    complete_parser = task_sub.add_parser("complete", help="Complete a task")
    complete_parser.add_argument("--id", required=True, help="Task ID")

    list_parser = task_sub.add_parser("list", help="List a user's tasks")
    list_parser.add_argument("--user", required=True, help="User ID")
    _add_output_flags(list_parser)

    # 'profile' commands
    profile_parser = subparsers.add_parser("profile", help="Inspect the XP ledger")
    profile_sub = profile_parser.add_subparsers(dest="action")

    show_parser = profile_sub.add_parser("show", help="Show a profile")
    show_parser.add_argument("--user", required=True, help="User ID")
    _add_output_flags(show_parser)

    grant_parser = profile_sub.add_parser("grant", help="Apply an XP delta")
    grant_parser.add_argument("--user", required=True, help="User ID")
    grant_parser.add_argument("--xp", type=int, required=True, help="XP delta (may be negative)")

    # 'focus' commands
    focus_parser = subparsers.add_parser("focus", help="Focus sessions")
    focus_sub = focus_parser.add_subparsers(dest="action")

    log_parser = focus_sub.add_parser("log", help="Log a focus session")
    log_parser.add_argument("--user", required=True, help="User ID")
    log_parser.add_argument("--minutes", type=int, default=25, help="Duration (default: 25)")
    log_parser.add_argument("--started-at", help="Start time as ISO timestamp (default: now)")

    # 'decay' commands
    decay_parser = subparsers.add_parser("decay", help="Task decay")
    decay_sub = decay_parser.add_subparsers(dest="action")

    run_parser = decay_sub.add_parser("run", help="Reconcile decay (one user or all)")
    run_parser.add_argument("--user", help="Only reconcile this user")
    _add_output_flags(run_parser, batch=True)

    stats_parser = decay_sub.add_parser("stats", help="Show decay statistics")
    stats_parser.add_argument("--user", required=True, help="User ID")
    _add_output_flags(stats_parser)

    # 'contract' commands
    contract_parser = subparsers.add_parser("contract", help="Commitment contracts")
    contract_sub = contract_parser.add_subparsers(dest="action")

    create_parser = contract_sub.add_parser("create", help="Create a contract")
    create_parser.add_argument("--user", required=True, help="User ID")
    create_parser.add_argument("--stake", type=int, required=True, help="Staked XP")
    create_parser.add_argument("--deadline", required=True, help="Deadline as ISO timestamp")
    create_parser.add_argument("--buddy", help="Accountability buddy")
    create_parser.add_argument("--id", help="Contract ID (default: generated)")
    target_group = create_parser.add_mutually_exclusive_group(required=True)
    target_group.add_argument("--task", help="Task ID the contract is bound to")
    target_group.add_argument("--goal", help="Goal ID the contract is bound to")
    _add_output_flags(create_parser)

    for action, help_text in [
        ("complete", "Complete a contract (active -> completed)"),
        ("fail", "Fail a contract (active -> failed)"),
        ("cancel", "Cancel a contract (active -> cancelled)"),
    ]:
        transition_parser = contract_sub.add_parser(action, help=help_text)
        transition_parser.add_argument("--id", required=True, help="Contract ID")
        _add_output_flags(transition_parser)

    clist_parser = contract_sub.add_parser("list", help="List a user's contracts")
    clist_parser.add_argument("--user", required=True, help="User ID")
    clist_parser.add_argument("--active", action="store_true", help="Only active contracts")
    _add_output_flags(clist_parser)

    sweep_parser = contract_sub.add_parser("sweep", help="Fail contracts past deadline")
    _add_output_flags(sweep_parser, batch=True)

    # 'streak' commands
    streak_parser = subparsers.add_parser("streak", help="Daily streaks")
    streak_sub = streak_parser.add_subparsers(dest="action")

    srun_parser = streak_sub.add_parser("run", help="Resolve streaks for all profiles")
    srun_parser.add_argument("--day", help="Day to evaluate (default: yesterday)")
    _add_output_flags(srun_parser, batch=True)

    return parser


COMMANDS = {
    ("task", "add"): "cmd_task_add",
    ("task", "complete"): "cmd_task_complete",
    ("task", "list"): "cmd_task_list",
    ("profile", "show"): "cmd_profile_show",
    ("profile", "grant"): "cmd_profile_grant",
    ("focus", "log"): "cmd_focus_log",
    ("decay", "run"): "cmd_decay_run",
    ("decay", "stats"): "cmd_decay_stats",
    ("contract", "create"): "cmd_contract_create",
    ("contract", "complete"): "cmd_contract_complete",
    ("contract", "fail"): "cmd_contract_fail",
    ("contract", "cancel"): "cmd_contract_cancel",
    ("contract", "list"): "cmd_contract_list",
    ("contract", "sweep"): "cmd_contract_sweep",
    ("streak", "run"): "cmd_streak_run",
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for accountq CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    handler_name = COMMANDS.get((args.command, getattr(args, "action", None)))
    if handler_name is None:
        parser.print_help()
        return 1

    try:
        now = parse_timestamp(args.now) if args.now else None
    except ValueError as e:
        print(f"Error: Invalid --now: {e}", file=sys.stderr)
        return 1

    try:
        cli = AccountQCLI(data_dir=args.data_dir, config=args.config, now=now)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return getattr(cli, handler_name)(args)


if __name__ == "__main__":
    sys.exit(main())
