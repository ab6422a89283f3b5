"""
accountq task, profile, and focus command implementations.

These stand in for the surrounding application: they create task rows,
complete tasks, inspect the XP ledger, and log focus sessions.
"""

import sys
import argparse

from accountability.cli.output import print_error, print_json
from accountability.core.exceptions import AccountabilityError
from accountability.core.models import TaskRecord
from accountability.core.timeutil import parse_timestamp
from accountability.engine.tasks import TaskActions
from accountability.policy import decay_label


def cmd_task_add(cli_instance, args: argparse.Namespace) -> int:
    """Add a task.

    Args:
        cli_instance: AccountQCLI instance with stores
        args: Parsed command-line arguments with: id, user, title, date,
              start, end, duration, priority

    Returns:
        Exit code (0 on success, 1 on error)
    """
    record = TaskRecord(
        id=args.id,
        user_id=args.user,
        title=args.title,
        scheduled_date=args.date,
        start_time=args.start or "",
        end_time=args.end or "",
        duration_minutes=args.duration or 0,
        priority=args.priority,
    )
    try:
        cli_instance.stores.tasks.add_task(record)
        cli_instance.stores.profiles.ensure_profile(args.user)
    except (AccountabilityError, ValueError) as e:
        print_error(str(e))
        return 1

    print(f"Task added: {record.id}")
    return 0


def cmd_task_complete(cli_instance, args: argparse.Namespace) -> int:
    """Complete a task, resetting decay and settling any bound contract."""
    ctx = cli_instance.context()
    try:
        result = TaskActions(ctx.stores).complete_task(args.id, now=ctx.now)
    except AccountabilityError as e:
        print_error(str(e))
        return 1

    if not result.changed:
        print(f"Task already completed: {args.id}")
        return 0

    print(f"Task completed: {args.id}")
    if result.contract is not None and result.contract.applied:
        print(
            f"  Contract {result.contract.contract.id} completed "
            f"(XP {result.contract.xp_delta:+d})"
        )
    print(f"  Debt score: {result.debt_score}")
    return 0


def cmd_task_list(cli_instance, args: argparse.Namespace) -> int:
    """List a user's tasks with decay labels."""
    try:
        tasks = [
            t for t in cli_instance.stores.tasks.get_all_records() if t.user_id == args.user
        ]
    except AccountabilityError as e:
        print_error(str(e))
        return 1

    if args.json:
        print_json([t.to_dict() for t in tasks])
        return 0

    if not tasks:
        print(f"No tasks for {args.user}", file=sys.stderr)
        return 0

    for t in tasks:
        state = "done" if t.is_completed else decay_label(t.decay_level)
        print(f"  {t.id}  {t.scheduled_date} {t.end_time or '--:--'}  [{state}]  {t.title}")
    return 0


def cmd_profile_show(cli_instance, args: argparse.Namespace) -> int:
    """Display a user's XP, debt score, and streaks."""
    profile = cli_instance.stores.profiles.get_profile(args.user)
    if profile is None:
        print_error(f"Profile not found: {args.user}")
        return 1

    if args.json:
        print_json(profile.to_dict())
        return 0

    print(f"{profile.user_id}")
    print(f"  XP: {profile.total_xp}")
    print(f"  debt score: {profile.debt_score}")
    print(f"  streak: {profile.current_streak} (longest {profile.longest_streak})")
    print(f"  last activity: {profile.last_activity_date or '-'}")
    return 0


def cmd_profile_grant(cli_instance, args: argparse.Namespace) -> int:
    """Apply an XP delta to a user's ledger."""
    try:
        total = cli_instance.stores.profiles.apply_xp_delta(args.user, args.xp)
    except AccountabilityError as e:
        print_error(str(e))
        return 1

    print(f"XP for {args.user}: {total}")
    return 0


def cmd_focus_log(cli_instance, args: argparse.Namespace) -> int:
    """Log a focus session (counts as activity for streaks)."""
    ctx = cli_instance.context()
    try:
        started_at = parse_timestamp(args.started_at) if args.started_at else ctx.now
        session = TaskActions(ctx.stores).log_focus_session(
            args.user, started_at, duration_minutes=args.minutes
        )
    except (AccountabilityError, ValueError) as e:
        print_error(str(e))
        return 1

    print(f"Focus session logged: {session.id}")
    return 0
