"""accountq streak command implementation."""

import argparse

from accountability.cli.output import print_error, report_summary
from accountability.core.timeutil import parse_day
from accountability.engine.streaks import StreakResolver


def cmd_streak_run(cli_instance, args: argparse.Namespace) -> int:
    """Resolve streaks for every profile.

    Args:
        cli_instance: AccountQCLI instance with stores
        args: Parsed command-line arguments with: day (optional), json, record

    Returns:
        Exit code (0 on success, 1 on error)
    """
    ctx = cli_instance.context()
    try:
        day = parse_day(args.day) if args.day else None
    except ValueError as e:
        print_error(f"Invalid --day: {e}")
        return 1

    summary = StreakResolver(ctx.stores).run(ctx.now, day=day, run_id=ctx.run_id)
    return report_summary(ctx, summary, args)
