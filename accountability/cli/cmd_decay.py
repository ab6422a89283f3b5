"""
accountq decay command implementations.

Runs the decay applier for one user or the whole fleet, and reports decay
statistics.
"""

import argparse

from accountability.cli.output import print_error, print_json, report_summary
from accountability.core.exceptions import AccountabilityError
from accountability.engine.decay_applier import DecayApplier, decay_stats
from accountability.policy import decay_label


def cmd_decay_run(cli_instance, args: argparse.Namespace) -> int:
    """Reconcile decay state.

    Args:
        cli_instance: AccountQCLI instance with stores and policy
        args: Parsed command-line arguments with: user (optional), json, record

    Returns:
        Exit code (0 on success, 1 if the batch collected errors)
    """
    ctx = cli_instance.context()
    applier = DecayApplier(ctx.stores, ctx.policy)

    if args.user:
        summary = applier.reconcile(args.user, ctx.now, run_id=ctx.run_id)
    else:
        summary = applier.reconcile_all(ctx.now, run_id=ctx.run_id)

    return report_summary(ctx, summary, args)


def cmd_decay_stats(cli_instance, args: argparse.Namespace) -> int:
    """Display cumulative decay statistics and current task decay for a user."""
    try:
        stats = decay_stats(cli_instance.stores, args.user)
        tasks = cli_instance.stores.tasks.list_incomplete_tasks(args.user)
        profile = cli_instance.stores.profiles.get_profile(args.user)
    except AccountabilityError as e:
        print_error(str(e))
        return 1

    debt = profile.debt_score if profile else 0

    if args.json:
        print_json(
            {
                "user_id": args.user,
                "total_events": stats.total_events,
                "total_xp_lost": stats.total_xp_lost,
                "rotten_tasks": stats.rotten_tasks,
                "debt_score": debt,
                "tasks": {t.id: decay_label(t.decay_level) for t in tasks},
            }
        )
        return 0

    print(f"Decay stats for {args.user}")
    print(f"  events: {stats.total_events}")
    print(f"  XP lost: {stats.total_xp_lost}")
    print(f"  rotten: {stats.rotten_tasks}")
    print(f"  debt score: {debt}")
    for task in tasks:
        print(f"  {task.id}: {decay_label(task.decay_level)}")
    return 0
