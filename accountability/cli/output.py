"""Shared output helpers for accountq commands."""

import json
import sys
from typing import Any

from accountability.engine.context import BatchSummary, JobContext


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def print_error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


def report_summary(ctx: JobContext, summary: BatchSummary, args) -> int:
    """Print a batch summary, optionally record it, and map it to an exit code.

    Returns:
        Exit code (0 when the batch had no errors, 1 otherwise)
    """
    if getattr(args, "record", False):
        ctx.record(summary)

    if getattr(args, "json", False):
        print_json(summary.to_dict())
    else:
        print(
            f"{summary.job} run {summary.run_id}: processed={summary.processed} "
            f"updated={summary.updated} xp_penalty={summary.total_xp_penalty} "
            f"conflicts={summary.conflicts} errors={len(summary.errors)}"
        )
        for name, value in sorted(summary.counters.items()):
            print(f"  {name}: {value}")
        for error in summary.errors:
            print(
                f"  ! {error['id']}: {error['type']}: {error['message']}",
                file=sys.stderr,
            )

    return 0 if summary.ok else 1
