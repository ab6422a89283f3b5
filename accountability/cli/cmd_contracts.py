"""
accountq contract command implementations.

Handles contract creation, state transitions (complete, fail, cancel),
listing, and the deadline sweep.
"""

import sys
import argparse

from accountability.cli.output import print_error, print_json, report_summary
from accountability.core.exceptions import AccountabilityError
from accountability.core.timeutil import parse_timestamp
from accountability.engine.contracts import ContractService


def _service(cli_instance) -> ContractService:
    return ContractService(cli_instance.stores, cli_instance.policy)


def cmd_contract_create(cli_instance, args: argparse.Namespace) -> int:
    """Create a commitment contract.

    Args:
        cli_instance: AccountQCLI instance with stores and policy
        args: Parsed command-line arguments with: user, stake, deadline,
              task or goal, buddy (optional), id (optional)

    Returns:
        Exit code (0 on success, 1 on error)
    """
    ctx = cli_instance.context()
    try:
        record = _service(cli_instance).create(
            user_id=args.user,
            staked_xp=args.stake,
            deadline=parse_timestamp(args.deadline),
            task_id=args.task,
            goal_id=args.goal,
            buddy=args.buddy,
            now=ctx.now,
            contract_id=args.id,
        )
    except (AccountabilityError, ValueError) as e:
        print_error(str(e))
        return 1

    if args.json:
        print_json(record.to_dict())
    else:
        print(f"Contract created: {record.id} ({record.staked_xp} XP on {record.target})")
    return 0


def _transition(cli_instance, args: argparse.Namespace, action: str) -> int:
    """Run complete/fail/cancel in strict mode so users see stale actions."""
    ctx = cli_instance.context()
    service = _service(cli_instance)
    try:
        resolution = getattr(service, action)(args.id, now=ctx.now, strict=True)
    except AccountabilityError as e:
        print_error(str(e))
        return 1

    contract = resolution.contract
    if args.json:
        print_json({"contract": contract.to_dict(), "xp_delta": resolution.xp_delta})
    else:
        print(f"Contract {contract.status}: {contract.id} (XP {resolution.xp_delta:+d})")
    return 0


def cmd_contract_complete(cli_instance, args: argparse.Namespace) -> int:
    """Complete a contract (active -> completed, bonus XP)."""
    return _transition(cli_instance, args, "complete")


def cmd_contract_fail(cli_instance, args: argparse.Namespace) -> int:
    """Fail a contract (active -> failed, stake forfeited)."""
    return _transition(cli_instance, args, "fail")


def cmd_contract_cancel(cli_instance, args: argparse.Namespace) -> int:
    """Cancel a contract (active -> cancelled, no XP)."""
    return _transition(cli_instance, args, "cancel")


def cmd_contract_list(cli_instance, args: argparse.Namespace) -> int:
    """List a user's contracts, newest first."""
    service = _service(cli_instance)
    try:
        if args.active:
            contracts = service.active_contracts(args.user)
        else:
            contracts = service.list_contracts(args.user)
    except AccountabilityError as e:
        print_error(str(e))
        return 1

    if args.json:
        print_json([c.to_dict() for c in contracts])
        return 0

    if not contracts:
        print(f"No contracts for {args.user}", file=sys.stderr)
        return 0

    by_status = {}
    for contract in contracts:
        by_status.setdefault(contract.status, []).append(contract)

    for status in ["active", "completed", "failed", "cancelled"]:
        if status in by_status:
            print(f"\n{status.upper()}:")
            for c in by_status[status]:
                print(f"  {c.id}  {c.staked_xp} XP  {c.target}  due {c.deadline}")
    return 0


def cmd_contract_sweep(cli_instance, args: argparse.Namespace) -> int:
    """Fail every active contract past its deadline."""
    ctx = cli_instance.context()
    summary = _service(cli_instance).sweep_expired(ctx.now, run_id=ctx.run_id)
    return report_summary(ctx, summary, args)
