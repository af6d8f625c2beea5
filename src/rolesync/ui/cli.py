from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from rolesync.app import (
    add_criteria,
    link_wallet,
    list_criteria,
    reconcile_once,
    serve,
    set_grant_policy,
)
from rolesync.config import configure_logging, parse_log_level
from rolesync.domain.model import GrantPolicy

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from rolesync.domain.model import CommunityConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile community roles with wallet holdings")
    parser.add_argument(
        "--log-level",
        type=parse_log_level,
        default=None,
        help="Logging level name, e.g. DEBUG or WARNING (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_cmd = subparsers.add_parser("serve", help="Reconcile periodically until interrupted")
    serve_cmd.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds to wait between passes (defaults to config)",
    )
    serve_cmd.add_argument(
        "--max-passes",
        type=int,
        help="Stop after this many passes",
    )

    subparsers.add_parser("reconcile", help="Run a single reconciliation pass")

    criteria = subparsers.add_parser("criteria", help="Holding criteria management")
    criteria_sub = criteria.add_subparsers(dest="criteria_command", required=True)
    criteria_add = criteria_sub.add_parser("add", help="Add criteria for a role")
    criteria_add.add_argument("--community", type=str, required=True, help="Community (guild) id")
    criteria_add.add_argument("--grant", type=str, required=True, help="Role id to grant")
    criteria_add.add_argument("--collection", type=str, help="NFT collection name")
    criteria_add.add_argument("--count", type=int, help="Inscriptions of --collection required")
    criteria_add.add_argument("--token", type=str, help="DRC-20 ticker")
    criteria_add.add_argument("--token-amount", type=str, help="Minimum --token balance")
    criteria_add.add_argument("--dune", type=str, help="Dune id")
    criteria_add.add_argument("--dune-amount", type=str, help="Minimum --dune balance")
    criteria_add.add_argument(
        "--replace",
        action="store_true",
        help="Replace earlier criteria for the same role instead of appending",
    )

    criteria_list = criteria_sub.add_parser("list", help="Show stored criteria")
    criteria_list.add_argument("--community", type=str, required=True, help="Community (guild) id")

    criteria_policy = criteria_sub.add_parser(
        "policy", help="Choose how several criteria for one role combine"
    )
    criteria_policy.add_argument(
        "--community", type=str, required=True, help="Community (guild) id"
    )
    criteria_policy.add_argument(
        "--mode",
        choices=[policy.value for policy in GrantPolicy],
        required=True,
        help="'any' grants when one criterion is met, 'all' when every criterion is met",
    )

    wallet = subparsers.add_parser("wallet", help="Wallet link management")
    wallet_sub = wallet.add_subparsers(dest="wallet_command", required=True)
    wallet_link = wallet_sub.add_parser("link", help="Link a wallet address to a member")
    wallet_link.add_argument("--member", type=str, required=True, help="Member (user) id")
    wallet_link.add_argument("--address", type=str, required=True, help="Wallet address")
    wallet_link.add_argument(
        "--provider",
        type=str,
        default="unknown",
        help="Wallet provider label (default: %(default)s)",
    )

    parsed = parser.parse_args(list(argv))
    _validate_args(parsed)
    return parsed


def _validate_args(args: argparse.Namespace) -> None:
    if args.command == "serve":
        if args.interval is not None and args.interval <= 0:
            raise ValueError("Interval must be positive")
        if args.max_passes is not None and args.max_passes <= 0:
            raise ValueError("Max passes must be positive")


def _format_config(config: CommunityConfig) -> str:
    lines = [f"community {config.community_id} (policy: {config.grant_policy})"]
    lines.extend(f"  {index}. {c.describe()}" for index, c in enumerate(config.criteria, start=1))
    if not config.criteria:
        lines.append("  (no criteria)")
    return "\n".join(lines)


def _run_command(args: argparse.Namespace) -> None:
    if args.command == "serve":
        passes = serve(interval_seconds=args.interval, max_passes=args.max_passes)
        log.info("Service stopped after %s pass(es)", passes)
    elif args.command == "reconcile":
        result = reconcile_once()
        log.info("Reconciliation finished: %s", result.summary())
    elif args.command == "criteria" and args.criteria_command == "add":
        config = add_criteria(
            args.community,
            args.grant,
            collection_name=args.collection,
            required_count=args.count,
            ticker=args.token,
            token_amount=args.token_amount,
            dune_id=args.dune,
            dune_amount=args.dune_amount,
            replace=args.replace,
        )
        log.info("Community %s now has %s criteria", config.community_id, len(config.criteria))
    elif args.command == "criteria" and args.criteria_command == "list":
        config = list_criteria(args.community)
        if config is None:
            raise ValueError(f"No criteria stored for community {args.community}")
        print(_format_config(config))  # noqa: T201
    elif args.command == "criteria" and args.criteria_command == "policy":
        set_grant_policy(args.community, args.mode)
    elif args.command == "wallet" and args.wallet_command == "link":
        link_wallet(args.member, args.address, provider=args.provider)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    if parsed_args.log_level is not None:
        configure_logging(level=parsed_args.log_level, force=True)

    try:
        _run_command(parsed_args)
    except ValueError:
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
