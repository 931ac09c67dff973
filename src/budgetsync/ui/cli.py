from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from budgetsync.adapters.declarations import load_declarations
from budgetsync.app import (
    ApplyOutcome,
    apply_declarations,
    destroy_notifications,
    refresh_state,
)
from budgetsync.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile budget notifications")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log individual subscriber changes",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply = subparsers.add_parser("apply", help="Converge notifications to a declaration file")
    apply.add_argument("path", type=Path, help="TOML file with [[notification]] tables")
    apply.add_argument(
        "--account-id",
        type=str,
        help="Account to use for declarations without one (defaults to config)",
    )
    apply.add_argument(
        "--no-prune",
        action="store_true",
        help="Keep tracked notifications that are no longer declared",
    )

    refresh = subparsers.add_parser("refresh", help="Re-read tracked notifications")
    refresh.add_argument(
        "--account-id",
        type=str,
        help="Account to use for tracked records without one (defaults to config)",
    )

    destroy = subparsers.add_parser("destroy", help="Delete every tracked notification")
    destroy.add_argument(
        "--account-id",
        type=str,
        help="Account to use for tracked records without one (defaults to config)",
    )

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        declarations = (
            load_declarations(parsed_args.path) if parsed_args.command == "apply" else []
        )
    except ConfigurationError:
        log.exception("Declaration error")
        sys.exit(2)

    try:
        if parsed_args.command == "apply":
            result = apply_declarations(
                declarations,
                default_account_id=parsed_args.account_id,
                prune=not parsed_args.no_prune,
            )
            for outcome in ApplyOutcome:
                names = result.names(outcome)
                if names:
                    log.info("%s: %s", outcome, ", ".join(names))
        elif parsed_args.command == "refresh":
            refreshed = refresh_state(default_account_id=parsed_args.account_id)
            if refreshed.removed:
                log.warning("Dropped from state: %s", ", ".join(refreshed.removed))
        elif parsed_args.command == "destroy":
            destroy_notifications(default_account_id=parsed_args.account_id)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
