from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from rostersync.app import assign_role, replay_events, run_initial_sync, serve, sweep_references
from rostersync.config import configure_logging, get_api_config
from rostersync.domain.errors import InvalidArgument
from rostersync.domain.model import RoleAction, RoleKind

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Keep guild membership and league rosters in sync")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sync", help="Store all verified guild members and project their roles")
    subparsers.add_parser("sweep", help="Repair stale profile -> identity links")

    assign = subparsers.add_parser("assign-role", help="Grant or revoke a league role")
    assign.add_argument("discord_id", type=str, help="Discord user id")
    assign.add_argument(
        "role",
        type=str,
        choices=[kind.value for kind in RoleKind],
        help="Role to change",
    )
    assign.add_argument(
        "action",
        type=str,
        choices=[action.value for action in RoleAction],
        help="Whether to add or remove the role",
    )

    replay = subparsers.add_parser("replay", help="Replay recorded gateway dispatches (JSONL)")
    replay.add_argument("path", type=Path, help="File with one gateway dispatch per line")

    serve_parser = subparsers.add_parser("serve", help="Run the role management HTTP API")
    serve_parser.add_argument("--host", type=str, help="Bind address (defaults to config)")
    serve_parser.add_argument("--port", type=int, help="Port (defaults to $PORT or 3001)")

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=getattr(logging, parsed_args.log_level))

    try:
        if parsed_args.command == "sync":
            result = run_initial_sync()
            if result.failures:
                log.warning("Initial sync failed for: %s", ", ".join(sorted(result.failures)))
        elif parsed_args.command == "sweep":
            sweep_references()
        elif parsed_args.command == "assign-role":
            change = assign_role(parsed_args.discord_id, parsed_args.role, parsed_args.action)
            log.info("Role %s %s for %s", change.kind, change.action, change.external_id)
        elif parsed_args.command == "replay":
            report = replay_events(parsed_args.path)
            if report.failed:
                sys.exit(1)
        elif parsed_args.command == "serve":
            api = get_api_config()
            serve(host=parsed_args.host or api.host, port=parsed_args.port or api.port)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except InvalidArgument:
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
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
