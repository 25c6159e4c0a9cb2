# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from reabridge.adapters.events import EventFileError
from reabridge.app import list_pending, recover_mappings, replay_event_file
from reabridge.config import ConfigurationError, configure_logging
from reabridge.domain.model import ListingKind

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_USAGE_ERROR = 2


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="reabridge",
        description="Mirror local listings into a ValueFlows graph",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay = subparsers.add_parser("replay", help="Dispatch every event of a JSON-lines file")
    replay.add_argument("file", type=Path, help="Path to the JSON-lines event file")

    pending = subparsers.add_parser("pending", help="List listings waiting for prerequisites")
    pending.add_argument(
        "--kind",
        type=ListingKind,
        choices=list(ListingKind),
        help="Only list requests or offers",
    )

    subparsers.add_parser(
        "recover",
        help="Rebuild the mapping table from annotations in the external graph",
    )

    return parser.parse_args(list(argv))


def _run_replay(args: argparse.Namespace) -> None:
    summary = replay_event_file(args.file)
    print(f"events: {summary.events}")
    for status, count in sorted(summary.listings.items()):
        print(f"listings {status}: {count}")
    for status, count in sorted(summary.prerequisites.items()):
        print(f"prerequisites {status}: {count}")
    print(f"mapped on retry: {summary.retried_mapped}")
    for failure in summary.failures:
        print(f"failed: {failure}")


def _run_pending(args: argparse.Namespace) -> None:
    listings = list_pending(args.kind)
    for listing in listings:
        print(f"{listing.listing_kind}\t{listing.local_id}\t{listing.title}")
    print(f"{len(listings)} pending")


def _run_recover(_args: argparse.Namespace) -> None:
    report = recover_mappings()
    print(f"restored: {len(report.restored)}")
    print(f"already mapped: {report.already_mapped}")
    print(f"conflicts: {len(report.conflicts)}")
    print(f"incomplete proposals: {report.incomplete}")
    print(f"ignored annotations: {report.ignored}")
    if report.unavailable:
        print(f"unavailable reads: {', '.join(report.unavailable)}")
    for retry in report.retries:
        if retry.attempted:
            print(f"retried {retry.listing_kind}: mapped={len(retry.mapped)}")


COMMANDS = {
    "replay": _run_replay,
    "pending": _run_pending,
    "recover": _run_recover,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        COMMANDS[parsed_args.command](parsed_args)
    except (ConfigurationError, EventFileError, FileNotFoundError) as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(EXIT_USAGE_ERROR)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(EXIT_RUNTIME_ERROR)
    sys.exit(EXIT_OK)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
