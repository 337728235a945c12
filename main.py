# main.py

"""Entry point for the import_scout headless CLI."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("import_scout.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SOURCES)

    parser = argparse.ArgumentParser(
        prog="import_scout",
        description="Cross-platform import opportunity research.",
        epilog=f"Providers searched: {valid_ids}",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Product to research, e.g. 'wireless earbuds'.",
    )
    parser.add_argument(
        "-c",
        "--country",
        default=None,
        dest="country_code",
        help="Two-letter destination country code (e.g. US, DE).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--session",
        default=None,
        dest="session_id",
        help="Print stored artifacts for an existing session.",
    )
    parser.add_argument(
        "--no-store",
        action="store_true",
        default=False,
        dest="no_store",
        help="Do not persist session artifacts.",
    )
    return parser


def _run_search(args: argparse.Namespace) -> None:
    """Run extraction + sourcing for one query and exit."""
    from src.cli.runner import cli_search
    from src.storage.session_store import SessionStore

    store = None if args.no_store else SessionStore()
    try:
        exit_code = asyncio.run(
            cli_search(
                query=args.query,
                country_code=args.country_code,
                output_format=args.output_format,
                store=store,
            )
        )
    finally:
        if store is not None:
            store.close()
    sys.exit(exit_code)


def _run_show_session(session_id: str) -> None:
    """Dump a stored session and exit."""
    from src.cli.runner import show_session
    from src.storage.session_store import SessionStore

    store = SessionStore()
    try:
        exit_code = show_session(session_id, store)
    finally:
        store.close()
    sys.exit(exit_code)


def main() -> None:
    """Route to session lookup or a new search."""
    log_file = setup_logging()
    logger.info("import_scout starting — log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.session_id:
        _run_show_session(args.session_id)
    elif args.query is None:
        parser.print_help()
        sys.exit(2)
    else:
        _run_search(args)


if __name__ == "__main__":
    main()
