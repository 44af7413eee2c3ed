# main.py

"""Entry point for the pricewatch upsert pipeline CLI."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pricewatch.config.logging_config import setup_logging

logger = logging.getLogger("pricewatch.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pricewatch",
        description="Reconcile scraped product prices into the price store.",
    )
    parser.add_argument(
        "--db",
        default=None,
        type=Path,
        dest="db_path",
        help="SQLite database path (default: data/pricewatch.db).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    upsert = commands.add_parser(
        "upsert",
        help="Upsert scraped products from a JSON result file.",
    )
    upsert.add_argument(
        "file",
        type=Path,
        help="JSON file containing a list of scraped products.",
    )

    history = commands.add_parser(
        "history",
        help="Show the stored price history of one product.",
    )
    history.add_argument("product_id", help="Product id to look up.")
    return parser


def _run_upsert(args: argparse.Namespace) -> None:
    """Upsert a scrape result file and exit."""
    from pricewatch.cli.runner import run_upsert_file

    exit_code = asyncio.run(
        run_upsert_file(args.file, db_path=args.db_path)
    )
    sys.exit(exit_code)


def _run_history(args: argparse.Namespace) -> None:
    """Print a product's price history and exit."""
    from pricewatch.cli.runner import run_show_history

    exit_code = run_show_history(args.product_id, db_path=args.db_path)
    sys.exit(exit_code)


def main() -> None:
    """Route to the requested sub-command."""
    log_file = setup_logging()
    logger.info("pricewatch starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.command == "upsert":
        _run_upsert(args)
    else:
        _run_history(args)


if __name__ == "__main__":
    main()
