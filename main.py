# main.py

"""Entry point for the ebay_research command-line tool."""

import argparse
import logging
import sys
from collections.abc import Callable

from ebay_research.config.logging_config import setup_logging
from ebay_research.config.settings import Settings
from ebay_research.errors import EbayResearchError

logger = logging.getLogger("ebay_research.main")


def _add_fetch_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Walk the products without calling the API.",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=Settings.REQUEST_DELAY,
        help="Seconds between API calls (default: %(default)s).",
    )
    parser.add_argument(
        "--with-price",
        action="store_true",
        default=False,
        help="Also fetch sold price statistics.",
    )
    parser.add_argument(
        "--no-history",
        action="store_false",
        dest="save_history",
        default=True,
        help="Do not record snapshots in the history database.",
    )


def _add_price_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--category", default=None, help="eBay category id.")
    parser.add_argument(
        "--limit",
        type=int,
        default=Settings.PRICE_SAMPLE_LIMIT,
        help="Sold items to sample (default: %(default)s).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="ebay_research",
        description=(
            "eBay market research: listing balance, price bands and "
            "trends for a spreadsheet catalog."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Echo debug logs to the console.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("fetch-all", help="Fetch data for every product.")
    _add_fetch_options(p)

    p = sub.add_parser("fetch-batch", help="Fetch one batch of rows.")
    p.add_argument("batch_number", type=int)
    p.add_argument(
        "--batch-size", type=int, default=Settings.BATCH_SIZE,
        help="Rows per batch (default: %(default)s).",
    )
    _add_fetch_options(p)

    p = sub.add_parser("fetch-maker", help="Fetch products of one maker.")
    p.add_argument("maker")
    _add_fetch_options(p)

    p = sub.add_parser("analyze-price", help="Price band analysis.")
    p.add_argument("keyword")
    _add_price_options(p)

    p = sub.add_parser("analyze-row", help="Price analysis of a sheet row.")
    p.add_argument("row", type=int)
    p.add_argument("--limit", type=int, default=Settings.PRICE_SAMPLE_LIMIT)

    p = sub.add_parser("price-comparison", help="Prices by item condition.")
    p.add_argument("keyword")
    _add_price_options(p)

    sub.add_parser("test-connection", help="Check API connectivity.")
    sub.add_parser("show-stats", help="Catalog counts by category/maker.")

    p = sub.add_parser("sample-parse", help="Show parsed URLs of a row.")
    p.add_argument("--row", type=int, default=2)

    sub.add_parser("db-migrate", help="Create/upgrade the history database.")
    sub.add_parser("sync-to-db", help="Copy sheet products to the database.")

    p = sub.add_parser("trend", help="Balance trend of matching products.")
    p.add_argument("name")
    p.add_argument("--days", type=float, default=Settings.TREND_DAYS)
    p.add_argument(
        "--chart", action="store_true", default=False,
        help="Also export an HTML chart.",
    )

    p = sub.add_parser("price-changes", help="Significant price moves.")
    p.add_argument("--days", type=float, default=Settings.PRICE_CHANGE_DAYS)
    p.add_argument(
        "--threshold",
        type=float,
        default=Settings.PRICE_CHANGE_THRESHOLD * 100,
        help="Minimum move in percent (default: %(default)s).",
    )

    p = sub.add_parser("rising-products", help="Products trending up.")
    p.add_argument("--days", type=float, default=Settings.TREND_DAYS)
    p.add_argument("--limit", type=int, default=Settings.RISING_LIMIT)

    return parser


def _dispatch(args: argparse.Namespace) -> int:
    """Run the selected command and return its exit code."""
    from ebay_research.cli import runner

    fetch_kwargs = {}
    if args.command.startswith("fetch-"):
        fetch_kwargs = {
            "dry_run": args.dry_run,
            "delay": args.delay,
            "with_price": args.with_price,
            "save_history": args.save_history,
        }

    commands: dict[str, Callable[[], int]] = {
        "fetch-all": lambda: runner.run_fetch_all(**fetch_kwargs),
        "fetch-batch": lambda: runner.run_fetch_batch(
            args.batch_number, args.batch_size, **fetch_kwargs,
        ),
        "fetch-maker": lambda: runner.run_fetch_maker(
            args.maker, **fetch_kwargs,
        ),
        "analyze-price": lambda: runner.run_analyze_price(
            args.keyword, args.category, args.limit,
        ),
        "analyze-row": lambda: runner.run_analyze_row(args.row, args.limit),
        "price-comparison": lambda: runner.run_price_comparison(
            args.keyword, args.category, args.limit,
        ),
        "test-connection": runner.run_test_connection,
        "show-stats": runner.run_show_stats,
        "sample-parse": lambda: runner.run_sample_parse(args.row),
        "db-migrate": runner.run_db_migrate,
        "sync-to-db": runner.run_sync_to_db,
        "trend": lambda: runner.run_trend(args.name, args.days, args.chart),
        "price-changes": lambda: runner.run_price_changes(
            args.days, args.threshold,
        ),
        "rising-products": lambda: runner.run_rising_products(
            args.days, args.limit,
        ),
    }
    return commands[args.command]()


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = setup_logging(verbose=args.verbose)
    logger.info("ebay_research %s starting, log file: %s", args.command, log_file)

    try:
        return _dispatch(args)
    except EbayResearchError as exc:
        logger.error("%s failed: %s", args.command, exc, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception:
        logger.critical("Fatal error in %s", args.command, exc_info=True)
        raise


if __name__ == "__main__":
    sys.exit(main())
