# ebay_research/services/fetch_runner.py

"""Fetch counts and prices for catalog rows and write them back."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from rich.console import Console
from rich.progress import Progress

from ebay_research.analysis.balance import BalanceCalculator
from ebay_research.clients.ebay_client import EbayApiClient
from ebay_research.clients.exchange_rate import ExchangeRateClient
from ebay_research.clients.sheets_client import DATA_START_ROW, GoogleSheetsClient
from ebay_research.clients.url_parser import parse_search_url
from ebay_research.config.settings import Settings
from ebay_research.models.product import Product, RowUpdate
from ebay_research.models.snapshot import Measurement
from ebay_research.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("ebay_research.fetch")


def batch_row_range(
    batch_number: int, batch_size: int = Settings.BATCH_SIZE,
) -> tuple[int, int]:
    """First and last sheet row of a 1-based batch (row 1 is the header)."""
    if batch_number < 1 or batch_size < 1:
        raise ValueError("batch_number and batch_size must be >= 1")
    start = (batch_number - 1) * batch_size + DATA_START_ROW
    return start, start + batch_size - 1


@dataclass
class FetchSummary:
    """Outcome of one ``BatchFetcher.process`` run."""

    total: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    rows_written: int = 0
    write_failures: int = 0
    snapshots_saved: int = 0
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )


class BatchFetcher:
    """Drives the per-product fetch loop.

    Collaborators are injected so a run can be wired against fakes.  The
    store is optional: without one no history is kept.  Rows are pushed to
    the sheet every ``SHEET_FLUSH_EVERY`` successes and once at the end.
    """

    def __init__(
        self,
        ebay: EbayApiClient,
        sheets: GoogleSheetsClient,
        store: SnapshotStore | None = None,
        fx: ExchangeRateClient | None = None,
        console: Console | None = None,
    ) -> None:
        self.ebay = ebay
        self.sheets = sheets
        self.store = store
        self.fx = fx
        self.console = console or Console(stderr=True)
        self.flush_every: int = Settings.SHEET_FLUSH_EVERY

    def fetch_product(
        self, product: Product, with_price: bool = False,
    ) -> RowUpdate:
        """Query both searches of *product* and build its sheet update."""
        logger.debug("Processing: %s", product.product_name)
        active_params = parse_search_url(product.active_url)
        sold_params = parse_search_url(product.sold_url)

        active_count = self.ebay.get_active_count(active_params)
        sold_count = self.ebay.get_sold_count(sold_params)
        balance = BalanceCalculator.calculate(sold_count, active_count)

        avg_usd = min_usd = max_usd = None
        avg_jpy = None
        if with_price:
            stats = self.ebay.get_price_stats(sold_params)
            if stats is not None:
                avg_usd, min_usd, max_usd = stats.average, stats.min, stats.max
                if self.fx is not None:
                    avg_jpy = self.fx.convert_usd_to_jpy(avg_usd)

        logger.info(
            "%s: active %d / sold %d / balance %s / avg $%s",
            product.product_name, active_count, sold_count, balance, avg_usd,
        )
        return RowUpdate(
            row_number=product.row_number,
            product_name=product.product_name,
            measurement=Measurement(
                active_count=active_count,
                sold_count=sold_count,
                balance=balance,
                avg_price_usd=avg_usd,
                avg_price_jpy=avg_jpy,
                min_price_usd=min_usd,
                max_price_usd=max_usd,
            ),
        )

    def _save_snapshot(self, product: Product, update: RowUpdate) -> bool:
        if self.store is None:
            return False
        try:
            stored = self.store.sync_product(product)
            self.store.record(stored.id, update.measurement)  # type: ignore[arg-type]
            return True
        except Exception as exc:
            logger.warning(
                "Failed to save snapshot for %s: %s",
                product.product_name, exc, exc_info=True,
            )
            return False

    def _flush(
        self, updates: list[RowUpdate], with_price: bool,
        summary: FetchSummary,
    ) -> bool:
        """Push *updates* to the sheet; ``False`` leaves them pending."""
        if not updates:
            return True
        logger.info("Updating spreadsheet: %d rows", len(updates))
        try:
            if with_price:
                self.sheets.batch_update_all_data(updates)
            else:
                self.sheets.batch_update_counts(updates)
        except Exception as exc:
            logger.error(
                "Spreadsheet update of %d rows failed: %s",
                len(updates), exc, exc_info=True,
            )
            summary.write_failures += 1
            summary.errors.append(f"sheet update ({len(updates)} rows): {exc}")
            return False
        summary.rows_written += len(updates)
        return True

    def process(
        self,
        products: Sequence[Product],
        dry_run: bool = False,
        with_price: bool = False,
        save_history: bool = True,
    ) -> FetchSummary:
        """Fetch every product, one at a time, rate-limited by the client."""
        summary = FetchSummary(total=len(products))
        if not products:
            return summary

        keep_history = save_history and self.store is not None
        if keep_history:
            self.store.migrate()  # type: ignore[union-attr]

        pending: list[RowUpdate] = []
        flush_at = self.flush_every
        with Progress(console=self.console) as progress:
            task = progress.add_task("Fetching...", total=len(products))
            for product in products:
                progress.advance(task)
                if dry_run:
                    logger.debug("DRY RUN: would process %s", product.product_name)
                    summary.skipped += 1
                    continue

                try:
                    update = self.fetch_product(product, with_price=with_price)
                except Exception as exc:
                    logger.error(
                        "Failed to process %s: %s",
                        product.product_name, exc, exc_info=True,
                    )
                    summary.failed += 1
                    summary.errors.append(f"{product.product_name}: {exc}")
                    continue

                summary.processed += 1
                pending.append(update)
                if keep_history and self._save_snapshot(product, update):
                    summary.snapshots_saved += 1

                if len(pending) >= flush_at:
                    # Failed rows stay pending and go out with the next flush
                    if self._flush(pending, with_price, summary):
                        pending = []
                    flush_at = len(pending) + self.flush_every

        if not self._flush(pending, with_price, summary):
            logger.warning("%d rows were not written to the sheet", len(pending))
        logger.info(
            "Processing completed: %d processed, %d failed, %d skipped",
            summary.processed, summary.failed, summary.skipped,
        )
        return summary
