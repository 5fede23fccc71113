# ebay_research/cli/runner.py

"""Command implementations behind ``main.py``; each returns an exit code."""

import logging
from collections import Counter
from pathlib import Path

from rich.console import Console
from rich.progress import Progress
from rich.table import Table

from ebay_research.analysis.price_stats import PriceAnalysis
from ebay_research.analysis.trend import TrendAnalysis, TrendAnalyzer
from ebay_research.clients.ebay_client import EbayApiClient
from ebay_research.clients.exchange_rate import ExchangeRateClient
from ebay_research.clients.sheets_client import GoogleSheetsClient
from ebay_research.clients.url_parser import parse_search_url
from ebay_research.config.settings import Settings
from ebay_research.errors import ConfigurationError
from ebay_research.models.product import Product
from ebay_research.output import reports
from ebay_research.services.fetch_runner import BatchFetcher, batch_row_range
from ebay_research.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("ebay_research.cli")

# Reports go to stdout, status lines to stderr
_out = Console()
_err = Console(stderr=True)

CONDITION_LABELS: dict[str, str] = {
    "new": "New",
    "open_box": "Open box",
    "refurbished": "Refurbished",
    "used": "Used",
    "used_very_good": "Used (very good)",
    "used_good": "Used (good)",
    "used_acceptable": "Used (acceptable)",
    "for_parts": "For parts",
    "unknown": "Unknown",
}


# ── Collaborator factories ───────────────────────────────


def ebay_client(delay: float | None = None) -> EbayApiClient:
    if not Settings.EBAY_APP_ID:
        raise ConfigurationError("EBAY_APP_ID is not set")
    client = EbayApiClient(app_id=Settings.EBAY_APP_ID)
    if delay is not None:
        client.set_delay(delay)
    return client


def sheets_client() -> GoogleSheetsClient:
    if not Settings.GOOGLE_SPREADSHEET_ID:
        raise ConfigurationError("GOOGLE_SPREADSHEET_ID is not set")
    if not Path(Settings.GOOGLE_CREDENTIALS_PATH).exists():
        raise ConfigurationError(
            f"Credentials file not found: {Settings.GOOGLE_CREDENTIALS_PATH}"
        )
    return GoogleSheetsClient()


def fx_client() -> ExchangeRateClient:
    return ExchangeRateClient()


def snapshot_store() -> SnapshotStore:
    return SnapshotStore()


def _to_jpy(fx: ExchangeRateClient, usd: float) -> str:
    jpy = fx.convert_usd_to_jpy(usd)
    return f"¥{jpy:,}" if jpy is not None else "¥N/A"


# ── Fetch commands ───────────────────────────────────────


def _run_fetch(
    products: list[Product],
    dry_run: bool,
    delay: float | None,
    with_price: bool,
    save_history: bool,
) -> int:
    if not products:
        _err.print("[yellow]No products to process.[/yellow]")
        return 0

    store = snapshot_store() if save_history and not dry_run else None
    fetcher = BatchFetcher(
        ebay=ebay_client(delay),
        sheets=sheets_client(),
        store=store,
        fx=fx_client() if with_price else None,
        console=_err,
    )
    try:
        summary = fetcher.process(
            products,
            dry_run=dry_run,
            with_price=with_price,
            save_history=save_history,
        )
    finally:
        if store is not None:
            store.close()

    _err.print(
        f"[green]✓ {summary.processed} processed[/green], "
        f"{summary.failed} failed, {summary.skipped} skipped, "
        f"{summary.rows_written} rows written, "
        f"{summary.snapshots_saved} snapshots saved"
    )
    if summary.write_failures:
        _err.print(
            f"[red]✗ {summary.write_failures} spreadsheet update(s) failed,"
            " see the log for details[/red]"
        )
        return 1
    return 1 if summary.failed and not summary.processed else 0


def run_fetch_all(
    dry_run: bool = False,
    delay: float | None = None,
    with_price: bool = False,
    save_history: bool = True,
) -> int:
    products = sheets_client().read_all_products()
    logger.info("Total products: %d", len(products))
    return _run_fetch(products, dry_run, delay, with_price, save_history)


def run_fetch_batch(
    batch_number: int,
    batch_size: int = Settings.BATCH_SIZE,
    dry_run: bool = False,
    delay: float | None = None,
    with_price: bool = False,
    save_history: bool = True,
) -> int:
    start_row, end_row = batch_row_range(batch_number, batch_size)
    _err.print(
        f"[bold]Batch {batch_number}:[/bold] rows {start_row} to {end_row}"
    )
    products = sheets_client().read_products(start_row, end_row)
    logger.info("Products in batch %d: %d", batch_number, len(products))
    return _run_fetch(products, dry_run, delay, with_price, save_history)


def run_fetch_maker(
    maker: str,
    dry_run: bool = False,
    delay: float | None = None,
    with_price: bool = False,
    save_history: bool = True,
) -> int:
    products = sheets_client().read_products_by_maker(maker)
    logger.info("Products for %s: %d", maker, len(products))
    return _run_fetch(products, dry_run, delay, with_price, save_history)


# ── Price analysis ───────────────────────────────────────


def _print_price_analysis(
    keyword: str, analysis: PriceAnalysis, fx: ExchangeRateClient,
) -> None:
    basic = analysis.basic
    pct = analysis.percentiles
    rec = analysis.recommendation

    _out.print(f"[bold cyan]Price analysis: {keyword}[/bold cyan]")
    _out.print(
        f"\n[bold]Basic stats[/bold]\n"
        f"   Sold:    {basic.count} (last {Settings.SOLD_ITEMS_DAYS} days)\n"
        f"   Average: ${basic.average} ({_to_jpy(fx, basic.average)})\n"
        f"   Median:  ${basic.median} ({_to_jpy(fx, basic.median)})\n"
        f"   Min:     ${basic.min}\n"
        f"   Max:     ${basic.max}\n"
        f"   Std dev: ${basic.std_dev}"
    )
    _out.print(
        f"\n[bold]Percentiles[/bold]\n"
        f"   10%: ${pct.p10}  25%: ${pct.p25}  50%: ${pct.p50}  "
        f"75%: ${pct.p75}  90%: ${pct.p90}"
    )

    table = Table(title="Price distribution", title_style="bold cyan")
    table.add_column("Range")
    table.add_column("Share")
    table.add_column("Count", justify="right")
    table.add_column("%", justify="right", style="green")
    for bucket in analysis.distribution:
        table.add_row(
            bucket.label, bucket.bar, str(bucket.count), f"{bucket.percentage}",
        )
    _out.print(table)

    _out.print(
        f"   Volume zone: {rec.volume_zone or 'N/A'}\n"
        f"   Sweet spot:  {analysis.sweet_spot.label} "
        f"({analysis.sweet_spot.description})"
    )
    _out.print(
        f"\n[bold]Buying guide[/bold]\n"
        f"   Target buy:  ${rec.target_buy_price} "
        f"({_to_jpy(fx, rec.target_buy_price)})\n"
        f"   Target sell: ${rec.target_sell_price} "
        f"({_to_jpy(fx, rec.target_sell_price)})\n"
        f"   Margin:      {rec.expected_margin}%"
    )
    if rec.advice:
        _out.print(f"   Advice:      {rec.advice}")


def run_analyze_price(
    keyword: str,
    category_id: str | None = None,
    limit: int = Settings.PRICE_SAMPLE_LIMIT,
) -> int:
    analysis = ebay_client().get_price_analysis(
        keyword, category_id=category_id, limit=limit,
    )
    if analysis is None:
        _err.print("[red]No sold data found.[/red]")
        return 1
    _print_price_analysis(keyword, analysis, fx_client())
    return 0


def run_analyze_row(
    row_number: int, limit: int = Settings.PRICE_SAMPLE_LIMIT,
) -> int:
    products = sheets_client().read_products(row_number, row_number)
    if not products:
        _err.print(f"[red]Row {row_number} not found.[/red]")
        return 1

    product = products[0]
    _out.print(
        f"Product:  {product.product_name}\n"
        f"Maker:    {product.maker}\n"
        f"Category: {product.category}\n"
    )
    params = parse_search_url(product.sold_url)
    if params is None or not params.keyword:
        _err.print("[red]Could not extract a search keyword.[/red]")
        return 1
    return run_analyze_price(
        params.keyword, category_id=params.category_id, limit=limit,
    )


def run_price_comparison(
    keyword: str,
    category_id: str | None = None,
    limit: int = Settings.PRICE_SAMPLE_LIMIT,
) -> int:
    by_condition = ebay_client().get_price_by_condition(
        keyword, category_id=category_id, limit=limit,
    )
    if not by_condition:
        _err.print("[red]No sold data found.[/red]")
        return 1

    table = Table(
        title=f"Price by condition: {keyword}",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Condition")
    table.add_column("Count", justify="right")
    table.add_column("Average", justify="right", style="green")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Median", justify="right")

    ordered = sorted(
        by_condition.items(), key=lambda kv: kv[1].average, reverse=True,
    )
    for condition, stats in ordered:
        table.add_row(
            CONDITION_LABELS.get(condition, condition),
            str(stats.count),
            f"${stats.average:,.2f}",
            f"${stats.min:,.2f}",
            f"${stats.max:,.2f}",
            f"${stats.median:,.2f}",
        )
    _out.print(table)
    return 0


# ── Diagnostics ──────────────────────────────────────────


def run_test_connection() -> int:
    """Probe the sheet, the Finding API and the FX endpoint."""
    failures = 0

    _out.print("[bold]Google Sheets API[/bold]")
    try:
        total = sheets_client().total_rows()
        _out.print(f"[green]✓ Connected. Total rows: {total}[/green]")
    except Exception as exc:
        logger.error("Sheets connection failed: %s", exc, exc_info=True)
        _out.print(f"[red]✗ Failed: {exc}[/red]")
        failures += 1

    _out.print("[bold]eBay Finding API[/bold]")
    try:
        count = ebay_client().get_active_listing_count("canon camera")
        _out.print(f"[green]✓ Connected. Test search: {count} items[/green]")
    except Exception as exc:
        logger.error("eBay connection failed: %s", exc, exc_info=True)
        _out.print(f"[red]✗ Failed: {exc}[/red]")
        failures += 1

    _out.print("[bold]Exchange rate API[/bold]")
    info = fx_client().current_rate_info()
    if info.rate is None:
        _out.print("[red]✗ Failed to fetch USD/JPY[/red]")
        failures += 1
    else:
        _out.print(
            f"[green]✓ USD/JPY: {info.rate} (source: {info.source})[/green]"
        )
    return 1 if failures else 0


def run_show_stats() -> int:
    products = sheets_client().read_all_products()
    _out.print(f"[bold]Total products:[/bold] {len(products)}")

    by_category = Counter(p.category for p in products)
    table = Table(title="By category", title_style="bold cyan")
    table.add_column("Category")
    table.add_column("Products", justify="right")
    for category, count in by_category.items():
        table.add_row(category or "-", str(count))
    _out.print(table)

    by_maker = Counter(p.maker for p in products)
    table = Table(title="By maker (top 10)", title_style="bold cyan")
    table.add_column("Maker")
    table.add_column("Products", justify="right")
    for maker, count in by_maker.most_common(10):
        table.add_row(maker or "-", str(count))
    _out.print(table)
    return 0


def run_sample_parse(row_number: int = 2) -> int:
    products = sheets_client().read_products(row_number, row_number)
    if not products:
        _err.print(f"[red]Row {row_number} not found.[/red]")
        return 1

    product = products[0]
    _out.print(
        f"No:       {product.no}\n"
        f"Category: {product.category}\n"
        f"Maker:    {product.maker}\n"
        f"Name:     {product.product_name}"
    )
    for label, url in (
        ("Active URL", product.active_url),
        ("Sold URL", product.sold_url),
    ):
        _out.print(f"\n[bold]{label}:[/bold] {url}", markup=True)
        _out.print(f"   → {parse_search_url(url)}", markup=False)
    return 0


# ── Snapshot history ─────────────────────────────────────


def run_db_migrate() -> int:
    store = snapshot_store()
    try:
        version = store.migrate()
    finally:
        store.close()
    _out.print(f"[green]✓ Migration completed. Schema version: {version}[/green]")
    return 0


def run_sync_to_db() -> int:
    products = sheets_client().read_all_products()
    store = snapshot_store()
    try:
        with Progress(console=_err) as progress:
            task = progress.add_task("Syncing...", total=len(products))
            for product in products:
                store.sync_product(product)
                progress.advance(task)
    finally:
        store.close()
    _out.print(f"[green]✓ Synced {len(products)} products[/green]")
    return 0


def run_trend(
    name: str, days: float = Settings.TREND_DAYS, chart: bool = False,
) -> int:
    from ebay_research.output.chart_exporter import export_trend_chart

    store = snapshot_store()
    try:
        products = store.search_by_name(name)
        if not products:
            _err.print(f"[red]No product matching '{name}'.[/red]")
            _err.print("[dim]Hint: run sync-to-db first.[/dim]")
            return 1

        analyzer = TrendAnalyzer(store)
        for product in products:
            analysis = analyzer.analyze_trend(product, days=days)
            _out.print(reports.render_trend(analysis), markup=False)
            if chart and isinstance(analysis, TrendAnalysis):
                path = export_trend_chart(analysis)
                if path is not None:
                    _err.print(f"[dim]Chart saved → {path}[/dim]")
    finally:
        store.close()
    return 0


def run_price_changes(
    days: float = Settings.PRICE_CHANGE_DAYS,
    threshold_percent: float = Settings.PRICE_CHANGE_THRESHOLD * 100,
) -> int:
    store = snapshot_store()
    try:
        report = TrendAnalyzer(store).price_change_report(
            days=days, threshold=threshold_percent / 100.0,
        )
    finally:
        store.close()
    _out.print(reports.render_price_changes(report), markup=False)
    return 0


def run_rising_products(
    days: float = Settings.TREND_DAYS, limit: int = Settings.RISING_LIMIT,
) -> int:
    store = snapshot_store()
    try:
        items = TrendAnalyzer(store).rising_products(days=days, limit=limit)
    finally:
        store.close()
    _out.print(reports.render_rising(items, days), markup=False)
    return 0
