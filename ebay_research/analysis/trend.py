# ebay_research/analysis/trend.py

"""Balance/price trends over a product's snapshot history."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from ebay_research.analysis.change import percent_change
from ebay_research.analysis.rounding import round_half_up
from ebay_research.errors import UnknownProductError
from ebay_research.models.product import Product
from ebay_research.models.snapshot import PriceChange, Snapshot
from ebay_research.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("ebay_research.trend")

RISING_THRESHOLD = 10.0    # percent
FALLING_THRESHOLD = -10.0  # percent


class Trend(Enum):
    """Closed set of trend directions."""

    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"
    UNKNOWN = "unknown"


TREND_ADVICE: dict[Trend, str] = {
    Trend.RISING: "Demand surging, consider buying.",
    Trend.FALLING: "Demand declining, wait and watch.",
    Trend.STABLE: "Stable demand, keep monitoring.",
    Trend.UNKNOWN: "Insufficient data to judge.",
}

TREND_LABELS: dict[Trend, str] = {
    Trend.RISING: "Rising",
    Trend.FALLING: "Falling",
    Trend.STABLE: "Flat",
    Trend.UNKNOWN: "Undetermined",
}

NO_HISTORY_MESSAGE = "No history data in the selected period"


@dataclass(frozen=True)
class MetricChange:
    """Oldest/newest value of one metric and the percent move between them."""

    oldest: float | None
    newest: float | None
    change_percent: float | None


@dataclass(frozen=True)
class InsufficientData:
    """No snapshot fell inside the analysis window."""

    product_name: str
    period_days: float
    message: str = NO_HISTORY_MESSAGE


@dataclass(frozen=True)
class TrendAnalysis:
    product_name: str
    period_days: float
    data_points: int
    balance: MetricChange
    price: MetricChange
    trend: Trend
    advice: str
    snapshots: list[Snapshot] = field(default_factory=list)


@dataclass(frozen=True)
class RisingProduct:
    product: Product
    balance_change: float
    current_balance: float | None


@dataclass(frozen=True)
class PriceChangeReport:
    period_days: float
    threshold_percent: int
    rising: list[PriceChange]
    falling: list[PriceChange]
    total_count: int


def classify_trend(change_percent: float | None) -> Trend:
    """Rising at +10% or more, falling at -10% or less, else stable."""
    if change_percent is None:
        return Trend.UNKNOWN
    if change_percent >= RISING_THRESHOLD:
        return Trend.RISING
    if change_percent <= FALLING_THRESHOLD:
        return Trend.FALLING
    return Trend.STABLE


def _rounded(value: float | None) -> float | None:
    return round_half_up(value, 2) if value is not None else None


def analyze_snapshots(
    product_name: str,
    snapshots: Sequence[Snapshot],
    days: float,
) -> TrendAnalysis | InsufficientData:
    """Trend over *snapshots* (already windowed, oldest first)."""
    if not snapshots:
        return InsufficientData(product_name=product_name, period_days=days)

    oldest, newest = snapshots[0], snapshots[-1]
    balance_change = percent_change(oldest.balance, newest.balance)
    price_change = percent_change(oldest.avg_price_usd, newest.avg_price_usd)
    trend = classify_trend(balance_change)

    return TrendAnalysis(
        product_name=product_name,
        period_days=days,
        data_points=len(snapshots),
        balance=MetricChange(
            _rounded(oldest.balance),
            _rounded(newest.balance),
            balance_change,
        ),
        price=MetricChange(
            _rounded(oldest.avg_price_usd),
            _rounded(newest.avg_price_usd),
            price_change,
        ),
        trend=trend,
        advice=TREND_ADVICE[trend],
        snapshots=list(snapshots),
    )


class TrendAnalyzer:
    """Reads the snapshot store and derives trends and change reports."""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def analyze_trend(
        self, product: Product, days: float = 30,
    ) -> TrendAnalysis | InsufficientData:
        """Analyse one product over the last *days* days.

        A product without an id is looked up by sheet row; one never synced
        has no history.

        Raises:
            UnknownProductError: if *product* carries an id the store lacks.
        """
        product_id = product.id
        if product_id is not None and self.store.get_product(product_id) is None:
            raise UnknownProductError(product_id)
        if product_id is None:
            stored = self.store.get_product_by_row(product.row_number)
            product_id = stored.id if stored else None
        if product_id is None:
            return InsufficientData(
                product_name=product.product_name, period_days=days,
            )

        snapshots = self.store.snapshots_for(product_id, days=days)
        return analyze_snapshots(product.product_name, snapshots, days)

    def rising_products(
        self, days: float = 30, limit: int = 20,
    ) -> list[RisingProduct]:
        """Rising products across the catalog, biggest balance gain first."""
        results: list[RisingProduct] = []
        for product in self.store.all_products():
            analysis = self.analyze_trend(product, days=days)
            if not isinstance(analysis, TrendAnalysis):
                continue
            if analysis.trend is not Trend.RISING:
                continue
            change = analysis.balance.change_percent
            if change is None:
                continue
            results.append(RisingProduct(
                product=product,
                balance_change=change,
                current_balance=analysis.balance.newest,
            ))

        results.sort(key=lambda r: r.balance_change, reverse=True)
        logger.info(
            "%d rising products over %s days", len(results), days,
        )
        return results[:limit]

    def price_change_report(
        self, days: float = 7, threshold: float = 0.1,
    ) -> PriceChangeReport:
        """Significant average-price moves split into rising and falling."""
        changes = self.store.significant_changes(
            threshold=threshold, days=days,
        )
        return PriceChangeReport(
            period_days=days,
            threshold_percent=int(round_half_up(threshold * 100, 0)),
            rising=[c for c in changes if c.direction == "up"],
            falling=[c for c in changes if c.direction == "down"],
            total_count=len(changes),
        )
