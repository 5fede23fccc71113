# ebay_research/analysis/price_stats.py

"""Price distribution statistics over a sample of sold prices.

Everything here is a pure function of the sample.  Prices are validated
once by :func:`validate_prices` (called from :func:`basic_stats` and
:func:`analyze`); the lower-level helpers assume a clean sample and
return ``None`` or an empty list for an empty one.

Percentiles use the nearest-rank method: the index
``p / 100 * (n - 1)`` is rounded half-up and the element at that index
of the sorted sample is returned, so ``percentile(x, 50)`` can differ
from :func:`median`, which averages the two central values.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from ebay_research.analysis.rounding import round_half_up, round_index
from ebay_research.errors import InvalidPriceSampleError
from ebay_research.models.sold_item import SoldItem

logger = logging.getLogger("ebay_research.price_stats")

MAX_BUCKETS = 6
BAR_WIDTH = 20
BUY_FACTOR = 0.6

# (max span, step) breakpoints for the first bucketing pass
_STEP_BREAKPOINTS: tuple[tuple[float, int], ...] = (
    (200, 50),
    (500, 100),
    (1000, 200),
    (2000, 300),
)
_WIDE_STEP = 500

HIGH_DISPERSION_ADVICE = "High price dispersion; condition drives large price gaps"
STABLE_PRICING_ADVICE = "Stable pricing; market value is easy to read"
STEADY_DEMAND_ADVICE = "High sales volume; demand is steady"
THIN_MARKET_ADVICE = "Thin market; possibly a niche"
ADVICE_SEPARATOR = ". "

SWEET_SPOT_DESCRIPTION = "Suggested buy band (25th percentile to median)"


@dataclass(frozen=True)
class BasicStats:
    """Central tendency and spread of a price sample."""

    count: int
    average: float
    median: float
    min: float
    max: float
    std_dev: float


@dataclass(frozen=True)
class PriceRange:
    """Half-open price interval ``[min, max)`` used as a bucket bound."""

    min: float
    max: float

    @property
    def label(self) -> str:
        return f"${int(self.min)}-{int(self.max)}"


@dataclass(frozen=True)
class Bucket:
    """Sales counted in one price range."""

    label: str
    min: float
    max: float
    count: int
    percentage: float
    bar: str


@dataclass(frozen=True)
class SweetSpot:
    min: float
    max: float
    label: str
    description: str = SWEET_SPOT_DESCRIPTION


@dataclass(frozen=True)
class Percentiles:
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float


@dataclass(frozen=True)
class Recommendation:
    """Buy/sell targets derived from the sample."""

    target_buy_price: float
    target_sell_price: float
    expected_margin: float
    volume_zone: str | None
    advice: str


@dataclass(frozen=True)
class PriceAnalysis:
    """Full report for one price sample."""

    basic: BasicStats
    distribution: list[Bucket]
    volume_zone: Bucket | None
    sweet_spot: SweetSpot
    percentiles: Percentiles
    recommendation: Recommendation


# ── Boundary validation ──────────────────────────────────


def validate_prices(values: Iterable[object]) -> list[float]:
    """Return *values* as floats, failing fast on malformed entries.

    Raises:
        InvalidPriceSampleError: for a bool, non-numeric, NaN/infinite
            or non-positive value.
    """
    prices: list[float] = []
    for index, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(
            value, (int, float, Decimal)
        ):
            raise InvalidPriceSampleError(index, value, "not a number")
        price = float(value)
        if not math.isfinite(price):
            raise InvalidPriceSampleError(index, value, "not finite")
        if price <= 0:
            raise InvalidPriceSampleError(index, value, "must be positive")
        prices.append(price)
    return prices


# ── Central tendency / spread ────────────────────────────


def average(prices: Sequence[float]) -> float | None:
    if not prices:
        return None
    return round_half_up(sum(prices) / len(prices), 2)


def median(prices: Sequence[float]) -> float | None:
    """Middle element, or the mean of the two central ones (2 decimals)."""
    if not prices:
        return None
    ordered = sorted(prices)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[mid]
    return round_half_up((ordered[mid - 1] + ordered[mid]) / 2, 2)


def std_dev(prices: Sequence[float]) -> float:
    """Population standard deviation, 0.0 below two observations."""
    if len(prices) < 2:
        return 0.0
    mean = sum(prices) / len(prices)
    variance = sum((p - mean) ** 2 for p in prices) / len(prices)
    return round_half_up(math.sqrt(variance), 2)


def _nearest_rank(ordered: Sequence[float], pct: float) -> float:
    """Element of the non-empty sorted *ordered* at percentile *pct*."""
    return ordered[round_index(pct / 100 * (len(ordered) - 1))]


def percentile(prices: Sequence[float], pct: float) -> float | None:
    """Nearest-rank percentile (see module docstring)."""
    if not prices:
        return None
    return _nearest_rank(sorted(prices), pct)


def percentiles(prices: Sequence[float]) -> Percentiles | None:
    if not prices:
        return None
    ordered = sorted(prices)
    return Percentiles(
        p10=_nearest_rank(ordered, 10),
        p25=_nearest_rank(ordered, 25),
        p50=_nearest_rank(ordered, 50),
        p75=_nearest_rank(ordered, 75),
        p90=_nearest_rank(ordered, 90),
    )


# ── Bucketing ────────────────────────────────────────────


def step_for_span(span: float) -> int:
    """Bucket width for the first pass, from the fixed breakpoints."""
    for max_span, step in _STEP_BREAKPOINTS:
        if span <= max_span:
            return step
    return _WIDE_STEP


def _first_pass_ranges(
    min_price: float, max_price: float, step: int,
) -> list[PriceRange]:
    """Consecutive *step*-wide ranges from floor(min/step)*step to max.

    A zero-span sample sitting exactly on a boundary still gets one range.
    """
    ranges: list[PriceRange] = []
    current = math.floor(min_price / step) * step
    while current < max_price or not ranges:
        ranges.append(PriceRange(float(current), float(current + step)))
        current += step
    return ranges


def _capped_ranges(
    min_price: float, max_price: float,
) -> list[PriceRange]:
    """Second pass: step = ceil(span / 5) rounded up to 100, max 6 ranges."""
    span = max_price - min_price
    step = math.ceil(span / 5)
    step = max(math.ceil(step / 100) * 100, 100)

    ranges: list[PriceRange] = []
    current = math.floor(min_price / step) * step
    while current < max_price and len(ranges) < MAX_BUCKETS:
        ranges.append(PriceRange(float(current), float(current + step)))
        current += step
    return ranges


def auto_ranges(prices: Sequence[float]) -> list[PriceRange]:
    """Pick bucket ranges for *prices*.

    The first pass uses the breakpoint step; when that yields more than
    ``MAX_BUCKETS`` ranges the second pass recomputes a coarser step.
    """
    if not prices:
        return []
    min_price, max_price = min(prices), max(prices)
    ranges = _first_pass_ranges(
        min_price, max_price, step_for_span(max_price - min_price)
    )
    if len(ranges) > MAX_BUCKETS:
        logger.debug(
            "First pass produced %d buckets, recomputing step",
            len(ranges),
        )
        ranges = _capped_ranges(min_price, max_price)
    return ranges


def make_bar(percentage: float, width: int = BAR_WIDTH) -> str:
    filled = round_index(percentage / 100 * width)
    return "█" * filled + "░" * (width - filled)


def distribution(
    prices: Sequence[float], ranges: Sequence[PriceRange],
) -> list[Bucket]:
    """Count prices per range; the last range also includes its max."""
    if not prices or not ranges:
        return []

    total = len(prices)
    buckets: list[Bucket] = []
    for position, rng in enumerate(ranges):
        is_last = position == len(ranges) - 1
        count = sum(
            1 for p in prices
            if p >= rng.min and (p <= rng.max if is_last else p < rng.max)
        )
        percentage = round_half_up(count / total * 100, 1)
        buckets.append(Bucket(
            label=rng.label,
            min=rng.min,
            max=rng.max,
            count=count,
            percentage=percentage,
            bar=make_bar(percentage),
        ))
    return buckets


def volume_zone(buckets: Sequence[Bucket]) -> Bucket | None:
    """The bucket with most sales; the first one wins a tie."""
    if not buckets:
        return None
    return max(buckets, key=lambda b: b.count)


# ── Recommendation ───────────────────────────────────────


def sweet_spot(prices: Sequence[float]) -> SweetSpot | None:
    """25th-to-50th percentile band (both by nearest rank)."""
    if not prices:
        return None
    ordered = sorted(prices)
    p25 = _nearest_rank(ordered, 25)
    p50 = _nearest_rank(ordered, 50)
    return SweetSpot(
        min=round_half_up(p25, 2),
        max=round_half_up(p50, 2),
        label=f"${int(p25)}-{int(p50)}",
    )


def advice(prices: Sequence[float]) -> str:
    """Short market read from dispersion and sample size."""
    if not prices:
        return ""
    mean = sum(prices) / len(prices)
    cv = round_half_up(std_dev(prices) / mean * 100, 1)

    messages: list[str] = []
    if cv > 50:
        messages.append(HIGH_DISPERSION_ADVICE)
    elif cv < 20:
        messages.append(STABLE_PRICING_ADVICE)

    if len(prices) >= 50:
        messages.append(STEADY_DEMAND_ADVICE)
    elif len(prices) < 20:
        messages.append(THIN_MARKET_ADVICE)

    return ADVICE_SEPARATOR.join(messages)


def recommendation(
    prices: Sequence[float],
    buckets: Sequence[Bucket] | None = None,
) -> Recommendation | None:
    """Buy at 60% of the 25th percentile, sell at the 50th percentile."""
    if not prices:
        return None
    if buckets is None:
        buckets = distribution(prices, auto_ranges(prices))

    ordered = sorted(prices)
    sell = _nearest_rank(ordered, 50)
    buy = _nearest_rank(ordered, 25) * BUY_FACTOR
    zone = volume_zone(buckets)

    return Recommendation(
        target_buy_price=round_half_up(buy, 2),
        target_sell_price=sell,
        expected_margin=round_half_up((sell - buy) / buy * 100, 1),
        volume_zone=zone.label if zone else None,
        advice=advice(prices),
    )


# ── Entry points ─────────────────────────────────────────


def basic_stats(values: Iterable[object]) -> BasicStats | None:
    """Count/average/median/min/max/std-dev, or ``None`` when empty."""
    prices = validate_prices(values)
    mean = average(prices)
    mid = median(prices)
    if mean is None or mid is None:
        return None
    return BasicStats(
        count=len(prices),
        average=mean,
        median=mid,
        min=min(prices),
        max=max(prices),
        std_dev=std_dev(prices),
    )


def analyze(values: Iterable[object]) -> PriceAnalysis | None:
    """Full distribution report, or ``None`` for an empty sample."""
    prices = validate_prices(values)
    stats = basic_stats(prices)
    spot = sweet_spot(prices)
    pcts = percentiles(prices)
    buckets = distribution(prices, auto_ranges(prices))
    rec = recommendation(prices, buckets)
    if stats is None or spot is None or pcts is None or rec is None:
        return None

    return PriceAnalysis(
        basic=stats,
        distribution=buckets,
        volume_zone=volume_zone(buckets),
        sweet_spot=spot,
        percentiles=pcts,
        recommendation=rec,
    )


def stats_by_condition(
    items: Iterable[SoldItem],
) -> dict[str, BasicStats]:
    """Basic stats per condition code; empty partitions are dropped."""
    partitions: dict[str, list[float]] = {}
    for item in items:
        partitions.setdefault(item.condition, []).append(item.price)

    result: dict[str, BasicStats] = {}
    for condition, prices in partitions.items():
        stats = basic_stats(prices)
        if stats is not None:
            result[condition] = stats
    return result
