# ebay_research/models/snapshot.py

"""Measurement and snapshot models for the append-only history log."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Measurement:
    """Counts and prices gathered for one product in one fetch pass."""

    active_count: int | None = None
    sold_count: int | None = None
    balance: float | None = None
    avg_price_usd: float | None = None
    avg_price_jpy: int | None = None
    min_price_usd: float | None = None
    max_price_usd: float | None = None


@dataclass(frozen=True)
class Snapshot:
    """An immutable, timestamped measurement owned by one product."""

    id: int
    product_id: int
    recorded_at: datetime
    active_count: int | None = None
    sold_count: int | None = None
    balance: float | None = None
    avg_price_usd: float | None = None
    avg_price_jpy: int | None = None
    min_price_usd: float | None = None
    max_price_usd: float | None = None


@dataclass(frozen=True)
class SnapshotDiff:
    """Change between two snapshots of the same product."""

    balance_change: float | None   # percent, 1 decimal
    price_change: float | None     # percent, 1 decimal
    active_count_change: int
    sold_count_change: int


@dataclass(frozen=True)
class PriceChange:
    """A significant average-price move inside a time window."""

    product_id: int
    product_name: str
    old_price: float
    new_price: float
    change_percent: float
    direction: str  # "up" or "down"
