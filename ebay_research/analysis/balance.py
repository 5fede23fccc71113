# ebay_research/analysis/balance.py

"""Demand/supply balance (sold count / active count) and its rank scale."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ebay_research.analysis.rounding import round_half_up
from ebay_research.errors import InvalidCountError

logger = logging.getLogger("ebay_research.balance")


class Rank(Enum):
    """Closed rank scale for a balance value."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class RankInfo:
    """Threshold and wording attached to a rank."""

    min_balance: float
    label: str
    description: str


RANK_INFO: dict[Rank, RankInfo] = {
    Rank.EXCELLENT: RankInfo(
        2.0, "Excellent", "Demand exceeds supply, buy candidate"
    ),
    Rank.GOOD: RankInfo(
        1.0, "Good", "Demand and supply balanced, worth considering"
    ),
    Rank.FAIR: RankInfo(
        0.5, "Fair", "Supply slightly ahead, wait and see"
    ),
    Rank.POOR: RankInfo(
        0.0, "Poor", "Oversupplied, avoid"
    ),
}


def _check_count(name: str, value: int | None) -> None:
    """Reject negative or non-integer counts."""
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCountError(
            f"{name} must be an integer, got {value!r}"
        )
    if value < 0:
        raise InvalidCountError(
            f"{name} must be >= 0, got {value}"
        )


class BalanceCalculator:
    """Compute balances and rank/aggregate decorated product rows.

    Rows are plain dicts carrying at least ``sold_count`` and
    ``active_count``; ``category`` and ``maker`` are used by the grouped
    statistics.
    """

    @staticmethod
    def calculate(
        sold_count: int | None,
        active_count: int | None,
    ) -> float | None:
        """Return sold/active rounded half-up to 2 decimals.

        ``None`` when there are no active listings (ratio undefined),
        ``0.0`` when nothing sold.
        """
        _check_count("sold_count", sold_count)
        _check_count("active_count", active_count)

        if not active_count:
            return None
        if not sold_count:
            return 0.0
        return round_half_up(sold_count / active_count, 2)

    @staticmethod
    def rank(balance: float | None) -> Rank:
        """Classify a balance; each threshold includes its lower bound."""
        if balance is None or balance < RANK_INFO[Rank.FAIR].min_balance:
            return Rank.POOR
        if balance >= RANK_INFO[Rank.EXCELLENT].min_balance:
            return Rank.EXCELLENT
        if balance >= RANK_INFO[Rank.GOOD].min_balance:
            return Rank.GOOD
        return Rank.FAIR

    @classmethod
    def rank_info(cls, balance: float | None) -> RankInfo:
        return RANK_INFO[cls.rank(balance)]

    @classmethod
    def rank_label(cls, balance: float | None) -> str:
        return cls.rank_info(balance).label

    @classmethod
    def calculate_all(
        cls, products: Iterable[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Return copies of *products* with balance, rank and label added."""
        decorated: list[dict[str, Any]] = []
        for product in products:
            balance = cls.calculate(
                product.get("sold_count"),
                product.get("active_count"),
            )
            decorated.append({
                **product,
                "balance": balance,
                "rank": cls.rank(balance),
                "rank_label": cls.rank_label(balance),
            })
        return decorated

    @classmethod
    def top_products(
        cls,
        products: Iterable[dict[str, Any]],
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """Products with a positive balance, highest first.

        Ties keep their input order.
        """
        positive = [
            p for p in cls.calculate_all(products)
            if p["balance"] is not None and p["balance"] > 0
        ]
        positive.sort(key=lambda p: p["balance"], reverse=True)
        return positive[:limit]

    @classmethod
    def recommended_products(
        cls, products: Iterable[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Products ranked good or excellent, highest balance first."""
        recommended = [
            p for p in cls.calculate_all(products)
            if p["rank"] in (Rank.GOOD, Rank.EXCELLENT)
        ]
        recommended.sort(key=lambda p: p["balance"], reverse=True)
        return recommended

    @classmethod
    def stats_by_category(
        cls, products: Iterable[dict[str, Any]],
    ) -> dict[str, dict[str, Any]]:
        return cls._grouped_stats(products, "category")

    @classmethod
    def stats_by_maker(
        cls, products: Iterable[dict[str, Any]],
    ) -> dict[str, dict[str, Any]]:
        return cls._grouped_stats(products, "maker")

    @classmethod
    def _grouped_stats(
        cls,
        products: Iterable[dict[str, Any]],
        key: str,
    ) -> dict[str, dict[str, Any]]:
        """Group decorated rows by *key* and summarise each group."""
        groups: dict[str, list[dict[str, Any]]] = {}
        for product in cls.calculate_all(products):
            groups.setdefault(product.get(key) or "", []).append(product)

        result = {
            name: cls._group_stats(items)
            for name, items in groups.items()
        }
        logger.debug(
            "Computed balance stats for %d %s groups", len(result), key,
        )
        return result

    @staticmethod
    def _group_stats(items: list[dict[str, Any]]) -> dict[str, Any]:
        balances: list[float] = [
            i["balance"] for i in items if i["balance"] is not None
        ]
        if not balances:
            return {}

        counts = {rank: 0 for rank in Rank}
        for item in items:
            counts[item["rank"]] += 1

        return {
            "count": len(items),
            "avg_balance": round_half_up(
                sum(balances) / len(balances), 2
            ),
            "max_balance": max(balances),
            "min_balance": min(balances),
            "excellent_count": counts[Rank.EXCELLENT],
            "good_count": counts[Rank.GOOD],
            "fair_count": counts[Rank.FAIR],
            "poor_count": counts[Rank.POOR],
        }
