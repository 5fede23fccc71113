# ebay_research/models/sold_item.py

"""A single completed sale pulled from the marketplace."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SoldItem:
    """Sale price (USD) and normalised condition code of one sold listing."""

    price: float
    condition: str = "unknown"
    title: str = ""
