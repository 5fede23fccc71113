# ebay_research/clients/url_parser.py

"""Decode eBay search URLs into Finding API query parameters."""

import logging
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

logger = logging.getLogger("ebay_research.url_parser")

# LH_PrefLoc -> item location filter
LOCATION_MAP: dict[str, str] = {
    "1": "US",
    "2": "Worldwide",
    "3": "NorthAmerica",
    "98": "Asia",
}

# LH_ItemCondition -> readable condition
CONDITION_MAP: dict[str, str] = {
    "1000": "New",
    "1500": "OpenBox",
    "2000": "Refurbished",
    "2500": "SellerRefurbished",
    "3000": "Used",
    "7000": "ForParts",
}


@dataclass(frozen=True)
class SearchParams:
    """Structured form of one eBay search URL."""

    keyword: str | None = None
    category_id: str | None = None
    buy_it_now: bool = False
    location: str | None = None
    condition: str | None = None
    condition_id: str | None = None
    sold_only: bool = False
    completed: bool = False
    title_only: bool = False


def _first(params: dict[str, list[str]], key: str) -> str | None:
    values = params.get(key)
    return values[0] if values else None


def parse_search_url(url: str | None) -> SearchParams | None:
    """Parse an eBay ``/sch/i.html`` URL.

    Returns ``None`` for empty, malformed, or query-less URLs.
    ``parse_qs`` already percent-decodes and turns ``+`` into spaces,
    so ``_nkw=canon+ae-1`` yields the keyword ``"canon ae-1"``.
    """
    if not url:
        return None
    try:
        parsed = urlparse(url.strip())
    except ValueError as exc:
        logger.warning("Invalid URL %r: %s", url, exc)
        return None
    if not parsed.query:
        logger.debug("URL has no query string: %s", url)
        return None

    params = parse_qs(parsed.query, keep_blank_values=True)
    keyword = (_first(params, "_nkw") or "").strip() or None
    condition_id = _first(params, "LH_ItemCondition") or None
    location_code = _first(params, "LH_PrefLoc")

    return SearchParams(
        keyword=keyword,
        category_id=_first(params, "_sacat") or None,
        buy_it_now=_first(params, "LH_BIN") == "1",
        location=LOCATION_MAP.get(location_code or ""),
        condition=CONDITION_MAP.get(condition_id or ""),
        condition_id=condition_id,
        sold_only=_first(params, "LH_Sold") == "1",
        completed=_first(params, "LH_Complete") == "1",
        title_only=_first(params, "LH_TitleDesc") == "0",
    )


def is_active_listing_url(url: str | None) -> bool:
    """True for a search that is neither sold-only nor completed."""
    params = parse_search_url(url)
    if params is None:
        return False
    return not params.sold_only and not params.completed


def is_sold_listing_url(url: str | None) -> bool:
    params = parse_search_url(url)
    if params is None:
        return False
    return params.sold_only and params.completed


def extract_keyword(url: str | None) -> str | None:
    params = parse_search_url(url)
    return params.keyword if params else None
