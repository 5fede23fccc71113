# ebay_research/clients/ebay_client.py

"""eBay Finding API client for listing counts and sold prices."""

import json
import logging
import time
from typing import Any

from curl_cffi import requests as curl_requests

from ebay_research.analysis import price_stats
from ebay_research.analysis.price_stats import BasicStats, PriceAnalysis
from ebay_research.clients.url_parser import SearchParams
from ebay_research.config.settings import Settings
from ebay_research.models.sold_item import SoldItem

# eBay condition ids -> normalised condition code
CONDITION_CODES: dict[str, str] = {
    "1000": "new",
    "1500": "open_box",
    "2000": "refurbished",
    "2500": "refurbished",
    "3000": "used",
    "4000": "used_very_good",
    "5000": "used_good",
    "6000": "used_acceptable",
    "7000": "for_parts",
}


class EbayApiClient:
    """Finding API client.

    Every public method swallows transport and parse failures after
    logging them, returning ``0``, an empty list or ``None`` so that one
    bad product never stops a batch.
    """

    FINDING_API_URL = (
        "https://svcs.ebay.com/services/search/FindingService/v1"
    )
    SANDBOX_FINDING_API_URL = (
        "https://svcs.sandbox.ebay.com/services/search/FindingService/v1"
    )
    SERVICE_VERSION = "1.13.0"
    LOCATED_IN = "JP"

    def __init__(
        self,
        app_id: str | None = None,
        session: curl_requests.Session | None = None,
        environment: str | None = None,
    ) -> None:
        self.logger = logging.getLogger("ebay_research.ebay")
        self.settings = Settings()
        self.app_id = app_id or self.settings.EBAY_APP_ID
        self.environment = (
            environment or self.settings.EBAY_ENVIRONMENT
        ).lower()
        self.session = session or curl_requests.Session()
        self._delay: float = self.settings.REQUEST_DELAY

    @property
    def api_url(self) -> str:
        if self.environment == "sandbox":
            return self.SANDBOX_FINDING_API_URL
        return self.FINDING_API_URL

    def set_delay(self, seconds: float) -> None:
        """Seconds to wait before each API call."""
        self._delay = max(seconds, 0.0)

    # ── Request plumbing ─────────────────────────────────

    def _build_params(
        self,
        operation: str,
        keyword: str,
        category_id: str | None = None,
        condition_id: str | None = None,
        listing_type: str | None = None,
        sold_items_only: bool = False,
        entries_per_page: int = 100,
    ) -> dict[str, str]:
        """Query string for one Finding API call, item filters numbered."""
        params: dict[str, str] = {
            "OPERATION-NAME": operation,
            "SERVICE-VERSION": self.SERVICE_VERSION,
            "SECURITY-APPNAME": self.app_id,
            "RESPONSE-DATA-FORMAT": "JSON",
            "REST-PAYLOAD": "true",
            "keywords": keyword,
            "paginationInput.entriesPerPage": str(entries_per_page),
        }
        if category_id:
            params["categoryId"] = category_id

        filters: list[tuple[str, str]] = []
        if condition_id:
            filters.append(("Condition", condition_id))
        if listing_type:
            filters.append(("ListingType", listing_type))
        if sold_items_only:
            filters.append(("SoldItemsOnly", "true"))
        filters.append(("LocatedIn", self.LOCATED_IN))

        for index, (name, value) in enumerate(filters):
            params[f"itemFilter({index}).name"] = name
            params[f"itemFilter({index}).value"] = value
        return params

    def _fetch(self, params: dict[str, str]) -> dict[str, Any] | None:
        """GET the Finding API with retries; parsed JSON or ``None``."""
        for attempt in range(self.settings.MAX_RETRIES):
            if self._delay > 0:
                time.sleep(self._delay)
            try:
                resp = self.session.get(
                    self.api_url,
                    params=params,
                    headers=self.settings.DEFAULT_HEADERS,
                    timeout=self.settings.REQUEST_TIMEOUT,
                )
                if resp.status_code == 200:
                    data: dict[str, Any] = json.loads(resp.text)
                    return data
                self.logger.warning(
                    "[ebay] HTTP %d on attempt %d",
                    resp.status_code,
                    attempt + 1,
                )
            except Exception as exc:
                self.logger.warning(
                    "[ebay] Request error on attempt %d: %s",
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
            time.sleep(self.settings.REQUEST_DELAY * (attempt + 1))
        return None

    def _find_items(
        self, operation: str, **kwargs: Any,
    ) -> dict[str, Any] | None:
        """Call *operation* and unwrap its ``<operation>Response`` body."""
        data = self._fetch(self._build_params(operation, **kwargs))
        if data is None:
            return None

        bodies = data.get(f"{operation}Response") or []
        if not bodies:
            self.logger.warning("[ebay] No response data for %s", operation)
            return None
        body: dict[str, Any] = bodies[0]

        ack = (body.get("ack") or [None])[0]
        if ack != "Success":
            error = (body.get("errorMessage") or [None])[0]
            self.logger.warning("[ebay] API returned %s: %s", ack, error)
        return body

    @staticmethod
    def _extract_total_count(body: dict[str, Any] | None) -> int:
        if not body:
            return 0
        try:
            return int(
                body["paginationOutput"][0]["totalEntries"][0]
            )
        except (KeyError, IndexError, TypeError, ValueError):
            return 0

    @staticmethod
    def _extract_items(
        body: dict[str, Any] | None,
    ) -> list[dict[str, Any]]:
        if not body:
            return []
        try:
            items: list[dict[str, Any]] = (
                body["searchResult"][0].get("item") or []
            )
        except (KeyError, IndexError, AttributeError):
            return []
        return items

    @staticmethod
    def _extract_price(item: dict[str, Any]) -> float | None:
        try:
            value = float(
                item["sellingStatus"][0]["currentPrice"][0]["__value__"]
            )
        except (KeyError, IndexError, TypeError, ValueError):
            return None
        return value if value > 0 else None

    @staticmethod
    def _extract_condition(item: dict[str, Any]) -> str:
        try:
            condition_id = str(item["condition"][0]["conditionId"][0])
        except (KeyError, IndexError, TypeError):
            return "unknown"
        return CONDITION_CODES.get(condition_id, "unknown")

    # ── Counts ───────────────────────────────────────────

    def get_active_listing_count(
        self,
        keyword: str,
        category_id: str | None = None,
        condition_id: str | None = None,
        buy_it_now: bool = False,
    ) -> int:
        """Number of live listings matching the search."""
        try:
            body = self._find_items(
                "findItemsAdvanced",
                keyword=keyword,
                category_id=category_id,
                condition_id=condition_id,
                listing_type="FixedPrice" if buy_it_now else None,
                entries_per_page=1,
            )
            return self._extract_total_count(body)
        except Exception as exc:
            self.logger.error(
                "[ebay] Failed to get active listing count: %s",
                exc,
                exc_info=True,
            )
            return 0

    def get_sold_item_count(
        self,
        keyword: str,
        category_id: str | None = None,
        condition_id: str | None = None,
        buy_it_now: bool = False,
    ) -> int:
        """Number of sold listings over the API's completed-items window."""
        try:
            body = self._find_items(
                "findCompletedItems",
                keyword=keyword,
                category_id=category_id,
                condition_id=condition_id,
                listing_type="FixedPrice" if buy_it_now else None,
                sold_items_only=True,
                entries_per_page=1,
            )
            return self._extract_total_count(body)
        except Exception as exc:
            self.logger.error(
                "[ebay] Failed to get sold item count: %s",
                exc,
                exc_info=True,
            )
            return 0

    def get_active_count(self, params: SearchParams | None) -> int:
        if params is None or not params.keyword:
            self.logger.warning("[ebay] No keyword in active search URL")
            return 0
        return self.get_active_listing_count(
            params.keyword,
            category_id=params.category_id,
            condition_id=params.condition_id,
            buy_it_now=params.buy_it_now,
        )

    def get_sold_count(self, params: SearchParams | None) -> int:
        if params is None or not params.keyword:
            self.logger.warning("[ebay] No keyword in sold search URL")
            return 0
        return self.get_sold_item_count(
            params.keyword,
            category_id=params.category_id,
            condition_id=params.condition_id,
            buy_it_now=params.buy_it_now,
        )

    # ── Prices ───────────────────────────────────────────

    def get_sold_items(
        self,
        keyword: str,
        category_id: str | None = None,
        limit: int | None = None,
    ) -> list[SoldItem]:
        """Recently sold items with a usable positive price."""
        try:
            body = self._find_items(
                "findCompletedItems",
                keyword=keyword,
                category_id=category_id,
                sold_items_only=True,
                entries_per_page=limit or self.settings.PRICE_SAMPLE_LIMIT,
            )
        except Exception as exc:
            self.logger.error(
                "[ebay] Failed to get sold items: %s", exc, exc_info=True
            )
            return []

        sold: list[SoldItem] = []
        for item in self._extract_items(body):
            price = self._extract_price(item)
            if price is None:
                continue
            title = item.get("title") or [""]
            sold.append(SoldItem(
                price=price,
                condition=self._extract_condition(item),
                title=str(title[0]),
            ))
        return sold

    def get_price_stats(
        self, params: SearchParams | None, limit: int | None = None,
    ) -> BasicStats | None:
        """Basic stats of recent sale prices for a parsed search URL."""
        if params is None or not params.keyword:
            return None
        items = self.get_sold_items(
            params.keyword, category_id=params.category_id, limit=limit,
        )
        try:
            return price_stats.basic_stats(i.price for i in items)
        except Exception as exc:
            self.logger.error(
                "[ebay] Failed to get price stats: %s", exc, exc_info=True
            )
            return None

    def get_price_analysis(
        self,
        keyword: str,
        category_id: str | None = None,
        limit: int | None = None,
    ) -> PriceAnalysis | None:
        """Full distribution / recommendation report for a keyword."""
        items = self.get_sold_items(
            keyword, category_id=category_id, limit=limit,
        )
        try:
            return price_stats.analyze(i.price for i in items)
        except Exception as exc:
            self.logger.error(
                "[ebay] Failed to get price analysis: %s",
                exc,
                exc_info=True,
            )
            return None

    def get_price_by_condition(
        self,
        keyword: str,
        category_id: str | None = None,
        limit: int | None = None,
    ) -> dict[str, BasicStats]:
        """Basic stats per item condition for a keyword."""
        items = self.get_sold_items(
            keyword, category_id=category_id, limit=limit,
        )
        try:
            return price_stats.stats_by_condition(items)
        except Exception as exc:
            self.logger.error(
                "[ebay] Failed to get price by condition: %s",
                exc,
                exc_info=True,
            )
            return {}
