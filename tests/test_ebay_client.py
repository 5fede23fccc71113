# tests/test_ebay_client.py

"""Tests for the eBay Finding API client (session mocked)."""

import json
import unittest
from typing import Any
from unittest.mock import MagicMock

from ebay_research.clients.ebay_client import EbayApiClient
from ebay_research.clients.url_parser import SearchParams


def _response(status: int = 200, body: Any = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.text = json.dumps(body or {})
    return resp


def _count_body(operation: str, total: int) -> dict[str, Any]:
    return {
        f"{operation}Response": [{
            "ack": ["Success"],
            "paginationOutput": [{"totalEntries": [str(total)]}],
        }]
    }


def _item(price: str, condition_id: str | None = "3000") -> dict[str, Any]:
    item: dict[str, Any] = {
        "title": [f"Item at {price}"],
        "sellingStatus": [{"currentPrice": [{"__value__": price}]}],
    }
    if condition_id is not None:
        item["condition"] = [{"conditionId": [condition_id]}]
    return item


def _items_body(items: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "findCompletedItemsResponse": [{
            "ack": ["Success"],
            "searchResult": [{"item": items}],
        }]
    }


class TestEbayApiClient(unittest.TestCase):

    def setUp(self) -> None:
        self.session = MagicMock()
        self.client = EbayApiClient(app_id="APP-ID", session=self.session)
        self.client.set_delay(0)

    def _params_sent(self) -> dict[str, str]:
        return self.session.get.call_args.kwargs["params"]

    def test_active_count(self) -> None:
        self.session.get.return_value = _response(
            body=_count_body("findItemsAdvanced", 321)
        )
        count = self.client.get_active_count(
            SearchParams(keyword="canon ae-1", category_id="15230",
                         buy_it_now=True, condition_id="3000")
        )
        self.assertEqual(count, 321)
        sent = self._params_sent()
        self.assertEqual(sent["OPERATION-NAME"], "findItemsAdvanced")
        self.assertEqual(sent["SECURITY-APPNAME"], "APP-ID")
        self.assertEqual(sent["keywords"], "canon ae-1")
        self.assertEqual(sent["categoryId"], "15230")
        filters = {
            sent[k]: sent[k.replace(".name", ".value")]
            for k in sent if k.endswith(".name")
        }
        self.assertEqual(
            filters,
            {"Condition": "3000", "ListingType": "FixedPrice", "LocatedIn": "JP"},
        )

    def test_sold_count_uses_sold_filter(self) -> None:
        self.session.get.return_value = _response(
            body=_count_body("findCompletedItems", 42)
        )
        self.assertEqual(
            self.client.get_sold_count(SearchParams(keyword="nikon f3")), 42
        )
        sent = self._params_sent()
        self.assertEqual(sent["OPERATION-NAME"], "findCompletedItems")
        self.assertIn("SoldItemsOnly", sent.values())

    def test_sandbox_environment_endpoint(self) -> None:
        self.assertEqual(self.client.api_url, EbayApiClient.FINDING_API_URL)
        sandbox = EbayApiClient(
            app_id="APP-ID", session=self.session, environment="Sandbox",
        )
        sandbox.set_delay(0)
        self.session.get.return_value = _response(
            body=_count_body("findItemsAdvanced", 1)
        )
        sandbox.get_active_count(SearchParams(keyword="canon"))
        self.assertEqual(
            self.session.get.call_args.args[0],
            EbayApiClient.SANDBOX_FINDING_API_URL,
        )

    def test_missing_keyword_skips_request(self) -> None:
        self.assertEqual(self.client.get_active_count(None), 0)
        self.assertEqual(self.client.get_sold_count(SearchParams()), 0)
        self.session.get.assert_not_called()

    def test_retries_then_gives_zero(self) -> None:
        """HTTP errors are retried MAX_RETRIES times, then count is 0."""
        self.session.get.return_value = _response(status=500)
        count = self.client.get_active_listing_count("x")
        self.assertEqual(count, 0)
        self.assertEqual(
            self.session.get.call_count, self.client.settings.MAX_RETRIES
        )

    def test_recovers_after_transient_error(self) -> None:
        self.session.get.side_effect = [
            ConnectionError("reset"),
            _response(body=_count_body("findItemsAdvanced", 7)),
        ]
        self.assertEqual(self.client.get_active_listing_count("x"), 7)

    def test_failure_ack_returns_zero(self) -> None:
        self.session.get.return_value = _response(body={
            "findItemsAdvancedResponse": [{
                "ack": ["Failure"],
                "errorMessage": [{"error": [{"message": ["bad app id"]}]}],
            }]
        })
        self.assertEqual(self.client.get_active_listing_count("x"), 0)

    def test_sold_items_parsed(self) -> None:
        self.session.get.return_value = _response(body=_items_body([
            _item("120.50", "1000"),
            _item("80.00", "7000"),
            _item("95.00", None),
            _item("0", "3000"),
            {"title": ["no price"]},
        ]))
        items = self.client.get_sold_items("canon", limit=50)
        self.assertEqual(
            [(i.price, i.condition) for i in items],
            [(120.5, "new"), (80.0, "for_parts"), (95.0, "unknown")],
        )
        self.assertEqual(
            self._params_sent()["paginationInput.entriesPerPage"], "50"
        )

    def test_price_stats(self) -> None:
        self.session.get.return_value = _response(body=_items_body([
            _item("10"), _item("20"), _item("30"), _item("40"),
        ]))
        stats = self.client.get_price_stats(SearchParams(keyword="lens"))
        assert stats is not None
        self.assertEqual(stats.count, 4)
        self.assertEqual(stats.median, 25.0)

    def test_price_analysis_none_without_sales(self) -> None:
        self.session.get.return_value = _response(body=_items_body([]))
        self.assertIsNone(self.client.get_price_analysis("nothing"))

    def test_price_by_condition(self) -> None:
        self.session.get.return_value = _response(body=_items_body([
            _item("100", "1000"), _item("200", "1000"), _item("50", "3000"),
        ]))
        result = self.client.get_price_by_condition("camera")
        self.assertEqual(result["new"].average, 150.0)
        self.assertEqual(result["used"].count, 1)

    def test_price_by_condition_empty_on_failure(self) -> None:
        self.session.get.return_value = _response(status=503)
        self.assertEqual(self.client.get_price_by_condition("camera"), {})


if __name__ == "__main__":
    unittest.main()
