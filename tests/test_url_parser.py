# tests/test_url_parser.py

"""Tests for eBay search URL decoding."""

import unittest

from ebay_research.clients.url_parser import (
    SearchParams,
    extract_keyword,
    is_active_listing_url,
    is_sold_listing_url,
    parse_search_url,
)

ACTIVE_URL = (
    "https://www.ebay.com/sch/i.html?_nkw=canon+ae-1&_sacat=15230"
    "&LH_BIN=1&LH_PrefLoc=98&LH_ItemCondition=3000&LH_TitleDesc=0"
)
SOLD_URL = (
    "https://www.ebay.com/sch/i.html?_nkw=nikon%20f3&_sacat=0"
    "&LH_Sold=1&LH_Complete=1"
)


class TestParseSearchUrl(unittest.TestCase):

    def test_active_url(self) -> None:
        params = parse_search_url(ACTIVE_URL)
        self.assertEqual(
            params,
            SearchParams(
                keyword="canon ae-1",
                category_id="15230",
                buy_it_now=True,
                location="Asia",
                condition="Used",
                condition_id="3000",
                sold_only=False,
                completed=False,
                title_only=True,
            ),
        )

    def test_sold_url_decodes_percent_escapes(self) -> None:
        params = parse_search_url(SOLD_URL)
        assert params is not None
        self.assertEqual(params.keyword, "nikon f3")
        self.assertTrue(params.sold_only)
        self.assertTrue(params.completed)
        self.assertFalse(params.buy_it_now)

    def test_location_codes(self) -> None:
        for code, expected in (
            ("1", "US"), ("2", "Worldwide"), ("3", "NorthAmerica"),
            ("98", "Asia"), ("77", None),
        ):
            with self.subTest(code=code):
                params = parse_search_url(
                    f"https://www.ebay.com/sch/i.html?_nkw=x&LH_PrefLoc={code}"
                )
                assert params is not None
                self.assertEqual(params.location, expected)

    def test_unknown_condition_keeps_id(self) -> None:
        params = parse_search_url(
            "https://www.ebay.com/sch/i.html?_nkw=x&LH_ItemCondition=4000"
        )
        assert params is not None
        self.assertEqual(params.condition_id, "4000")
        self.assertIsNone(params.condition)

    def test_missing_keyword(self) -> None:
        params = parse_search_url("https://www.ebay.com/sch/i.html?_sacat=625")
        assert params is not None
        self.assertIsNone(params.keyword)
        self.assertEqual(params.category_id, "625")

    def test_empty_and_query_less(self) -> None:
        for url in (None, "", "https://www.ebay.com/sch/i.html"):
            with self.subTest(url=url):
                self.assertIsNone(parse_search_url(url))

    def test_malformed_url(self) -> None:
        self.assertIsNone(parse_search_url("http://[::1"))


class TestHelpers(unittest.TestCase):

    def test_listing_kind(self) -> None:
        self.assertTrue(is_active_listing_url(ACTIVE_URL))
        self.assertFalse(is_sold_listing_url(ACTIVE_URL))
        self.assertTrue(is_sold_listing_url(SOLD_URL))
        self.assertFalse(is_active_listing_url(SOLD_URL))
        self.assertFalse(is_active_listing_url(None))

    def test_extract_keyword(self) -> None:
        self.assertEqual(extract_keyword(ACTIVE_URL), "canon ae-1")
        self.assertIsNone(extract_keyword(""))


if __name__ == "__main__":
    unittest.main()
