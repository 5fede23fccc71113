# tests/test_exchange_rate.py

"""Tests for the USD/JPY exchange rate client and its file cache."""

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from ebay_research.clients.exchange_rate import (
    FREE_API_URL,
    ExchangeRateClient,
)

T0 = 1_760_000_000.0


def _response(body: dict, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.text = json.dumps(body)
    return resp


class TestExchangeRateClient(unittest.TestCase):

    def setUp(self) -> None:
        self.tmp_dir = tempfile.mkdtemp()
        self.cache_path = Path(self.tmp_dir) / "fx.json"
        self.session = MagicMock()
        self.session.get.return_value = _response(
            {"result": "success", "rates": {"JPY": 150.25}}
        )
        self.now = T0
        self.client = ExchangeRateClient(
            api_key="",
            cache_path=self.cache_path,
            session=self.session,
            clock=lambda: self.now,
        )

    def test_fetches_and_caches(self) -> None:
        self.assertEqual(self.client.usd_to_jpy(), 150.25)
        cached = json.loads(self.cache_path.read_text())
        self.assertEqual(cached, {"rate": 150.25, "fetched_at": int(T0)})
        self.assertEqual(self.session.get.call_args.args[0], FREE_API_URL)

    def test_cache_hit_skips_request(self) -> None:
        self.client.usd_to_jpy()
        self.client.usd_to_jpy()
        self.assertEqual(self.session.get.call_count, 1)

    def test_expired_cache_refetches(self) -> None:
        self.client.usd_to_jpy()
        self.now = T0 + 24 * 60 * 60 + 1
        self.client.usd_to_jpy()
        self.assertEqual(self.session.get.call_count, 2)

    def test_bypass_cache(self) -> None:
        self.client.usd_to_jpy()
        self.client.usd_to_jpy(use_cache=False)
        self.assertEqual(self.session.get.call_count, 2)

    def test_corrupt_cache_is_ignored(self) -> None:
        self.cache_path.write_text("{not json")
        self.assertEqual(self.client.usd_to_jpy(), 150.25)

    def test_keyed_endpoint(self) -> None:
        client = ExchangeRateClient(
            api_key="KEY", cache_path=self.cache_path, session=self.session,
        )
        self.assertIn("/v6/KEY/latest/USD", client.api_url)
        self.session.get.return_value = _response(
            {"result": "success", "conversion_rates": {"JPY": 149.0}}
        )
        self.assertEqual(client.usd_to_jpy(use_cache=False), 149.0)

    def test_api_error_gives_none(self) -> None:
        self.session.get.return_value = _response(
            {"result": "error", "error-type": "quota-reached"}
        )
        self.assertIsNone(self.client.usd_to_jpy())
        self.assertFalse(self.cache_path.exists())

    def test_http_error_gives_none(self) -> None:
        self.session.get.return_value = _response({}, status=500)
        self.assertIsNone(self.client.usd_to_jpy())

    def test_transport_error_gives_none(self) -> None:
        self.session.get.side_effect = TimeoutError("slow")
        self.assertIsNone(self.client.usd_to_jpy())

    def test_convert_floors(self) -> None:
        self.assertEqual(self.client.convert_usd_to_jpy(10.99), 1651)
        self.assertIsNone(self.client.convert_usd_to_jpy(None))

    def test_convert_all(self) -> None:
        self.assertEqual(
            self.client.convert_all([1.0, None, 2.0]), [150, None, 300]
        )

    def test_convert_all_without_rate(self) -> None:
        self.session.get.return_value = _response({}, status=500)
        self.assertEqual(self.client.convert_all([1.0]), [])

    def test_rate_info_source(self) -> None:
        info = self.client.current_rate_info()
        self.assertEqual((info.rate, info.source), (150.25, "api"))
        self.client.usd_to_jpy()
        self.assertEqual(self.client.current_rate_info().source, "cache")

    def test_clear_cache(self) -> None:
        self.client.usd_to_jpy()
        self.client.clear_cache()
        self.assertFalse(self.cache_path.exists())
        self.client.clear_cache()


if __name__ == "__main__":
    unittest.main()
