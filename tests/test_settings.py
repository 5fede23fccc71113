# tests/test_settings.py

"""Tests for the Settings configuration class."""

import unittest
from pathlib import Path

from ebay_research.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants and paths."""

    def test_request_delay_is_positive_float(self) -> None:
        """REQUEST_DELAY must be a positive number."""
        self.assertIsInstance(Settings.REQUEST_DELAY, float)
        self.assertGreater(Settings.REQUEST_DELAY, 0)

    def test_request_timeout_is_positive_int(self) -> None:
        """REQUEST_TIMEOUT must be a positive integer."""
        self.assertIsInstance(Settings.REQUEST_TIMEOUT, int)
        self.assertGreater(Settings.REQUEST_TIMEOUT, 0)

    def test_max_retries_is_positive(self) -> None:
        """MAX_RETRIES must be >= 1."""
        self.assertGreaterEqual(Settings.MAX_RETRIES, 1)

    def test_batch_sizes(self) -> None:
        """Batch size 500 rows, sheet flush every 50."""
        self.assertEqual(Settings.BATCH_SIZE, 500)
        self.assertEqual(Settings.SHEET_FLUSH_EVERY, 50)

    def test_fx_cache_ttl_is_one_day(self) -> None:
        self.assertEqual(Settings.FX_CACHE_TTL, 86400)

    def test_analysis_defaults(self) -> None:
        """Trend window 30 days, price-change window 7 days at 10%."""
        self.assertEqual(Settings.TREND_DAYS, 30)
        self.assertEqual(Settings.RISING_LIMIT, 20)
        self.assertEqual(Settings.PRICE_CHANGE_DAYS, 7)
        self.assertAlmostEqual(Settings.PRICE_CHANGE_THRESHOLD, 0.1)

    def test_default_sheet_name(self) -> None:
        """Sheet name falls back to the combined sheet."""
        self.assertTrue(Settings.GOOGLE_SHEET_NAME)

    def test_paths_are_path_objects(self) -> None:
        """Directory and file settings are Path instances."""
        for name in (
            "BASE_DIR", "DATA_DIR", "LOGS_DIR",
            "DB_PATH", "FX_CACHE_PATH", "CHARTS_DIR",
        ):
            with self.subTest(name=name):
                self.assertIsInstance(getattr(Settings, name), Path)

    def test_data_files_live_under_data_dir(self) -> None:
        self.assertEqual(Settings.DB_PATH.parent, Settings.DATA_DIR)
        self.assertEqual(Settings.FX_CACHE_PATH.parent, Settings.DATA_DIR)

    def test_default_headers_accept_json(self) -> None:
        self.assertEqual(
            Settings.DEFAULT_HEADERS["Accept"], "application/json"
        )


if __name__ == "__main__":
    unittest.main()
