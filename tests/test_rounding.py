# tests/test_rounding.py

"""Tests for half-up rounding helpers."""

import unittest

from ebay_research.analysis.change import percent_change
from ebay_research.analysis.rounding import round_half_up, round_index


class TestRoundHalfUp(unittest.TestCase):

    def test_halves_round_away_from_zero(self) -> None:
        """Unlike round(), 2.5 -> 3 and 0.125 -> 0.13."""
        self.assertEqual(round_half_up(2.5), 3.0)
        self.assertEqual(round_half_up(0.125, 2), 0.13)
        self.assertEqual(round_half_up(1.05, 1), 1.1)

    def test_negative_halves(self) -> None:
        self.assertEqual(round_half_up(-2.5), -3.0)

    def test_non_halves_unchanged_behaviour(self) -> None:
        self.assertEqual(round_half_up(0.333333, 2), 0.33)
        self.assertEqual(round_half_up(0.666666, 2), 0.67)

    def test_round_index(self) -> None:
        self.assertEqual(round_index(1.5), 2)
        self.assertEqual(round_index(0.5), 1)
        self.assertEqual(round_index(2.25), 2)
        self.assertIsInstance(round_index(0.0), int)


class TestPercentChange(unittest.TestCase):

    def test_basic_change(self) -> None:
        self.assertEqual(percent_change(100, 110), 10.0)
        self.assertEqual(percent_change(0.3, 1.2), 300.0)

    def test_negative_change(self) -> None:
        self.assertEqual(percent_change(200, 150), -25.0)

    def test_missing_or_non_positive_base(self) -> None:
        """No base, no change."""
        self.assertIsNone(percent_change(None, 10))
        self.assertIsNone(percent_change(10, None))
        self.assertIsNone(percent_change(0, 10))
        self.assertIsNone(percent_change(-1, 10))

    def test_one_decimal(self) -> None:
        self.assertEqual(percent_change(3, 4), 33.3)


if __name__ == "__main__":
    unittest.main()
