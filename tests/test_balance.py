# tests/test_balance.py

"""Tests for balance calculation, ranking and grouped statistics."""

import unittest

from ebay_research.analysis.balance import RANK_INFO, BalanceCalculator, Rank
from ebay_research.errors import InvalidCountError


class TestCalculate(unittest.TestCase):
    """sold / active, rounded half-up to 2 decimals."""

    def test_zero_sold_is_zero(self) -> None:
        self.assertEqual(BalanceCalculator.calculate(0, 10), 0.0)

    def test_missing_sold_is_zero(self) -> None:
        self.assertEqual(BalanceCalculator.calculate(None, 10), 0.0)

    def test_zero_active_is_undefined(self) -> None:
        """No active listings -> no ratio."""
        self.assertIsNone(BalanceCalculator.calculate(5, 0))
        self.assertIsNone(BalanceCalculator.calculate(5, None))
        self.assertIsNone(BalanceCalculator.calculate(0, 0))

    def test_ratio(self) -> None:
        self.assertEqual(BalanceCalculator.calculate(20, 10), 2.0)
        self.assertEqual(BalanceCalculator.calculate(1, 3), 0.33)
        self.assertEqual(BalanceCalculator.calculate(2, 3), 0.67)

    def test_half_up_rounding(self) -> None:
        """1/8 = 0.125 rounds up to 0.13."""
        self.assertEqual(BalanceCalculator.calculate(1, 8), 0.13)

    def test_negative_count_rejected(self) -> None:
        with self.assertRaises(InvalidCountError):
            BalanceCalculator.calculate(-1, 10)
        with self.assertRaises(InvalidCountError):
            BalanceCalculator.calculate(1, -10)

    def test_non_integer_count_rejected(self) -> None:
        for bad in (1.5, "3", True):
            with self.subTest(bad=bad):
                with self.assertRaises(InvalidCountError):
                    BalanceCalculator.calculate(bad, 10)  # type: ignore[arg-type]

    def test_invalid_count_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            BalanceCalculator.calculate(-1, 1)


class TestRank(unittest.TestCase):
    """Thresholds include their lower bound."""

    def test_boundaries(self) -> None:
        cases = [
            (None, Rank.POOR),
            (0.0, Rank.POOR),
            (0.49, Rank.POOR),
            (0.5, Rank.FAIR),
            (0.99, Rank.FAIR),
            (1.0, Rank.GOOD),
            (1.99, Rank.GOOD),
            (2.0, Rank.EXCELLENT),
            (15.0, Rank.EXCELLENT),
        ]
        for balance, expected in cases:
            with self.subTest(balance=balance):
                self.assertIs(BalanceCalculator.rank(balance), expected)

    def test_twenty_over_ten_is_excellent(self) -> None:
        balance = BalanceCalculator.calculate(20, 10)
        self.assertIs(BalanceCalculator.rank(balance), Rank.EXCELLENT)

    def test_rank_info_and_label(self) -> None:
        info = BalanceCalculator.rank_info(1.2)
        self.assertEqual(info, RANK_INFO[Rank.GOOD])
        self.assertEqual(info.min_balance, 1.0)
        self.assertEqual(BalanceCalculator.rank_label(0.1), "Poor")

    def test_rank_values(self) -> None:
        self.assertEqual(
            [r.value for r in Rank],
            ["excellent", "good", "fair", "poor"],
        )


class TestCatalogHelpers(unittest.TestCase):
    """calculate_all / top / recommended / grouped statistics."""

    def setUp(self) -> None:
        self.rows = [
            {"name": "A", "category": "Camera", "maker": "Canon",
             "sold_count": 20, "active_count": 10},   # 2.0
            {"name": "B", "category": "Camera", "maker": "Nikon",
             "sold_count": 5, "active_count": 10},    # 0.5
            {"name": "C", "category": "Lens", "maker": "Canon",
             "sold_count": 12, "active_count": 10},   # 1.2
            {"name": "D", "category": "Lens", "maker": "Nikon",
             "sold_count": 0, "active_count": 10},    # 0.0
            {"name": "E", "category": "Flash", "maker": "Sigma",
             "sold_count": 3, "active_count": 0},     # None
            {"name": "F", "category": "Camera", "maker": "Canon",
             "sold_count": 10, "active_count": 5},    # 2.0
        ]

    def test_calculate_all_decorates_copies(self) -> None:
        result = BalanceCalculator.calculate_all(self.rows)
        self.assertEqual(result[0]["balance"], 2.0)
        self.assertIs(result[0]["rank"], Rank.EXCELLENT)
        self.assertEqual(result[0]["rank_label"], "Excellent")
        self.assertIsNone(result[4]["balance"])
        self.assertNotIn("balance", self.rows[0])

    def test_top_products_positive_only_sorted(self) -> None:
        top = BalanceCalculator.top_products(self.rows)
        self.assertEqual([p["name"] for p in top], ["A", "F", "C", "B"])

    def test_top_products_ties_keep_input_order(self) -> None:
        top = BalanceCalculator.top_products(self.rows, limit=2)
        self.assertEqual([p["name"] for p in top], ["A", "F"])

    def test_recommended_products(self) -> None:
        rec = BalanceCalculator.recommended_products(self.rows)
        self.assertEqual([p["name"] for p in rec], ["A", "F", "C"])

    def test_stats_by_category(self) -> None:
        stats = BalanceCalculator.stats_by_category(self.rows)
        camera = stats["Camera"]
        self.assertEqual(camera["count"], 3)
        self.assertEqual(camera["avg_balance"], 1.5)
        self.assertEqual(camera["max_balance"], 2.0)
        self.assertEqual(camera["min_balance"], 0.5)
        self.assertEqual(camera["excellent_count"], 2)
        self.assertEqual(camera["fair_count"], 1)
        self.assertEqual(camera["good_count"], 0)
        self.assertEqual(camera["poor_count"], 0)

    def test_group_without_balances_is_empty(self) -> None:
        """A group whose rows all lack a balance maps to {}."""
        stats = BalanceCalculator.stats_by_category(self.rows)
        self.assertEqual(stats["Flash"], {})

    def test_stats_by_maker(self) -> None:
        stats = BalanceCalculator.stats_by_maker(self.rows)
        self.assertEqual(set(stats), {"Canon", "Nikon", "Sigma"})
        self.assertEqual(stats["Canon"]["avg_balance"], 1.73)
        self.assertEqual(stats["Nikon"]["poor_count"], 1)


if __name__ == "__main__":
    unittest.main()
