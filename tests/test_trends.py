"""
Tests for services/trends.py
"""

import unittest
from datetime import date

from services.trends import compute_trends, percent_change, previous_period


class TestPercentChange(unittest.TestCase):
    """Period-over-period change."""

    def test_zero_previous_with_activity_is_100(self):
        self.assertEqual(percent_change(5, 0), 100)

    def test_zero_previous_without_activity_is_0(self):
        self.assertEqual(percent_change(0, 0), 0)

    def test_regular_change(self):
        self.assertEqual(percent_change(150, 100), 50)
        self.assertEqual(percent_change(50, 100), -50)

    def test_not_clamped_or_rounded(self):
        self.assertEqual(percent_change(1000, 10), 9900)
        self.assertAlmostEqual(percent_change(1, 3), -66.6666666, places=5)


class TestComputeTrends(unittest.TestCase):

    def test_maps_output_names_to_fields(self):
        current = {"clicks": 150, "spend": 0}
        previous = {"clicks": 100, "spend": 0}

        trends = compute_trends(current, previous, {"clicksTrend": "clicks", "costTrend": "spend"})

        self.assertEqual(trends, {"clicksTrend": 50, "costTrend": 0})

    def test_missing_previous_field_counts_as_zero(self):
        trends = compute_trends({"clicks": 3}, {}, {"clicksTrend": "clicks"})
        self.assertEqual(trends["clicksTrend"], 100)


class TestPreviousPeriod(unittest.TestCase):

    def test_equal_length_window_ending_day_before_start(self):
        prev_start, prev_end = previous_period(date(2024, 3, 31), date(2024, 4, 30))

        self.assertEqual(prev_end, date(2024, 3, 30))
        self.assertEqual(prev_start, date(2024, 2, 29))

    def test_single_day_window(self):
        prev_start, prev_end = previous_period(date(2024, 1, 10), date(2024, 1, 10))

        self.assertEqual((prev_start, prev_end), (date(2024, 1, 9), date(2024, 1, 9)))


if __name__ == "__main__":
    unittest.main()
