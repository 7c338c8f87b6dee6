"""
Tests for services/grouping.py
"""

import unittest

from connectors.base import ReportRow, RowSchema
from services.grouping import by_dimension, by_dimensions, group_rows

SCHEMA = RowSchema(dimensions=("device", "channel"), metrics=("clicks",))


def row(device, channel, clicks=1):
    return SCHEMA.decode([device, channel], [clicks])


class TestGroupRows(unittest.TestCase):

    def test_empty_input(self):
        self.assertEqual(group_rows([], by_dimension("device", "UNKNOWN")), {})

    def test_missing_and_blank_dimensions_use_default(self):
        rows = [row(None, "Organic Search"), row("", "Email"), row("  ", ""), row("MOBILE", None)]

        devices = group_rows(rows, by_dimension("device", "UNKNOWN"))
        channels = group_rows(rows, by_dimension("channel", "Direct"))

        self.assertEqual(len(devices["UNKNOWN"]), 3)
        self.assertEqual(len(devices["MOBILE"]), 1)
        self.assertEqual(len(channels["Direct"]), 2)
        self.assertEqual(set(channels), {"Organic Search", "Email", "Direct"})

    def test_short_positional_row_defaults(self):
        short = SCHEMA.decode([], [])

        self.assertEqual(group_rows([short], by_dimension("device", "desktop")), {"desktop": [short]})

    def test_normalize(self):
        rows = [row("Mobile", "x"), row("mobile", "y"), row(None, "z")]

        grouped = group_rows(rows, by_dimension("device", "desktop", normalize=str.lower))

        self.assertEqual({k: len(v) for k, v in grouped.items()}, {"mobile": 2, "desktop": 1})

    def test_composite_key(self):
        rows = [row("DESKTOP", "Paid Search"), row("DESKTOP", "Paid Search"), row("DESKTOP", None)]

        grouped = group_rows(rows, by_dimensions(
            by_dimension("device", "UNKNOWN"),
            by_dimension("channel", "Direct"),
        ))

        self.assertEqual(len(grouped[("DESKTOP", "Paid Search")]), 2)
        self.assertEqual(len(grouped[("DESKTOP", "Direct")]), 1)

    def test_rows_keep_insertion_order_within_group(self):
        first = ReportRow(dimensions={"device": "TABLET"}, metrics={"clicks": 1})
        second = ReportRow(dimensions={"device": "TABLET"}, metrics={"clicks": 2})

        grouped = group_rows([first, second], by_dimension("device", "UNKNOWN"))

        self.assertEqual(grouped["TABLET"], [first, second])


if __name__ == "__main__":
    unittest.main()
