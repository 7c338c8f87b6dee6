"""
Tests for services/pipeline.py
"""

import asyncio
import unittest

from connectors.base import ReportSourceError
from services.errors import UpstreamQuotaExceeded, UpstreamUnknown
from services.pipeline import SectionQuery, collect_sections, overview_trends


def ok(rows):
    return lambda: rows


def boom(message="boom", status=None):
    def fetch():
        raise ReportSourceError(message, status_code=status)
    return fetch


class TestCollectSections(unittest.TestCase):

    def test_secondary_failure_is_isolated(self):
        for parallel in (True, False):
            with self.subTest(parallel=parallel):
                with self.assertLogs("services.pipeline", level="WARNING") as logs:
                    sections = asyncio.run(collect_sections(
                        "ads",
                        SectionQuery("campaigns", ok(["row"])),
                        [SectionQuery("keywords", boom()), SectionQuery("devices", ok([]))],
                        parallel=parallel,
                    ))

                self.assertEqual(sections["campaigns"], ["row"])
                self.assertIsNone(sections["keywords"])
                self.assertEqual(sections["devices"], [])
                self.assertIn("keywords", "\n".join(logs.output))

    def test_primary_failure_is_classified(self):
        with self.assertLogs("services.pipeline", level="ERROR"):
            with self.assertRaises(UpstreamQuotaExceeded) as ctx:
                asyncio.run(collect_sections(
                    "gsc",
                    SectionQuery("rows", boom("Quota exceeded", status=429)),
                    [SectionQuery("previous", ok([]))],
                ))

        self.assertEqual(ctx.exception.status_code, 429)

    def test_unexpected_primary_error_is_500(self):
        def crash():
            raise RuntimeError("socket closed")

        with self.assertLogs("services.pipeline", level="ERROR"):
            with self.assertRaises(UpstreamUnknown) as ctx:
                asyncio.run(collect_sections("ga4", SectionQuery("overview", crash)))

        self.assertEqual(ctx.exception.to_dict()["error"], "Failed to fetch GA4 data")

    def test_secondaries_not_run_after_primary_failure(self):
        calls = []

        def record():
            calls.append("previous")
            return []

        with self.assertLogs("services.pipeline", level="ERROR"):
            with self.assertRaises(UpstreamUnknown):
                asyncio.run(collect_sections(
                    "ads",
                    SectionQuery("campaigns", boom()),
                    [SectionQuery("previous", record)],
                ))

        self.assertEqual(calls, [])


class TestOverviewTrends(unittest.TestCase):

    def test_failed_previous_gives_zero_trends(self):
        self.assertEqual(overview_trends({"clicks": 5}, None, {"clicksTrend": "clicks"}, 1), {"clicksTrend": 0})

    def test_rounded(self):
        trends = overview_trends({"clicks": 2}, {"clicks": 3}, {"clicksTrend": "clicks"}, 1)

        self.assertEqual(trends["clicksTrend"], -33.3)


if __name__ == "__main__":
    unittest.main()
