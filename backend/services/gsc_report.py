"""
Search Console report: search analytics queries and payload assembly.
"""

from datetime import date, timedelta
from functools import partial
from typing import Optional

from connectors.base import ReportRow, RowSchema
from services.aggregation import AVG, MEAN, DerivedField, MetricField, MetricSpec
from services.assembler import build_breakdown, round_record, round_to
from services.defaults import (
    GSC_CLICKS_OVER_TIME,
    GSC_CORE_WEB_VITALS,
    GSC_INDEXING_RATIOS,
    fallback,
)
from services.grouping import by_dimension, group_rows
from services.pipeline import SectionQuery, SourceProfile, overview_trends, summarize, totals
from services.trends import previous_period

PROFILE = SourceProfile(
    key="gsc",
    label="Search Console",
    default_days=28,
    limits={"topQueries": 5, "topPages": 5},
)

ROW_LIMIT = 1000

_METRICS = {"clicks": "clicks", "impressions": "impressions", "ctr": "ctr", "position": "position"}

SEARCH_SCHEMA = RowSchema.from_sources(
    dimensions={"query": "query", "page": "page", "date": "date"},
    metrics=_METRICS,
)

# Overview totals and trends for both windows
DAILY_SCHEMA = RowSchema.from_sources(dimensions={"date": "date"}, metrics=_METRICS)

_CLICK_FIELDS = (
    MetricField("clicks", kind="int"),
    MetricField("impressions", kind="int"),
)
_CTR = DerivedField("ctr", "clicks", "impressions", scale=100)

# Overall position is a true mean of row positions
OVERVIEW_METRICS = MetricSpec(
    fields=_CLICK_FIELDS + (MetricField("position", reduce=AVG),),
    derived=(_CTR,),
    averaging=MEAN,
)

# Per-query position follows POSITION_AVERAGING
QUERY_METRICS = MetricSpec(
    fields=_CLICK_FIELDS + (MetricField("position", reduce=AVG),),
    derived=(_CTR,),
)

PAGE_METRICS = MetricSpec(fields=_CLICK_FIELDS, derived=(_CTR,))

OVERVIEW_TRENDS = {"clicksTrend": "clicks", "impressionsTrend": "impressions"}


def section_queries(connector, start: date, end: date) -> tuple:
    """(primary, secondaries) for one Search Console request."""
    prev_start, prev_end = previous_period(start, end)
    primary = SectionQuery(
        "rows",
        partial(connector.search_analytics, SEARCH_SCHEMA, start.isoformat(), end.isoformat(), row_limit=ROW_LIMIT),
    )
    secondaries = [
        SectionQuery(
            "totals",
            partial(connector.search_analytics, DAILY_SCHEMA, start.isoformat(), end.isoformat(), row_limit=ROW_LIMIT),
        ),
        SectionQuery(
            "previous",
            partial(connector.search_analytics, DAILY_SCHEMA, prev_start.isoformat(), prev_end.isoformat(),
                    row_limit=ROW_LIMIT),
        ),
    ]
    return primary, secondaries


def build_overview(current: dict, previous) -> dict:
    trends = overview_trends(current, previous, OVERVIEW_TRENDS, PROFILE.trend_digits)
    return {
        "totalClicks": current["clicks"],
        "totalImpressions": current["impressions"],
        "avgCTR": round_to(current["ctr"], PROFILE.rate_digits),
        "avgPosition": round_to(current["position"], 1),
        **trends,
    }


def build_top_queries(rows, averaging: str) -> list[dict]:
    entries = build_breakdown(
        summarize(rows, by_dimension("query", "unknown"), QUERY_METRICS.with_averaging(averaging)),
        label="query",
        sort_by="clicks",
        limit=PROFILE.limit("topQueries"),
        share_of="clicks",
    )
    precision = {"ctr": PROFILE.rate_digits, "position": 1, "percentage": PROFILE.share_digits}
    return [round_record(entry, precision) for entry in entries]


def build_top_pages(rows) -> list[dict]:
    entries = build_breakdown(
        summarize(rows, by_dimension("page", "unknown"), PAGE_METRICS),
        label="page",
        sort_by="clicks",
        limit=PROFILE.limit("topPages"),
        share_of="clicks",
    )
    precision = {"ctr": PROFILE.rate_digits, "percentage": PROFILE.share_digits}
    return [round_record(entry, precision) for entry in entries]


def _week_start(row: ReportRow) -> Optional[date]:
    value = row.dimension("date")
    if value is None:
        return None
    try:
        day = date.fromisoformat(value)
    except ValueError:
        return None
    return day - timedelta(days=day.weekday())


def build_clicks_over_time(rows) -> list[dict]:
    """Clicks per Monday-starting week, oldest first, labelled Week 1..N."""
    weeks = group_rows(rows or [], _week_start)
    weeks.pop(None, None)
    if not weeks:
        return fallback(None, GSC_CLICKS_OVER_TIME)

    return [
        {"date": f"Week {n}", "clicks": totals(weeks[week], PAGE_METRICS)["clicks"]}
        for n, week in enumerate(sorted(weeks), start=1)
    ]


def build_indexing_status(total_clicks: int) -> dict:
    """Estimated from clicks; no URL inspection calls are made."""
    return {
        status: round_to(total_clicks * ratio, 0)
        for status, ratio in GSC_INDEXING_RATIOS.items()
    }


def assemble(sections: dict, start: date, end: date, settings) -> dict:
    """Search Console payload from collected sections (None marks a failed section)."""
    rows = sections["rows"]
    daily = sections.get("totals")
    previous = sections.get("previous")
    if daily is None:
        # Truncated query/page rows never feed a trend
        daily = rows
        previous = None
    current = totals(daily, OVERVIEW_METRICS)
    if previous is not None:
        previous = totals(previous, OVERVIEW_METRICS)

    return {
        "overview": build_overview(current, previous),
        "topQueries": build_top_queries(rows, settings.position_averaging),
        "topPages": build_top_pages(rows),
        "indexingStatus": build_indexing_status(current["clicks"]),
        "coreWebVitals": fallback(None, GSC_CORE_WEB_VITALS),
        "clicksOverTime": build_clicks_over_time(daily),
    }
