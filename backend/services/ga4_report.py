"""
GA4 report: Data API report definitions and payload assembly.

Primary section is the overview totals report. Realtime, channel, source,
device, page, landing page, event and daily reports are best effort, as are the
prior-window overview and event reports used for trends.
"""

import math
from datetime import date, datetime, timedelta
from functools import partial

from connectors.base import RowSchema
from services.aggregation import AVG, MEAN, DerivedField, MetricField, MetricSpec
from services.assembler import build_breakdown, round_record, round_to, share
from services.defaults import (
    GA4_ACQUISITION,
    GA4_DAILY_USERS,
    GA4_DEVICES,
    GA4_REALTIME,
    WEEKDAYS,
    fallback,
)
from services.grouping import by_dimension
from services.pipeline import SectionQuery, SourceProfile, overview_trends, summarize, totals
from services.trends import percent_change, previous_period

PROFILE = SourceProfile(
    key="ga4",
    label="GA4",
    default_days=30,
    limits={"channels": 10, "sources": 10, "landingPages": 20, "topPages": 5, "events": 5},
)

DAILY_DAYS = 7
EVENTS_PER_USER_MINUTE = 0.125

# First match wins; "Paid Search" must land in paid
ACQUISITION_BUCKETS = (
    ("paid", ("paid", "cpc")),
    ("organic", ("organic", "search")),
    ("direct", ("direct",)),
    ("referral", ("referral",)),
    ("social", ("social",)),
)

OVERVIEW_SCHEMA = RowSchema.from_sources(
    metrics={
        "sessions": "sessions",
        "activeUsers": "activeUsers",
        "pageViews": "screenPageViews",
        "eventCount": "eventCount",
        "engagedSessions": "engagedSessions",
        "avgSessionDuration": "averageSessionDuration",
    },
)

REALTIME_SCHEMA = RowSchema.from_sources(
    metrics={"activeUsers": "activeUsers", "pageViews": "screenPageViews"},
)

CHANNEL_SCHEMA = RowSchema.from_sources(
    dimensions={"channel": "sessionDefaultChannelGroup"},
    metrics={"sessions": "sessions", "activeUsers": "activeUsers"},
)

SOURCE_SCHEMA = RowSchema.from_sources(
    dimensions={"source": "sessionSource"},
    metrics={"sessions": "sessions", "activeUsers": "activeUsers"},
)

DEVICE_SCHEMA = RowSchema.from_sources(
    dimensions={"device": "deviceCategory"},
    metrics={"activeUsers": "activeUsers", "sessions": "sessions"},
)

PAGE_SCHEMA = RowSchema.from_sources(
    dimensions={"path": "pagePath"},
    metrics={"views": "screenPageViews", "avgSessionDuration": "averageSessionDuration"},
)

LANDING_PAGE_SCHEMA = RowSchema.from_sources(
    dimensions={"page": "landingPage"},
    metrics={"sessions": "sessions", "activeUsers": "activeUsers", "engagedSessions": "engagedSessions"},
)

EVENT_SCHEMA = RowSchema.from_sources(
    dimensions={"name": "eventName"},
    metrics={"count": "eventCount"},
)

DAILY_SCHEMA = RowSchema.from_sources(
    dimensions={"date": "date"},
    metrics={"activeUsers": "activeUsers", "sessions": "sessions"},
)

OVERVIEW_METRICS = MetricSpec(
    fields=(
        MetricField("sessions", kind="int"),
        MetricField("activeUsers", kind="int"),
        MetricField("pageViews", kind="int"),
        MetricField("eventCount", kind="int"),
        MetricField("engagedSessions", kind="int"),
        MetricField("avgSessionDuration", reduce=AVG),
    ),
    derived=(DerivedField("engagementRate", "engagedSessions", "sessions", scale=100),),
    averaging=MEAN,
)

REALTIME_METRICS = MetricSpec(
    fields=(MetricField("activeUsers", kind="int"), MetricField("pageViews", kind="int")),
)

TRAFFIC_METRICS = MetricSpec(
    fields=(MetricField("sessions", kind="int"), MetricField("activeUsers", kind="int")),
)

PAGE_METRICS = MetricSpec(
    fields=(MetricField("views", kind="int"), MetricField("avgSessionDuration", reduce=AVG)),
    averaging=MEAN,
)

LANDING_PAGE_METRICS = MetricSpec(
    fields=(
        MetricField("sessions", kind="int"),
        MetricField("activeUsers", kind="int"),
        MetricField("engagedSessions", kind="int"),
    ),
    derived=(DerivedField("engagementRate", "engagedSessions", "sessions", scale=100),),
)

EVENT_METRICS = MetricSpec(fields=(MetricField("count", kind="int"),))

OVERVIEW_TRENDS = {
    "sessionsTrend": "sessions",
    "activeUsersTrend": "activeUsers",
    "pageViewsTrend": "pageViews",
    "eventCountTrend": "eventCount",
    "engagementRateTrend": "engagementRate",
    "avgSessionDurationTrend": "avgSessionDuration",
}


def section_queries(connector, start: date, end: date) -> tuple:
    """(primary, secondaries) for one GA4 request."""
    prev_start, prev_end = previous_period(start, end)
    daily_start = max(start, end - timedelta(days=DAILY_DAYS - 1))

    def report(name, schema, window=(start, end), **kwargs):
        first, last = window
        return SectionQuery(name, partial(connector.run_report, schema, first.isoformat(), last.isoformat(), **kwargs))

    primary = report("overview", OVERVIEW_SCHEMA)
    secondaries = [
        report("previousOverview", OVERVIEW_SCHEMA, window=(prev_start, prev_end)),
        SectionQuery("realtime", partial(connector.run_realtime_report, REALTIME_SCHEMA)),
        report("channels", CHANNEL_SCHEMA),
        report("sources", SOURCE_SCHEMA, order_by="sessions"),
        report("devices", DEVICE_SCHEMA),
        report("pages", PAGE_SCHEMA, order_by="views"),
        report("landingPages", LANDING_PAGE_SCHEMA, order_by="sessions"),
        report("events", EVENT_SCHEMA, order_by="count"),
        report("previousEvents", EVENT_SCHEMA, window=(prev_start, prev_end)),
        report("daily", DAILY_SCHEMA, window=(daily_start, end)),
    ]
    return primary, secondaries


def format_duration(seconds: float) -> str:
    """Seconds as m:ss."""
    seconds = max(int(seconds or 0), 0)
    return f"{seconds // 60}:{seconds % 60:02d}"


def build_overview(current: dict, previous) -> dict:
    sessions = current["sessions"]
    engagement_rate = current["engagementRate"]
    bounce_rate = 100 - engagement_rate if sessions else 0

    overview = {
        "sessions": sessions,
        "activeUsers": current["activeUsers"],
        "pageViews": current["pageViews"],
        "eventCount": current["eventCount"],
        "engagementRate": round_to(engagement_rate, PROFILE.rate_digits),
        "bounceRate": round_to(bounce_rate, PROFILE.rate_digits),
        "avgSessionDuration": round_to(current["avgSessionDuration"], PROFILE.rate_digits),
    }
    overview.update(overview_trends(current, previous, OVERVIEW_TRENDS, PROFILE.trend_digits))
    return overview


def build_realtime(rows) -> dict:
    if not rows:
        return fallback(None, GA4_REALTIME)
    record = totals(rows, REALTIME_METRICS)
    return {
        "activeUsers": record["activeUsers"],
        "pageViews": record["pageViews"],
        "eventsPerMinute": math.floor(record["activeUsers"] * EVENTS_PER_USER_MINUTE),
    }


def _acquisition_bucket(channel: str):
    channel = channel.lower()
    for bucket, needles in ACQUISITION_BUCKETS:
        if any(needle in channel for needle in needles):
            return bucket
    return None


def build_acquisition(channels: dict) -> dict:
    """Channel sessions folded into five buckets, each a share of all sessions."""
    if not channels:
        return fallback(None, GA4_ACQUISITION)

    total_sessions = sum(record["sessions"] for record in channels.values())
    raw = {bucket: 0 for bucket, _ in ACQUISITION_BUCKETS}
    for channel, record in channels.items():
        bucket = _acquisition_bucket(channel)
        if bucket:
            raw[bucket] += share(record["sessions"], total_sessions)

    acquisition = {bucket: round_to(raw[bucket], PROFILE.share_digits) for bucket in GA4_ACQUISITION if bucket in raw}
    acquisition["totalSessions"] = total_sessions
    return acquisition


def build_channels(channels: dict) -> list[dict]:
    entries = build_breakdown(
        channels,
        label="channel",
        sort_by="sessions",
        limit=PROFILE.limit("channels"),
        share_of="sessions",
    )
    return [
        round_record({
            "channel": entry["channel"],
            "sessions": entry["sessions"],
            "users": entry["activeUsers"],
            "percentage": entry["percentage"],
        }, {"percentage": PROFILE.share_digits})
        for entry in entries
    ]


def build_sources(rows) -> list[dict]:
    entries = build_breakdown(
        summarize(rows, by_dimension("source", "direct"), TRAFFIC_METRICS),
        label="source",
        sort_by="sessions",
        limit=PROFILE.limit("sources"),
        share_of="sessions",
    )
    return [
        round_record({
            "source": entry["source"],
            "sessions": entry["sessions"],
            "users": entry["activeUsers"],
            "percentage": entry["percentage"],
        }, {"percentage": PROFILE.share_digits})
        for entry in entries
    ]


def build_devices(rows) -> tuple[dict, list[dict]]:
    """({desktop, mobile, tablet} user shares, per-device breakdown)."""
    entries = build_breakdown(
        summarize(rows, by_dimension("device", "desktop", normalize=str.lower), TRAFFIC_METRICS),
        label="device",
        sort_by="activeUsers",
        share_of="activeUsers",
    )
    breakdown = [
        round_record({
            "device": entry["device"],
            "users": entry["activeUsers"],
            "sessions": entry["sessions"],
            "percentage": entry["percentage"],
        }, {"percentage": PROFILE.share_digits})
        for entry in entries
    ]

    devices = fallback(None, GA4_DEVICES)
    for entry in breakdown:
        if entry["device"] in devices:
            devices[entry["device"]] = entry["percentage"]
    return devices, breakdown


def build_top_pages(rows) -> list[dict]:
    entries = build_breakdown(
        summarize(rows, by_dimension("path", "/"), PAGE_METRICS),
        label="path",
        sort_by="views",
        limit=PROFILE.limit("topPages"),
        share_of="views",
    )
    return [
        round_record({
            "path": entry["path"],
            "views": entry["views"],
            "avgTime": format_duration(entry["avgSessionDuration"]),
            "percentage": entry["percentage"],
        }, {"percentage": PROFILE.share_digits})
        for entry in entries
    ]


def build_landing_pages(rows) -> list[dict]:
    entries = build_breakdown(
        summarize(rows, by_dimension("page", "/"), LANDING_PAGE_METRICS),
        label="page",
        sort_by="sessions",
        limit=PROFILE.limit("landingPages"),
        share_of="sessions",
    )
    return [
        round_record({
            "page": entry["page"],
            "sessions": entry["sessions"],
            "users": entry["activeUsers"],
            "engagementRate": entry["engagementRate"],
            "percentage": entry["percentage"],
        }, {"engagementRate": PROFILE.rate_digits, "percentage": PROFILE.share_digits})
        for entry in entries
    ]


def build_events(rows, previous_rows) -> list[dict]:
    key_fn = by_dimension("name", "(not set)")
    previous = summarize(previous_rows, key_fn, EVENT_METRICS) if previous_rows is not None else None
    entries = build_breakdown(
        summarize(rows, key_fn, EVENT_METRICS),
        label="name",
        sort_by="count",
        limit=PROFILE.limit("events"),
        share_of="count",
    )

    events = []
    for entry in entries:
        if previous is None:
            trend = 0
        else:
            trend = percent_change(entry["count"], previous.get(entry["name"], {}).get("count", 0))
        events.append(round_record({
            "name": entry["name"],
            "count": entry["count"],
            "trend": trend,
            "percentage": entry["percentage"],
        }, {"trend": PROFILE.trend_digits, "percentage": PROFILE.share_digits}))
    return events


def _parse_ga4_date(value: str):
    try:
        return datetime.strptime(value, "%Y%m%d").date()
    except (TypeError, ValueError):
        return None


def build_daily_users(rows) -> list[dict]:
    """Users and sessions per day, oldest first, labelled by weekday."""
    by_day = summarize(rows, by_dimension("date", ""), TRAFFIC_METRICS)
    days = sorted(
        (day, record)
        for day, record in ((_parse_ga4_date(key), record) for key, record in by_day.items())
        if day is not None
    )
    if not days:
        return fallback(None, GA4_DAILY_USERS)

    return [
        {"date": WEEKDAYS[day.weekday()], "users": record["activeUsers"], "sessions": record["sessions"]}
        for day, record in days
    ]


def assemble(sections: dict, start: date, end: date, settings) -> dict:
    """GA4 payload from collected sections (None marks a failed section)."""
    current = totals(sections["overview"], OVERVIEW_METRICS)
    previous = sections.get("previousOverview")
    if previous is not None:
        previous = totals(previous, OVERVIEW_METRICS)

    channels = summarize(sections.get("channels"), by_dimension("channel", "Direct"), TRAFFIC_METRICS)
    devices, device_breakdown = build_devices(sections.get("devices"))

    return {
        "overview": build_overview(current, previous),
        "realtime": build_realtime(sections.get("realtime")),
        "acquisition": build_acquisition(channels),
        "channels": build_channels(channels),
        "sources": build_sources(sections.get("sources")),
        "devices": devices,
        "deviceBreakdown": device_breakdown,
        "topPages": build_top_pages(sections.get("pages")),
        "landingPages": build_landing_pages(sections.get("landingPages")),
        "events": build_events(sections.get("events"), sections.get("previousEvents")),
        "dailyUsers": build_daily_users(sections.get("daily")),
    }
