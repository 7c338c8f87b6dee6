"""
Google Ads report: GAQL queries, row schemas and payload assembly.

Primary section is the campaign query; ad groups, devices, keywords, daily
spend and the prior-window totals are best effort.
"""

from datetime import date, timedelta
from functools import partial

from connectors.base import RowSchema
from services.aggregation import MEAN, AVG, DerivedField, MetricField, MetricSpec
from services.assembler import build_breakdown, round_record, round_to
from services.defaults import ADS_RECOMMENDATIONS, ADS_SPEND_OVER_TIME, WEEKDAYS, fallback
from services.grouping import by_dimension, by_dimensions
from services.periods import trailing_days
from services.pipeline import SectionQuery, SourceProfile, overview_trends, summarize, totals
from services.trends import previous_period

PROFILE = SourceProfile(
    key="ads",
    label="Google Ads",
    default_days=30,
    limits={"campaigns": 10, "adGroups": 10, "keywords": 5},
)

DEVICE_LABELS = {"DESKTOP": "Desktop", "MOBILE": "Mobile", "TABLET": "Tablet"}

SPEND_DAYS = 7

_PERFORMANCE_METRICS = {
    "impressions": "metrics.impressions",
    "clicks": "metrics.clicks",
    "cost_micros": "metrics.cost_micros",
    "conversions": "metrics.conversions",
}

CAMPAIGN_SCHEMA = RowSchema.from_sources(
    dimensions={"id": "campaign.id", "name": "campaign.name", "status": "campaign.status"},
    metrics=_PERFORMANCE_METRICS,
)

PREVIOUS_SCHEMA = RowSchema.from_sources(
    metrics={
        "clicks": "metrics.clicks",
        "cost_micros": "metrics.cost_micros",
        "conversions": "metrics.conversions",
    },
)

AD_GROUP_SCHEMA = RowSchema.from_sources(
    dimensions={"id": "ad_group.id", "name": "ad_group.name"},
    metrics=_PERFORMANCE_METRICS,
)

DEVICE_SCHEMA = RowSchema.from_sources(
    dimensions={"device": "segments.device"},
    metrics=_PERFORMANCE_METRICS,
)

KEYWORD_SCHEMA = RowSchema.from_sources(
    dimensions={"keyword": "ad_group_criterion.keyword.text"},
    metrics={
        "clicks": "metrics.clicks",
        "cost_micros": "metrics.cost_micros",
        "conversions": "metrics.conversions",
        "quality_score": "ad_group_criterion.quality_info.quality_score",
    },
)

DAILY_SCHEMA = RowSchema.from_sources(
    dimensions={"date": "segments.date"},
    metrics={"cost_micros": "metrics.cost_micros"},
)

PERFORMANCE = MetricSpec(
    fields=(
        MetricField("impressions", kind="int"),
        MetricField("clicks", kind="int"),
        MetricField("spend", source="cost_micros", unit="micros"),
        MetricField("conversions", kind="int"),
    ),
    derived=(
        DerivedField("ctr", "clicks", "impressions", scale=100),
        DerivedField("avgCPC", "spend", "clicks"),
        DerivedField("costPerConversion", "spend", "conversions"),
    ),
)

KEYWORD_METRICS = MetricSpec(
    fields=(
        MetricField("clicks", kind="int"),
        MetricField("spend", source="cost_micros", unit="micros"),
        MetricField("conversions", kind="int"),
        MetricField("quality", source="quality_score", reduce=AVG, kind="int"),
    ),
    derived=(DerivedField("cpc", "spend", "clicks"),),
    averaging=MEAN,
)

DAILY_METRICS = MetricSpec(fields=(MetricField("spend", source="cost_micros", unit="micros"),))

OVERVIEW_TRENDS = {
    "clicksTrend": "clicks",
    "conversionsTrend": "conversions",
    "costTrend": "spend",
    "costPerConversionTrend": "costPerConversion",
}

ENTRY_PRECISION = {"ctr": 2, "spend": 2, "avgCPC": 2, "percentage": PROFILE.share_digits}


def gaql(schema: RowSchema, resource: str, start: date, end: date, where: str = "", order_by: str = "") -> str:
    """GAQL selecting every field of `schema` over a date window."""
    fields = ",\n        ".join(schema.provider_dimensions + schema.provider_metrics)
    query = (
        f"SELECT\n        {fields}\n"
        f"      FROM {resource}\n"
        f"      WHERE segments.date BETWEEN '{start.isoformat()}' AND '{end.isoformat()}'"
    )
    if where:
        query += f"\n        AND {where}"
    if order_by:
        query += f"\n      ORDER BY {order_by} DESC"
    return query


def section_queries(connector, start: date, end: date) -> tuple:
    """(primary, secondaries) for one Ads request."""
    prev_start, prev_end = previous_period(start, end)
    spend_start = max(start, end - timedelta(days=SPEND_DAYS - 1))

    def query(name, schema, resource, window=(start, end), **kwargs):
        return SectionQuery(name, partial(connector.query, schema, gaql(schema, resource, *window, **kwargs)))

    primary = query("campaigns", CAMPAIGN_SCHEMA, "campaign", order_by="metrics.cost_micros")
    secondaries = [
        query("previous", PREVIOUS_SCHEMA, "campaign", window=(prev_start, prev_end)),
        query("adGroups", AD_GROUP_SCHEMA, "ad_group", where="ad_group.status != 'REMOVED'",
              order_by="metrics.cost_micros"),
        query("devices", DEVICE_SCHEMA, "campaign"),
        query("keywords", KEYWORD_SCHEMA, "keyword_view", where="ad_group_criterion.type = 'KEYWORD'",
              order_by="metrics.clicks"),
        query("daily", DAILY_SCHEMA, "campaign", window=(spend_start, end)),
    ]
    return primary, secondaries


def build_overview(current: dict, previous, conversion_value: float) -> dict:
    spend = current["spend"]
    roas = current["conversions"] * conversion_value / spend if spend else 0
    trends = overview_trends(current, previous, OVERVIEW_TRENDS, PROFILE.trend_digits)

    return {
        "clicks": current["clicks"],
        "clicksTrend": trends["clicksTrend"],
        "conversions": current["conversions"],
        "conversionsTrend": trends["conversionsTrend"],
        "cost": round_to(spend, PROFILE.money_digits),
        "costTrend": trends["costTrend"],
        "costPerConversion": round_to(current["costPerConversion"], PROFILE.money_digits),
        "costPerConversionTrend": trends["costPerConversionTrend"],
        "totalSpend": round_to(spend, PROFILE.money_digits),
        "totalConversions": current["conversions"],
        "avgCPC": round_to(current["avgCPC"], PROFILE.money_digits),
        "avgCTR": round_to(current["ctr"], PROFILE.rate_digits),
        "roas": round_to(roas, 1),
        "spendTrend": trends["costTrend"],
    }


def build_campaigns(rows) -> list[dict]:
    key_fn = by_dimensions(
        by_dimension("id", ""),
        by_dimension("name", "Unnamed Campaign"),
        by_dimension("status", "UNKNOWN"),
    )
    entries = build_breakdown(
        summarize(rows, key_fn, PERFORMANCE),
        label="key",
        sort_by="spend",
        limit=PROFILE.limit("campaigns"),
        share_of="spend",
    )
    campaigns = []
    for entry in entries:
        _, name, status = entry["key"]
        campaigns.append(round_record({
            "name": name,
            "impressions": entry["impressions"],
            "clicks": entry["clicks"],
            "ctr": entry["ctr"],
            "spend": entry["spend"],
            "avgCPC": entry["avgCPC"],
            "conversions": entry["conversions"],
            "status": "active" if status == "ENABLED" else "paused",
            "percentage": entry["percentage"],
        }, ENTRY_PRECISION))
    return campaigns


def build_ad_groups(rows) -> list[dict]:
    key_fn = by_dimensions(by_dimension("id", ""), by_dimension("name", "Unnamed Ad Group"))
    entries = build_breakdown(
        summarize(rows, key_fn, PERFORMANCE),
        label="key",
        sort_by="spend",
        limit=PROFILE.limit("adGroups"),
        share_of="spend",
    )
    return [
        round_record({
            "name": entry["key"][1],
            "impressions": entry["impressions"],
            "clicks": entry["clicks"],
            "ctr": entry["ctr"],
            "spend": entry["spend"],
            "avgCPC": entry["avgCPC"],
            "conversions": entry["conversions"],
            "percentage": entry["percentage"],
        }, ENTRY_PRECISION)
        for entry in entries
    ]


def build_devices(rows) -> list[dict]:
    entries = build_breakdown(
        summarize(rows, by_dimension("device", "UNKNOWN"), PERFORMANCE),
        label="device",
        sort_by="impressions",
        share_of="impressions",
        labels=lambda device: DEVICE_LABELS.get(device, device),
    )
    return [
        round_record({
            "device": entry["device"],
            "impressions": entry["impressions"],
            "clicks": entry["clicks"],
            "spend": entry["spend"],
            "conversions": entry["conversions"],
            "ctr": entry["ctr"],
            "avgCPC": entry["avgCPC"],
            "percentage": entry["percentage"],
        }, ENTRY_PRECISION)
        for entry in entries
    ]


def build_keywords(rows) -> list[dict]:
    entries = build_breakdown(
        summarize(rows, by_dimension("keyword", "Unknown"), KEYWORD_METRICS),
        label="keyword",
        sort_by="clicks",
        limit=PROFILE.limit("keywords"),
        share_of="clicks",
    )
    return [
        round_record({
            "keyword": entry["keyword"],
            "clicks": entry["clicks"],
            "cpc": entry["cpc"],
            "conversions": entry["conversions"],
            "quality": entry["quality"],
            "percentage": entry["percentage"],
        }, {"cpc": PROFILE.money_digits, "quality": 0, "percentage": PROFILE.share_digits})
        for entry in entries
    ]


def build_spend_over_time(rows, end: date) -> list[dict]:
    """Seven weekday-labelled days ending at `end`."""
    if not rows:
        return fallback(None, ADS_SPEND_OVER_TIME)

    by_day = summarize(rows, by_dimension("date", ""), DAILY_METRICS)
    return [
        {
            "date": WEEKDAYS[day.weekday()],
            "spend": round_to(by_day.get(day.isoformat(), {}).get("spend", 0), PROFILE.money_digits),
        }
        for day in trailing_days(end, SPEND_DAYS)
    ]


def assemble(sections: dict, start: date, end: date, settings) -> dict:
    """Ads payload from collected sections (None marks a failed section)."""
    current = totals(sections["campaigns"], PERFORMANCE)
    previous = sections.get("previous")
    if previous is not None:
        previous = totals(previous, PERFORMANCE)

    return {
        "overview": build_overview(current, previous, settings.ads_assumed_conversion_value),
        "campaigns": build_campaigns(sections["campaigns"]),
        "adGroups": build_ad_groups(sections.get("adGroups")),
        "devices": build_devices(sections.get("devices")),
        "keywords": build_keywords(sections.get("keywords")),
        "recommendations": fallback(None, ADS_RECOMMENDATIONS),
        "spendOverTime": build_spend_over_time(sections.get("daily"), end),
    }
