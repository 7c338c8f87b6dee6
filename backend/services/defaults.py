"""
Fallback payload literals.

Chart widgets expect populated series; when a section is empty or its query
failed, the assembler substitutes one of these.
"""

import copy

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# Google Ads
ADS_SPEND_OVER_TIME = [{"date": day, "spend": 0} for day in WEEKDAYS]

ADS_RECOMMENDATIONS = [
    {"type": "budget", "title": "Increase budget for high-performing campaigns", "impact": "high", "potential": "+23% conversions"},
    {"type": "keyword", "title": "Add negative keywords to reduce waste", "impact": "medium", "potential": "-12% spend"},
    {"type": "bid", "title": "Adjust bids for mobile devices", "impact": "medium", "potential": "+15% CTR"},
    {"type": "ad", "title": "Test new ad copy variations", "impact": "low", "potential": "+8% CTR"},
]

# Search Console
GSC_CLICKS_OVER_TIME = [{"date": f"Week {n}", "clicks": 0} for n in range(1, 5)]

# Placeholders until PageSpeed Insights is wired in
GSC_CORE_WEB_VITALS = {
    "lcp": {"value": 2.1, "status": "good"},
    "fid": {"value": 45, "status": "good"},
    "cls": {"value": 0.08, "status": "good"},
    "fcp": {"value": 1.2, "status": "good"},
    "ttfb": {"value": 0.4, "status": "good"},
}

# Share of clicks used to estimate indexing status without URL inspection calls
GSC_INDEXING_RATIOS = {
    "indexed": 0.95,
    "notIndexed": 0.05,
    "crawled": 1.1,
    "errors": 0.01,
}

# GA4
GA4_DAILY_USERS = [{"date": day, "users": 0, "sessions": 0} for day in WEEKDAYS]

GA4_REALTIME = {"activeUsers": 0, "pageViews": 0, "eventsPerMinute": 0}

GA4_DEVICES = {"desktop": 0, "mobile": 0, "tablet": 0}

GA4_ACQUISITION = {"organic": 0, "direct": 0, "referral": 0, "social": 0, "paid": 0, "totalSessions": 0}


def fallback(section, default):
    """`section` if it has content, otherwise a fresh copy of `default`."""
    if section:
        return section
    return copy.deepcopy(default)
