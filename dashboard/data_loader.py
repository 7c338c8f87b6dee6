"""
Data loading utilities for the Marketing Analytics Dashboard.

Fetches the per-source payloads from the API. Responses are cached for ten
minutes per (source, date range); failed calls return an error dict instead
of a payload so pages can show the API's message.
"""

import os
from datetime import date, timedelta
from typing import Optional

import requests
import streamlit as st
from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")

CACHE_TTL_SECONDS = 600
REQUEST_TIMEOUT = 120

DEFAULT_WINDOWS = {"ga4": 30, "gsc": 28, "ads": 30}


def default_range(source: str) -> tuple[date, date]:
    """Trailing window the API uses when no dates are given."""
    end = date.today()
    return end - timedelta(days=DEFAULT_WINDOWS.get(source, 30)), end


@st.cache_data(ttl=CACHE_TTL_SECONDS, show_spinner=False)
def fetch_source(source: str, start_date: str, end_date: str, extra: Optional[tuple] = None) -> dict:
    """
    GET /api/<source>/data.

    Returns:
        {"data": payload} on success, {"error": {...}, "status": code} otherwise
    """
    params = {"startDate": start_date, "endDate": end_date}
    if extra:
        params.update(dict(extra))

    try:
        response = requests.get(f"{API_BASE_URL}/api/{source}/data", params=params, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        return {"error": {"error": "API unreachable", "details": str(e), "code": "UNREACHABLE"}, "status": None}

    try:
        body = response.json()
    except ValueError:
        body = {"error": "Invalid response", "details": response.text[:500], "code": "UNKNOWN_ERROR"}

    if response.status_code != 200:
        return {"error": body, "status": response.status_code}
    return {"data": body}


def get_ga4_data(start: date, end: date, property_id: Optional[str] = None) -> dict:
    extra = (("propertyId", property_id),) if property_id else None
    return fetch_source("ga4", start.isoformat(), end.isoformat(), extra)


def get_gsc_data(start: date, end: date, site_url: Optional[str] = None) -> dict:
    extra = (("siteUrl", site_url),) if site_url else None
    return fetch_source("gsc", start.isoformat(), end.isoformat(), extra)


def get_ads_data(start: date, end: date) -> dict:
    return fetch_source("ads", start.isoformat(), end.isoformat())


def show_error(result: dict):
    """Render an API error body."""
    error = result.get("error", {})
    status = result.get("status")
    title = error.get("error", "Request failed")
    st.error(f"{title} ({status})" if status else title)
    if error.get("details"):
        st.caption(error["details"])


def format_currency(value: float) -> str:
    """Format a number as currency."""
    if value >= 1000:
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def format_percent(value: float, decimals: int = 1) -> str:
    """Format a number as percentage."""
    return f"{value:.{decimals}f}%"


def format_number(value: float) -> str:
    return f"{value:,.0f}"


def format_trend(value: float) -> str:
    """Signed trend for st.metric deltas."""
    return f"{value:+.1f}%"


def date_range_picker(source: str) -> tuple[date, date]:
    """Sidebar date range, defaulting to the source's trailing window."""
    default_start, default_end = default_range(source)
    picked = st.sidebar.date_input("Date range", value=(default_start, default_end), key=f"{source}_range")
    if isinstance(picked, (tuple, list)) and len(picked) == 2:
        return picked[0], picked[1]
    return default_start, default_end
