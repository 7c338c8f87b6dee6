"""
Google Analytics 4 Connector

Runs GA4 Data API reports over REST with an OAuth bearer token:
- runReport (paged by offset until rowCount is reached)
- runRealtimeReport

Rows are decoded through the caller's RowSchema on receipt.
"""

import logging
import re
from typing import Optional

import requests

from connectors.base import ReportRow, ReportSourceError, RowSchema

logger = logging.getLogger(__name__)

PROPERTY_ID_PATTERN = re.compile(r"^\d+$")


def is_valid_property_id(property_id: Optional[str]) -> bool:
    """GA4 property IDs are numeric strings (not the G-XXXX measurement ID)."""
    return bool(property_id) and bool(PROPERTY_ID_PATTERN.match(str(property_id).strip()))


class GA4Connector:
    """Connector for Google Analytics 4 Data API."""

    API_BASE = "https://analyticsdata.googleapis.com/v1beta"
    PAGE_SIZE = 10000

    def __init__(self, property_id: str, credentials, cookies: Optional[dict] = None, timeout: float = 60):
        if not is_valid_property_id(property_id):
            raise ValueError(f"Invalid Property ID: {property_id}. Property ID must be a numeric string.")

        self.property_id = str(property_id).strip()
        self.credentials = credentials
        self.cookies = cookies or {}
        self.timeout = timeout
        self.access_token = None

    def _headers(self, force_refresh: bool = False) -> dict:
        if self.access_token is None or force_refresh:
            self.access_token = self.credentials.access_token("ga4", self.cookies, force_refresh=force_refresh)
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _api_request(self, endpoint: str, data: dict) -> dict:
        """Make API request to GA4 Data API."""
        url = f"{self.API_BASE}/{endpoint}"

        try:
            response = requests.post(url, headers=self._headers(), json=data, timeout=self.timeout)

            if response.status_code == 401:
                # Token expired, refresh and retry
                response = requests.post(
                    url, headers=self._headers(force_refresh=True), json=data, timeout=self.timeout
                )
        except requests.RequestException as e:
            raise ReportSourceError(f"GA4 API request failed: {e}", source="ga4") from e

        if response.status_code != 200:
            raise ReportSourceError(
                f"GA4 API Error: {response.status_code} - {_error_message(response)}",
                status_code=response.status_code,
                source="ga4",
            )

        return response.json()

    def run_report(
        self,
        schema: RowSchema,
        start_date: str,
        end_date: str,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[ReportRow]:
        """
        Run a GA4 report.

        Args:
            schema: Dimension/metric order of the report
            start_date: YYYY-MM-DD
            end_date: YYYY-MM-DD
            order_by: Metric name to sort by, descending
            limit: Max rows to return; all pages are read when omitted

        Returns:
            Decoded report rows
        """
        data = {
            "dateRanges": [{"startDate": start_date, "endDate": end_date}],
            "metrics": [{"name": m} for m in schema.provider_metrics],
        }
        if schema.dimensions:
            data["dimensions"] = [{"name": d} for d in schema.provider_dimensions]
        if order_by:
            data["orderBys"] = [{"metric": {"metricName": schema.source(order_by)}, "desc": True}]

        endpoint = f"properties/{self.property_id}:runReport"
        rows = []
        offset = 0

        while True:
            page_size = min(limit - len(rows), self.PAGE_SIZE) if limit else self.PAGE_SIZE
            result = self._api_request(endpoint, {**data, "limit": page_size, "offset": offset})
            page = result.get("rows", [])
            rows.extend(_decode_rows(schema, page))

            row_count = int(result.get("rowCount") or 0)
            offset += len(page)
            if not page or offset >= row_count or (limit and len(rows) >= limit):
                break

        return rows

    def run_realtime_report(self, schema: RowSchema) -> list[ReportRow]:
        """Run a realtime report (last 30 minutes)."""
        data = {"metrics": [{"name": m} for m in schema.provider_metrics]}
        if schema.dimensions:
            data["dimensions"] = [{"name": d} for d in schema.provider_dimensions]

        result = self._api_request(f"properties/{self.property_id}:runRealtimeReport", data)
        return _decode_rows(schema, result.get("rows", []))


def _decode_rows(schema: RowSchema, rows: list) -> list[ReportRow]:
    return [
        schema.decode(
            [d.get("value") for d in row.get("dimensionValues", [])],
            [m.get("value") for m in row.get("metricValues", [])],
        )
        for row in rows
    ]


def _error_message(response) -> str:
    try:
        return response.json().get("error", {}).get("message") or response.text
    except ValueError:
        return response.text
