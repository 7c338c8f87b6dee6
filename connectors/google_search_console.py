"""
Google Search Console Connector

Reads search analytics through the Webmasters v3 API with an OAuth bearer
token. Rows come back as `keys` (one per requested dimension) plus named
clicks/impressions/ctr/position and are decoded through a RowSchema.
"""

import logging
from typing import Optional

import requests

from connectors.base import ReportRow, ReportSourceError, RowSchema

logger = logging.getLogger(__name__)


class SearchConsoleConnector:
    """Connector for Google Search Console Search Analytics API."""

    API_BASE = "https://searchconsole.googleapis.com/webmasters/v3"
    MAX_ROWS_PER_REQUEST = 25000

    def __init__(self, credentials, site_url: Optional[str] = None, cookies: Optional[dict] = None, timeout: float = 60):
        self.credentials = credentials
        self.site_url = site_url
        self.cookies = cookies or {}
        self.timeout = timeout
        self.access_token = None

    def _headers(self, force_refresh: bool = False) -> dict:
        if self.access_token is None or force_refresh:
            self.access_token = self.credentials.access_token("gsc", self.cookies, force_refresh=force_refresh)
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _send(self, method: str, url: str, data: Optional[dict], force_refresh: bool = False):
        headers = self._headers(force_refresh=force_refresh)
        if method == "GET":
            return requests.get(url, headers=headers, timeout=self.timeout)
        return requests.post(url, headers=headers, json=data, timeout=self.timeout)

    def _api_request(self, endpoint: str, method: str = "GET", data: dict = None) -> dict:
        """Make API request to GSC."""
        url = f"{self.API_BASE}/{endpoint}"

        try:
            response = self._send(method, url, data)
            if response.status_code == 401:
                # Token expired, refresh and retry
                response = self._send(method, url, data, force_refresh=True)
        except requests.RequestException as e:
            raise ReportSourceError(f"GSC API request failed: {e}", source="gsc") from e

        if response.status_code != 200:
            raise ReportSourceError(
                f"GSC API Error: {response.status_code} - {_error_message(response)}",
                status_code=response.status_code,
                source="gsc",
            )

        return response.json()

    def list_sites(self) -> list:
        """List all verified sites in GSC."""
        result = self._api_request("sites")
        return result.get("siteEntry", [])

    def resolve_site(self) -> str:
        """Configured site URL, or the first verified site."""
        if self.site_url:
            return self.site_url

        sites = self.list_sites()
        if not sites:
            raise ReportSourceError(
                "No sites found in Search Console. Please add a property to Google Search Console first.",
                status_code=404,
                source="gsc",
            )

        self.site_url = sites[0].get("siteUrl")
        logger.info("[GSC] Using first verified site: %s", self.site_url)
        return self.site_url

    def search_analytics(
        self,
        schema: RowSchema,
        start_date: str,
        end_date: str,
        row_limit: int = 1000,
        search_type: str = "web",
    ) -> list[ReportRow]:
        """
        Get search analytics data.

        Args:
            schema: Dimensions like ("query", "page", "date") and metrics
                    drawn from clicks, impressions, ctr, position
            start_date: YYYY-MM-DD
            end_date: YYYY-MM-DD
            row_limit: Max rows to return (paged in 25000-row requests)
            search_type: "web", "image", "video", "news"

        Returns:
            Decoded rows
        """
        site = self.resolve_site()
        encoded_site = requests.utils.quote(site, safe="")

        rows = []
        while len(rows) < row_limit:
            page_size = min(row_limit - len(rows), self.MAX_ROWS_PER_REQUEST)
            data = {
                "startDate": start_date,
                "endDate": end_date,
                "dimensions": schema.provider_dimensions,
                "rowLimit": page_size,
                "startRow": len(rows),
                "searchType": search_type,
            }
            result = self._api_request(
                f"sites/{encoded_site}/searchAnalytics/query",
                method="POST",
                data=data,
            )
            page = result.get("rows", [])
            rows.extend(
                schema.decode(row.get("keys", []), [row.get(m) for m in schema.provider_metrics])
                for row in page
            )
            if len(page) < page_size:
                break

        return rows


def _error_message(response) -> str:
    try:
        return response.json().get("error", {}).get("message") or response.text
    except ValueError:
        return response.text
