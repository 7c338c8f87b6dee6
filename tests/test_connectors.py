"""
Tests for the GA4, Search Console and Google Ads connectors with mocked
transports.
"""

import enum
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from google.auth.exceptions import RefreshError

from connectors.base import ReportSourceError, RowSchema
from connectors.credentials import NOT_AUTHENTICATED, CredentialError
from connectors.google_ads import GoogleAdsConnector, normalize_customer_id, resolve_path
from connectors.google_analytics import GA4Connector, is_valid_property_id
from connectors.google_search_console import SearchConsoleConnector


def http_response(status=200, body=None, text=""):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = body or {}
    response.text = text
    return response


def fake_credentials(tokens=("token-1", "token-2")):
    credentials = MagicMock()
    credentials.access_token.side_effect = list(tokens)
    return credentials


class TestRowSchema(unittest.TestCase):

    def test_decode_binds_by_position(self):
        schema = RowSchema.from_sources(
            dimensions={"device": "deviceCategory"},
            metrics={"users": "activeUsers", "views": "screenPageViews"},
        )

        row = schema.decode(["mobile"], ["3"])

        self.assertEqual(schema.provider_metrics, ["activeUsers", "screenPageViews"])
        self.assertEqual(row.dimension("device"), "mobile")
        self.assertEqual(row.metric("users"), "3")
        self.assertIsNone(row.metric("views"))


class TestGA4Connector(unittest.TestCase):

    SCHEMA = RowSchema.from_sources(
        dimensions={"device": "deviceCategory"},
        metrics={"users": "activeUsers"},
    )

    def test_property_id_validation(self):
        self.assertTrue(is_valid_property_id("123456"))
        self.assertFalse(is_valid_property_id("G-ABC123"))
        with self.assertRaises(ValueError):
            GA4Connector("G-ABC123", fake_credentials())

    @patch("connectors.google_analytics.requests.post")
    def test_run_report_decodes_rows(self, mock_post):
        mock_post.return_value = http_response(body={
            "rows": [
                {"dimensionValues": [{"value": "mobile"}], "metricValues": [{"value": "12"}]},
                {"dimensionValues": [{"value": "desktop"}], "metricValues": [{"value": "30"}]},
            ],
            "rowCount": 2,
        })
        connector = GA4Connector("123456", fake_credentials())

        rows = connector.run_report(self.SCHEMA, "2024-01-01", "2024-01-31", order_by="users")

        self.assertEqual([r.dimension("device") for r in rows], ["mobile", "desktop"])
        self.assertEqual(rows[1].metric("users"), "30")
        body = mock_post.call_args.kwargs["json"]
        self.assertEqual(body["dimensions"], [{"name": "deviceCategory"}])
        self.assertEqual(body["orderBys"][0]["metric"]["metricName"], "activeUsers")
        self.assertTrue(mock_post.call_args.args[0].endswith("properties/123456:runReport"))

    @patch("connectors.google_analytics.requests.post")
    def test_pages_until_row_count(self, mock_post):
        page = {"dimensionValues": [{"value": "x"}], "metricValues": [{"value": "1"}]}
        mock_post.side_effect = [
            http_response(body={"rows": [page, page], "rowCount": 3}),
            http_response(body={"rows": [page], "rowCount": 3}),
        ]
        connector = GA4Connector("123456", fake_credentials())

        rows = connector.run_report(self.SCHEMA, "2024-01-01", "2024-01-31")

        self.assertEqual(len(rows), 3)
        self.assertEqual(mock_post.call_args.kwargs["json"]["offset"], 2)

    @patch("connectors.google_analytics.requests.post")
    def test_retries_once_on_401(self, mock_post):
        mock_post.side_effect = [http_response(status=401), http_response(body={"rows": [], "rowCount": 0})]
        credentials = fake_credentials()
        connector = GA4Connector("123456", credentials)

        rows = connector.run_report(self.SCHEMA, "2024-01-01", "2024-01-31")

        self.assertEqual(rows, [])
        self.assertTrue(credentials.access_token.call_args.kwargs["force_refresh"])
        self.assertEqual(mock_post.call_args.kwargs["headers"]["Authorization"], "Bearer token-2")

    @patch("connectors.google_analytics.requests.post")
    def test_error_carries_status(self, mock_post):
        mock_post.return_value = http_response(status=403, body={"error": {"message": "User does not have access"}})
        connector = GA4Connector("123456", fake_credentials())

        with self.assertRaises(ReportSourceError) as ctx:
            connector.run_report(self.SCHEMA, "2024-01-01", "2024-01-31")

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertIn("User does not have access", str(ctx.exception))


class TestSearchConsoleConnector(unittest.TestCase):

    SCHEMA = RowSchema(dimensions=("query", "page"), metrics=("clicks", "impressions", "ctr", "position"))

    @patch("connectors.google_search_console.requests.post")
    @patch("connectors.google_search_console.requests.get")
    def test_uses_first_verified_site(self, mock_get, mock_post):
        mock_get.return_value = http_response(body={"siteEntry": [{"siteUrl": "sc-domain:example.com"}]})
        mock_post.return_value = http_response(body={"rows": [
            {"keys": ["shoes", "https://example.com/"], "clicks": 4, "impressions": 40, "ctr": 0.1, "position": 3.2},
        ]})
        connector = SearchConsoleConnector(fake_credentials(["token"]))

        rows = connector.search_analytics(self.SCHEMA, "2024-01-01", "2024-01-28")

        self.assertEqual(connector.site_url, "sc-domain:example.com")
        self.assertIn("sc-domain%3Aexample.com", mock_post.call_args.args[0])
        self.assertEqual(rows[0].dimension("query"), "shoes")
        self.assertEqual(rows[0].metric("position"), 3.2)
        self.assertEqual(mock_post.call_args.kwargs["json"]["dimensions"], ["query", "page"])

    @patch("connectors.google_search_console.requests.get")
    def test_no_sites_is_not_found(self, mock_get):
        mock_get.return_value = http_response(body={})
        connector = SearchConsoleConnector(fake_credentials(["token"]))

        with self.assertRaises(ReportSourceError) as ctx:
            connector.resolve_site()

        self.assertEqual(ctx.exception.status_code, 404)

    @patch("connectors.google_search_console.requests.post")
    def test_quota_error(self, mock_post):
        mock_post.return_value = http_response(status=429, body={"error": {"message": "Quota exceeded"}})
        connector = SearchConsoleConnector(fake_credentials(["token"]), site_url="https://example.com/")

        with self.assertRaises(ReportSourceError) as ctx:
            connector.search_analytics(self.SCHEMA, "2024-01-01", "2024-01-28")

        self.assertEqual(ctx.exception.status_code, 429)


class TestGoogleAdsHelpers(unittest.TestCase):

    def test_normalize_customer_id(self):
        self.assertEqual(normalize_customer_id("270-641-8609"), "2706418609")
        self.assertIsNone(normalize_customer_id(None))

    def test_resolve_path(self):
        class Device(enum.Enum):
            MOBILE = 2

        row = SimpleNamespace(
            segments=SimpleNamespace(device=Device.MOBILE),
            metrics=SimpleNamespace(cost_micros=2_500_000),
        )

        self.assertEqual(resolve_path(row, "segments.device"), "MOBILE")
        self.assertEqual(resolve_path(row, "metrics.cost_micros"), 2_500_000)
        self.assertIsNone(resolve_path(row, "campaign.name"))


class TestGoogleAdsConnector(unittest.TestCase):

    SCHEMA = RowSchema.from_sources(
        dimensions={"name": "campaign.name"},
        metrics={"clicks": "metrics.clicks"},
    )

    def setUp(self):
        self.connector = GoogleAdsConnector("dev-token", "client-id", "client-secret", "refresh", "270-641-8609")
        self.connector.client = MagicMock()
        self.stream = self.connector.client.get_service.return_value.search_stream

    def test_query_decodes_stream(self):
        row = SimpleNamespace(campaign=SimpleNamespace(name="Brand"), metrics=SimpleNamespace(clicks=12))
        self.stream.return_value = [SimpleNamespace(results=[row])]

        rows = self.connector.query(self.SCHEMA, "SELECT campaign.name, metrics.clicks FROM campaign")

        self.assertEqual(rows[0].dimension("name"), "Brand")
        self.assertEqual(rows[0].metric("clicks"), 12)
        self.assertEqual(self.stream.call_args.kwargs["customer_id"], "2706418609")

    def test_rejected_refresh_token(self):
        self.stream.side_effect = RefreshError("invalid_grant: Token has been expired or revoked.")

        with self.assertRaises(CredentialError) as ctx:
            self.connector.query(self.SCHEMA, "SELECT campaign.name FROM campaign")

        self.assertEqual(ctx.exception.reason, NOT_AUTHENTICATED)
        self.assertEqual(ctx.exception.service, "ads")


if __name__ == "__main__":
    unittest.main()
