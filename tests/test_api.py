"""
API tests: FastAPI TestClient with connectors replaced by in-memory fakes.
"""

import unittest
from dataclasses import replace
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient
from google.auth.exceptions import RefreshError

from config import Settings, get_settings
from connectors.base import ReportSourceError
from connectors.credentials import CredentialError
from connectors.google_ads import GoogleAdsConnector
from main import app
from routers.deps import get_ads_connector, get_ga4_connector, get_gsc_connector
from services import ads_report, ga4_report, gsc_report

SETTINGS = Settings(
    google_client_id="client-id",
    google_client_secret="client-secret",
    ga4_property_id="123456",
    ads_developer_token="dev-token",
    ads_customer_id="2706418609",
    parallel_queries=False,
)


class FakeAdsConnector:
    customer_id = "2706418609"

    def __init__(self, fail=()):
        self.fail = fail

    def query(self, schema, query):
        if schema in self.fail:
            raise ReportSourceError("Google Ads API Error (RESOURCE_EXHAUSTED): quota", status_code=429)
        if schema is ads_report.CAMPAIGN_SCHEMA:
            return [schema.decode(["1", "A", "ENABLED"], [1000, 50, 25_000_000, 5])]
        return []


class FakeGscConnector:
    site_url = "https://example.com/"

    def __init__(self, error=None):
        self.error = error

    def search_analytics(self, schema, start_date, end_date, row_limit=1000, search_type="web"):
        if self.error:
            raise self.error
        if schema is gsc_report.SEARCH_SCHEMA:
            return [schema.decode(["shoes", "/", start_date], [10, 0, 0, 3])]
        if schema is gsc_report.DAILY_SCHEMA:
            return [schema.decode([start_date], [10, 0, 0, 3])]
        return []


class FakeGa4Connector:
    property_id = "123456"

    def run_report(self, schema, start_date, end_date, order_by=None, limit=None):
        if schema is ga4_report.OVERVIEW_SCHEMA:
            return [schema.decode([], ["100", "80", "300", "900", "60", "42.0"])]
        if schema is ga4_report.CHANNEL_SCHEMA:
            raise ReportSourceError("GA4 API Error: 500 - backend error", status_code=500)
        return []

    def run_realtime_report(self, schema):
        return [schema.decode([], ["8", "20"])]


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        app.dependency_overrides[get_settings] = lambda: SETTINGS
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def use(self, dependency, connector):
        app.dependency_overrides[dependency] = lambda: connector


class TestHealth(ApiTestCase):

    def test_root(self):
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_health_lists_endpoints(self):
        self.assertIn("/api/ads/data", self.client.get("/api/health").json()["endpoints"])


class TestAdsApi(ApiTestCase):

    def test_success(self):
        self.use(get_ads_connector, FakeAdsConnector())

        response = self.client.get("/api/ads/data", params={"startDate": "2024-05-01", "endDate": "2024-05-31"})

        self.assertEqual(response.status_code, 200)
        overview = response.json()["overview"]
        self.assertEqual(overview["cost"], 25.0)
        self.assertEqual(overview["clicksTrend"], 100)
        self.assertEqual(overview["costPerConversion"], 5.0)

    def test_secondary_failure_still_200(self):
        self.use(get_ads_connector, FakeAdsConnector(fail=(ads_report.KEYWORD_SCHEMA, ads_report.DAILY_SCHEMA)))

        response = self.client.get("/api/ads/data")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["keywords"], [])
        self.assertEqual(body["spendOverTime"][0], {"date": "Mon", "spend": 0})

    def test_primary_failure_maps_status(self):
        self.use(get_ads_connector, FakeAdsConnector(fail=(ads_report.CAMPAIGN_SCHEMA,)))

        response = self.client.get("/api/ads/data")

        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()["code"], "QUOTA_EXCEEDED")

    def test_invalid_dates(self):
        self.use(get_ads_connector, FakeAdsConnector())

        bad_format = self.client.get("/api/ads/data", params={"startDate": "05/01/2024"})
        reversed_window = self.client.get("/api/ads/data", params={"startDate": "2024-06-01", "endDate": "2024-05-01"})

        self.assertEqual(bad_format.status_code, 400)
        self.assertEqual(bad_format.json()["code"], "INVALID_DATE")
        self.assertEqual(reversed_window.status_code, 400)

    def test_missing_developer_token(self):
        app.dependency_overrides[get_settings] = lambda: Settings(google_client_id="id", google_client_secret="s")

        response = self.client.get("/api/ads/data")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "CONFIG_INCOMPLETE")
        self.assertIn("GOOGLE_ADS_DEVELOPER_TOKEN", response.json()["details"])

    def test_connector_built_from_injected_settings(self):
        app.dependency_overrides[get_settings] = lambda: replace(SETTINGS, ads_refresh_token="settings-refresh")

        with patch.object(GoogleAdsConnector, "query", autospec=True, return_value=[]) as mock_query:
            response = self.client.get("/api/ads/data")

        self.assertEqual(response.status_code, 200)
        connector = mock_query.call_args.args[0]
        self.assertEqual(connector.refresh_token, "settings-refresh")
        self.assertEqual(connector.client_id, "client-id")

    def test_rejected_refresh_token_is_401(self):
        app.dependency_overrides[get_settings] = lambda: replace(SETTINGS, ads_refresh_token="revoked")
        client = MagicMock()
        client.get_service.return_value.search_stream.side_effect = RefreshError(
            "invalid_grant: Token has been expired or revoked."
        )

        def connect(connector):
            connector.client = client

        with patch.object(GoogleAdsConnector, "connect", autospec=True, side_effect=connect):
            response = self.client.get("/api/ads/data")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "NOT_AUTHENTICATED")


class TestGscApi(ApiTestCase):

    def test_zero_impressions(self):
        self.use(get_gsc_connector, FakeGscConnector())

        response = self.client.get("/api/gsc/data", params={"startDate": "2024-06-03", "endDate": "2024-06-30"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["overview"]["avgCTR"], 0)
        self.assertEqual(response.json()["overview"]["totalClicks"], 10)

    def test_not_authenticated(self):
        self.use(get_gsc_connector, FakeGscConnector(error=CredentialError("No refresh token for gsc.")))

        response = self.client.get("/api/gsc/data")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "NOT_AUTHENTICATED")
        self.assertEqual(set(response.json()), {"error", "details", "code"})

    def test_access_denied(self):
        self.use(get_gsc_connector, FakeGscConnector(error=ReportSourceError("GSC API Error: 403", status_code=403)))

        response = self.client.get("/api/gsc/data")

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "ACCESS_DENIED")

    def test_site_not_found(self):
        self.use(get_gsc_connector, FakeGscConnector(error=ReportSourceError("No sites found", status_code=404)))

        response = self.client.get("/api/gsc/data")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "SITE_NOT_FOUND")


class TestGa4Api(ApiTestCase):

    def test_success_with_failed_channels(self):
        self.use(get_ga4_connector, FakeGa4Connector())

        response = self.client.get("/api/ga4/data", params={"startDate": "2024-07-01", "endDate": "2024-07-31"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["overview"]["engagementRate"], 60.0)
        self.assertEqual(body["realtime"]["eventsPerMinute"], 1)
        self.assertEqual(body["channels"], [])
        self.assertEqual(body["acquisition"]["totalSessions"], 0)

    def test_invalid_property_id(self):
        response = self.client.get("/api/ga4/data", params={"propertyId": "G-ABC123"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "INVALID_PROPERTY_ID")

    def test_missing_property_id(self):
        app.dependency_overrides[get_settings] = lambda: Settings()

        response = self.client.get("/api/ga4/data")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "CONFIG_INCOMPLETE")

    def test_config(self):
        response = self.client.get("/api/ga4/config")

        self.assertEqual(response.json(), {"propertyId": "123456", "hasPropertyId": True})


if __name__ == "__main__":
    unittest.main()
