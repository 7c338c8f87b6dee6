"""
Google Ads Connector

Runs GAQL queries through GoogleAdsService.search_stream and decodes each
result row by resolving the schema's attribute paths
(e.g. "metrics.cost_micros", "segments.device").
"""

import enum
import logging
from typing import Any, Optional

from connectors.base import ReportRow, ReportSourceError, RowSchema
from connectors.credentials import NOT_AUTHENTICATED, CredentialError

logger = logging.getLogger(__name__)

# gRPC status names reported by GoogleAdsException -> HTTP status
GRPC_STATUS_TO_HTTP = {
    "INVALID_ARGUMENT": 400,
    "UNAUTHENTICATED": 401,
    "PERMISSION_DENIED": 403,
    "NOT_FOUND": 404,
    "RESOURCE_EXHAUSTED": 429,
}


def normalize_customer_id(customer_id: Optional[str]) -> Optional[str]:
    """Remove the dashes from a customer ID (270-641-8609 -> 2706418609)."""
    if not customer_id:
        return customer_id
    return customer_id.replace("-", "").strip()


def resolve_path(row: Any, path: str) -> Any:
    """Walk an attribute path on a proto-plus row; enums resolve to their name."""
    value = row
    for part in path.split("."):
        if value is None:
            return None
        value = getattr(value, part, None)
    if isinstance(value, enum.Enum):
        return value.name
    return value


class GoogleAdsConnector:
    """Connector for Google Ads API."""

    def __init__(
        self,
        developer_token: str,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        customer_id: str,
        login_customer_id: Optional[str] = None,
    ):
        self.developer_token = developer_token
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.customer_id = normalize_customer_id(customer_id)
        self.login_customer_id = normalize_customer_id(login_customer_id)

        self.client = None

    def _check_credentials(self):
        """Verify all required credentials are present."""
        missing = []
        if not self.client_id:
            missing.append("GOOGLE_CLIENT_ID")
        if not self.client_secret:
            missing.append("GOOGLE_CLIENT_SECRET")
        if not self.developer_token:
            missing.append("GOOGLE_ADS_DEVELOPER_TOKEN")
        if not self.customer_id:
            missing.append("GOOGLE_ADS_CUSTOMER_ID")
        if not self.refresh_token:
            missing.append("GOOGLE_ADS_REFRESH_TOKEN")

        if missing:
            raise ValueError(f"Missing credentials: {', '.join(missing)}")

        return True

    def connect(self):
        """Initialize the Google Ads client."""
        self._check_credentials()

        from google.ads.googleads.client import GoogleAdsClient

        credentials = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "developer_token": self.developer_token,
            "refresh_token": self.refresh_token,
            "use_proto_plus": True,
        }

        if self.login_customer_id:
            credentials["login_customer_id"] = self.login_customer_id

        self.client = GoogleAdsClient.load_from_dict(credentials)
        logger.info("[Ads] Connected to Google Ads for customer: %s", self.customer_id)
        return True

    def query(self, schema: RowSchema, query: str) -> list[ReportRow]:
        """
        Run a GAQL query.

        Args:
            schema: Field names bound to GAQL attribute paths
            query: GAQL text selecting those paths

        Returns:
            Decoded rows
        """
        if not self.client:
            self.connect()

        from google.ads.googleads.errors import GoogleAdsException
        from google.auth.exceptions import RefreshError

        ga_service = self.client.get_service("GoogleAdsService")
        dimension_paths = schema.provider_dimensions
        metric_paths = schema.provider_metrics

        rows = []
        try:
            response = ga_service.search_stream(customer_id=self.customer_id, query=query)
            for batch in response:
                for row in batch.results:
                    rows.append(schema.decode(
                        [resolve_path(row, p) for p in dimension_paths],
                        [resolve_path(row, p) for p in metric_paths],
                    ))
        except GoogleAdsException as ex:
            status_name = ex.error.code().name
            messages = "; ".join(error.message for error in ex.failure.errors)
            raise ReportSourceError(
                f"Google Ads API Error ({status_name}): {messages}",
                status_code=GRPC_STATUS_TO_HTTP.get(status_name, 500),
                source="ads",
            ) from ex
        except RefreshError as ex:
            # invalid_grant: revoked or expired refresh token
            logger.warning("[Ads] Token refresh rejected: %s", ex)
            raise CredentialError(
                f"Failed to refresh token: {ex}",
                reason=NOT_AUTHENTICATED,
                service="ads",
            ) from ex

        return rows
