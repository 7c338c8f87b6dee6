"""
Error taxonomy for the data endpoints.

Every failure that reaches the client is a DashboardError rendered as
{error, details, code} with its status code. Provider and credential
failures are mapped onto it by `classify_upstream_error`.
"""

from connectors.base import ReportSourceError
from connectors.credentials import CONFIG_INCOMPLETE, CredentialError

SOURCE_LABELS = {
    "ga4": "GA4",
    "gsc": "GSC",
    "ads": "Google Ads",
}

NOT_FOUND = {
    "ga4": ("Property not found", "PROPERTY_NOT_FOUND"),
    "gsc": ("Site not found", "SITE_NOT_FOUND"),
    "ads": ("Customer not found", "CUSTOMER_NOT_FOUND"),
}


class DashboardError(Exception):
    status_code = 500
    code = "UNKNOWN_ERROR"
    error = "Internal error"

    def __init__(self, details: str = "", error: str = None, code: str = None):
        super().__init__(details or error or self.error)
        self.details = details
        if error:
            self.error = error
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": self.error, "details": self.details, "code": self.code}


class AuthenticationMissing(DashboardError):
    status_code = 401
    code = "NOT_AUTHENTICATED"
    error = "Not authenticated"


class ConfigurationIncomplete(DashboardError):
    status_code = 400
    code = "CONFIG_INCOMPLETE"
    error = "Configuration incomplete"


class UpstreamPermissionDenied(DashboardError):
    status_code = 403
    code = "ACCESS_DENIED"
    error = "Access denied"


class UpstreamNotFound(DashboardError):
    status_code = 404
    code = "NOT_FOUND"
    error = "Not found"


class UpstreamQuotaExceeded(DashboardError):
    status_code = 429
    code = "QUOTA_EXCEEDED"
    error = "API Quota Exceeded"


class UpstreamUnknown(DashboardError):
    status_code = 500
    code = "UNKNOWN_ERROR"
    error = "Upstream request failed"


def classify_upstream_error(exc: Exception, source: str) -> DashboardError:
    """Map a connector or credential failure onto the error taxonomy."""
    if isinstance(exc, DashboardError):
        return exc

    message = str(exc)
    label = SOURCE_LABELS.get(source, source)

    if isinstance(exc, CredentialError):
        if exc.reason == CONFIG_INCOMPLETE:
            return ConfigurationIncomplete(message, code="OAUTH_CONFIG_ERROR")
        return AuthenticationMissing(f"Please connect your {label} account first. {message}".strip())

    status = exc.status_code if isinstance(exc, ReportSourceError) else None

    if status == 401:
        return AuthenticationMissing(message)
    if status == 400:
        return ConfigurationIncomplete(message, error=f"Invalid {label} request", code="INVALID_ARGUMENT")
    if status == 403:
        return UpstreamPermissionDenied(
            f"Ensure the {label} API is enabled and the account has access. {message}"
        )
    if status == 404:
        error, code = NOT_FOUND.get(source, ("Not found", "NOT_FOUND"))
        return UpstreamNotFound(message, error=error, code=code)
    if status == 429 or "quota" in message.lower():
        return UpstreamQuotaExceeded(message)

    return UpstreamUnknown(message or "Unknown error occurred.", error=f"Failed to fetch {label} data")
