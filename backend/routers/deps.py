"""
Shared FastAPI dependencies: settings, the credential store and one
connector per source, built from the request's cookies and query string.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Query, Request

from config import Settings, get_settings
from connectors.credentials import CredentialError, CredentialStore
from connectors.google_ads import GoogleAdsConnector
from connectors.google_analytics import GA4Connector, is_valid_property_id
from connectors.google_search_console import SearchConsoleConnector
from services.errors import ConfigurationIncomplete, classify_upstream_error


@lru_cache
def _credential_store(client_id, client_secret, ga4_token, gsc_token, ads_token) -> CredentialStore:
    return CredentialStore(client_id, client_secret, {"ga4": ga4_token, "gsc": gsc_token, "ads": ads_token})


def get_credential_store(settings: Settings = Depends(get_settings)) -> CredentialStore:
    """One store per credential set so access tokens are shared across requests."""
    return _credential_store(
        settings.google_client_id,
        settings.google_client_secret,
        settings.ga4_refresh_token,
        settings.gsc_refresh_token,
        settings.ads_refresh_token,
    )


def get_ga4_connector(
    request: Request,
    property_id: Optional[str] = Query(None, alias="propertyId"),
    settings: Settings = Depends(get_settings),
    credentials: CredentialStore = Depends(get_credential_store),
) -> GA4Connector:
    property_id = (property_id or settings.ga4_property_id or "").strip()
    if not property_id:
        raise ConfigurationIncomplete(
            "Set GA4_PROPERTY_ID or add propertyId to key.json.",
            error="GA4 property ID not configured",
        )
    if not is_valid_property_id(property_id):
        raise ConfigurationIncomplete(
            f"Invalid Property ID: {property_id}. Property ID must be a numeric string.",
            error="Invalid property ID",
            code="INVALID_PROPERTY_ID",
        )
    return GA4Connector(property_id, credentials, cookies=dict(request.cookies))


def get_gsc_connector(
    request: Request,
    site_url: Optional[str] = Query(None, alias="siteUrl"),
    settings: Settings = Depends(get_settings),
    credentials: CredentialStore = Depends(get_credential_store),
) -> SearchConsoleConnector:
    return SearchConsoleConnector(
        credentials,
        site_url=site_url or settings.gsc_site_url,
        cookies=dict(request.cookies),
    )


def get_ads_connector(
    request: Request,
    settings: Settings = Depends(get_settings),
    credentials: CredentialStore = Depends(get_credential_store),
) -> GoogleAdsConnector:
    missing = []
    if not settings.ads_developer_token:
        missing.append("GOOGLE_ADS_DEVELOPER_TOKEN")
    if not settings.ads_customer_id:
        missing.append("GOOGLE_ADS_CUSTOMER_ID")
    if missing:
        raise ConfigurationIncomplete(
            f"Add {', '.join(missing)} to your .env file.",
            error="Google Ads not configured",
        )

    try:
        credentials.check_client("ads")
        refresh_token = credentials.refresh_token("ads", dict(request.cookies))
    except CredentialError as e:
        raise classify_upstream_error(e, "ads") from e

    return GoogleAdsConnector(
        developer_token=settings.ads_developer_token,
        client_id=credentials.client_id,
        client_secret=credentials.client_secret,
        refresh_token=refresh_token,
        customer_id=settings.ads_customer_id,
        login_customer_id=settings.ads_login_customer_id,
    )
