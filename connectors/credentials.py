"""
OAuth credential store for the Google connectors.

Refresh tokens come from the environment first and the request cookies
second (`google_<service>_refresh_token`). Access tokens are exchanged at
Google's token endpoint and cached until shortly before they expire.
"""

import hashlib
import logging
import threading
import time
from typing import Optional

import requests

from connectors.base import ReportSourceError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"

# Refresh this many seconds before Google's stated expiry
REFRESH_MARGIN_SECONDS = 60
DEFAULT_EXPIRES_IN = 3600

NOT_AUTHENTICATED = "not_authenticated"
CONFIG_INCOMPLETE = "config_incomplete"


class CredentialError(Exception):
    """No usable credentials for a service."""

    def __init__(self, message: str, reason: str = NOT_AUTHENTICATED, service: str = ""):
        super().__init__(message)
        self.reason = reason
        self.service = service


def refresh_cookie_name(service: str) -> str:
    return f"google_{service}_refresh_token"


def access_cookie_name(service: str) -> str:
    return f"google_{service}_access_token"


class CredentialStore:
    """Short-lived access token cache keyed by service and refresh token."""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_tokens: Optional[dict] = None,
        timeout: float = 30,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_tokens = {k: v for k, v in (refresh_tokens or {}).items() if v}
        self.timeout = timeout

        self._tokens: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def check_client(self, service: str = ""):
        """Verify the OAuth client credentials are configured."""
        missing = []
        if not self.client_id:
            missing.append("GOOGLE_CLIENT_ID")
        if not self.client_secret:
            missing.append("GOOGLE_CLIENT_SECRET")
        if missing:
            raise CredentialError(
                f"Missing OAuth configuration: {', '.join(missing)}",
                reason=CONFIG_INCOMPLETE,
                service=service,
            )

    def refresh_token(self, service: str, cookies: Optional[dict] = None) -> str:
        """Refresh token for a service: environment first, then cookies."""
        token = self.refresh_tokens.get(service) or (cookies or {}).get(refresh_cookie_name(service))
        if not token:
            raise CredentialError(
                f"No refresh token for {service}. Connect the account first.",
                reason=NOT_AUTHENTICATED,
                service=service,
            )
        return token

    def access_token(self, service: str, cookies: Optional[dict] = None, force_refresh: bool = False) -> str:
        """
        A valid access token for `service`.

        A cookie access token is trusted as-is unless `force_refresh` is set
        (the caller saw a 401 with it).
        """
        cookies = cookies or {}
        cookie_token = cookies.get(access_cookie_name(service))
        if cookie_token and not force_refresh:
            return cookie_token

        refresh_token = self.refresh_token(service, cookies)
        cache_key = self._cache_key(service, refresh_token)

        if force_refresh:
            self.invalidate(service, refresh_token)
        else:
            with self._lock:
                cached = self._tokens.get(cache_key)
            if cached and time.time() < cached[1]:
                return cached[0]

        token, expires_at = self._exchange(service, refresh_token)
        with self._lock:
            self._tokens[cache_key] = (token, expires_at)
        return token

    def invalidate(self, service: Optional[str] = None, refresh_token: Optional[str] = None):
        """Drop cached access tokens, optionally only those of a service or one of its refresh tokens."""
        with self._lock:
            if service is None:
                self._tokens.clear()
            elif refresh_token:
                self._tokens.pop(self._cache_key(service, refresh_token), None)
            else:
                for key in [k for k in self._tokens if k.startswith(f"{service}:")]:
                    del self._tokens[key]

    @staticmethod
    def _cache_key(service: str, refresh_token: str) -> str:
        digest = hashlib.sha256(refresh_token.encode("utf-8")).hexdigest()[:16]
        return f"{service}:{digest}"

    def _exchange(self, service: str, refresh_token: str) -> tuple[str, float]:
        """Get a new access token using the refresh token."""
        self.check_client(service)

        try:
            response = requests.post(
                TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ReportSourceError(f"Token refresh failed: {e}", source=service) from e

        if response.status_code != 200:
            logger.warning("[Auth] Token refresh for %s failed: %s", service, response.status_code)
            if response.status_code in (400, 401):
                # invalid_grant: revoked or expired refresh token
                raise CredentialError(
                    f"Failed to refresh token: {response.text}",
                    reason=NOT_AUTHENTICATED,
                    service=service,
                )
            raise ReportSourceError(
                f"Failed to refresh token: {response.text}",
                status_code=response.status_code,
                source=service,
            )

        data = response.json()
        expires_in = int(data.get("expires_in") or DEFAULT_EXPIRES_IN)
        expires_at = time.time() + max(expires_in - REFRESH_MARGIN_SECONDS, 0)
        logger.info("[Auth] Refreshed %s access token (expires in %ss)", service, expires_in)
        return data["access_token"], expires_at
