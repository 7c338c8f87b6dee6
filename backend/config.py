"""
Runtime configuration for the dashboard API.

Values come from the environment, with a `.env` file at the repository root
loaded first. The GA4 property ID can also be supplied by `key.json`.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from connectors.google_analytics import is_valid_property_id

ROOT_DIR = Path(__file__).resolve().parent.parent
KEY_FILE = ROOT_DIR / "key.json"

load_dotenv(ROOT_DIR / ".env")

logger = logging.getLogger(__name__)

POSITION_AVERAGING_MODES = ("pairwise", "mean")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        logger.warning("Ignoring non-numeric %s, using %s", name, default)
        return default


def resolve_property_id(key_path: Path = KEY_FILE) -> str:
    """
    GA4 property ID in priority order:
    1. `propertyId` in key.json
    2. GA4_PROPERTY_ID or NEXT_PUBLIC_GA4_PROPERTY_ID

    Returns "" when none is configured.
    """
    if key_path.exists():
        try:
            with open(key_path, "r", encoding="utf-8") as f:
                key_data = json.load(f)
            property_id = str(key_data.get("propertyId", "")).strip()
            if is_valid_property_id(property_id):
                return property_id
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error reading %s: %s", key_path, e)

    env_property_id = (os.getenv("GA4_PROPERTY_ID") or os.getenv("NEXT_PUBLIC_GA4_PROPERTY_ID") or "").strip()
    if env_property_id:
        if is_valid_property_id(env_property_id):
            return env_property_id
        logger.warning("Property ID environment variable is set but format is invalid")

    return ""


def get_allowed_origins() -> list[str]:
    """Get CORS allowed origins from environment or defaults."""
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8501",
    ]

    custom_origins = os.environ.get("CORS_ORIGINS", "")
    if custom_origins:
        origins.extend([o.strip() for o in custom_origins.split(",") if o.strip()])

    frontend_url = os.environ.get("FRONTEND_URL")
    if frontend_url:
        origins.append(frontend_url)

    return origins


@dataclass(frozen=True)
class Settings:
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None

    ga4_refresh_token: Optional[str] = None
    gsc_refresh_token: Optional[str] = None
    ads_refresh_token: Optional[str] = None

    ga4_property_id: str = ""
    gsc_site_url: Optional[str] = None

    ads_developer_token: Optional[str] = None
    ads_customer_id: Optional[str] = None
    ads_login_customer_id: Optional[str] = None
    ads_assumed_conversion_value: float = 10.0

    position_averaging: str = "pairwise"
    parallel_queries: bool = True
    cors_origins: list = field(default_factory=list)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        averaging = os.getenv("POSITION_AVERAGING", "pairwise").strip().lower()
        if averaging not in POSITION_AVERAGING_MODES:
            logger.warning("Unknown POSITION_AVERAGING %r, using pairwise", averaging)
            averaging = "pairwise"

        return cls(
            google_client_id=os.getenv("GOOGLE_CLIENT_ID"),
            google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
            ga4_refresh_token=os.getenv("GOOGLE_GA4_REFRESH_TOKEN"),
            gsc_refresh_token=os.getenv("GOOGLE_GSC_REFRESH_TOKEN"),
            ads_refresh_token=os.getenv("GOOGLE_ADS_REFRESH_TOKEN"),
            ga4_property_id=resolve_property_id(),
            gsc_site_url=os.getenv("GSC_SITE_URL") or None,
            ads_developer_token=os.getenv("GOOGLE_ADS_DEVELOPER_TOKEN"),
            ads_customer_id=os.getenv("GOOGLE_ADS_CUSTOMER_ID"),
            ads_login_customer_id=os.getenv("GOOGLE_ADS_LOGIN_CUSTOMER_ID"),
            ads_assumed_conversion_value=_env_float("ADS_ASSUMED_CONVERSION_VALUE", 10.0),
            position_averaging=averaging,
            parallel_queries=_env_flag("PARALLEL_QUERIES", True),
            cors_origins=get_allowed_origins(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
