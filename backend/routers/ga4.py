"""
GA4 API endpoints.
"""

import logging
from functools import partial
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from config import Settings, get_settings
from routers.deps import get_ga4_connector
from services import ga4_report
from services.periods import resolve_window
from services.pipeline import build_report

logger = logging.getLogger(__name__)

router = APIRouter()


class GA4Config(BaseModel):
    """Configured property, as seen by the dashboard."""
    propertyId: Optional[str] = None
    hasPropertyId: bool


@router.get("/data")
async def get_ga4_data(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    connector=Depends(get_ga4_connector),
    settings: Settings = Depends(get_settings),
):
    """Overview, realtime, acquisition, pages, events and daily users for a window."""
    start, end = resolve_window(start_date, end_date, ga4_report.PROFILE.default_days)
    logger.info("[GA4] Fetching property %s from %s to %s", connector.property_id, start, end)

    return await build_report(
        ga4_report.PROFILE,
        ga4_report.section_queries(connector, start, end),
        partial(ga4_report.assemble, start=start, end=end, settings=settings),
        parallel=settings.parallel_queries,
    )


@router.get("/config", response_model=GA4Config)
async def get_ga4_config(settings: Settings = Depends(get_settings)):
    """Configured GA4 property ID."""
    return GA4Config(
        propertyId=settings.ga4_property_id or None,
        hasPropertyId=bool(settings.ga4_property_id),
    )
