"""
Google Ads API endpoints.
"""

import logging
from functools import partial
from typing import Optional

from fastapi import APIRouter, Depends, Query

from config import Settings, get_settings
from routers.deps import get_ads_connector
from services import ads_report
from services.periods import resolve_window
from services.pipeline import build_report

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/data")
async def get_ads_data(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    connector=Depends(get_ads_connector),
    settings: Settings = Depends(get_settings),
):
    """Campaign, ad group, device and keyword performance with spend trends."""
    start, end = resolve_window(start_date, end_date, ads_report.PROFILE.default_days)
    logger.info("[Ads] Fetching customer %s from %s to %s", connector.customer_id, start, end)

    return await build_report(
        ads_report.PROFILE,
        ads_report.section_queries(connector, start, end),
        partial(ads_report.assemble, start=start, end=end, settings=settings),
        parallel=settings.parallel_queries,
    )
