"""
Search Console API endpoints.
"""

import logging
from functools import partial
from typing import Optional

from fastapi import APIRouter, Depends, Query

from config import Settings, get_settings
from routers.deps import get_gsc_connector
from services import gsc_report
from services.periods import resolve_window
from services.pipeline import build_report

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/data")
async def get_gsc_data(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    connector=Depends(get_gsc_connector),
    settings: Settings = Depends(get_settings),
):
    """Search performance overview, top queries and pages, weekly clicks."""
    start, end = resolve_window(start_date, end_date, gsc_report.PROFILE.default_days)
    logger.info("[GSC] Fetching %s from %s to %s", connector.site_url or "first verified site", start, end)

    return await build_report(
        gsc_report.PROFILE,
        gsc_report.section_queries(connector, start, end),
        partial(gsc_report.assemble, start=start, end=end, settings=settings),
        parallel=settings.parallel_queries,
    )
