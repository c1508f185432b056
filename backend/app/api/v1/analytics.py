"""
Analytics API Endpoints
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.dependencies import get_analytics_engine, get_analytics_service
from app.schemas.analytics import AnalyticsData
from app.schemas.resova import AnalyticsRequest
from app.services.analytics.engine import AnalyticsEngine
from app.services.analytics_service import AnalyticsService
from app.services.resova_service import ResovaAPIError, ResovaNetworkError
from app.utils.date_ranges import DateRange, resolve_preset

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _upstream_http_error(error: ResovaAPIError) -> HTTPException:
    if isinstance(error, ResovaNetworkError):
        return HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Resova API did not respond",
        )
    if error.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Resova API key was rejected",
        )
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Resova API request failed: {error}",
    )


@router.post("/transform", response_model=AnalyticsData)
def transform_analytics(
    request: AnalyticsRequest,
    engine: AnalyticsEngine = Depends(get_analytics_engine),
):
    """Transform caller-supplied Resova records into analytics (no upstream calls)."""
    return engine.transform(request)


@router.get("", response_model=AnalyticsData)
async def get_analytics(
    date_preset: Optional[str] = Query("last_7_days", description="Preset reporting window"),
    start_date: Optional[date] = Query(None, description="Explicit window start (overrides preset)"),
    end_date: Optional[date] = Query(None, description="Explicit window end (overrides preset)"),
    include_insights: bool = Query(True, description="Fetch inventory, availability, customer and basket data"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    Fetch a reporting window from Resova and return its analytics.

    - **date_preset**: today, yesterday, last_7_days, last_30_days, last_90_days,
      this_week, this_month, last_month or this_year
    - **start_date / end_date**: explicit inclusive window; both are required together
    - **include_insights**: business insights are omitted when this is false or the
      insights fetch fails
    """
    if (start_date is None) != (end_date is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date and end_date must be provided together",
        )

    if start_date and end_date:
        if start_date > end_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="start_date must not be after end_date",
            )
        date_range = DateRange(start_date, end_date)
        date_preset = None
    else:
        try:
            date_range = resolve_preset(date_preset, datetime.now(timezone.utc).date())
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        return await service.get_analytics(
            date_range,
            include_insights=include_insights,
            date_preset=date_preset,
        )
    except ResovaAPIError as e:
        logger.error("Analytics fetch failed for %s: %s", date_range.label, e)
        raise _upstream_http_error(e)
