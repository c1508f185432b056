"""
Common Dependencies for FastAPI Routes
"""
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from app.config import settings
from app.services.analytics.engine import AnalyticsEngine
from app.services.analytics_service import AnalyticsService
from app.services.resova_service import ResovaService


def get_analytics_engine() -> AnalyticsEngine:
    """Engine with its own logger and the configured trend window"""
    return AnalyticsEngine(logger=logging.getLogger("app.analytics"), trend_days=settings.TREND_DAYS)


async def get_resova_service(
    x_resova_api_key: Optional[str] = Header(None),
) -> ResovaService:
    """
    Dependency to get a Resova client for the caller's API key

    The X-Resova-Api-Key header takes precedence over RESOVA_API_KEY.
    """
    api_key = x_resova_api_key or settings.RESOVA_API_KEY
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Resova API key required (X-Resova-Api-Key header or RESOVA_API_KEY setting)",
        )
    return ResovaService(api_key=api_key)


async def get_analytics_service(
    resova: ResovaService = Depends(get_resova_service),
    engine: AnalyticsEngine = Depends(get_analytics_engine),
) -> AnalyticsService:
    return AnalyticsService(resova=resova, engine=engine)
