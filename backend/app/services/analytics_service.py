"""
Analytics orchestration: fetch a reporting window from Resova and transform it
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from app.schemas.analytics import AnalyticsData
from app.schemas.resova import AnalyticsRequest
from app.services.analytics.engine import AnalyticsEngine
from app.services.resova_service import ResovaAPIError, ResovaService
from app.utils.date_ranges import PRESET_LABELS, DateRange, previous_period


class AnalyticsService:
    """Fetches current, previous and insight records and runs the engine over them"""

    def __init__(
        self,
        resova: ResovaService,
        engine: AnalyticsEngine,
        logger: Optional[logging.Logger] = None,
    ):
        self.resova = resova
        self.engine = engine
        self.logger = logger or logging.getLogger(__name__)

    async def get_analytics(
        self,
        date_range: DateRange,
        include_insights: bool = True,
        date_preset: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AnalyticsData:
        """
        Build analytics for a reporting window

        The current period must load. Any other failed fetch is logged and
        the result is built without it.

        Args:
            date_range: Current reporting window
            include_insights: Also fetch inventory, availability, customers and baskets
            date_preset: Preset the window was resolved from, used for the label
            now: Reference time passed to the engine

        Returns:
            AnalyticsData

        Raises:
            ResovaAPIError: Current-period records could not be fetched
        """
        now = now or datetime.now(timezone.utc).replace(tzinfo=None)
        comparison_range = previous_period(date_range)
        current, previous, schedule = await asyncio.gather(
            self.resova.fetch_period(date_range),
            self.resova.fetch_period(comparison_range),
            self.resova.fetch_schedule(now.date()),
            return_exceptions=True,
        )
        if isinstance(current, BaseException):
            raise current
        if isinstance(previous, BaseException):
            if not isinstance(previous, ResovaAPIError):
                raise previous
            self.logger.warning(
                "Previous period %s could not be fetched, comparing against no data: %s",
                comparison_range.label,
                previous,
            )
            previous = None
        if isinstance(schedule, BaseException):
            if not isinstance(schedule, ResovaAPIError):
                raise schedule
            self.logger.warning("Schedule fetch failed, agenda uses current-period bookings: %s", schedule)
            schedule = None

        insights = None
        if include_insights:
            try:
                insights = await self.resova.fetch_insights(date_range)
            except ResovaAPIError as e:
                self.logger.warning("Business insights fetch failed, continuing without them: %s", e)

        request = AnalyticsRequest(
            current=current,
            previous=previous,
            insights=insights,
            schedule=schedule,
            date_range_label=PRESET_LABELS.get(date_preset or "", date_range.label),
        )
        return await asyncio.to_thread(self.engine.transform, request, now)
