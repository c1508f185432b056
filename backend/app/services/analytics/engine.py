"""
Analytics Transformation Engine

Turns one reporting window's raw Resova records into the AnalyticsData
aggregate. The engine does no I/O and holds no state between calls, so the
same request and `now` always give the same result.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from app.schemas.analytics import AnalyticsData, BusinessInsights
from app.schemas.resova import AnalyticsRequest, InsightRecords, PeriodRecords
from app.services.analytics.capacity import analyze_activity_profitability, analyze_availability, analyze_capacity
from app.services.analytics.conversion import analyze_conversion
from app.services.analytics.customers import analyze_customers
from app.services.analytics.payments import analyze_payment_collection
from app.services.analytics.performance import analyze_performance, top_purchased
from app.services.analytics.period import summarize_period
from app.services.analytics.sales import summarize_guests, summarize_sales
from app.services.analytics.schedule import (
    bookings_on,
    build_agenda_chart,
    build_todays_agenda,
    build_upcoming_bookings,
)
from app.services.analytics.trends import (
    DEFAULT_TREND_DAYS,
    build_daily_breakdown,
    build_day_of_week_summary,
    build_guest_metrics,
    build_revenue_trends,
    build_sales_metrics,
)
from app.services.analytics.vouchers import analyze_vouchers
from app.utils.parsing import parse_date


class AnalyticsEngine:
    """Stateless transform from raw records to AnalyticsData"""

    def __init__(self, logger: Optional[logging.Logger] = None, trend_days: int = DEFAULT_TREND_DAYS):
        self.logger = logger or logging.getLogger(__name__)
        self.trend_days = trend_days

    def transform(self, request: AnalyticsRequest, now: Optional[datetime] = None) -> AnalyticsData:
        """
        Build the analytics aggregate for one reporting window

        Args:
            request: Current-period records, plus optional previous-period and insight records
            now: Reference time for recency and expiry rules; defaults to the current UTC time

        Returns:
            AnalyticsData; business_insights is None when no insight records were given
        """
        now = parse_date(now) if now is not None else datetime.now(timezone.utc).replace(tzinfo=None)
        current = request.current
        previous = request.previous or PeriodRecords()

        self.logger.info(
            "Transforming analytics: %d transactions, %d bookings, %d payments, %d vouchers",
            len(current.transactions),
            len(current.bookings),
            len(current.payments),
            len(current.gift_vouchers),
        )
        if previous.is_empty:
            self.logger.info("No previous-period records, period-over-period changes will be 0")

        schedule = request.schedule if request.schedule is not None else current.bookings
        todays_bookings = bookings_on(schedule, now.date())
        self.logger.debug("Schedule: %d booking rows, %d today", len(schedule), len(todays_bookings))

        business_insights = None
        if request.insights is None:
            self.logger.info("No insight records supplied, business insights omitted")
        else:
            business_insights = self._build_business_insights(request.insights, current, now)

        return AnalyticsData(
            period_summary=summarize_period(current.transactions, previous.transactions),
            revenue_trends=build_revenue_trends(current.bookings, previous.bookings, self.trend_days),
            performance=analyze_performance(current.bookings, previous.bookings),
            payment_collection=analyze_payment_collection(current.payments, previous.payments),
            sales_metrics=build_sales_metrics(current.bookings, self.trend_days),
            sales_summary=summarize_sales(current, previous),
            top_purchased=top_purchased(current.bookings),
            guest_metrics=build_guest_metrics(current.bookings, self.trend_days),
            guest_summary=summarize_guests(current, previous),
            daily_breakdown=build_daily_breakdown(current.bookings),
            day_of_week_summary=build_day_of_week_summary(current.bookings),
            todays_agenda=build_todays_agenda(todays_bookings),
            agenda_chart=build_agenda_chart(todays_bookings),
            upcoming_bookings=build_upcoming_bookings(schedule, current.transactions, now.date()),
            business_insights=business_insights,
            date_range_label=request.date_range_label,
            as_of=now,
        )

    def _build_business_insights(
        self,
        insights: InsightRecords,
        current: PeriodRecords,
        now: datetime,
    ) -> BusinessInsights:
        self.logger.debug(
            "Building business insights: %d items, %d availability instances, %d customers, %d baskets",
            len(insights.inventory_items),
            len(insights.availability_instances),
            len(insights.customers),
            len(insights.baskets),
        )
        return BusinessInsights(
            activity_profitability=analyze_activity_profitability(insights.inventory_items),
            capacity_utilization=analyze_capacity(insights.availability_instances),
            customer_intelligence=analyze_customers(current.transactions, now, insights.customers),
            voucher_intelligence=analyze_vouchers(current.gift_vouchers, current.transactions, now),
            conversion_intelligence=analyze_conversion(insights.baskets),
            availability=analyze_availability(current.bookings, insights.inventory_items),
        )
