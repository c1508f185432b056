"""
Analytics Output Schemas

Derived entities produced by the analytics engine. All models are immutable and
serialize with camelCase keys for the dashboard and assistant consumers.
"""
from typing import Optional, List
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.services.analytics.categories import BookingStatus, CustomerSegmentName, MetricBasis


class AnalyticsModel(BaseModel):
    """Base for derived analytics entities"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ==================== CORE ====================

class PeriodSummary(AnalyticsModel):
    gross: float = 0.0
    gross_change: float = 0.0
    net: float = 0.0
    net_change: float = 0.0
    total_sales: float = 0.0
    total_sales_change: float = 0.0
    discounts: float = 0.0
    discounts_change: float = 0.0
    refunded: float = 0.0
    refunded_change: float = 0.0
    taxes: float = 0.0
    taxes_change: float = 0.0
    fees: float = 0.0
    fees_change: float = 0.0


class RevenueTrend(AnalyticsModel):
    """One booking date with the same-weekday figures from the previous period"""
    date: str
    day: str
    this_gross: float = 0.0
    this_net: float = 0.0
    this_sales: int = 0
    prev_gross: float = 0.0
    prev_net: float = 0.0
    prev_sales: int = 0


class SalesMetric(AnalyticsModel):
    date: str
    day: str
    bookings: int = 0
    avg_rev: float = 0.0


class GuestMetric(AnalyticsModel):
    date: str
    day: str
    total_guests: int = 0
    avg_rev_per_guest: float = 0.0


class Performance(AnalyticsModel):
    best_day: Optional[str] = None
    best_day_revenue: float = 0.0
    best_day_change: float = 0.0
    top_item: Optional[str] = None
    top_item_bookings: int = 0
    top_item_change: float = 0.0
    peak_time: Optional[str] = None
    peak_time_bookings: int = 0
    peak_time_change: float = 0.0
    booking_completed: int = 0
    booking_completed_change: float = 0.0
    booking_upcoming: int = 0
    booking_upcoming_change: float = 0.0
    booking_no_show: int = 0
    booking_no_show_change: float = 0.0
    booking_cancelled: int = 0
    booking_cancelled_change: float = 0.0
    booking_other: int = 0


class PurchasedItem(AnalyticsModel):
    name: str
    amount: float = 0.0
    bookings: int = 0


class PaymentCollection(AnalyticsModel):
    total_payments: float = 0.0
    total_change: float = 0.0
    total_transaction_amount: float = 0.0
    paid_amount: float = 0.0
    paid_percent: float = 0.0
    unpaid_amount: float = 0.0
    unpaid_percent: float = 0.0
    card_amount: float = 0.0
    card_percent: float = 0.0
    cash_amount: float = 0.0
    cash_percent: float = 0.0
    uncategorized_amount: float = 0.0
    paid_transactions: int = 0
    partially_paid_transactions: int = 0
    unpaid_transactions: int = 0


class SalesSummary(AnalyticsModel):
    bookings: int = 0
    bookings_change: float = 0.0
    total_revenue: float = 0.0
    total_revenue_change: float = 0.0
    avg_rev_per_booking: float = 0.0
    avg_rev_change: float = 0.0
    item_sales: float = 0.0
    item_sales_change: float = 0.0
    gift_voucher_sales: float = 0.0
    gift_voucher_change: float = 0.0
    online_vs_operator: float = 0.0
    online_change: float = 0.0
    online_bookings: int = 0
    manual_bookings: int = 0
    admin_bookings: int = 0
    affiliate_bookings: int = 0
    other_bookings: int = 0
    online_revenue: float = 0.0
    manual_revenue: float = 0.0
    admin_revenue: float = 0.0
    affiliate_revenue: float = 0.0
    other_revenue: float = 0.0


class GuestSummary(AnalyticsModel):
    """
    Guest counts and per-guest economics

    repeat_customers counts emails with two or more booking records in the
    window. It is a proxy, not a cross-period identity match.
    """
    total_guests: int = 0
    total_change: float = 0.0
    net_revenue: float = 0.0
    avg_revenue_per_guest: float = 0.0
    avg_rev_change: float = 0.0
    avg_group_size: float = 0.0
    group_change: float = 0.0
    repeat_customers: int = 0
    repeat_change: float = 0.0
    no_shows: int = 0
    no_show_rate: float = 0.0
    no_show_change: float = 0.0
    waivers_signed: int = 0
    waivers_pending: int = 0


class DailyBreakdown(AnalyticsModel):
    date: str
    day_of_week: int
    day_name: str
    bookings: int = 0
    revenue: float = 0.0
    guests: int = 0
    top_item: Optional[str] = None
    top_item_bookings: int = 0
    top_item_revenue: float = 0.0


class DayOfWeekSummary(AnalyticsModel):
    day_of_week: int
    day_name: str
    total_bookings: int = 0
    total_revenue: float = 0.0
    total_guests: int = 0
    avg_bookings_per_occurrence: float = 0.0
    avg_revenue_per_occurrence: float = 0.0
    occurrences: int = 0


# ==================== CUSTOMERS ====================

class CustomerProfile(AnalyticsModel):
    name: str
    email: str
    total_bookings: int = 0
    total_spent: float = 0.0
    clv: float = 0.0
    segment: CustomerSegmentName
    first_booking_date: Optional[datetime] = None
    last_booking_date: Optional[datetime] = None
    days_since_last_booking: Optional[int] = None
    avg_booking_value: float = 0.0


class CustomerSegment(AnalyticsModel):
    count: int = 0
    percentage: float = 0.0
    avg_clv: float = 0.0
    avg_bookings: float = 0.0
    total_revenue: float = 0.0


class CustomerSegments(AnalyticsModel):
    vip: CustomerSegment = CustomerSegment()
    regular: CustomerSegment = CustomerSegment()
    at_risk: CustomerSegment = CustomerSegment()
    new: CustomerSegment = CustomerSegment()


class SpendingTier(AnalyticsModel):
    name: str
    min_spend: float
    max_spend: Optional[float] = None
    customer_count: int = 0
    total_revenue: float = 0.0
    avg_revenue_per_customer: float = 0.0
    percentage_of_revenue: float = 0.0


class CustomerBaseMetrics(AnalyticsModel):
    """Account-level view built from core customer records"""
    total_accounts: int = 0
    spending_tiers: List[SpendingTier] = []
    avg_customer_lifetime_days: int = 0
    churn_rate: float = 0.0
    dormant_customers: int = 0
    new_accounts: int = 0
    new_account_revenue: float = 0.0
    avg_new_account_value: float = 0.0


class CustomerIntelligence(AnalyticsModel):
    total_customers: int = 0
    new_customers: int = 0
    repeat_rate: float = 0.0
    avg_customer_lifetime_value: float = 0.0
    segments: CustomerSegments = CustomerSegments()
    top_customers_by_clv: List[CustomerProfile] = []
    churn_risk_customers: List[CustomerProfile] = []
    customer_base: Optional[CustomerBaseMetrics] = None


# ==================== INVENTORY & CAPACITY ====================

class ActivityProfitability(AnalyticsModel):
    id: Optional[str] = None
    name: str
    total_sales: float = 0.0
    total_bookings: int = 0
    revenue_per_booking: float = 0.0
    avg_review: float = 0.0
    total_reviews: int = 0


class ActivityUtilization(AnalyticsModel):
    id: str
    name: str
    capacity: int = 0
    booked: int = 0
    available: int = 0
    instance_count: int = 0
    utilization: float = 0.0


class TimeSlotUtilization(AnalyticsModel):
    time: str
    capacity: int = 0
    booked: int = 0
    utilization: float = 0.0


class CapacityUtilization(AnalyticsModel):
    overall_utilization: float = 0.0
    total_capacity: int = 0
    total_booked: int = 0
    total_available: int = 0
    by_activity: List[ActivityUtilization] = []
    by_time_slot: List[TimeSlotUtilization] = []
    peak_times: List[TimeSlotUtilization] = []
    low_utilization_times: List[TimeSlotUtilization] = []


# ==================== VOUCHERS ====================

class VoucherTypeBreakdown(AnalyticsModel):
    type: str
    label: str
    sold: int = 0
    redeemed: int = 0
    redemption_rate: float = 0.0
    revenue: float = 0.0


class VoucherMonthlyTrend(AnalyticsModel):
    month: str
    sold: int = 0
    sold_value: float = 0.0
    redeemed: int = 0
    redeemed_value: float = 0.0


class VoucherSalesEstimate(AnalyticsModel):
    """Projection from transactions that sold vouchers; not an observed outcome"""
    voucher_transactions: int = 0
    sold_value: float = 0.0
    assumed_redemption_rate: float = 0.0
    projected_redeemed: int = 0
    projected_redeemed_value: float = 0.0
    is_estimate: bool = True


class VoucherIntelligence(AnalyticsModel):
    total_vouchers: int = 0
    gift_sales: float = 0.0
    redeemed_count: int = 0
    redeemed_value: float = 0.0
    available_count: int = 0
    available_value: float = 0.0
    expired_unredeemed_count: int = 0
    expired_unredeemed_value: float = 0.0
    expiring_soon: int = 0
    redemption_rate: float = 0.0
    breakage_rate: float = 0.0
    average_voucher_value: float = 0.0
    average_redemption_value: float = 0.0
    redemption_basis: MetricBasis = MetricBasis.MEASURED
    by_type: List[VoucherTypeBreakdown] = []
    monthly_trends: List[VoucherMonthlyTrend] = []
    transaction_estimate: Optional[VoucherSalesEstimate] = None


# ==================== CONVERSION ====================

class AbandonedItem(AnalyticsModel):
    item_name: str
    abandonment_count: int = 0
    lost_revenue: float = 0.0


class CartAbandonment(AnalyticsModel):
    total_carts: int = 0
    abandoned_carts: int = 0
    converted_carts: int = 0
    active_carts: int = 0
    abandonment_rate: float = 0.0
    conversion_rate: float = 0.0
    abandoned_value: float = 0.0
    avg_cart_value: float = 0.0
    top_abandoned_items: List[AbandonedItem] = []


class RecoveryOpportunity(AnalyticsModel):
    """Projected at a fixed assumed recovery rate; not an observed outcome"""
    recoverable_carts: int = 0
    potential_revenue: float = 0.0
    estimated_recovery_rate: float = 0.0
    projected_recovered_revenue: float = 0.0
    is_estimate: bool = True


class FunnelStage(AnalyticsModel):
    stage: str
    drop_off_rate: float = 0.0
    lost_revenue: float = 0.0
    is_estimate: bool = True


class ConversionIntelligence(AnalyticsModel):
    cart_abandonment: CartAbandonment = CartAbandonment()
    recovery_opportunity: RecoveryOpportunity = RecoveryOpportunity()
    drop_off_analysis: List[FunnelStage] = []


# ==================== AGGREGATE ====================

# ==================== SCHEDULE ====================

class TodaysAgenda(AnalyticsModel):
    bookings: int = 0
    guests: int = 0
    first_booking: Optional[str] = None
    waivers_required: int = 0


class AgendaChartItem(AnalyticsModel):
    """Today's bookings grouped by start hour"""
    time: str
    bookings: int = 0
    guests: int = 0
    items_booked: int = 0


class UpcomingBooking(AnalyticsModel):
    """A scheduled booking joined to its transaction"""
    booking_date: Optional[date] = None
    time: Optional[str] = None
    name: str = "Guest"
    item: Optional[str] = None
    guests: int = 0
    waivers_signed: int = 0
    waiver: str = "0/0 signed"
    transaction_number: Optional[str] = None
    purchased_date: Optional[datetime] = None
    transaction_total: float = 0.0
    paid: float = 0.0
    due: float = 0.0
    status: BookingStatus = BookingStatus.OTHER


class AvailabilityInsights(AnalyticsModel):
    """Booked guests against listed item capacity, with the busiest and quietest weekdays"""
    utilization_rate: float = 0.0
    peak_days: List[str] = []
    low_booking_days: List[str] = []
    average_capacity: float = 0.0
    average_booked: float = 0.0


class BusinessInsights(AnalyticsModel):
    activity_profitability: List[ActivityProfitability] = []
    capacity_utilization: Optional[CapacityUtilization] = None
    customer_intelligence: Optional[CustomerIntelligence] = None
    voucher_intelligence: Optional[VoucherIntelligence] = None
    conversion_intelligence: Optional[ConversionIntelligence] = None
    availability: Optional[AvailabilityInsights] = None


class AnalyticsData(AnalyticsModel):
    """Composite result of one analytics transformation"""
    period_summary: PeriodSummary
    revenue_trends: List[RevenueTrend] = []
    performance: Performance
    payment_collection: PaymentCollection
    sales_metrics: List[SalesMetric] = []
    sales_summary: SalesSummary
    top_purchased: List[PurchasedItem] = []
    guest_metrics: List[GuestMetric] = []
    guest_summary: GuestSummary
    daily_breakdown: List[DailyBreakdown] = []
    day_of_week_summary: List[DayOfWeekSummary] = []
    todays_agenda: TodaysAgenda = TodaysAgenda()
    agenda_chart: List[AgendaChartItem] = []
    upcoming_bookings: List[UpcomingBooking] = []
    business_insights: Optional[BusinessInsights] = None
    date_range_label: Optional[str] = None
    as_of: datetime
