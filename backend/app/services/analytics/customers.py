"""
Customer Intelligence

Builds per-customer profiles from transactions, scores lifetime value, assigns
segments and summarizes the account base from core customer records.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.schemas.analytics import (
    CustomerBaseMetrics,
    CustomerIntelligence,
    CustomerProfile,
    CustomerSegment,
    CustomerSegments,
    SpendingTier,
)
from app.schemas.resova import Customer, Transaction
from app.services.analytics.categories import CustomerSegmentName
from app.utils.parsing import (
    parse_amount,
    parse_date,
    percentage,
    round_money,
    round_percent,
    safe_divide,
)

# Segment thresholds
VIP_CLV_THRESHOLD = 500
REGULAR_CLV_THRESHOLD = 150
REPEAT_MIN_BOOKINGS = 2
AT_RISK_INACTIVE_DAYS = 90
NEW_CUSTOMER_WINDOW_DAYS = 30
TOP_CUSTOMERS_LIMIT = 10

# Account base thresholds
CHURNED_AFTER_DAYS = 90
DORMANT_AFTER_DAYS = 60
NEW_ACCOUNT_WINDOW_DAYS = 30

# (name, min_spend, max_spend)
SPENDING_TIERS = (
    ("VIP", 1000, None),
    ("High", 500, 1000),
    ("Medium", 100, 500),
    ("Low", 0, 100),
)


def assign_segment(clv: float, total_bookings: int, days_since_last_booking: Optional[int]) -> CustomerSegmentName:
    """
    Segment a customer; rules are checked in order and the first match wins

    Args:
        clv: Lifetime spend
        total_bookings: Number of bookings across the customer's transactions
        days_since_last_booking: Days since the latest transaction, None if unknown

    Returns:
        Exactly one of vip, regular, at-risk, new
    """
    clv = round_money(clv)
    if clv >= VIP_CLV_THRESHOLD:
        return CustomerSegmentName.VIP
    if clv >= REGULAR_CLV_THRESHOLD and total_bookings >= REPEAT_MIN_BOOKINGS:
        return CustomerSegmentName.REGULAR
    if (
        days_since_last_booking is not None
        and days_since_last_booking > AT_RISK_INACTIVE_DAYS
        and total_bookings >= REPEAT_MIN_BOOKINGS
    ):
        return CustomerSegmentName.AT_RISK
    return CustomerSegmentName.NEW


def build_customer_profiles(transactions: List[Transaction], now: datetime) -> List[CustomerProfile]:
    """
    One profile per customer email, in first-seen order

    Every transaction with a customer email adds its bookings and spend,
    even when its creation date can't be parsed; such a transaction just
    doesn't move the first/last booking dates.
    """
    accumulators: Dict[str, Dict[str, Any]] = {}
    for transaction in transactions:
        customer = transaction.customer
        if customer is None or not customer.email:
            continue
        key = customer.email.strip().lower()
        entry = accumulators.setdefault(key, {
            "name": customer.display_name,
            "email": customer.email.strip(),
            "bookings": 0,
            "spent": 0.0,
            "first": None,
            "last": None,
        })
        entry["bookings"] += len(transaction.bookings)
        entry["spent"] += parse_amount(transaction.total)

        created = parse_date(transaction.created_dt)
        if created is None:
            continue
        if entry["first"] is None or created < entry["first"]:
            entry["first"] = created
        if entry["last"] is None or created > entry["last"]:
            entry["last"] = created

    profiles = []
    for entry in accumulators.values():
        days_since = (now - entry["last"]).days if entry["last"] is not None else None
        clv = round_money(entry["spent"])
        profiles.append(CustomerProfile(
            name=entry["name"],
            email=entry["email"],
            total_bookings=entry["bookings"],
            total_spent=clv,
            clv=clv,
            segment=assign_segment(clv, entry["bookings"], days_since),
            first_booking_date=entry["first"],
            last_booking_date=entry["last"],
            days_since_last_booking=days_since,
            avg_booking_value=round_money(safe_divide(entry["spent"], entry["bookings"])),
        ))
    return profiles


def _segment_stats(members: List[CustomerProfile], total_customers: int) -> CustomerSegment:
    count = len(members)
    revenue = sum(p.total_spent for p in members)
    return CustomerSegment(
        count=count,
        percentage=round_percent(percentage(count, total_customers)),
        avg_clv=round_money(safe_divide(sum(p.clv for p in members), count)),
        avg_bookings=round(safe_divide(sum(p.total_bookings for p in members), count), 2),
        total_revenue=round_money(revenue),
    )


def analyze_customers(
    transactions: List[Transaction],
    now: datetime,
    customers: Optional[List[Customer]] = None,
) -> CustomerIntelligence:
    """
    Segment the customer base and rank top and churn-risk customers

    Args:
        transactions: Transactions for the window
        now: Reference time for recency calculations
        customers: Core customer records; adds the account base view when given

    Returns:
        CustomerIntelligence
    """
    profiles = build_customer_profiles(transactions, now)
    total = len(profiles)

    by_segment: Dict[CustomerSegmentName, List[CustomerProfile]] = {name: [] for name in CustomerSegmentName}
    for profile in profiles:
        by_segment[profile.segment].append(profile)

    segments = CustomerSegments(
        vip=_segment_stats(by_segment[CustomerSegmentName.VIP], total),
        regular=_segment_stats(by_segment[CustomerSegmentName.REGULAR], total),
        at_risk=_segment_stats(by_segment[CustomerSegmentName.AT_RISK], total),
        new=_segment_stats(by_segment[CustomerSegmentName.NEW], total),
    )

    # sorted() is stable, so ties keep first-seen order
    top_customers = sorted(profiles, key=lambda p: p.clv, reverse=True)[:TOP_CUSTOMERS_LIMIT]
    churn_risk = sorted(
        by_segment[CustomerSegmentName.AT_RISK],
        key=lambda p: p.days_since_last_booking or 0,
        reverse=True,
    )[:TOP_CUSTOMERS_LIMIT]

    new_since = now - timedelta(days=NEW_CUSTOMER_WINDOW_DAYS)
    new_customers = sum(
        1 for p in profiles if p.first_booking_date is not None and p.first_booking_date >= new_since
    )
    repeaters = sum(1 for p in profiles if p.total_bookings >= REPEAT_MIN_BOOKINGS)

    return CustomerIntelligence(
        total_customers=total,
        new_customers=new_customers,
        repeat_rate=round_percent(percentage(repeaters, total)),
        avg_customer_lifetime_value=round_money(safe_divide(sum(p.clv for p in profiles), total)),
        segments=segments,
        top_customers_by_clv=top_customers,
        churn_risk_customers=churn_risk,
        customer_base=summarize_customer_base(customers, now) if customers else None,
    )


def summarize_customer_base(customers: List[Customer], now: datetime) -> CustomerBaseMetrics:
    """Spending tiers, account lifetime, churn and acquisition from core customer records"""
    spend = [parse_amount(c.sales_total) for c in customers]
    total_revenue = sum(spend)

    tiers = []
    for name, min_spend, max_spend in SPENDING_TIERS:
        in_tier = [
            amount for amount in spend
            if amount >= min_spend and (max_spend is None or amount < max_spend)
        ]
        tier_revenue = sum(in_tier)
        tiers.append(SpendingTier(
            name=name,
            min_spend=min_spend,
            max_spend=max_spend,
            customer_count=len(in_tier),
            total_revenue=round_money(tier_revenue),
            avg_revenue_per_customer=round_money(safe_divide(tier_revenue, len(in_tier))),
            percentage_of_revenue=round_percent(percentage(tier_revenue, total_revenue)),
        ))

    lifetimes = []
    churned = dormant = 0
    new_accounts = []
    new_since = now - timedelta(days=NEW_ACCOUNT_WINDOW_DAYS)
    for customer, amount in zip(customers, spend):
        created = parse_date(customer.created_at)
        if created is not None:
            lifetimes.append((now - created).days)
            if created >= new_since:
                new_accounts.append(amount)

        updated = parse_date(customer.updated_at)
        if updated is not None:
            inactive_days = (now - updated).days
            if inactive_days > CHURNED_AFTER_DAYS:
                churned += 1
            elif inactive_days > DORMANT_AFTER_DAYS:
                dormant += 1

    new_revenue = sum(new_accounts)
    return CustomerBaseMetrics(
        total_accounts=len(customers),
        spending_tiers=tiers,
        avg_customer_lifetime_days=round(safe_divide(sum(lifetimes), len(lifetimes))),
        churn_rate=round_percent(percentage(churned, len(customers))),
        dormant_customers=dormant,
        new_accounts=len(new_accounts),
        new_account_revenue=round_money(new_revenue),
        avg_new_account_value=round_money(safe_divide(new_revenue, len(new_accounts))),
    )
