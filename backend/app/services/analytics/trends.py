"""
Day-indexed series built from flattened booking records
"""
from collections import defaultdict
from datetime import date
from typing import Dict, List, Tuple

from app.schemas.analytics import (
    DailyBreakdown,
    DayOfWeekSummary,
    GuestMetric,
    RevenueTrend,
    SalesMetric,
)
from app.schemas.resova import Booking
from app.utils.parsing import (
    DAY_NAMES,
    SHORT_DAY_NAMES,
    js_weekday,
    parse_amount,
    parse_count,
    parse_date,
    round_money,
    safe_divide,
)

DEFAULT_TREND_DAYS = 7


def group_by_date(bookings: List[Booking]) -> Dict[date, List[Booking]]:
    """
    Group bookings by their parsed date_short, in ascending date order

    Bookings whose date can't be parsed are left out entirely.
    """
    grouped: Dict[date, List[Booking]] = defaultdict(list)
    for booking in bookings:
        parsed = parse_date(booking.date_short)
        if parsed is None:
            continue
        grouped[parsed.date()].append(booking)
    return dict(sorted(grouped.items()))


def recent_dates(bookings: List[Booking], days: int = DEFAULT_TREND_DAYS) -> List[Tuple[date, List[Booking]]]:
    """Last `days` distinct booking dates, ascending"""
    grouped = list(group_by_date(bookings).items())
    if days <= 0:
        return []
    return grouped[-days:]


def _weekday_totals(bookings: List[Booking]) -> Dict[int, Dict[str, float]]:
    buckets: Dict[int, Dict[str, float]] = {}
    for day, day_bookings in group_by_date(bookings).items():
        bucket = buckets.setdefault(js_weekday(day), {"gross": 0.0, "net": 0.0, "sales": 0})
        for booking in day_bookings:
            bucket["gross"] += parse_amount(booking.booking_total)
            bucket["net"] += parse_amount(booking.price)
            bucket["sales"] += 1
    return buckets


def build_revenue_trends(
    bookings: List[Booking],
    previous_bookings: List[Booking],
    days: int = DEFAULT_TREND_DAYS,
) -> List[RevenueTrend]:
    """
    Revenue per booking date with same-weekday figures from the previous period

    Previous-period bookings are bucketed by weekday, so each current date is
    compared with everything that happened on that weekday last period. A
    weekday with no previous bookings compares against 0.
    """
    previous_by_weekday = _weekday_totals(previous_bookings)
    empty = {"gross": 0.0, "net": 0.0, "sales": 0}

    trends = []
    for day, day_bookings in recent_dates(bookings, days):
        weekday = js_weekday(day)
        previous = previous_by_weekday.get(weekday, empty)
        trends.append(RevenueTrend(
            date=day.isoformat(),
            day=SHORT_DAY_NAMES[weekday],
            this_gross=round_money(sum(parse_amount(b.booking_total) for b in day_bookings)),
            this_net=round_money(sum(parse_amount(b.price) for b in day_bookings)),
            this_sales=len(day_bookings),
            prev_gross=round_money(previous["gross"]),
            prev_net=round_money(previous["net"]),
            prev_sales=int(previous["sales"]),
        ))
    return trends


def build_sales_metrics(bookings: List[Booking], days: int = DEFAULT_TREND_DAYS) -> List[SalesMetric]:
    metrics = []
    for day, day_bookings in recent_dates(bookings, days):
        gross = sum(parse_amount(b.booking_total) for b in day_bookings)
        metrics.append(SalesMetric(
            date=day.isoformat(),
            day=SHORT_DAY_NAMES[js_weekday(day)],
            bookings=len(day_bookings),
            avg_rev=round_money(safe_divide(gross, len(day_bookings))),
        ))
    return metrics


def build_guest_metrics(bookings: List[Booking], days: int = DEFAULT_TREND_DAYS) -> List[GuestMetric]:
    metrics = []
    for day, day_bookings in recent_dates(bookings, days):
        gross = sum(parse_amount(b.booking_total) for b in day_bookings)
        guests = sum(parse_count(b.total_quantity) for b in day_bookings)
        metrics.append(GuestMetric(
            date=day.isoformat(),
            day=SHORT_DAY_NAMES[js_weekday(day)],
            total_guests=guests,
            avg_rev_per_guest=round_money(safe_divide(gross, guests)),
        ))
    return metrics


def build_daily_breakdown(bookings: List[Booking]) -> List[DailyBreakdown]:
    """One row per booking date across the whole window"""
    rows = []
    for day, day_bookings in group_by_date(bookings).items():
        items: Dict[str, Dict[str, float]] = {}
        for booking in day_bookings:
            item = items.setdefault(booking.item_name or "Unknown", {"bookings": 0, "revenue": 0.0})
            item["bookings"] += 1
            item["revenue"] += parse_amount(booking.booking_total)

        # max keeps the first item seen on ties
        top_name, top = max(items.items(), key=lambda entry: entry[1]["bookings"])
        weekday = js_weekday(day)
        rows.append(DailyBreakdown(
            date=day.isoformat(),
            day_of_week=weekday,
            day_name=DAY_NAMES[weekday],
            bookings=len(day_bookings),
            revenue=round_money(sum(parse_amount(b.booking_total) for b in day_bookings)),
            guests=sum(parse_count(b.total_quantity) for b in day_bookings),
            top_item=top_name,
            top_item_bookings=int(top["bookings"]),
            top_item_revenue=round_money(top["revenue"]),
        ))
    return rows


def build_day_of_week_summary(bookings: List[Booking]) -> List[DayOfWeekSummary]:
    """Totals per weekday, Sunday first, with per-occurrence averages"""
    buckets: Dict[int, Dict[str, float]] = {}
    for day, day_bookings in group_by_date(bookings).items():
        bucket = buckets.setdefault(
            js_weekday(day), {"bookings": 0, "revenue": 0.0, "guests": 0, "occurrences": 0}
        )
        bucket["occurrences"] += 1
        bucket["bookings"] += len(day_bookings)
        bucket["revenue"] += sum(parse_amount(b.booking_total) for b in day_bookings)
        bucket["guests"] += sum(parse_count(b.total_quantity) for b in day_bookings)

    summary = []
    for weekday in sorted(buckets):
        bucket = buckets[weekday]
        summary.append(DayOfWeekSummary(
            day_of_week=weekday,
            day_name=DAY_NAMES[weekday],
            total_bookings=int(bucket["bookings"]),
            total_revenue=round_money(bucket["revenue"]),
            total_guests=int(bucket["guests"]),
            avg_bookings_per_occurrence=round(safe_divide(bucket["bookings"], bucket["occurrences"]), 2),
            avg_revenue_per_occurrence=round_money(safe_divide(bucket["revenue"], bucket["occurrences"])),
            occurrences=int(bucket["occurrences"]),
        ))
    return summary
