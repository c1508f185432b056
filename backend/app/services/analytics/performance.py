"""
Performance highlights: best day, top item, peak time and booking status mix
"""
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Tuple

from app.schemas.analytics import Performance, PurchasedItem
from app.schemas.resova import Booking
from app.services.analytics.categories import BookingStatus, classify_booking_status
from app.utils.parsing import DAY_NAMES, js_weekday, parse_amount, parse_date, percent_change, round_money

TOP_PURCHASED_LIMIT = 5


def hour_bucket(time_value: Optional[str]) -> Optional[str]:
    """Hour label for a booking time, e.g. 14:30 -> 14:00; None when no hour can be read"""
    if not time_value:
        return None
    hour = time_value.strip().split(":")[0].strip()
    if not hour:
        return None
    if hour.isdigit():
        hour = f"{int(hour):02d}"
    return f"{hour}:00"


class _BookingMaps:
    """Per-key tallies over one period's booking records"""

    def __init__(self, bookings: List[Booking]):
        self.revenue_by_day: Dict[str, float] = defaultdict(float)
        self.item_counts: Counter = Counter()
        self.hour_counts: Counter = Counter()
        self.status_counts: Counter = Counter()

        for booking in bookings:
            booking_date = parse_date(booking.date_short)
            if booking_date is not None:
                day_name = DAY_NAMES[js_weekday(booking_date)]
                self.revenue_by_day[day_name] += parse_amount(booking.booking_total)
            if booking.item_name:
                self.item_counts[booking.item_name] += 1
            hour = hour_bucket(booking.time)
            if hour:
                self.hour_counts[hour] += 1
            self.status_counts[classify_booking_status(booking.status)] += 1


def _leader(values: Dict[str, float]) -> Tuple[Optional[str], float]:
    # first key wins on ties, so insertion order decides
    if not values:
        return None, 0
    key = max(values, key=values.get)
    return key, values[key]


def analyze_performance(bookings: List[Booking], previous_bookings: List[Booking]) -> Performance:
    """
    Compute best day, top item, peak time and booking-status counts

    Each figure is compared with the same key in the previous period's
    bookings; a key absent from the previous period has a baseline of 0.
    """
    current = _BookingMaps(bookings)
    previous = _BookingMaps(previous_bookings)

    best_day, best_day_revenue = _leader(current.revenue_by_day)
    top_item, top_item_bookings = _leader(current.item_counts)
    peak_time, peak_time_bookings = _leader(current.hour_counts)

    def status_pair(status: BookingStatus) -> Tuple[int, float]:
        count = current.status_counts.get(status, 0)
        return count, percent_change(count, previous.status_counts.get(status, 0))

    completed, completed_change = status_pair(BookingStatus.COMPLETED)
    upcoming, upcoming_change = status_pair(BookingStatus.UPCOMING)
    no_show, no_show_change = status_pair(BookingStatus.NO_SHOW)
    cancelled, cancelled_change = status_pair(BookingStatus.CANCELLED)

    return Performance(
        best_day=best_day,
        best_day_revenue=round_money(best_day_revenue),
        best_day_change=percent_change(best_day_revenue, previous.revenue_by_day.get(best_day, 0)),
        top_item=top_item,
        top_item_bookings=int(top_item_bookings),
        top_item_change=percent_change(top_item_bookings, previous.item_counts.get(top_item, 0)),
        peak_time=peak_time,
        peak_time_bookings=int(peak_time_bookings),
        peak_time_change=percent_change(peak_time_bookings, previous.hour_counts.get(peak_time, 0)),
        booking_completed=completed,
        booking_completed_change=completed_change,
        booking_upcoming=upcoming,
        booking_upcoming_change=upcoming_change,
        booking_no_show=no_show,
        booking_no_show_change=no_show_change,
        booking_cancelled=cancelled,
        booking_cancelled_change=cancelled_change,
        booking_other=current.status_counts.get(BookingStatus.OTHER, 0),
    )


def top_purchased(bookings: List[Booking], limit: int = TOP_PURCHASED_LIMIT) -> List[PurchasedItem]:
    """Items ranked by summed booking_total"""
    totals: Dict[str, Dict[str, float]] = {}
    for booking in bookings:
        item = totals.setdefault(booking.item_name or "Unknown", {"amount": 0.0, "bookings": 0})
        item["amount"] += parse_amount(booking.booking_total)
        item["bookings"] += 1

    ranked = sorted(totals.items(), key=lambda entry: entry[1]["amount"], reverse=True)
    return [
        PurchasedItem(name=name, amount=round_money(item["amount"]), bookings=int(item["bookings"]))
        for name, item in ranked[:limit]
    ]
