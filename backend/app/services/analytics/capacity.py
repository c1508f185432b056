"""
Activity profitability, capacity utilization and weekday availability
"""
from collections import Counter
from typing import Any, Dict, List

from app.schemas.analytics import (
    ActivityProfitability,
    ActivityUtilization,
    AvailabilityInsights,
    CapacityUtilization,
    TimeSlotUtilization,
)
from app.schemas.resova import AvailabilityInstance, Booking, InventoryItem
from app.utils.parsing import (
    DAY_NAMES,
    js_weekday,
    parse_amount,
    parse_count,
    parse_date,
    percentage,
    round_money,
    round_percent,
    safe_divide,
)

PEAK_UTILIZATION_THRESHOLD = 80
LOW_UTILIZATION_THRESHOLD = 50
UNKNOWN_KEY = "unknown"


def analyze_activity_profitability(items: List[InventoryItem]) -> List[ActivityProfitability]:
    """Revenue, bookings and reviews per inventory item, highest sales first"""
    rows = []
    for item in items:
        total_sales = parse_amount(item.total_sales)
        total_bookings = parse_count(item.total_bookings)
        rows.append(ActivityProfitability(
            id=str(item.id) if item.id is not None else None,
            name=item.name or "Unknown",
            total_sales=round_money(total_sales),
            total_bookings=total_bookings,
            revenue_per_booking=round_money(safe_divide(total_sales, total_bookings)),
            avg_review=round(parse_amount(item.avg_review), 2),
            total_reviews=parse_count(item.total_reviews),
        ))
    return sorted(rows, key=lambda row: row.total_sales, reverse=True)


def _utilization(booked: int, capacity: int) -> float:
    return round_percent(percentage(booked, capacity))


def analyze_capacity(instances: List[AvailabilityInstance]) -> CapacityUtilization:
    """
    Aggregate availability instances by activity and by start time

    A time slot is a peak when utilization is at least 80% and low when it is
    under 50%. Both thresholds are fixed.
    """
    total_capacity = total_booked = total_available = 0
    activities: Dict[str, Dict[str, Any]] = {}
    slots: Dict[str, Dict[str, int]] = {}

    for instance in instances:
        capacity = parse_count(instance.capacity)
        booked = parse_count(instance.booked)
        available = parse_count(instance.available)
        total_capacity += capacity
        total_booked += booked
        total_available += available

        activity_key = str(instance.item_id) if instance.item_id is not None else UNKNOWN_KEY
        activity = activities.setdefault(activity_key, {
            "name": instance.item_name or "Unknown",
            "capacity": 0,
            "booked": 0,
            "available": 0,
            "instances": 0,
        })
        activity["capacity"] += capacity
        activity["booked"] += booked
        activity["available"] += available
        activity["instances"] += 1

        slot = slots.setdefault(instance.start_time or UNKNOWN_KEY, {"capacity": 0, "booked": 0})
        slot["capacity"] += capacity
        slot["booked"] += booked

    by_activity = sorted(
        (
            ActivityUtilization(
                id=key,
                name=activity["name"],
                capacity=activity["capacity"],
                booked=activity["booked"],
                available=activity["available"],
                instance_count=activity["instances"],
                utilization=_utilization(activity["booked"], activity["capacity"]),
            )
            for key, activity in activities.items()
        ),
        key=lambda row: row.utilization,
        reverse=True,
    )
    slot_rows = sorted(
        (
            (
                percentage(slot["booked"], slot["capacity"]),
                TimeSlotUtilization(
                    time=time,
                    capacity=slot["capacity"],
                    booked=slot["booked"],
                    utilization=_utilization(slot["booked"], slot["capacity"]),
                ),
            )
            for time, slot in slots.items()
        ),
        key=lambda row: row[0],
        reverse=True,
    )

    # thresholds apply to the unrounded ratio
    return CapacityUtilization(
        overall_utilization=_utilization(total_booked, total_capacity),
        total_capacity=total_capacity,
        total_booked=total_booked,
        total_available=total_available,
        by_activity=by_activity,
        by_time_slot=[slot for _, slot in slot_rows],
        peak_times=[slot for raw, slot in slot_rows if raw >= PEAK_UTILIZATION_THRESHOLD],
        low_utilization_times=[slot for raw, slot in slot_rows if raw < LOW_UTILIZATION_THRESHOLD],
    )


def analyze_availability(bookings: List[Booking], items: List[InventoryItem]) -> AvailabilityInsights:
    """
    Booked guests against listed item capacity, and weekday demand

    Peak days are the two weekdays with the most bookings and low days the two
    with the fewest; weekdays with no bookings are not ranked. Ties keep the
    order in which the weekdays first appear.
    """
    total_capacity = sum(parse_count(item.capacity) for item in items)
    total_booked = sum(parse_count(booking.total_quantity) for booking in bookings)

    day_counts: Counter = Counter()
    for booking in bookings:
        booking_date = parse_date(booking.date_short)
        if booking_date is not None:
            day_counts[DAY_NAMES[js_weekday(booking_date)]] += 1
    ranked = [day for day, _ in day_counts.most_common()]

    return AvailabilityInsights(
        utilization_rate=round_percent(percentage(total_booked, total_capacity)),
        peak_days=ranked[:2],
        low_booking_days=ranked[-2:],
        average_capacity=round(safe_divide(total_capacity, len(items)), 2),
        average_booked=round(safe_divide(total_booked, len(bookings)), 2),
    )
