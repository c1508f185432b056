"""
Today's agenda and upcoming bookings

Both read scheduled booking rows by event date (`date_short`), not by the date
the booking was purchased.
"""
from datetime import date
from typing import Dict, List, Optional, Tuple

from app.schemas.analytics import AgendaChartItem, TodaysAgenda, UpcomingBooking
from app.schemas.resova import Booking, Transaction
from app.services.analytics.categories import classify_booking_status
from app.services.analytics.sales import SIGNED_WAIVER
from app.utils.parsing import parse_amount, parse_count, parse_date, round_money

UPCOMING_BOOKINGS_LIMIT = 10


def clock(time_value: Optional[str]) -> Optional[Tuple[int, int]]:
    """(hour, minute) for "14:30", "9:05:00" or "2:30 pm"; None when unreadable"""
    if not time_value:
        return None
    text = time_value.strip().lower()
    suffix = None
    if text.endswith(("am", "pm")):
        suffix = text[-2:]
        text = text[:-2].strip()
    parts = text.split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return None
    if suffix == "pm" and hour < 12:
        hour += 12
    elif suffix == "am" and hour == 12:
        hour = 0
    return hour, minute


def _time_sort_key(time_value: Optional[str]) -> Tuple[int, Tuple[int, int], str]:
    # readable times first, in clock order
    parsed = clock(time_value)
    if parsed is None:
        return 1, (0, 0), time_value or ""
    return 0, parsed, ""


def _event_date(booking: Booking) -> Optional[date]:
    parsed = parse_date(booking.date_short)
    return parsed.date() if parsed else None


def bookings_on(bookings: List[Booking], day: date) -> List[Booking]:
    return [b for b in bookings if _event_date(b) == day]


def build_todays_agenda(todays_bookings: List[Booking]) -> TodaysAgenda:
    """
    Headline figures for the bookings taking place today

    Waivers required counts guests on bookings whose waiver isn't signed.
    """
    times = [b.time for b in todays_bookings if clock(b.time) is not None]
    return TodaysAgenda(
        bookings=len(todays_bookings),
        guests=sum(parse_count(b.total_quantity) for b in todays_bookings),
        first_booking=min(times, key=_time_sort_key) if times else None,
        waivers_required=sum(
            parse_count(b.total_quantity) for b in todays_bookings if b.waiver_signed != SIGNED_WAIVER
        ),
    )


def build_agenda_chart(todays_bookings: List[Booking]) -> List[AgendaChartItem]:
    """Today's bookings and guests per start hour, earliest first"""
    hours: Dict[str, Dict[str, int]] = {}
    for booking in todays_bookings:
        parsed = clock(booking.time)
        if parsed is None:
            continue
        bucket = hours.setdefault(f"{parsed[0]:02d}:00", {"bookings": 0, "guests": 0})
        bucket["bookings"] += 1
        bucket["guests"] += parse_count(booking.total_quantity)

    return [
        AgendaChartItem(
            time=hour,
            bookings=bucket["bookings"],
            guests=bucket["guests"],
            items_booked=bucket["bookings"],
        )
        for hour, bucket in sorted(hours.items(), key=lambda entry: _time_sort_key(entry[0]))
    ]


def _customer_name(booking: Booking, transaction: Optional[Transaction]) -> str:
    if transaction is not None and transaction.customer is not None:
        return transaction.customer.display_name
    full_name = " ".join(part for part in (booking.customer_first_name, booking.customer_last_name) if part)
    return full_name or "Guest"


def build_upcoming_bookings(
    bookings: List[Booking],
    transactions: List[Transaction],
    today: date,
    limit: int = UPCOMING_BOOKINGS_LIMIT,
) -> List[UpcomingBooking]:
    """
    The next bookings from today onward, joined to their transactions

    Args:
        bookings: Scheduled booking rows
        transactions: Transactions used for customer names, paid amounts and purchase dates
        today: First event date to include
        limit: Maximum number of bookings returned

    Returns:
        Bookings ordered by event date then start time
    """
    by_transaction = {str(t.id): t for t in transactions if t.id is not None}

    dated = [(_event_date(b), b) for b in bookings]
    scheduled = sorted(
        ((day, b) for day, b in dated if day is not None and day >= today),
        key=lambda entry: (entry[0], _time_sort_key(entry[1].time)),
    )

    upcoming = []
    for day, booking in scheduled[:limit]:
        transaction = None
        if booking.transaction_id is not None:
            transaction = by_transaction.get(str(booking.transaction_id))
        guests = parse_count(booking.total_quantity)
        signed = guests if booking.waiver_signed == SIGNED_WAIVER else 0
        upcoming.append(UpcomingBooking(
            booking_date=day,
            time=booking.time,
            name=_customer_name(booking, transaction),
            item=booking.item_name,
            guests=guests,
            waivers_signed=signed,
            waiver=f"{signed}/{guests} signed",
            transaction_number=str(booking.transaction_id) if booking.transaction_id is not None else None,
            purchased_date=parse_date(transaction.created_dt) if transaction is not None else None,
            transaction_total=round_money(parse_amount(booking.booking_total)),
            paid=round_money(parse_amount(transaction.paid)) if transaction is not None else 0.0,
            due=round_money(parse_amount(booking.transaction_due)),
            status=classify_booking_status(booking.status),
        ))
    return upcoming
