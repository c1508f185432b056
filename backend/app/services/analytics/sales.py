"""
Sales and guest summaries
"""
from collections import Counter
from typing import Any, Dict

from app.schemas.analytics import GuestSummary, SalesSummary
from app.schemas.resova import PeriodRecords
from app.services.analytics.categories import (
    BookingChannel,
    BookingStatus,
    classify_booking_channel,
    classify_booking_status,
)
from app.utils.parsing import (
    parse_amount,
    parse_count,
    percent_change,
    percentage,
    round_money,
    round_percent,
    safe_divide,
)

SIGNED_WAIVER = "Signed"
REPEAT_MIN_BOOKINGS = 2


def _sales_figures(records: PeriodRecords) -> Dict[str, Any]:
    bookings = sum(len(t.bookings) for t in records.transactions)
    revenue = sum(parse_amount(t.total) for t in records.transactions)

    channel_counts = {channel: 0 for channel in BookingChannel}
    channel_revenue = {channel: 0.0 for channel in BookingChannel}
    for booking in records.bookings:
        channel = classify_booking_channel(booking.source)
        channel_counts[channel] += 1
        channel_revenue[channel] += parse_amount(booking.booking_total)

    return {
        "bookings": bookings,
        "revenue": revenue,
        "avg_rev": safe_divide(revenue, bookings),
        "item_sales": sum(parse_amount(t.price) for t in records.transactions),
        "voucher_sales": sum(parse_amount(v.amount) for v in records.gift_vouchers),
        "online_share": percentage(channel_counts[BookingChannel.ONLINE], len(records.bookings)),
        "channel_counts": channel_counts,
        "channel_revenue": channel_revenue,
    }


def summarize_sales(current: PeriodRecords, previous: PeriodRecords) -> SalesSummary:
    """
    Booking counts, revenue and channel mix

    Booking and revenue totals come from transactions; channel mix comes from
    the flattened booking records, which carry the source.
    """
    now = _sales_figures(current)
    before = _sales_figures(previous)
    counts = now["channel_counts"]
    revenue = now["channel_revenue"]

    return SalesSummary(
        bookings=now["bookings"],
        bookings_change=percent_change(now["bookings"], before["bookings"]),
        total_revenue=round_money(now["revenue"]),
        total_revenue_change=percent_change(now["revenue"], before["revenue"]),
        avg_rev_per_booking=round_money(now["avg_rev"]),
        avg_rev_change=percent_change(now["avg_rev"], before["avg_rev"]),
        item_sales=round_money(now["item_sales"]),
        item_sales_change=percent_change(now["item_sales"], before["item_sales"]),
        gift_voucher_sales=round_money(now["voucher_sales"]),
        gift_voucher_change=percent_change(now["voucher_sales"], before["voucher_sales"]),
        online_vs_operator=round_percent(now["online_share"]),
        online_change=percent_change(
            counts[BookingChannel.ONLINE], before["channel_counts"][BookingChannel.ONLINE]
        ),
        online_bookings=counts[BookingChannel.ONLINE],
        manual_bookings=counts[BookingChannel.MANUAL],
        admin_bookings=counts[BookingChannel.ADMIN],
        affiliate_bookings=counts[BookingChannel.AFFILIATE],
        other_bookings=counts[BookingChannel.OTHER],
        online_revenue=round_money(revenue[BookingChannel.ONLINE]),
        manual_revenue=round_money(revenue[BookingChannel.MANUAL]),
        admin_revenue=round_money(revenue[BookingChannel.ADMIN]),
        affiliate_revenue=round_money(revenue[BookingChannel.AFFILIATE]),
        other_revenue=round_money(revenue[BookingChannel.OTHER]),
    )


def _guest_figures(records: PeriodRecords) -> Dict[str, float]:
    guests = 0
    signed = 0
    no_shows = 0
    emails: Counter = Counter()
    for booking in records.bookings:
        quantity = parse_count(booking.total_quantity)
        guests += quantity
        if booking.waiver_signed == SIGNED_WAIVER:
            signed += quantity
        if classify_booking_status(booking.status) == BookingStatus.NO_SHOW:
            no_shows += 1
        if booking.customer_email:
            emails[booking.customer_email.strip().lower()] += 1

    net = (
        sum(parse_amount(p.amount) for p in records.payments)
        - sum(parse_amount(t.refunded) for t in records.transactions)
    )
    booking_count = len(records.bookings)
    return {
        "guests": guests,
        "signed": signed,
        "net": net,
        "arpg": safe_divide(net, guests),
        "group_size": safe_divide(guests, booking_count),
        "repeat": sum(1 for count in emails.values() if count >= REPEAT_MIN_BOOKINGS),
        "no_shows": no_shows,
        "no_show_rate": percentage(no_shows, booking_count),
    }


def summarize_guests(current: PeriodRecords, previous: PeriodRecords) -> GuestSummary:
    """
    Guest counts, ARPG, group size, repeat-customer proxy and no-shows

    No-shows are counted per booking, not per participant, since there is no
    participant-level check-in data.
    """
    now = _guest_figures(current)
    before = _guest_figures(previous)

    return GuestSummary(
        total_guests=now["guests"],
        total_change=percent_change(now["guests"], before["guests"]),
        net_revenue=round_money(now["net"]),
        avg_revenue_per_guest=round_money(now["arpg"]),
        avg_rev_change=percent_change(now["arpg"], before["arpg"]),
        avg_group_size=round(now["group_size"], 2),
        group_change=percent_change(now["group_size"], before["group_size"]),
        repeat_customers=now["repeat"],
        repeat_change=percent_change(now["repeat"], before["repeat"]),
        no_shows=now["no_shows"],
        no_show_rate=round_percent(now["no_show_rate"]),
        no_show_change=percent_change(now["no_shows"], before["no_shows"]),
        waivers_signed=now["signed"],
        waivers_pending=now["guests"] - now["signed"],
    )
