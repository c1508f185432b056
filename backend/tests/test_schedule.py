from datetime import date, datetime

import pytest

from app.schemas.resova import AnalyticsRequest, PeriodRecords
from app.services.analytics.categories import BookingStatus
from app.services.analytics.schedule import (
    bookings_on,
    build_agenda_chart,
    build_todays_agenda,
    build_upcoming_bookings,
    clock,
)

TODAY = date(2024, 11, 20)


class TestClock:

    @pytest.mark.parametrize("value, expected", [
        ("14:30", (14, 30)),
        ("9:05:00", (9, 5)),
        ("2:30 pm", (14, 30)),
        ("12:15am", (0, 15)),
        ("", None),
        ("noon", None),
    ])
    def test_reads_booking_times(self, value, expected):
        assert clock(value) == expected


class TestTodaysAgenda:

    @pytest.fixture
    def todays(self, make_booking):
        return [
            make_booking(date_short="11/20/2024", time="14:30", total_quantity="4", waiver_signed="Signed"),
            make_booking(date_short="11/20/2024", time="9:00", total_quantity="2", waiver_signed="Unsigned"),
            make_booking(date_short="11/20/2024", time="9:45", total_quantity="3", waiver_signed=None),
        ]

    def test_headline_figures(self, todays):
        """First booking follows the clock, not string order"""
        agenda = build_todays_agenda(todays)

        assert agenda.bookings == 3
        assert agenda.guests == 9
        assert agenda.first_booking == "9:00"
        assert agenda.waivers_required == 5

    def test_hourly_chart(self, todays):
        chart = build_agenda_chart(todays)

        assert [item.time for item in chart] == ["09:00", "14:00"]
        assert chart[0].bookings == 2
        assert chart[0].guests == 5
        assert chart[0].items_booked == 2
        assert chart[1].guests == 4

    def test_no_bookings_today(self):
        agenda = build_todays_agenda([])
        assert agenda.bookings == 0
        assert agenda.first_booking is None
        assert build_agenda_chart([]) == []

    def test_selects_by_event_date(self, make_booking):
        bookings = [
            make_booking(date_short="11/20/2024"),
            make_booking(date_short="11/21/2024"),
            make_booking(date_short="not a date"),
        ]
        assert len(bookings_on(bookings, TODAY)) == 1


class TestUpcomingBookings:

    def test_orders_by_date_then_time_from_today(self, make_booking):
        bookings = [
            make_booking(id=1, date_short="11/22/2024", time="10:00"),
            make_booking(id=2, date_short="11/19/2024", time="08:00"),
            make_booking(id=3, date_short="11/20/2024", time="15:00"),
            make_booking(id=4, date_short="11/20/2024", time="9:30"),
            make_booking(id=5, date_short=None, time="07:00"),
        ]
        upcoming = build_upcoming_bookings(bookings, [], TODAY)

        assert [(b.booking_date, b.time) for b in upcoming] == [
            (date(2024, 11, 20), "9:30"),
            (date(2024, 11, 20), "15:00"),
            (date(2024, 11, 22), "10:00"),
        ]

    def test_joins_transaction_details(self, make_booking, make_transaction):
        booking = make_booking(
            transaction_id=100, date_short="11/21/2024", total_quantity="3", booking_total="90.00",
            transaction_due="30.00", waiver_signed="Signed", status="Upcoming",
        )
        transaction = make_transaction(id=100, email="pat@example.com", name="Pat Lee", paid="60.00",
                                       created_dt="2024-11-01 09:15:00")
        (upcoming,) = build_upcoming_bookings([booking], [transaction], TODAY)

        assert upcoming.name == "Pat Lee"
        assert upcoming.item == "Escape Room"
        assert upcoming.guests == 3
        assert upcoming.waiver == "3/3 signed"
        assert upcoming.transaction_number == "100"
        assert upcoming.purchased_date == datetime(2024, 11, 1, 9, 15, 0)
        assert upcoming.transaction_total == 90
        assert upcoming.paid == 60
        assert upcoming.due == 30
        assert upcoming.status == BookingStatus.UPCOMING

    def test_without_transaction_uses_booking_customer(self, make_booking):
        booking = make_booking(date_short="11/21/2024", customer_first_name="Sam", customer_last_name="Ray",
                               waiver_signed="Unsigned", total_quantity="2")
        (upcoming,) = build_upcoming_bookings([booking], [], TODAY)

        assert upcoming.name == "Sam Ray"
        assert upcoming.waiver == "0/2 signed"
        assert upcoming.paid == 0
        assert upcoming.purchased_date is None

    def test_limited_to_ten(self, make_booking):
        bookings = [make_booking(id=i, date_short="11/25/2024", time=f"{8 + i}:00") for i in range(12)]
        upcoming = build_upcoming_bookings(bookings, [], TODAY)
        assert len(upcoming) == 10
        assert upcoming[0].time == "8:00"


class TestScheduleInEngine:

    def test_schedule_records_drive_agenda(self, engine, make_booking, now):
        request = AnalyticsRequest(
            current=PeriodRecords(bookings=[make_booking(date_short="11/18/2024")]),
            schedule=[
                make_booking(date_short="11/20/2024", time="10:00", total_quantity="5"),
                make_booking(date_short="12/02/2024", time="11:00"),
            ],
        )
        result = engine.transform(request, now=now)

        assert result.todays_agenda.bookings == 1
        assert result.todays_agenda.guests == 5
        assert [item.time for item in result.agenda_chart] == ["10:00"]
        assert [b.booking_date for b in result.upcoming_bookings] == [date(2024, 11, 20), date(2024, 12, 2)]

    def test_current_bookings_used_without_schedule(self, engine, make_booking, now):
        request = AnalyticsRequest(current=PeriodRecords(bookings=[make_booking(date_short="11/20/2024")]))
        result = engine.transform(request, now=now)

        assert result.todays_agenda.bookings == 1
        assert len(result.upcoming_bookings) == 1
        payload = result.model_dump(by_alias=True)
        assert {"todaysAgenda", "agendaChart", "upcomingBookings"} <= payload.keys()
