import pytest

from app.services.analytics.categories import (
    BookingChannel,
    BookingStatus,
    PaymentMethod,
    classify_booking_channel,
    classify_booking_status,
    classify_payment_method,
)
from app.services.analytics.payments import analyze_payment_collection
from app.services.analytics.performance import analyze_performance, hour_bucket, top_purchased


class TestCategories:

    @pytest.mark.parametrize("raw, expected", [
        ("Completed", BookingStatus.COMPLETED),
        ("UPCOMING", BookingStatus.UPCOMING),
        ("pending", BookingStatus.UPCOMING),
        ("No-Show", BookingStatus.NO_SHOW),
        ("noshow", BookingStatus.NO_SHOW),
        ("no show", BookingStatus.NO_SHOW),
        ("Cancelled", BookingStatus.CANCELLED),
        ("canceled", BookingStatus.CANCELLED),
        ("archived", BookingStatus.OTHER),
        (None, BookingStatus.OTHER),
    ])
    def test_booking_status(self, raw, expected):
        """Free-text statuses map to a closed set with an OTHER fallback"""
        assert classify_booking_status(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("Online", BookingChannel.ONLINE),
        ("Manual", BookingChannel.MANUAL),
        ("admin", BookingChannel.ADMIN),
        ("Facebook", BookingChannel.AFFILIATE),
        ("Affiliate: Partner Co", BookingChannel.AFFILIATE),
        ("kiosk", BookingChannel.OTHER),
    ])
    def test_booking_channel(self, raw, expected):
        assert classify_booking_channel(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("Credit Card", PaymentMethod.CARD),
        ("Cash", PaymentMethod.CASH),
        ("Manual payment", PaymentMethod.CASH),
        ("Bank transfer", PaymentMethod.OTHER),
        (None, PaymentMethod.OTHER),
    ])
    def test_payment_method(self, raw, expected):
        assert classify_payment_method(raw) == expected


class TestPerformance:

    def test_best_day_top_item_and_peak_time(self, make_booking):
        bookings = [
            make_booking(date_short="11/18/2024", booking_total="100.00", item_name="Escape Room", time="14:30"),
            make_booking(date_short="11/17/2024", booking_total="20.00", item_name="Escape Room", time="14:00"),
            make_booking(date_short="11/17/2024", booking_total="20.00", item_name="Axe Throwing", time="9:15"),
        ]
        performance = analyze_performance(bookings, [])

        assert performance.best_day == "Monday"
        assert performance.best_day_revenue == 100
        assert performance.top_item == "Escape Room"
        assert performance.top_item_bookings == 2
        assert performance.peak_time == "14:00"
        assert performance.peak_time_bookings == 2
        assert performance.best_day_change == 0

    def test_changes_compare_same_key_in_previous_period(self, make_booking):
        current = [make_booking(booking_total="150.00"), make_booking(booking_total="0")]
        previous = [make_booking(date_short="11/11/2024", booking_total="100.00")]
        performance = analyze_performance(current, previous)
        assert performance.best_day_change == 50.0
        assert performance.top_item_change == 100.0

    def test_status_counts(self, make_booking):
        bookings = [
            make_booking(status="Completed"),
            make_booking(status="Completed"),
            make_booking(status="No-Show"),
            make_booking(status="Cancelled"),
            make_booking(status="Upcoming"),
            make_booking(status="weird"),
        ]
        performance = analyze_performance(bookings, [make_booking(status="Completed")])
        assert performance.booking_completed == 2
        assert performance.booking_completed_change == 100.0
        assert performance.booking_no_show == 1
        assert performance.booking_no_show_change == 0
        assert performance.booking_cancelled == 1
        assert performance.booking_upcoming == 1
        assert performance.booking_other == 1

    def test_empty_bookings_have_no_labels(self):
        performance = analyze_performance([], [])
        assert performance.best_day is None
        assert performance.top_item is None
        assert performance.peak_time is None

    def test_hour_bucket(self):
        assert hour_bucket("9:45") == "09:00"
        assert hour_bucket("14:00:00") == "14:00"
        assert hour_bucket("") is None

    def test_top_purchased_ranks_by_revenue(self, make_booking):
        bookings = [
            make_booking(item_name="A", booking_total="10"),
            make_booking(item_name="B", booking_total="30"),
            make_booking(item_name="A", booking_total="15"),
        ]
        ranked = top_purchased(bookings)
        assert [item.name for item in ranked] == ["B", "A"]
        assert ranked[1].amount == 25
        assert ranked[1].bookings == 2


class TestPaymentCollection:

    def test_due_is_max_observed_snapshot(self, make_payment):
        """Two rows for transaction 7 with due 10 then 0 dedupe to a due of 10"""
        payments = [
            make_payment(transaction_id=7, transaction_due="10.00", transaction_paid="90.00", amount="90.00"),
            make_payment(transaction_id=7, transaction_due="0.00", transaction_paid="100.00", amount="10.00"),
        ]
        collection = analyze_payment_collection(payments, [])

        assert collection.unpaid_amount == 10
        assert collection.total_transaction_amount == 100
        assert collection.paid_amount == 100

    def test_transaction_status_uses_latest_snapshot(self, make_payment):
        payments = [
            make_payment(transaction_id=1, transaction_paid="50", transaction_due="0"),
            make_payment(transaction_id=2, transaction_paid="20", transaction_due="80"),
            make_payment(transaction_id=3, transaction_paid="0", transaction_due="100", amount="0"),
            make_payment(transaction_id=4, transaction_paid="0", transaction_due="100"),
            make_payment(transaction_id=4, transaction_paid="100", transaction_due="0"),
        ]
        collection = analyze_payment_collection(payments, [])
        assert collection.paid_transactions == 2
        assert collection.partially_paid_transactions == 1
        assert collection.unpaid_transactions == 1

    def test_card_and_cash_split(self, make_payment):
        """Unrecognized labels are excluded from both card and cash"""
        payments = [
            make_payment(transaction_id=1, label="Card", amount="60"),
            make_payment(transaction_id=2, label="Cash", amount="30"),
            make_payment(transaction_id=3, label="Voucher", amount="10"),
        ]
        collection = analyze_payment_collection(payments, [])
        assert collection.card_amount == 60
        assert collection.card_percent == 60.0
        assert collection.cash_amount == 30
        assert collection.uncategorized_amount == 10

    def test_no_payments_gives_zero_percentages(self):
        collection = analyze_payment_collection([], [])
        assert collection.paid_percent == 0
        assert collection.card_percent == 0
        assert collection.total_change == 0

    def test_total_change_against_previous(self, make_payment):
        current = [make_payment(amount="150")]
        previous = [make_payment(amount="100")]
        assert analyze_payment_collection(current, previous).total_change == 50.0
