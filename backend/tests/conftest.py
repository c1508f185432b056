import pytest
from datetime import datetime
from fastapi.testclient import TestClient

from app.main import app
from app.schemas.resova import (
    AvailabilityInstance,
    Basket,
    Booking,
    Customer,
    GiftVoucher,
    Payment,
    Transaction,
)
from app.services.analytics.engine import AnalyticsEngine


@pytest.fixture(scope="session")
def test_client():
    """Test client for the FastAPI app"""
    return TestClient(app)


@pytest.fixture
def now():
    """Fixed reference time (a Wednesday)"""
    return datetime(2024, 11, 20, 12, 0, 0)


@pytest.fixture
def engine():
    return AnalyticsEngine()


@pytest.fixture
def make_booking():
    """Factory for flattened booking rows"""
    def _make(**overrides):
        data = {
            "id": 1,
            "transaction_id": 100,
            "item_id": 10,
            "item_name": "Escape Room",
            "customer_email": "guest@example.com",
            "date_short": "11/18/2024",
            "time": "14:30",
            "total_quantity": "2",
            "price": "40.00",
            "booking_total": "50.00",
            "source": "Online",
            "status": "Completed",
            "waiver_signed": "Signed",
        }
        data.update(overrides)
        return Booking(**data)
    return _make


@pytest.fixture
def make_transaction():
    """Factory for transactions with an optional customer"""
    def _make(email=None, name="Alex Smith", bookings=1, **overrides):
        data = {
            "id": 100,
            "created_dt": "2024-11-18 10:00:00",
            "price": "100.00",
            "discount": "0.00",
            "fee": "2.00",
            "tax": "10.00",
            "total": "120.00",
            "paid": "100.00",
            "refunded": "0.00",
            "due": "20.00",
            "bookings": [{"id": i, "item": {"id": 10, "name": "Escape Room"}} for i in range(bookings)],
        }
        if email:
            data["customer"] = {"name": name, "email": email}
        data.update(overrides)
        return Transaction.model_validate(data)
    return _make


@pytest.fixture
def make_payment():
    """Factory for payment rows carrying a transaction snapshot"""
    def _make(**overrides):
        data = {
            "transaction_id": 7,
            "transaction_total": "100.00",
            "transaction_paid": "50.00",
            "transaction_due": "50.00",
            "label": "Card Payment",
            "amount": "50.00",
        }
        data.update(overrides)
        return Payment(**data)
    return _make


@pytest.fixture
def make_instance():
    def _make(**overrides):
        data = {
            "item_id": 10,
            "item_name": "Escape Room",
            "start_date": "2024-11-18",
            "start_time": "10:00",
            "capacity": 10,
            "booked": 5,
            "available": 5,
        }
        data.update(overrides)
        return AvailabilityInstance(**data)
    return _make


@pytest.fixture
def make_voucher():
    def _make(**overrides):
        data = {
            "amount": "50.00",
            "voucher_type": "value",
            "status": "active",
            "created_at": "2024-11-01 09:00:00",
            "expires_at": "2025-11-01 00:00:00",
            "redeemed_at": None,
        }
        data.update(overrides)
        return GiftVoucher(**data)
    return _make


@pytest.fixture
def make_basket():
    def _make(**overrides):
        data = {
            "status": "abandoned",
            "total": "100.00",
            "customer_email": "cart@example.com",
            "items": [{"item_name": "Escape Room", "quantity": 2, "price": "50.00", "total": "100.00"}],
        }
        data.update(overrides)
        return Basket.model_validate(data)
    return _make


@pytest.fixture
def make_customer():
    def _make(**overrides):
        data = {
            "email": "account@example.com",
            "sales_total": "250.00",
            "created_at": "2024-01-01 00:00:00",
            "updated_at": "2024-11-01 00:00:00",
        }
        data.update(overrides)
        return Customer(**data)
    return _make
