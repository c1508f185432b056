import json
import logging
from datetime import date, datetime

import httpx
import pytest

from app.services.analytics.engine import AnalyticsEngine
from app.schemas.resova import ResovaRecord
from app.services.analytics_service import AnalyticsService
from app.services.resova_service import ResovaAPIError, ResovaNetworkError, ResovaService
from app.utils.date_ranges import DateRange

WINDOW = DateRange(date(2024, 11, 14), date(2024, 11, 20))


def make_service(handler):
    return ResovaService(
        api_key="test-key",
        base_url="https://resova.test/v1",
        transport=httpx.MockTransport(handler),
    )


def fake_resova(requests, insights_status=200, previous_status=200):
    """Handler that answers every Resova endpoint with one small record set"""
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        path = request.url.path.replace("/v1", "", 1)
        params = request.url.params
        if request.method == "POST":
            body = json.loads(request.content or b"{}")
            start = body.get("date_range", {}).get("start_date")
        else:
            start = params.get("start_date")

        if start and start < WINDOW.start.isoformat() and previous_status != 200:
            return httpx.Response(previous_status, json={"message": "error"})

        if path == "/reporting/transactions":
            return httpx.Response(200, json={"data": [
                {"id": 1, "paid": "100.00", "total": "120.00", "created_dt": "2024-11-18 10:00:00",
                 "customer": {"name": "Pat", "email": "pat@example.com"}, "bookings": [{"id": 1}]},
            ]})
        if path == "/reporting/transactions/bookings/allBookings":
            return httpx.Response(200, json=[
                {"id": 1, "transaction_id": 1, "date_short": "11/18/2024", "booking_total": "120.00",
                 "item_name": "Escape Room", "total_quantity": 4, "source": "Online", "status": "Completed"},
            ])
        if path == "/reporting/transactions/payments/allPayments":
            return httpx.Response(200, json=[
                {"transaction_id": 1, "transaction_total": "120.00", "transaction_paid": "100.00",
                 "transaction_due": "20.00", "label": "Card", "amount": "100.00"},
            ])
        if path == "/gift-vouchers":
            return httpx.Response(200, json={"data": [], "meta": {"last_page": 1}})
        if insights_status != 200:
            return httpx.Response(insights_status, json={"message": "error"})
        if path == "/reporting/inventory/items":
            return httpx.Response(200, json=[{"id": 10, "name": "Escape Room", "total_sales": "$500.00",
                                              "total_bookings": 10}])
        if path == "/availability/calendar":
            return httpx.Response(200, json={"data": [{"item_id": 10, "start_time": "10:00",
                                                       "capacity": 10, "booked": 8, "available": 2}]})
        if path in ("/customers", "/baskets"):
            return httpx.Response(200, json={"data": [], "meta": {"last_page": 1}})
        return httpx.Response(404)
    return handler


class TestResovaService:

    @pytest.mark.asyncio
    async def test_sends_api_key_header(self):
        """Every request carries X-API-KEY"""
        requests = []
        service = make_service(fake_resova(requests))
        await service.get_transactions(WINDOW)

        (request,) = requests
        assert request.headers["X-API-KEY"] == "test-key"
        assert request.url.params["date_field"] == "created_at"
        assert request.url.params["start_date"] == "2024-11-14"
        assert request.url.params["end_date"] == "2024-11-20"

    @pytest.mark.asyncio
    async def test_post_reports_send_date_range_body(self):
        requests = []
        service = make_service(fake_resova(requests))
        bookings = await service.get_all_bookings(WINDOW)

        body = json.loads(requests[0].content)
        assert body == {"type": "all", "date_range": {"start_date": "2024-11-14", "end_date": "2024-11-20"}}
        assert bookings[0].item_name == "Escape Room"

    @pytest.mark.asyncio
    async def test_pagination_follows_meta(self):
        pages = []

        def handler(request):
            page = int(request.url.params["page"])
            pages.append(page)
            return httpx.Response(200, json={
                "data": [{"id": page, "email": f"c{page}@example.com"}],
                "meta": {"last_page": 3},
            })

        customers = await make_service(handler).get_customers()
        assert pages == [1, 2, 3]
        assert [c.email for c in customers] == ["c1@example.com", "c2@example.com", "c3@example.com"]

    @pytest.mark.asyncio
    async def test_pagination_stops_on_empty_page(self):
        def handler(request):
            page = int(request.url.params["page"])
            data = [{"id": 1}] if page == 1 else []
            return httpx.Response(200, json={"data": data})

        baskets = await make_service(handler).get_baskets()
        assert len(baskets) == 1

    @pytest.mark.asyncio
    async def test_http_error_raises_api_error(self):
        service = make_service(lambda request: httpx.Response(401, json={"message": "bad key"}))
        with pytest.raises(ResovaAPIError) as exc_info:
            await service.get_transactions(WINDOW)
        assert exc_info.value.status_code == 401
        assert exc_info.value.path == "/reporting/transactions"

    @pytest.mark.asyncio
    async def test_transport_error_raises_network_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(ResovaNetworkError):
            await make_service(handler).get_transactions(WINDOW)

    @pytest.mark.asyncio
    async def test_invalid_json_raises_api_error(self):
        service = make_service(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(ResovaAPIError):
            await service.get_transactions(WINDOW)

    @pytest.mark.asyncio
    async def test_wrong_shaped_fields_are_coerced(self):
        """A numeric timestamp or a list where text belongs does not reject the row"""
        def handler(request):
            return httpx.Response(200, json={"data": [
                {"id": 1.0, "email": ["not", "text"], "created_at": 1700000000, "sales_total": {"bad": 1}},
            ], "meta": {"last_page": 1}})

        (customer,) = await make_service(handler).get_customers()
        assert customer.id == 1
        assert customer.email is None
        assert customer.created_at == "1700000000"
        assert customer.sales_total is None

    @pytest.mark.asyncio
    async def test_unreadable_rows_raise_api_error(self):
        class StrictRecord(ResovaRecord):
            reference: int

        service = make_service(lambda request: httpx.Response(200, json=[{"reference": "abc"}]))
        with pytest.raises(ResovaAPIError) as exc_info:
            await service._list(StrictRecord, "GET", "/things")
        assert exc_info.value.path == "/things"

    @pytest.mark.asyncio
    async def test_fetch_period_collects_all_streams(self):
        service = make_service(fake_resova([]))
        records = await service.fetch_period(WINDOW)
        assert len(records.transactions) == 1
        assert len(records.bookings) == 1
        assert len(records.payments) == 1
        assert records.gift_vouchers == []

    @pytest.mark.asyncio
    async def test_fetch_schedule_spans_ninety_days_either_side(self):
        requests = []
        service = make_service(fake_resova(requests))
        bookings = await service.fetch_schedule(date(2024, 11, 20))

        body = json.loads(requests[0].content)
        assert body["date_range"] == {"start_date": "2024-08-22", "end_date": "2025-02-18"}
        assert bookings[0].date_short == "11/18/2024"


class TestAnalyticsService:

    NOW = datetime(2024, 11, 20, 12, 0, 0)

    @pytest.mark.asyncio
    async def test_full_pipeline(self):
        service = AnalyticsService(make_service(fake_resova([])), AnalyticsEngine())
        result = await service.get_analytics(WINDOW, date_preset="last_7_days", now=self.NOW)

        assert result.period_summary.gross == 100
        assert result.date_range_label == "Last 7 days"
        assert result.business_insights.capacity_utilization.overall_utilization == 80.0
        assert result.business_insights.activity_profitability[0].total_sales == 500

    @pytest.mark.asyncio
    async def test_insights_failure_is_logged_and_omitted(self, caplog):
        """A failed insights fetch leaves the core analytics intact"""
        service = AnalyticsService(make_service(fake_resova([], insights_status=500)), AnalyticsEngine())
        with caplog.at_level(logging.WARNING):
            result = await service.get_analytics(WINDOW, now=self.NOW)

        assert result.business_insights is None
        assert result.period_summary.gross == 100
        assert any("Business insights fetch failed" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_previous_period_failure_falls_back_to_no_comparison(self, caplog):
        service = AnalyticsService(
            make_service(fake_resova([], previous_status=503)), AnalyticsEngine()
        )
        with caplog.at_level(logging.WARNING):
            result = await service.get_analytics(WINDOW, include_insights=False, now=self.NOW)

        assert result.period_summary.gross_change == 0
        assert result.business_insights is None
        assert any("Previous period" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_current_period_failure_propagates(self):
        service = AnalyticsService(
            make_service(lambda request: httpx.Response(500)), AnalyticsEngine()
        )
        with pytest.raises(ResovaAPIError):
            await service.get_analytics(WINDOW, now=self.NOW)

    @pytest.mark.asyncio
    async def test_malformed_customer_row_keeps_insights(self):
        """One odd customer row still yields the full aggregate"""
        resova = fake_resova([])

        def handler(request):
            if request.url.path.endswith("/customers"):
                return httpx.Response(200, json={"data": [{"email": "a@example.com", "created_at": 1700000000}],
                                                 "meta": {"last_page": 1}})
            return resova(request)

        service = AnalyticsService(make_service(handler), AnalyticsEngine())
        result = await service.get_analytics(WINDOW, now=self.NOW)

        assert result.period_summary.gross == 100
        assert result.business_insights is not None
        assert result.business_insights.customer_intelligence.customer_base.total_accounts == 1

    @pytest.mark.asyncio
    async def test_schedule_failure_falls_back_to_current_bookings(self, caplog):
        resova = fake_resova([])

        def handler(request):
            if request.method == "POST" and json.loads(request.content)["date_range"]["end_date"] > "2024-11-20":
                return httpx.Response(500, json={"message": "error"})
            return resova(request)

        service = AnalyticsService(make_service(handler), AnalyticsEngine())
        with caplog.at_level(logging.WARNING):
            result = await service.get_analytics(WINDOW, include_insights=False, now=self.NOW)

        assert result.period_summary.gross == 100
        assert result.upcoming_bookings == []
        assert result.todays_agenda.bookings == 0
        assert any("Schedule fetch failed" in r.getMessage() for r in caplog.records)
