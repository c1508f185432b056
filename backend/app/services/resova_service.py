"""
Resova API Service
"""
import asyncio
import logging
from datetime import date, timedelta
from typing import List, Dict, Any, Optional, Type, TypeVar

import httpx
from pydantic import ValidationError

from app.config import settings
from app.schemas.resova import (
    AvailabilityInstance,
    Basket,
    Booking,
    Customer,
    GiftVoucher,
    InsightRecords,
    InventoryItem,
    Payment,
    PeriodRecords,
    ResovaRecord,
    Transaction,
)
from app.utils.date_ranges import DateRange
from app.utils.parsing import parse_date

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=ResovaRecord)

TRANSACTION_LIMIT = 300
SCHEDULE_WINDOW_DAYS = 90


class ResovaAPIError(Exception):
    """Resova API request failed"""

    def __init__(self, message: str, status_code: Optional[int] = None, path: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.path = path


class ResovaNetworkError(ResovaAPIError):
    """Resova API could not be reached or timed out"""


def _rows(payload: Any) -> List[Dict[str, Any]]:
    """Resova returns either a bare list or {"data": [...]}"""
    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        return []
    return [row for row in payload if isinstance(row, dict)]


def _validate(model: Type[RecordT], rows: List[Dict[str, Any]], path: str) -> List[RecordT]:
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as e:
        logger.error("Resova API returned unreadable %s rows for %s: %s", model.__name__, path, e)
        raise ResovaAPIError(f"Unreadable {model.__name__} records from Resova API for {path}", path=path) from e


class ResovaService:
    """Service for reading reporting and core data from the Resova API"""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or settings.RESOVA_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.RESOVA_TIMEOUT_SECONDS
        self.page_size = settings.RESOVA_PAGE_SIZE
        self.max_pages = settings.RESOVA_MAX_PAGES
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "X-API-KEY": self.api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send one request to the Resova API

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            params: Query parameters
            json: JSON body

        Returns:
            Decoded JSON response

        Raises:
            ResovaAPIError: Non-2xx response or undecodable body
            ResovaNetworkError: Connection failure or timeout
        """
        logger.debug("Resova API request: %s %s", method, path)
        try:
            async with self._client() as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=self._headers(),
                    params=params,
                    json=json,
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error("Resova API error %s for %s %s: %s", status_code, method, path, e.response.text[:200])
            raise ResovaAPIError(
                f"Resova API returned {status_code} for {path}", status_code=status_code, path=path
            ) from e
        except httpx.RequestError as e:
            logger.error("Resova API request failed for %s %s: %s", method, path, e)
            raise ResovaNetworkError(f"Could not reach Resova API for {path}: {e}", path=path) from e
        except ValueError as e:
            logger.error("Resova API returned invalid JSON for %s %s", method, path)
            raise ResovaAPIError(f"Invalid JSON from Resova API for {path}", path=path) from e

    async def _list(
        self,
        model: Type[RecordT],
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> List[RecordT]:
        payload = await self._request(method, path, params=params, json=json)
        return _validate(model, _rows(payload), path)

    async def _paginated(
        self,
        model: Type[RecordT],
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[RecordT]:
        """Read pages until an empty page, the last page, or the page cap"""
        records: List[RecordT] = []
        for page in range(1, self.max_pages + 1):
            payload = await self._request(
                "GET", path, params={**(params or {}), "page": page, "per_page": self.page_size}
            )
            rows = _rows(payload)
            records.extend(_validate(model, rows, path))

            last_page = None
            if isinstance(payload, dict) and isinstance(payload.get("meta"), dict):
                last_page = payload["meta"].get("last_page")
            if not rows or (isinstance(last_page, int) and page >= last_page):
                break
        else:
            logger.warning("Stopped reading %s after %d pages", path, self.max_pages)
        return records

    async def get_transactions(self, date_range: DateRange) -> List[Transaction]:
        """
        List transactions created within a date range

        Args:
            date_range: Reporting window

        Returns:
            List of transactions
        """
        params = {"limit": TRANSACTION_LIMIT, "date_field": "created_at", **date_range.as_params()}
        return await self._list(Transaction, "GET", "/reporting/transactions", params=params)

    async def get_all_bookings(self, date_range: DateRange) -> List[Booking]:
        """List flattened booking rows for a date range"""
        body = {"type": "all", **date_range.as_body()}
        return await self._list(Booking, "POST", "/reporting/transactions/bookings/allBookings", json=body)

    async def get_all_payments(self, date_range: DateRange) -> List[Payment]:
        """List payment rows for a date range"""
        body = {"type": "all", **date_range.as_body()}
        return await self._list(Payment, "POST", "/reporting/transactions/payments/allPayments", json=body)

    async def get_inventory_items(self, date_range: DateRange) -> List[InventoryItem]:
        return await self._list(InventoryItem, "POST", "/reporting/inventory/items", json=date_range.as_body())

    async def get_availability(self, date_range: DateRange) -> List[AvailabilityInstance]:
        return await self._list(
            AvailabilityInstance, "GET", "/availability/calendar", params=date_range.as_params()
        )

    async def get_customers(self) -> List[Customer]:
        return await self._paginated(Customer, "/customers")

    async def get_gift_vouchers(self) -> List[GiftVoucher]:
        return await self._paginated(GiftVoucher, "/gift-vouchers")

    async def get_baskets(self) -> List[Basket]:
        return await self._paginated(Basket, "/baskets")

    async def fetch_period(self, date_range: DateRange) -> PeriodRecords:
        """
        Fetch every record stream for one reporting window concurrently

        Gift vouchers are read from the core API and kept when created within
        the window.

        Args:
            date_range: Reporting window

        Returns:
            PeriodRecords
        """
        transactions, bookings, payments, all_vouchers = await asyncio.gather(
            self.get_transactions(date_range),
            self.get_all_bookings(date_range),
            self.get_all_payments(date_range),
            self.get_gift_vouchers(),
        )
        vouchers = [v for v in all_vouchers if _created_within(v.created_at, date_range)]

        logger.info(
            "Fetched %s: %d transactions, %d bookings, %d payments, %d vouchers",
            date_range.label,
            len(transactions),
            len(bookings),
            len(payments),
            len(vouchers),
        )
        return PeriodRecords(
            transactions=transactions,
            bookings=bookings,
            payments=payments,
            gift_vouchers=vouchers,
        )

    async def fetch_insights(self, date_range: DateRange) -> InsightRecords:
        """Fetch inventory, availability, customers and baskets concurrently"""
        items, availability, customers, baskets = await asyncio.gather(
            self.get_inventory_items(date_range),
            self.get_availability(date_range),
            self.get_customers(),
            self.get_baskets(),
        )
        return InsightRecords(
            inventory_items=items,
            availability_instances=availability,
            customers=customers,
            baskets=baskets,
        )

    async def fetch_schedule(self, today: date) -> List[Booking]:
        """
        Fetch booking rows purchased within SCHEDULE_WINDOW_DAYS either side of today

        Advance bookings for today and the coming weeks are in this window; the
        engine picks them out by event date.
        """
        window = DateRange(today - timedelta(days=SCHEDULE_WINDOW_DAYS), today + timedelta(days=SCHEDULE_WINDOW_DAYS))
        bookings = await self.get_all_bookings(window)
        logger.info("Fetched schedule %s: %d bookings", window.label, len(bookings))
        return bookings


def _created_within(created_at: Optional[str], date_range: DateRange) -> bool:
    created = parse_date(created_at)
    if created is None:
        return False
    return date_range.start <= created.date() <= date_range.end
