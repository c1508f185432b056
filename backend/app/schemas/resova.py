"""
Resova Raw Record Schemas

Records are accepted as the Resova reporting and core APIs return them.
Every field is optional and monetary values may arrive as strings or numbers;
parsing into usable numbers happens in the analytics services. A value of the
wrong shape is coerced or dropped to the field default rather than rejected.
"""
from typing import Annotated, Optional, List, Dict, Any, Union
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _as_text(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _as_scalar(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float)):
        return value
    return None


def _as_id(value: Any) -> Any:
    if value is None or isinstance(value, (str, int)):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else str(value)
    return None


def _as_record(value: Any) -> Any:
    return value if isinstance(value, (dict, BaseModel)) else None


def _as_records(value: Any) -> Any:
    if not isinstance(value, (list, tuple)):
        return []
    return [row for row in value if isinstance(row, (dict, BaseModel))]


Text = Annotated[Optional[str], BeforeValidator(_as_text)]
Amount = Annotated[Union[str, int, float, None], BeforeValidator(_as_scalar)]
RecordId = Annotated[Union[int, str, None], BeforeValidator(_as_id)]


class ResovaRecord(BaseModel):
    """Base for raw upstream records"""
    model_config = ConfigDict(extra="allow", frozen=True)


class TransactionCustomer(ResovaRecord):
    id: RecordId = None
    first_name: Text = None
    last_name: Text = None
    name: Text = None
    email: Text = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or "Guest"


class ItemReference(ResovaRecord):
    id: RecordId = None
    name: Text = None


class TransactionBooking(ResovaRecord):
    """Booking embedded in a transaction"""
    id: RecordId = None
    booking_date: Text = None
    booking_time: Text = None
    total_quantity: Amount = None
    price: Amount = None
    total: Amount = None
    status: Text = None
    item: Annotated[Optional[ItemReference], BeforeValidator(_as_record)] = None
    participants: Annotated[List[Dict[str, Any]], BeforeValidator(_as_records)] = Field(default_factory=list)


class TransactionPurchase(ResovaRecord):
    """Non-booking purchase (gift voucher, extra) on a transaction"""
    id: RecordId = None
    type: Text = None
    name: Text = None
    total: Amount = None


class Transaction(ResovaRecord):
    id: RecordId = None
    reference: Text = None
    price: Amount = None
    discount: Amount = None
    fee: Amount = None
    tax: Amount = None
    gross_total: Amount = None
    total: Amount = None
    paid: Amount = None
    refunded: Amount = None
    due: Amount = None
    tip: Amount = None
    status: Text = None
    created_dt: Text = None
    updated_dt: Text = None
    customer: Annotated[Optional[TransactionCustomer], BeforeValidator(_as_record)] = None
    bookings: Annotated[List[TransactionBooking], BeforeValidator(_as_records)] = Field(default_factory=list)
    purchases: Annotated[List[TransactionPurchase], BeforeValidator(_as_records)] = Field(default_factory=list)


class Booking(ResovaRecord):
    """Flattened row from the allBookings report"""
    id: RecordId = None
    transaction_id: RecordId = None
    transaction_status: Text = None
    transaction_due: Amount = None
    customer_first_name: Text = None
    customer_last_name: Text = None
    customer_email: Text = None
    item_id: RecordId = None
    item_name: Text = None
    date_short: Text = None
    time: Text = None
    total_quantity: Amount = None
    price: Amount = None
    booking_total: Amount = None
    source: Text = None
    status: Text = None
    waiver_signed: Text = None


class Payment(ResovaRecord):
    """Row from the allPayments report, carrying its transaction's snapshot"""
    transaction_id: RecordId = None
    transaction_total: Amount = None
    transaction_paid: Amount = None
    transaction_due: Amount = None
    customer_email: Text = None
    created_d_short: Text = None
    payment_type: Text = None
    label: Text = None
    amount: Amount = None
    refunded: Amount = None
    remaining: Amount = None


class InventoryItem(ResovaRecord):
    id: RecordId = None
    name: Text = None
    capacity: Amount = None
    total_bookings: Amount = None
    total_sales: Amount = None
    total_reviews: Amount = None
    avg_review: Amount = None


class AvailabilityInstance(ResovaRecord):
    id: RecordId = None
    item_id: RecordId = None
    item_name: Text = None
    start_date: Text = None
    start_time: Text = None
    end_date: Text = None
    end_time: Text = None
    capacity: Amount = None
    booked: Amount = None
    available: Amount = None
    status: Text = None
    price: Amount = None


class Customer(ResovaRecord):
    """Customer record from the core API"""
    id: RecordId = None
    first_name: Text = None
    last_name: Text = None
    name: Text = None
    email: Text = None
    sales_total: Amount = None
    paid_total: Amount = None
    due_total: Amount = None
    created_at: Text = None
    updated_at: Text = None


class GiftVoucher(ResovaRecord):
    id: RecordId = None
    name: Text = None
    amount: Amount = None
    voucher_type: Text = None
    status: Text = None
    redeemed_at: Text = None
    expires_at: Text = None
    created_at: Text = None


class BasketItem(ResovaRecord):
    item_id: RecordId = None
    item_name: Text = None
    quantity: Amount = None
    price: Amount = None
    total: Amount = None


class Basket(ResovaRecord):
    id: RecordId = None
    customer_email: Text = None
    items: Annotated[List[BasketItem], BeforeValidator(_as_records)] = Field(default_factory=list)
    subtotal: Amount = None
    tax: Amount = None
    total: Amount = None
    currency: Text = None
    status: Text = None
    created_at: Text = None


class RecordSet(BaseModel):
    """Base for grouped record arrays; accepts snake_case or camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class PeriodRecords(RecordSet):
    """Records for one reporting window"""
    transactions: List[Transaction] = Field(default_factory=list)
    bookings: List[Booking] = Field(default_factory=list)
    payments: List[Payment] = Field(default_factory=list)
    gift_vouchers: List[GiftVoucher] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.transactions or self.bookings or self.payments or self.gift_vouchers)


class InsightRecords(RecordSet):
    """Records backing the business insights section"""
    inventory_items: List[InventoryItem] = Field(default_factory=list)
    availability_instances: List[AvailabilityInstance] = Field(default_factory=list)
    customers: List[Customer] = Field(default_factory=list)
    baskets: List[Basket] = Field(default_factory=list)


class AnalyticsRequest(RecordSet):
    """
    Input for one analytics transformation

    `schedule` holds booking rows around today, read by event date for the
    agenda and upcoming bookings; without it the current bookings are used.
    """
    current: PeriodRecords = Field(default_factory=PeriodRecords)
    previous: Optional[PeriodRecords] = None
    insights: Optional[InsightRecords] = None
    schedule: Optional[List[Booking]] = None
    date_range_label: Optional[str] = None
