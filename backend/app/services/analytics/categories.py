"""
Closed categories for Resova free-text fields

Status, source and label values arrive as free text. Each classifier maps
them onto a small enum and falls back to OTHER for anything unrecognized.
"""
import enum
from typing import Optional


class BookingStatus(str, enum.Enum):
    COMPLETED = "completed"
    UPCOMING = "upcoming"
    NO_SHOW = "no-show"
    CANCELLED = "cancelled"
    OTHER = "other"


class BookingChannel(str, enum.Enum):
    ONLINE = "online"
    MANUAL = "manual"
    ADMIN = "admin"
    AFFILIATE = "affiliate"
    OTHER = "other"


class PaymentMethod(str, enum.Enum):
    CARD = "card"
    CASH = "cash"
    OTHER = "other"


class BasketStatus(str, enum.Enum):
    ACTIVE = "active"
    ABANDONED = "abandoned"
    EXPIRED = "expired"
    CONVERTED = "converted"
    OTHER = "other"


class CustomerSegmentName(str, enum.Enum):
    VIP = "vip"
    REGULAR = "regular"
    AT_RISK = "at-risk"
    NEW = "new"


class MetricBasis(str, enum.Enum):
    """Whether a figure was observed in the data or projected from a fixed rate"""
    MEASURED = "measured"
    ESTIMATED = "estimated"


_NO_SHOW_MARKERS = ("noshow", "no-show", "no show", "no_show")
_CANCELLED_MARKERS = ("cancelled", "canceled")
_UPCOMING_MARKERS = ("upcoming", "pending")
_AFFILIATE_MARKERS = ("affiliate", "facebook", "partner")


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def classify_booking_status(status: Optional[str]) -> BookingStatus:
    text = _normalize(status)
    # no-show first so "no show - cancelled" style values count as no-shows
    if any(marker in text for marker in _NO_SHOW_MARKERS):
        return BookingStatus.NO_SHOW
    if any(marker in text for marker in _CANCELLED_MARKERS):
        return BookingStatus.CANCELLED
    if "completed" in text:
        return BookingStatus.COMPLETED
    if any(marker in text for marker in _UPCOMING_MARKERS):
        return BookingStatus.UPCOMING
    return BookingStatus.OTHER


def classify_booking_channel(source: Optional[str]) -> BookingChannel:
    text = _normalize(source)
    if any(marker in text for marker in _AFFILIATE_MARKERS):
        return BookingChannel.AFFILIATE
    if "online" in text:
        return BookingChannel.ONLINE
    if "manual" in text:
        return BookingChannel.MANUAL
    if "admin" in text:
        return BookingChannel.ADMIN
    return BookingChannel.OTHER


def classify_payment_method(label: Optional[str]) -> PaymentMethod:
    text = _normalize(label)
    if "card" in text:
        return PaymentMethod.CARD
    if "cash" in text or "manual" in text:
        return PaymentMethod.CASH
    return PaymentMethod.OTHER


def classify_basket_status(status: Optional[str]) -> BasketStatus:
    try:
        return BasketStatus(_normalize(status))
    except ValueError:
        return BasketStatus.OTHER
