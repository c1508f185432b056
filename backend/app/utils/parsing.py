"""
Numeric and date parsing helpers for raw Resova records
"""
import math
import re
from datetime import date, datetime, timezone
from typing import Any, Optional, Union

Number = Union[int, float]

# Sunday = 0, matching the weekday numbering used in dashboard output
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
SHORT_DAY_NAMES = [name[:3] for name in DAY_NAMES]

_AMOUNT_NOISE = re.compile(r"[\s,$£€]")

_DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%Y-%m-%d %H:%M",
)


def parse_amount(value: Any) -> float:
    """
    Parse a currency-like value into a float

    Args:
        value: String ("$1,234.50"), number or None

    Returns:
        Parsed amount, or 0.0 when the value is missing or not numeric
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        result = float(value)
    else:
        cleaned = _AMOUNT_NOISE.sub("", str(value))
        if not cleaned:
            return 0.0
        try:
            result = float(cleaned)
        except ValueError:
            return 0.0
    if not math.isfinite(result):
        return 0.0
    return result


def parse_count(value: Any) -> int:
    """Parse a quantity-like value into an int, 0 on failure"""
    return int(parse_amount(value))


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a date or datetime from the formats Resova emits

    Accepts ISO-8601 (with or without a trailing Z or offset),
    "YYYY-MM-DD HH:MM:SS" and US-style "MM/DD/YYYY" short dates.
    Timezone-aware values are converted to naive UTC.

    Args:
        value: Raw date value

    Returns:
        Naive datetime, or None if the value can't be parsed
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        parsed = None
        iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        try:
            parsed = datetime.fromisoformat(iso_text)
        except ValueError:
            for fmt in _DATE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def js_weekday(value: Union[date, datetime]) -> int:
    """Weekday number with Sunday = 0"""
    return (value.weekday() + 1) % 7


def percent_change(current: Number, previous: Number) -> float:
    """
    Period-over-period change in percent

    A zero baseline always yields 0 rather than an infinite change.
    """
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def percentage(part: Number, whole: Number) -> float:
    """part as a percentage of whole, 0 when whole is 0"""
    if not whole:
        return 0.0
    return part * 100 / whole


def safe_divide(numerator: Number, denominator: Number) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def round_money(value: Number) -> float:
    return round(float(value), 2)


def round_percent(value: Number) -> float:
    return round(float(value), 1)
