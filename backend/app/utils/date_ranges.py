"""
Reporting window helpers
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Any

PRESET_LABELS = {
    "today": "Today",
    "yesterday": "Yesterday",
    "last_7_days": "Last 7 days",
    "last_30_days": "Last 30 days",
    "last_90_days": "Last 90 days",
    "this_week": "This week",
    "this_month": "This month",
    "last_month": "Last month",
    "this_year": "This year",
}


@dataclass(frozen=True)
class DateRange:
    """Inclusive reporting window"""
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def as_params(self) -> Dict[str, str]:
        return {"start_date": self.start.isoformat(), "end_date": self.end.isoformat()}

    def as_body(self) -> Dict[str, Any]:
        return {"date_range": self.as_params()}

    @property
    def label(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


def resolve_preset(date_preset: str, today: date) -> DateRange:
    """
    Calculate the reporting window for a preset

    Args:
        date_preset: One of PRESET_LABELS
        today: Reference day, normally the current UTC date

    Returns:
        DateRange covering the preset

    Raises:
        ValueError: Unknown preset
    """
    if date_preset == "today":
        return DateRange(today, today)
    if date_preset == "yesterday":
        yesterday = today - timedelta(days=1)
        return DateRange(yesterday, yesterday)
    if date_preset == "last_7_days":
        return DateRange(today - timedelta(days=6), today)
    if date_preset == "last_30_days":
        return DateRange(today - timedelta(days=29), today)
    if date_preset == "last_90_days":
        return DateRange(today - timedelta(days=89), today)
    if date_preset == "this_week":
        # Start of week (Monday)
        return DateRange(today - timedelta(days=today.weekday()), today)
    if date_preset == "this_month":
        return DateRange(today.replace(day=1), today)
    if date_preset == "last_month":
        end = today.replace(day=1) - timedelta(days=1)
        return DateRange(end.replace(day=1), end)
    if date_preset == "this_year":
        return DateRange(today.replace(month=1, day=1), today)
    raise ValueError(f"Unknown date preset: {date_preset}")


def previous_period(current: DateRange) -> DateRange:
    """Equal-length window ending the day before current starts"""
    end = current.start - timedelta(days=1)
    return DateRange(end - timedelta(days=current.days - 1), end)
