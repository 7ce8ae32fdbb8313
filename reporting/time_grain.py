from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable

from reporting.transactions import Transaction, transaction_date_range

DAILY_MAX_SPAN_DAYS = 35
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class TimeGrain(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


GRAIN_ALIASES = {
    "day": TimeGrain.DAY,
    "daily": TimeGrain.DAY,
    "week": TimeGrain.WEEK,
    "weekly": TimeGrain.WEEK,
    "month": TimeGrain.MONTH,
    "monthly": TimeGrain.MONTH,
    "year": TimeGrain.YEAR,
    "yearly": TimeGrain.YEAR,
}


def normalize_grain(value: TimeGrain | str) -> TimeGrain:
    if isinstance(value, TimeGrain):
        return value
    normalized = value.strip().lower()
    if normalized not in GRAIN_ALIASES:
        raise ValueError("Invalid grain.")
    return GRAIN_ALIASES[normalized]


def select_grain(
    transactions: Iterable[Transaction],
    explicit_grain: TimeGrain | str | None = None,
) -> TimeGrain:
    """Pick the bucket width for a set of transactions.

    An explicit grain is returned as-is. Otherwise spans of up to 35 whole days
    are bucketed daily and anything longer monthly; weekly and yearly buckets
    are only reachable through ``explicit_grain``.
    """
    if explicit_grain is not None:
        return normalize_grain(explicit_grain)
    date_range = transaction_date_range(transactions)
    if date_range is None:
        raise ValueError("Grain selection requires at least one transaction.")
    min_date, max_date = date_range
    span_days = (max_date - min_date).days
    if span_days <= DAILY_MAX_SPAN_DAYS:
        return TimeGrain.DAY
    return TimeGrain.MONTH


def align_to_grain_start(value: date | datetime, grain: TimeGrain) -> date:
    day = value.date() if isinstance(value, datetime) else value
    if grain == TimeGrain.WEEK:
        return day - timedelta(days=day.weekday())
    if grain == TimeGrain.MONTH:
        return day.replace(day=1)
    if grain == TimeGrain.YEAR:
        return day.replace(month=1, day=1)
    return day


def add_one_grain_unit(value: date, grain: TimeGrain) -> date:
    return shift_grain(value, grain, 1)


def grain_units_between(start: date, end: date, grain: TimeGrain) -> int:
    """Whole grain units from ``start`` to ``end``; both must be aligned."""
    if grain == TimeGrain.WEEK:
        return (end - start).days // 7
    if grain == TimeGrain.MONTH:
        return (end.year - start.year) * 12 + (end.month - start.month)
    if grain == TimeGrain.YEAR:
        return end.year - start.year
    return (end - start).days


def shift_month(value: date, months: int) -> date:
    month_index = (value.year * 12 + value.month - 1) + months
    year = month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1)


def shift_grain(value: date, grain: TimeGrain, units: int) -> date:
    if grain == TimeGrain.WEEK:
        return value + timedelta(days=7 * units)
    if grain == TimeGrain.MONTH:
        return shift_month(value, units)
    if grain == TimeGrain.YEAR:
        return date(value.year + units, 1, 1)
    return value + timedelta(days=units)


def format_bucket_label(start: date, grain: TimeGrain) -> str:
    """Short chart label derived only from ``start`` and ``grain``.

    Weekly labels pair the ISO week number with the month of that week's
    Thursday, the day that fixes which ISO year the week belongs to, so the
    week starting 2024-12-30 is "W1 Jan". Daily and weekly labels omit the
    year and repeat across years.
    """
    month = MONTH_ABBREVIATIONS[start.month - 1]
    if grain == TimeGrain.WEEK:
        thursday = start + timedelta(days=3 - start.weekday())
        return f"W{start.isocalendar()[1]} {MONTH_ABBREVIATIONS[thursday.month - 1]}"
    if grain == TimeGrain.MONTH:
        return f"{month} {start.year}"
    if grain == TimeGrain.YEAR:
        return str(start.year)
    return f"{start.day} {month}"
