"""Formatting and aggregation over time entries.

Used by the presentation layer to render the entries table, the period
statistics and the per-day totals.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from punchclock.entries.types import TimeEntry

SORT_KEYS = ("task", "description", "start_time", "end_time", "duration")


@dataclass
class PeriodStats:
    """Totals for the entries of a period.

    Attributes:
        entry_count: Number of entries started in the period.
        total_seconds: Sum of their durations.
        total_income: Hours worked times the hourly rate.
    """

    entry_count: int = 0
    total_seconds: int = 0
    total_income: float = 0.0


@dataclass
class DailyTotal:
    """Summed duration of the entries started on one day."""

    day: date
    total_seconds: int


def format_time(seconds: int) -> str:
    """Format seconds as HH:MM:SS.

    Args:
        seconds: Duration in seconds

    Returns:
        Zero-padded string like "01:02:05"; hours grow past two digits
    """
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_date(value: datetime) -> str:
    """Format a timestamp as YYYY-MM-DD."""
    return value.strftime("%Y-%m-%d")


def filter_entries(entries: list[TimeEntry], text: str | None) -> list[TimeEntry]:
    """Keep entries whose task or description contains ``text``, ignoring case."""
    needle = (text or "").strip().lower()
    if not needle:
        return list(entries)
    return [
        e for e in entries
        if needle in e.task.lower() or needle in (e.description or "").lower()
    ]


def sort_entries(
    entries: list[TimeEntry],
    key: str = "start_time",
    descending: bool = False,
) -> list[TimeEntry]:
    """Sort entries by one of SORT_KEYS.

    Raises:
        ValueError: If the key is unknown.
    """
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key '{key}'. Choose from: {', '.join(SORT_KEYS)}")
    if key == "description":
        return sorted(entries, key=lambda e: (e.description or "").lower(), reverse=descending)
    if key == "task":
        return sorted(entries, key=lambda e: e.task.lower(), reverse=descending)
    return sorted(entries, key=lambda e: getattr(e, key), reverse=descending)


def _as_bound(value: date | datetime, end: bool) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    bound = datetime.combine(value, time.min, tzinfo=timezone.utc)
    # A date as the end bound covers the whole day
    return bound + timedelta(days=1) - timedelta(microseconds=1) if end else bound


def period_stats(
    entries: list[TimeEntry],
    start: date | datetime,
    end: date | datetime,
    hourly_rate: float = 0.0,
) -> PeriodStats:
    """Total the entries started between ``start`` and ``end`` inclusive.

    Args:
        entries: Entries to consider
        start: First day or instant of the period
        end: Last day (whole day included) or instant of the period
        hourly_rate: Income per hour worked

    Returns:
        Entry count, total seconds and income for the period

    Raises:
        ValueError: If the period ends before it starts.
    """
    lower = _as_bound(start, end=False)
    upper = _as_bound(end, end=True)
    if upper < lower:
        raise ValueError("Period end must not be before its start")

    selected = [e for e in entries if lower <= e.start_time <= upper]
    total_seconds = sum(e.duration for e in selected)
    return PeriodStats(
        entry_count=len(selected),
        total_seconds=total_seconds,
        total_income=total_seconds / 3600 * hourly_rate,
    )


def daily_totals(entries: list[TimeEntry]) -> list[DailyTotal]:
    """Sum durations per start day (UTC), oldest day first."""
    by_day: dict[date, int] = {}
    for entry in entries:
        day = entry.start_time.astimezone(timezone.utc).date()
        by_day[day] = by_day.get(day, 0) + entry.duration
    return [DailyTotal(day=day, total_seconds=total) for day, total in sorted(by_day.items())]
