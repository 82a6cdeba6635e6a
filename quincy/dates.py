"""
Calendar-day helpers — isolated, testable, reusable.

Every per-day calculation in Quincy works on plain ``date`` objects.
Anything that comes in as a string or a datetime is normalized here,
once, to a UTC calendar day so daylight-saving and locale never shift
a booking onto the neighbouring day.

Examples:
    - parse_day('2026-05-04') -> date(2026, 5, 4)
    - parse_day('2026-05-04T23:30:00-02:00') -> date(2026, 5, 5)
    - list(generate_date_range('2026-05-01', '2026-05-03')) -> 3 days
"""

from collections.abc import Iterable, Iterator
from datetime import date, datetime, timedelta, timezone

from django.utils.dateparse import parse_date, parse_datetime

ONE_DAY = timedelta(days=1)


def parse_day(value) -> date | None:
    """
    Normalize a date-like value to a UTC calendar day.

    Args:
        value: date, datetime (naive = UTC) or ISO 8601 string

    Returns:
        The calendar day, or None when the value can't be read as one
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()

    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        parsed = parse_date(text)
        if parsed is not None:
            return parsed
        moment = parse_datetime(text)
    except ValueError:
        # Well-formed but impossible, e.g. 2026-02-30
        return None

    if moment is None:
        return None
    return parse_day(moment)


def utc_today() -> date:
    """Today as a UTC calendar day."""
    return datetime.now(timezone.utc).date()


def generate_date_range(start, end) -> Iterator[date]:
    """
    Yield every calendar day from start to end, both inclusive.

    Yields nothing when end < start or either bound can't be parsed.
    """
    current = parse_day(start)
    last = parse_day(end)
    if current is None or last is None:
        return

    while current <= last:
        yield current
        current += ONE_DAY


def merge_date_ranges(ranges: Iterable[tuple[date, date]]) -> list[tuple[date, date]]:
    """
    Merge overlapping or adjacent inclusive ranges.

    Sorted by start; a range that begins on or before the day after the
    previous one ends extends it. Reversed ranges are ignored.
    """
    merged: list[tuple[date, date]] = []
    for start, end in sorted(r for r in ranges if r[0] <= r[1]):
        if merged and start <= merged[-1][1] + ONE_DAY:
            if end > merged[-1][1]:
                merged[-1] = (merged[-1][0], end)
        else:
            merged.append((start, end))
    return merged


def contiguous_runs(days: Iterable[date]) -> list[tuple[date, date]]:
    """Group days into maximal runs of consecutive days."""
    return merge_date_ranges((day, day) for day in days)
