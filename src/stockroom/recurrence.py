"""Reminder recurrence scheduling.

Timestamps reaching this module may come straight from a database column:
without a timezone, with a space instead of "T", or with a two-digit offset
such as "+03". They are normalized to an aware datetime before any comparison,
since comparing naive and offset timestamps silently shifts the day.
"""

import calendar
import math
import re
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from enum import Enum


class Recurrence(str, Enum):
    """How often a reminder repeats."""

    NONE = "none"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"

    @property
    def label(self) -> str:
        return {
            Recurrence.NONE: "Reminder",
            Recurrence.WEEKLY: "Weekly reminder",
            Recurrence.BIWEEKLY: "Bi-weekly reminder",
            Recurrence.MONTHLY: "Monthly reminder",
            Recurrence.QUARTERLY: "Quarterly reminder",
        }[self]


_WEEK_INTERVALS = {Recurrence.WEEKLY: 1, Recurrence.BIWEEKLY: 2}
_MONTH_INTERVALS = {Recurrence.MONTHLY: 1, Recurrence.QUARTERLY: 3}

_SHORT_OFFSET = re.compile(r"[+-]\d{2}$")
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")
_HAS_OFFSET = re.compile(r"(?:[zZ]|[+-]\d{2}:?\d{2})$")


def normalize_timestamp(value: str) -> str | None:
    """Normalize a timestamp string to ISO 8601 with an explicit offset.

    Returns:
        Normalized string, or None for blank input
    """
    normalized = value.strip()
    if not normalized:
        return None

    normalized = normalized.replace(" ", "T", 1)
    if "T" not in normalized:
        normalized = f"{normalized}T00:00:00"

    day_part, time_part = normalized.split("T", 1)
    if _SHORT_OFFSET.search(time_part):
        time_part = f"{time_part}:00"
    elif _COMPACT_OFFSET.search(time_part):
        time_part = _COMPACT_OFFSET.sub(r"\1:\2", time_part)
    if not _HAS_OFFSET.search(time_part):
        time_part = f"{time_part}Z"
    elif time_part[-1] in "zZ":
        time_part = f"{time_part[:-1]}Z"

    return f"{day_part}T{time_part}"


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a timestamp into an aware datetime (naive values are UTC).

    Raises:
        ValueError: If the value is blank or not a valid timestamp
    """
    if isinstance(value, datetime):
        return _aware(value)

    normalized = normalize_timestamp(value)
    if normalized is None:
        raise ValueError("Timestamp is empty")
    if normalized.endswith("Z"):
        normalized = f"{normalized[:-1]}+00:00"
    return _aware(datetime.fromisoformat(normalized))


def _week_start(value: datetime) -> date:
    day = value.date()
    return day - timedelta(days=day.weekday())


def calendar_weeks_between(later: datetime, earlier: datetime) -> int:
    """Number of Monday-start calendar weeks from ``earlier`` to ``later``."""
    return (_week_start(later) - _week_start(earlier)).days // 7


def calendar_months_between(later: datetime, earlier: datetime) -> int:
    return (later.year - earlier.year) * 12 + later.month - earlier.month


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping to the last day of the month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _stepper(recurrence: Recurrence, start: datetime) -> tuple[int, Callable[[int], datetime]]:
    """Interval and a function giving the start shifted by N units."""
    if recurrence in _WEEK_INTERVALS:
        return _WEEK_INTERVALS[recurrence], lambda n: start + timedelta(weeks=n)
    return _MONTH_INTERVALS[recurrence], lambda n: add_months(start, n)


def _units_between(recurrence: Recurrence, later: datetime, earlier: datetime) -> int:
    if recurrence in _WEEK_INTERVALS:
        return calendar_weeks_between(later, earlier)
    return calendar_months_between(later, earlier)


def next_occurrence(
    start_at: datetime | str,
    recurrence: Recurrence | str,
    now: datetime,
) -> datetime | None:
    """Compute the next occurrence of a reminder at or after ``now``.

    Args:
        start_at: First occurrence
        recurrence: Recurrence rule
        now: Reference time

    Returns:
        The next occurrence, or None for a one-off reminder already past
    """
    recurrence = Recurrence(recurrence)
    now = _aware(now)
    start = parse_timestamp(start_at).astimezone(now.tzinfo)

    if recurrence == Recurrence.NONE:
        return start if start > now else None

    interval, shifted = _stepper(recurrence, start)
    if start >= now:
        return start

    # Rounding the calendar difference up can still land before now when the
    # time of day is earlier, so one more step may be needed.
    steps = math.ceil(_units_between(recurrence, now, start) / interval) * interval
    occurrence = shifted(steps)
    if occurrence < now:
        occurrence = shifted(steps + interval)
    return occurrence


def is_due_today(
    start_at: datetime | str,
    recurrence: Recurrence | str,
    now: datetime,
) -> bool:
    """True when the next occurrence falls on the same calendar day as ``now``."""
    now = _aware(now)
    occurrence = next_occurrence(start_at, recurrence, now)
    if occurrence is None:
        return False
    return occurrence.astimezone(now.tzinfo).date() == now.date()


def occurrences_between(
    start_at: datetime | str,
    recurrence: Recurrence | str,
    range_start: datetime,
    range_end: datetime,
) -> list[datetime]:
    """All occurrences inside the inclusive window [range_start, range_end]."""
    recurrence = Recurrence(recurrence)
    range_start = _aware(range_start)
    range_end = _aware(range_end)
    start = parse_timestamp(start_at).astimezone(range_start.tzinfo)

    if recurrence == Recurrence.NONE:
        return [start] if range_start <= start <= range_end else []

    interval, shifted = _stepper(recurrence, start)
    steps = 0
    if start < range_start:
        steps = (_units_between(recurrence, range_start, start) // interval) * interval
        while shifted(steps) < range_start:
            steps += interval

    occurrences = []
    while shifted(steps) <= range_end:
        occurrences.append(shifted(steps))
        steps += interval
    return occurrences
