"""
Zoned calendar boundaries -- day/month/quarter arithmetic in the payroll zone.

Responsibility:
    Converts instants to calendar days in a configured IANA zone and back to
    UTC boundary instants.  Every day-walk in the engines starts here, so
    "one snapshot per calendar day" holds across DST transitions (23- and
    25-hour days) and irrespective of the host's local zone.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Day and month boundaries are computed in the configured zone, never at
      UTC midnight.
    - ``ZonedRange.days()`` yields every calendar day from start to end
      inclusive with no gaps.
    - Weekday indices follow the schedule convention 0 = Sunday .. 6 = Saturday.

Failure modes:
    - ``InvalidTimeZoneError`` for an unknown zone name.
    - ``ValueError`` for a naive datetime or a malformed month key.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.relativedelta import relativedelta

from payroll_kernel.exceptions import InvalidTimeZoneError

DEFAULT_TIME_ZONE = "America/Los_Angeles"

_ONE_DAY = timedelta(days=1)
_ONE_MICROSECOND = timedelta(microseconds=1)


def resolve_zone(name: str | None = None) -> ZoneInfo:
    """Look up an IANA zone, defaulting to the operational zone."""
    zone_name = name or DEFAULT_TIME_ZONE
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimeZoneError(zone_name) from exc


def to_local_date(value: date | datetime, zone: ZoneInfo) -> date:
    """Calendar day of an instant in ``zone``; plain dates pass through."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value!r}")
        return value.astimezone(zone).date()
    return value


def local_instant(day: date, zone: ZoneInfo, at: time = time.min) -> datetime:
    """UTC instant of wall-clock ``at`` on ``day`` in ``zone``."""
    return datetime.combine(day, at, tzinfo=zone).astimezone(timezone.utc)


def day_start(day: date, zone: ZoneInfo) -> datetime:
    """UTC instant of local midnight starting ``day``."""
    return local_instant(day, zone)


def day_end(day: date, zone: ZoneInfo) -> datetime:
    """Last representable UTC instant of ``day`` (inclusive end)."""
    return day_start(day + _ONE_DAY, zone) - _ONE_MICROSECOND


def first_of_month(day: date) -> date:
    return day.replace(day=1)


def last_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping the day-of-month."""
    return day + relativedelta(months=months)


def quarter_start(day: date) -> date:
    """First day of the calendar quarter containing ``day``."""
    return date(day.year, ((day.month - 1) // 3) * 3 + 1, 1)


def quarter_months(day: date) -> tuple[date, date, date]:
    """First days of the three months in ``day``'s quarter."""
    start = quarter_start(day)
    return start, add_months(start, 1), add_months(start, 2)


def quarter_key(day: date) -> str:
    """Quarter label such as ``2025-Q1``."""
    return f"{day.year}-Q{(day.month - 1) // 3 + 1}"


def month_key(day: date) -> str:
    """Month label such as ``2025-03``."""
    return f"{day.year:04d}-{day.month:02d}"


def parse_month_key(key: str) -> date:
    """Inverse of ``month_key``; returns the first of the month."""
    try:
        year, month = key.split("-")
        return date(int(year), int(month), 1)
    except ValueError as exc:
        raise ValueError(f"Malformed month key: {key!r} (expected YYYY-MM)") from exc


def weekday_index(day: date) -> int:
    """Schedule weekday index: 0 = Sunday .. 6 = Saturday."""
    return day.isoweekday() % 7


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += _ONE_DAY


def calendar_days_between(start: date, end: date) -> int:
    """Whole calendar days from ``start`` to ``end`` (signed)."""
    return (end - start).days


@dataclass(frozen=True)
class ZonedRange:
    """
    A span of whole zoned calendar days.

    ``start`` is the UTC instant of local midnight on ``start_date``;
    ``end_exclusive`` is local midnight after ``end_date``.  Queries use
    ``start <= t < end_exclusive``.
    """

    start_date: date
    end_date: date
    zone: ZoneInfo

    @property
    def start(self) -> datetime:
        return day_start(self.start_date, self.zone)

    @property
    def end_exclusive(self) -> datetime:
        return day_start(self.end_date + _ONE_DAY, self.zone)

    @property
    def end(self) -> datetime:
        """Inclusive end instant."""
        return self.end_exclusive - _ONE_MICROSECOND

    @property
    def day_count(self) -> int:
        return calendar_days_between(self.start_date, self.end_date) + 1

    def days(self) -> Iterator[date]:
        return iter_days(self.start_date, self.end_date)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


def month_range(reference: date | datetime, zone: ZoneInfo) -> ZonedRange:
    """The zoned calendar month containing ``reference``."""
    local = to_local_date(reference, zone)
    return ZonedRange(first_of_month(local), last_of_month(local), zone)


def month_keys_between(start: date, end: date) -> list[str]:
    """Distinct month keys touched by the inclusive range, in order (either bound may come first)."""
    lo, hi = min(start, end), max(start, end)
    keys: list[str] = []
    current = first_of_month(lo)
    while current <= hi:
        keys.append(month_key(current))
        current = add_months(current, 1)
    return keys
