"""
Activity Aggregator -- reduces per-minute samples to per-day figures.

Responsibility:
    Counts active minutes per zoned calendar day and finds each day's
    earliest session start, then derives worked hours and tardiness.

Architecture position:
    Engines -- pure calculation, zero I/O.

Invariants enforced:
    - worked hours = round(active_minutes / 60, 2), never negative.
    - A minute observed by several overlapping sessions counts once.
    - tardy minutes >= 0; 0 without an enabled schedule entry with a start
      offset, or without a session that day.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from payroll_kernel.domain.quantities import minutes_to_hours
from payroll_kernel.domain.zoned_time import day_start, to_local_date
from payroll_engines.types import MinuteSample, ScheduleEntry


@dataclass(frozen=True)
class DayActivity:
    """Active-minute count and first session start for one day."""

    active_minutes: int = 0
    first_session_start: datetime | None = None

    @property
    def worked_hours(self) -> Decimal:
        return minutes_to_hours(self.active_minutes)


NO_ACTIVITY = DayActivity()


class ActivityAggregator:
    """Groups samples and session starts by zoned day."""

    def __init__(self, zone: ZoneInfo):
        self._zone = zone

    def aggregate(
        self,
        samples: Iterable[MinuteSample],
        session_starts: Iterable[datetime],
    ) -> dict[date, DayActivity]:
        active: dict[date, set[datetime]] = {}
        for sample in samples:
            if not sample.active:
                continue
            day = to_local_date(sample.minute_start, self._zone)
            active.setdefault(day, set()).add(sample.minute_start)

        first_start: dict[date, datetime] = {}
        for started_at in session_starts:
            day = to_local_date(started_at, self._zone)
            current = first_start.get(day)
            if current is None or started_at < current:
                first_start[day] = started_at

        return {
            day: DayActivity(
                active_minutes=len(active.get(day, ())),
                first_session_start=first_start.get(day),
            )
            for day in set(active) | set(first_start)
        }

    def tardy_minutes(
        self,
        day: date,
        entry: ScheduleEntry | None,
        first_session_start: datetime | None,
    ) -> int:
        if entry is None or not entry.is_enabled or entry.start_minutes is None:
            return 0
        if first_session_start is None:
            return 0
        expected = day_start(day, self._zone) + timedelta(minutes=entry.start_minutes)
        late_seconds = (first_session_start - expected).total_seconds()
        return max(0, int(late_seconds // 60))
