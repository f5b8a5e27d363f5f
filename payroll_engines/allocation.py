"""
Request Allocator -- spreads approved time-off hours across calendar days.

Responsibility:
    Turns approved PTO, non-PTO and make-up requests into per-day hour
    buckets for one zoned calendar month.

Architecture position:
    Engines -- pure calculation, zero I/O.

Algorithm:
    For a request overlapping the month, the inclusive day span is clipped to
    the month and the request contributes

        proportional = hours * clipped_days / total_days

    spread evenly over the clipped days.  Spans are whole calendar days,
    minimum one.  Make-up requests count only when approved within the
    claim window (absolute day difference between approval date and start
    date <= window).

Invariants enforced:
    - Bucket hours are never negative (negative request hours clamp to 0).
    - A request whose end precedes its start is treated as a one-day request.
    - Days without a bucket read as all-zero (``EMPTY_BUCKET``).

Failure modes:
    None.  Malformed historical requests are clamped, not raised.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from zoneinfo import ZoneInfo

from payroll_kernel.domain.quantities import ZERO, non_negative
from payroll_kernel.domain.zoned_time import (
    ZonedRange,
    calendar_days_between,
    iter_days,
    to_local_date,
)
from payroll_kernel.logging_config import get_logger
from payroll_engines.types import DayBucket, RequestKind, TimeOffRequest

logger = get_logger("engines.allocation")


class RequestAllocator:
    """
    Allocates request hours to zoned days.

    Contract:
        ``allocate()`` returns a map from calendar day to ``DayBucket``
        containing only days inside the month that received hours.
    """

    def __init__(self, zone: ZoneInfo, claim_window_days: int = 14):
        self._zone = zone
        self._claim_window_days = claim_window_days

    def is_eligible(self, request: TimeOffRequest) -> bool:
        """Make-up requests need a timely approval; other kinds always count."""
        if request.kind is not RequestKind.MAKE_UP:
            return True
        if request.approved_at is None:
            return False
        approved_on = to_local_date(request.approved_at, self._zone)
        gap = abs(calendar_days_between(request.start_date, approved_on))
        return gap <= self._claim_window_days

    def allocate(
        self,
        requests: Iterable[TimeOffRequest],
        month: ZonedRange,
    ) -> dict[date, DayBucket]:
        buckets: dict[date, DayBucket] = {}
        skipped = 0

        for request in requests:
            if not self.is_eligible(request):
                skipped += 1
                continue

            start = request.start_date
            end = max(request.end_date, start)
            clipped_start = max(start, month.start_date)
            clipped_end = min(end, month.end_date)
            if clipped_end < clipped_start:
                continue

            total_days = max(calendar_days_between(start, end) + 1, 1)
            clipped_days = max(calendar_days_between(clipped_start, clipped_end) + 1, 1)
            hours = non_negative(request.hours)

            proportional = hours * Decimal(clipped_days) / Decimal(total_days)
            per_day = proportional / Decimal(clipped_days)
            if per_day == ZERO:
                continue

            for day in iter_days(clipped_start, clipped_end):
                buckets[day] = buckets.get(day, DayBucket()).plus(request.kind, per_day)

        if skipped:
            logger.debug(
                "make_up_requests_excluded",
                extra={
                    "count": skipped,
                    "claim_window_days": self._claim_window_days,
                    "month_start": month.start_date.isoformat(),
                },
            )
        return buckets
