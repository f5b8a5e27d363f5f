"""
Module: payroll_engines.reconciliation
Responsibility:
    Combine schedules, holidays, allocated time-off and activity into the
    per-day and per-month attendance computation, including make-up
    matching and perfect-attendance classification.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The attendance service
    loads every input for the month in one pass and calls ``reconcile()``.

Algorithm (per zoned day, month start to month end inclusive):
    1. assigned = expected hours when the weekday entry is enabled, the day
       is not a holiday, and expected hours are set; else 0.
    2. worked from the aggregator; pto / non-PTO / make-up from the allocator.
    3. absence = max(0, assigned - (worked + pto + non_pto)).
    4. the day's non-PTO figure = non_pto + absence.
    5. note "No recorded work for scheduled day" when assigned > 0,
       worked == 0, not a holiday and pto == 0 (informational).
    Month totals are sums of unrounded day values (worked is rounded per
    day), each rounded to two places once at the end.  Then

        matched   = clamp(min(make_up_total, non_pto_total), 0, cap)
        uncovered = max(0, non_pto_total - matched)
        perfect   = tardy_total <= threshold and uncovered == 0

Invariants enforced:
    - Exactly one snapshot per calendar day of the zoned month.
    - All hour figures >= 0; tardy minutes >= 0.
    - Missing schedule or activity reads as zero, never an error.

Audit relevance:
    The returned computation is persisted verbatim as the attendance fact
    and its day snapshot; reruns with identical inputs give identical output.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol
from zoneinfo import ZoneInfo

from payroll_kernel.domain.quantities import ZERO, non_negative, round2
from payroll_kernel.domain.zoned_time import month_range, weekday_index
from payroll_kernel.logging_config import get_logger
from payroll_engines.activity import NO_ACTIVITY, ActivityAggregator
from payroll_engines.allocation import RequestAllocator
from payroll_engines.tracer import traced_engine
from payroll_engines.types import (
    EMPTY_BUCKET,
    AttendanceDaySnapshot,
    Holiday,
    MinuteSample,
    MonthlyAttendanceComputation,
    ScheduleEntry,
    TimeOffRequest,
)

logger = get_logger("engines.reconciliation")

NO_RECORDED_WORK_NOTE = "No recorded work for scheduled day"
REASON_TARDY = "Tardy minutes exceeded {threshold}"
REASON_UNCOVERED_ABSENCE = "Uncovered absence remaining after applying make-up hours"


class ScheduleLookup(Protocol):
    """Effective weekly schedule for a date, or None when no config applies."""

    def schedule_for(self, day: date) -> Sequence[ScheduleEntry] | None: ...


def _entry_for(schedule: Sequence[ScheduleEntry] | None, day: date) -> ScheduleEntry | None:
    if not schedule:
        return None
    weekday = weekday_index(day)
    for entry in schedule:
        if entry.weekday == weekday:
            return entry
    return None


class MonthlyReconciliationEngine:
    """
    Computes one employee-month of attendance.

    Contract:
        Pure function of its inputs.  Inputs outside the month are ignored.

    Guarantees:
        - ``len(result.days)`` equals the number of days in the zoned month.
        - ``result.worked_hours == sum(day.worked_hours)``.
    """

    def __init__(
        self,
        zone: ZoneInfo,
        claim_window_days: int = 14,
        make_up_cap_hours: Decimal = Decimal("8"),
        tardy_threshold_minutes: int = 90,
    ):
        self._zone = zone
        self._make_up_cap = make_up_cap_hours
        self._tardy_threshold = tardy_threshold_minutes
        self._allocator = RequestAllocator(zone, claim_window_days)
        self._aggregator = ActivityAggregator(zone)

    @traced_engine("reconciliation", "1.0", fingerprint_fields=("reference",))
    def reconcile(
        self,
        *,
        reference: date | datetime,
        schedules: ScheduleLookup,
        requests: Iterable[TimeOffRequest] = (),
        samples: Iterable[MinuteSample] = (),
        session_starts: Iterable[datetime] = (),
        holidays: Iterable[Holiday] = (),
    ) -> MonthlyAttendanceComputation:
        month = month_range(reference, self._zone)
        buckets = self._allocator.allocate(requests, month)
        activity = self._aggregator.aggregate(samples, session_starts)
        holiday_dates = {h.holiday_date for h in holidays if month.contains(h.holiday_date)}

        days: list[AttendanceDaySnapshot] = []
        assigned_total = worked_total = pto_total = ZERO
        non_pto_total = make_up_total = ZERO
        tardy_total = 0

        for day in month.days():
            entry = _entry_for(schedules.schedule_for(day), day)
            is_holiday = day in holiday_dates

            assigned = ZERO
            if (
                entry is not None
                and entry.is_enabled
                and not is_holiday
                and entry.expected_hours is not None
            ):
                assigned = non_negative(entry.expected_hours)

            day_activity = activity.get(day, NO_ACTIVITY)
            worked = day_activity.worked_hours
            bucket = buckets.get(day, EMPTY_BUCKET)
            tardy = self._aggregator.tardy_minutes(
                day, entry, day_activity.first_session_start,
            )

            notes: list[str] = []
            if assigned > ZERO and worked == ZERO and not is_holiday and bucket.pto == ZERO:
                notes.append(NO_RECORDED_WORK_NOTE)

            absence = non_negative(assigned - (worked + bucket.pto + bucket.non_pto))
            day_non_pto = bucket.non_pto + absence

            days.append(
                AttendanceDaySnapshot(
                    day=day,
                    assigned_hours=assigned,
                    worked_hours=worked,
                    pto_hours=bucket.pto,
                    non_pto_hours=day_non_pto,
                    make_up_hours=bucket.make_up,
                    tardy_minutes=tardy,
                    is_holiday=is_holiday,
                    schedule=entry,
                    notes=tuple(notes),
                )
            )

            assigned_total += assigned
            worked_total += worked
            pto_total += bucket.pto
            non_pto_total += day_non_pto
            make_up_total += bucket.make_up
            tardy_total += tardy

        assigned_total = round2(assigned_total)
        worked_total = round2(worked_total)
        pto_total = round2(pto_total)
        non_pto_total = round2(non_pto_total)
        make_up_total = round2(make_up_total)

        matched = min(max(min(make_up_total, non_pto_total), ZERO), self._make_up_cap)
        matched = round2(matched)
        uncovered = round2(non_negative(non_pto_total - matched))

        reasons: list[str] = []
        if tardy_total > self._tardy_threshold:
            reasons.append(REASON_TARDY.format(threshold=self._tardy_threshold))
        if uncovered > ZERO:
            reasons.append(REASON_UNCOVERED_ABSENCE)

        result = MonthlyAttendanceComputation(
            month_start=month.start_date,
            month_end=month.end_date,
            assigned_hours=assigned_total,
            worked_hours=worked_total,
            pto_hours=pto_total,
            non_pto_absence_hours=non_pto_total,
            make_up_hours=make_up_total,
            tardy_minutes=tardy_total,
            matched_make_up_hours=matched,
            uncovered_absence_hours=uncovered,
            is_perfect=not reasons,
            reasons=tuple(reasons),
            days=tuple(days),
        )

        logger.debug(
            "attendance_month_reconciled",
            extra={
                "month_start": month.start_date.isoformat(),
                "day_count": len(days),
                "worked_hours": str(worked_total),
                "non_pto_absence_hours": str(non_pto_total),
                "tardy_minutes": tardy_total,
                "is_perfect": result.is_perfect,
            },
        )
        return result
