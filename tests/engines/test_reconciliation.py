"""
Tests for MonthlyReconciliationEngine.

Covers:
- One snapshot per zoned calendar day (including DST months)
- Assigned hours, holidays and the "no recorded work" note
- Absence derivation and make-up matching with the monthly cap
- Tardy threshold (inclusive) and the perfect-attendance reasons
"""

from datetime import date, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from payroll_kernel.domain.zoned_time import iter_days, local_instant, weekday_index
from payroll_engines.reconciliation import (
    NO_RECORDED_WORK_NOTE,
    REASON_TARDY,
    REASON_UNCOVERED_ABSENCE,
    MonthlyReconciliationEngine,
)
from payroll_engines.types import (
    Holiday,
    MinuteSample,
    RequestKind,
    ScheduleEntry,
    TimeOffRequest,
)

LA = ZoneInfo("America/Los_Angeles")

WORKWEEK = tuple(
    ScheduleEntry(
        weekday=d, is_enabled=True, start_minutes=540, end_minutes=1020,
        expected_hours=Decimal("8"),
    )
    for d in (1, 2, 3, 4, 5)
)
MONDAY_HOUR = (
    ScheduleEntry(
        weekday=1, is_enabled=True, start_minutes=540, end_minutes=600,
        expected_hours=Decimal("1"),
    ),
)

FEB_WEEKDAYS = [
    d for d in iter_days(date(2025, 2, 1), date(2025, 2, 28)) if 1 <= weekday_index(d) <= 5
]
FEB_MONDAYS = [date(2025, 2, d) for d in (3, 10, 17, 24)]


class FixedSchedule:
    """Same weekly schedule for every day."""

    def __init__(self, entries):
        self._entries = entries

    def schedule_for(self, day):
        return self._entries


class ScheduleFrom:
    """No schedule before ``start``; ``entries`` from then on."""

    def __init__(self, start, entries):
        self._start = start
        self._entries = entries

    def schedule_for(self, day):
        return self._entries if day >= self._start else None


def _work(days, minutes=480, start=time(9, 0)):
    samples, starts = [], []
    for day in days:
        begin = local_instant(day, LA, start)
        starts.append(begin)
        samples.extend(MinuteSample(begin + timedelta(minutes=i), True) for i in range(minutes))
    return samples, starts


def _approved_make_up(day, hours, approved_on):
    return TimeOffRequest(
        kind=RequestKind.MAKE_UP,
        start_date=day,
        end_date=day,
        hours=Decimal(hours),
        approved_at=local_instant(approved_on, LA, time(12, 0)),
    )


@pytest.fixture
def engine():
    return MonthlyReconciliationEngine(LA)


class TestDayWalk:

    def test_one_snapshot_per_day(self, engine):
        result = engine.reconcile(reference=date(2025, 2, 14), schedules=FixedSchedule(()))

        assert result.month_start == date(2025, 2, 1)
        assert result.month_end == date(2025, 2, 28)
        assert [s.day for s in result.days] == list(iter_days(date(2025, 2, 1), date(2025, 2, 28)))

    def test_dst_month_has_every_day(self, engine):
        result = engine.reconcile(reference=date(2025, 3, 9), schedules=FixedSchedule(()))

        assert len(result.days) == 31
        assert result.days[8].day == date(2025, 3, 9)

    def test_missing_schedule_reads_as_zero(self, engine):
        result = engine.reconcile(reference=date(2025, 2, 1), schedules=FixedSchedule(None))

        assert result.assigned_hours == 0
        assert result.is_perfect
        assert result.reasons == ()
        assert all(s.schedule is None for s in result.days)


class TestAbsence:

    def test_no_activity_is_uncovered_absence(self, engine):
        result = engine.reconcile(reference=date(2025, 2, 1), schedules=FixedSchedule(WORKWEEK))

        assert result.assigned_hours == Decimal("160")
        assert result.worked_hours == 0
        assert result.non_pto_absence_hours == Decimal("160")
        assert result.uncovered_absence_hours == Decimal("160")
        assert not result.is_perfect
        assert result.reasons == (REASON_UNCOVERED_ABSENCE,)
        noted = [s.day for s in result.days if NO_RECORDED_WORK_NOTE in s.notes]
        assert noted == FEB_WEEKDAYS

    def test_full_attendance_is_perfect(self, engine):
        samples, starts = _work(FEB_WEEKDAYS)

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(WORKWEEK),
            samples=samples,
            session_starts=starts,
        )

        assert result.worked_hours == Decimal("160")
        assert result.worked_hours == sum(s.worked_hours for s in result.days)
        assert result.non_pto_absence_hours == 0
        assert result.tardy_minutes == 0
        assert result.is_perfect

    def test_holiday_is_not_assigned(self, engine):
        holiday = date(2025, 2, 17)
        samples, starts = _work([d for d in FEB_WEEKDAYS if d != holiday])

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(WORKWEEK),
            samples=samples,
            session_starts=starts,
            holidays=[Holiday(holiday, "Presidents' Day"), Holiday(date(2025, 3, 3), "Other")],
        )

        snapshot = result.days[16]
        assert snapshot.day == holiday
        assert snapshot.is_holiday
        assert snapshot.assigned_hours == 0
        assert snapshot.notes == ()
        assert result.assigned_hours == Decimal("152")
        assert result.is_perfect
        assert sum(1 for s in result.days if s.is_holiday) == 1

    def test_pto_covers_scheduled_day(self, engine):
        day = date(2025, 2, 3)
        samples, starts = _work([d for d in FEB_WEEKDAYS if d != day])
        pto = TimeOffRequest(RequestKind.PTO, day, day, Decimal("8"))

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(WORKWEEK),
            requests=[pto],
            samples=samples,
            session_starts=starts,
        )

        assert result.pto_hours == Decimal("8")
        assert result.non_pto_absence_hours == 0
        assert result.days[2].notes == ()
        assert result.is_perfect

    def test_non_pto_leave_counts_as_absence(self, engine):
        day = date(2025, 2, 3)
        samples, starts = _work([d for d in FEB_WEEKDAYS if d != day])
        leave = TimeOffRequest(RequestKind.NON_PTO, day, day, Decimal("8"))

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(WORKWEEK),
            requests=[leave],
            samples=samples,
            session_starts=starts,
        )

        assert result.non_pto_absence_hours == Decimal("8")
        assert result.uncovered_absence_hours == Decimal("8")
        assert not result.is_perfect

    def test_schedule_change_mid_month(self, engine):
        schedules = ScheduleFrom(date(2025, 2, 17), WORKWEEK)

        result = engine.reconcile(reference=date(2025, 2, 1), schedules=schedules)

        # Feb 17 - Feb 28 holds ten weekdays.
        assert result.assigned_hours == Decimal("80")


class TestMakeUpMatching:

    def test_make_up_covers_absence(self, engine):
        absent = date(2025, 2, 3)
        samples, starts = _work([d for d in FEB_WEEKDAYS if d != absent])

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(WORKWEEK),
            requests=[_approved_make_up(date(2025, 2, 8), "8", date(2025, 2, 5))],
            samples=samples,
            session_starts=starts,
        )

        assert result.make_up_hours == Decimal("8")
        assert result.matched_make_up_hours == Decimal("8")
        assert result.uncovered_absence_hours == 0
        assert result.is_perfect

    def test_matched_is_limited_by_absence(self, engine):
        short = date(2025, 2, 3)
        samples, starts = _work([d for d in FEB_WEEKDAYS if d != short])
        partial, partial_starts = _work([short], minutes=360)

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(WORKWEEK),
            requests=[_approved_make_up(date(2025, 2, 8), "5", date(2025, 2, 5))],
            samples=samples + partial,
            session_starts=starts + partial_starts,
        )

        assert result.non_pto_absence_hours == Decimal("2")
        assert result.make_up_hours == Decimal("5")
        assert result.matched_make_up_hours == Decimal("2")
        assert result.uncovered_absence_hours == 0

    def test_matched_is_capped_per_month(self, engine):
        absent = {date(2025, 2, 3), date(2025, 2, 4)}
        samples, starts = _work([d for d in FEB_WEEKDAYS if d not in absent])

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(WORKWEEK),
            requests=[_approved_make_up(date(2025, 2, 8), "12", date(2025, 2, 5))],
            samples=samples,
            session_starts=starts,
        )

        assert result.non_pto_absence_hours == Decimal("16")
        assert result.matched_make_up_hours == Decimal("8")
        assert result.uncovered_absence_hours == Decimal("8")
        assert result.reasons == (REASON_UNCOVERED_ABSENCE,)

    def test_late_approval_does_not_match(self, engine):
        absent = date(2025, 2, 3)
        samples, starts = _work([d for d in FEB_WEEKDAYS if d != absent])

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(WORKWEEK),
            requests=[_approved_make_up(date(2025, 2, 8), "8", date(2025, 2, 25))],
            samples=samples,
            session_starts=starts,
        )

        assert result.make_up_hours == 0
        assert result.matched_make_up_hours == 0
        assert result.uncovered_absence_hours == Decimal("8")


class TestTardyThreshold:

    def test_threshold_is_inclusive(self, engine):
        late, late_starts = _work(FEB_MONDAYS[:3], minutes=60, start=time(9, 30))
        on_time, on_time_starts = _work(FEB_MONDAYS[3:], minutes=60)

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(MONDAY_HOUR),
            samples=late + on_time,
            session_starts=late_starts + on_time_starts,
        )

        assert result.tardy_minutes == 90
        assert result.is_perfect

    def test_exceeding_threshold_is_not_perfect(self, engine):
        samples, starts = _work(FEB_MONDAYS, minutes=60, start=time(9, 30))

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(MONDAY_HOUR),
            samples=samples,
            session_starts=starts,
        )

        assert result.tardy_minutes == 120
        assert result.uncovered_absence_hours == 0
        assert not result.is_perfect
        assert result.reasons == (REASON_TARDY.format(threshold=90),)

    def test_both_reasons_reported_in_order(self, engine):
        samples, starts = _work(FEB_MONDAYS[:2], minutes=30, start=time(10, 0))

        result = engine.reconcile(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(MONDAY_HOUR),
            samples=samples,
            session_starts=starts,
        )

        assert result.tardy_minutes == 120
        assert result.reasons == (
            REASON_TARDY.format(threshold=90),
            REASON_UNCOVERED_ABSENCE,
        )


class TestDeterminism:

    def test_identical_inputs_identical_output(self, engine):
        samples, starts = _work(FEB_WEEKDAYS[:5])
        kwargs = dict(
            reference=date(2025, 2, 1),
            schedules=FixedSchedule(WORKWEEK),
            samples=samples,
            session_starts=starts,
        )

        assert engine.reconcile(**kwargs) == engine.reconcile(**kwargs)

    def test_emits_engine_trace(self, engine, captured_logs):
        engine.reconcile(reference=date(2025, 2, 1), schedules=FixedSchedule(()))
        engine.reconcile(reference=date(2025, 2, 1), schedules=FixedSchedule(()))
        engine.reconcile(reference=date(2025, 3, 1), schedules=FixedSchedule(()))

        traces = [r for r in captured_logs() if r["message"] == "PAYROLL_ENGINE_TRACE"]
        assert len(traces) == 3
        assert {t["engine_name"] for t in traces} == {"reconciliation"}
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]
        assert traces[0]["input_fingerprint"] != traces[2]["input_fingerprint"]
