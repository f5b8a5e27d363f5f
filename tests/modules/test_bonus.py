"""
Tests for bonus pay dates, attendance bonus sync and the KPI decision path.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from payroll_kernel.exceptions import (
    AttendanceFactNotFinalizedError,
    BonusNotFoundError,
    InvalidBonusDecisionError,
)
from payroll_kernel.models.audit_log import AuditEvent
from payroll_modules.attendance import AttendanceService
from payroll_modules.bonus import (
    BONUS_ENTITY_TYPE,
    REASON_MONTH_NOT_PERFECT,
    REASON_QUARTER_NOT_PERFECT,
    BonusService,
    BonusStatus,
    BonusType,
    monthly_bonus_pay_date,
    quarterly_bonus_pay_date,
)

LA = ZoneInfo("America/Los_Angeles")


@pytest.fixture
def attendance(session, clock, settings, audit_service):
    return AttendanceService(session, clock, settings, audit_service)


@pytest.fixture
def bonuses(session, clock, settings, audit_service):
    return BonusService(session, clock, settings, audit_service)


class TestPayDates:

    def test_monthly_goes_to_next_fifteenth(self):
        finalized = datetime(2025, 2, 2, 17, 0, tzinfo=timezone.utc)
        assert monthly_bonus_pay_date(date(2025, 1, 1), finalized, LA) == date(2025, 2, 15)

    def test_finalized_at_pay_instant_rolls_forward(self):
        # noon PST on Feb 15 is 20:00 UTC
        at_noon = datetime(2025, 2, 15, 20, 0, tzinfo=timezone.utc)
        before_noon = datetime(2025, 2, 15, 19, 59, tzinfo=timezone.utc)

        assert monthly_bonus_pay_date(date(2025, 1, 1), at_noon, LA) == date(2025, 3, 15)
        assert monthly_bonus_pay_date(date(2025, 1, 1), before_noon, LA) == date(2025, 2, 15)

    def test_late_finalization_skips_past_pay_dates(self):
        finalized = datetime(2025, 5, 1, tzinfo=timezone.utc)
        assert monthly_bonus_pay_date(date(2025, 1, 1), finalized, LA) == date(2025, 5, 15)

    def test_custom_pay_day(self):
        finalized = datetime(2025, 2, 2, tzinfo=timezone.utc)
        assert monthly_bonus_pay_date(date(2025, 1, 1), finalized, LA, pay_day=10) == date(2025, 2, 10)

    @pytest.mark.parametrize(
        "q_start,expected",
        [
            (date(2025, 1, 1), date(2025, 4, 15)),
            (date(2025, 7, 1), date(2025, 10, 15)),
            (date(2024, 10, 1), date(2025, 1, 15)),
        ],
    )
    def test_quarterly(self, q_start, expected):
        assert quarterly_bonus_pay_date(q_start) == expected


class TestMonthlySync:

    def test_perfect_month_is_approved(self, attendance, bonuses, create_employee, clock):
        clock.set_time(datetime(2025, 2, 2, 18, 0, tzinfo=timezone.utc))
        employee = create_employee()
        fact = attendance.recalc_month(employee.id, date(2025, 1, 1), finalize=True)

        bonus = bonuses.sync_monthly(fact.id)

        assert bonus.bonus_type is BonusType.MONTHLY_ATTENDANCE
        assert bonus.status is BonusStatus.APPROVED
        assert bonus.amount == Decimal("100")
        assert bonus.payable_date == date(2025, 2, 15)
        assert bonus.source_month == date(2025, 1, 1)
        assert bonus.attendance_fact_id == fact.id
        assert bonus.decided_at == fact.finalized_at

    def test_sync_is_idempotent(self, attendance, bonuses, create_employee):
        employee = create_employee()
        fact = attendance.recalc_month(employee.id, date(2025, 3, 1), finalize=True)

        first = bonuses.sync_monthly(fact.id)
        second = bonuses.sync_monthly(fact.id)

        assert first == second
        assert len(bonuses.list_bonuses(employee_id=employee.id)) == 1

    def test_pending_fact_is_rejected(self, attendance, bonuses, create_employee):
        employee = create_employee()
        fact = attendance.recalc_month(employee.id, date(2025, 3, 1))

        with pytest.raises(AttendanceFactNotFinalizedError) as exc_info:
            bonuses.sync_monthly(fact.id)
        assert exc_info.value.code == "ATTENDANCE_FACT_NOT_FINALIZED"

    def test_imperfect_month_denies_existing_bonus(
        self, attendance, bonuses, employee_service, create_employee, make_schedule,
    ):
        employee = create_employee()
        fact = attendance.recalc_month(employee.id, date(2025, 3, 1), finalize=True)
        approved = bonuses.sync_monthly(fact.id)

        # schedule added retroactively, nothing worked
        employee_service.upsert_config(
            employee.id, date(2024, 1, 1),
            monthly_attendance_bonus=Decimal("100"),
            schedule=make_schedule(),
        )
        fact = attendance.recalc_month(employee.id, date(2025, 3, 1), finalize=True)
        assert not fact.is_perfect

        assert bonuses.sync_monthly(fact.id) is None
        denied = bonuses.get_bonus(approved.id)
        assert denied.status is BonusStatus.DENIED
        assert denied.decision_reason == REASON_MONTH_NOT_PERFECT

    def test_zero_amount_creates_nothing(self, attendance, bonuses, create_employee):
        employee = create_employee(monthly_attendance_bonus=Decimal("0"))
        fact = attendance.recalc_month(employee.id, date(2025, 3, 1), finalize=True)

        assert bonuses.sync_monthly(fact.id) is None
        assert bonuses.list_bonuses(employee_id=employee.id) == []

    def test_decision_is_audited(self, attendance, bonuses, audit_service, create_employee):
        employee = create_employee()
        fact = attendance.recalc_month(employee.id, date(2025, 3, 1), finalize=True)

        bonus = bonuses.sync_monthly(fact.id)

        (entry,) = audit_service.entries_for(BONUS_ENTITY_TYPE, bonus.id)
        assert entry.event is AuditEvent.BONUS_DECISION
        assert entry.payload["type"] == "monthly_attendance"
        assert entry.payload["status"] == "approved"
        assert entry.payload["payableDate"] == "2025-04-15"


class TestQuarterlySync:

    def _finalize_quarter(self, attendance, employee_id, months):
        return [
            attendance.recalc_month(employee_id, month, finalize=True) for month in months
        ]

    def test_perfect_quarter(self, attendance, bonuses, create_employee):
        employee = create_employee()
        facts = self._finalize_quarter(
            attendance, employee.id, [date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1)],
        )

        bonus = bonuses.sync_quarterly(facts[-1].id)

        assert bonus.bonus_type is BonusType.QUARTERLY_ATTENDANCE
        assert bonus.status is BonusStatus.APPROVED
        assert bonus.amount == Decimal("300")
        assert bonus.quarter_key == "2025-Q1"
        assert bonus.source_month == date(2025, 1, 1)
        assert bonus.payable_date == date(2025, 4, 15)

    def test_imperfect_month_denies_approved_quarter(
        self, attendance, bonuses, employee_service, create_employee, make_schedule,
    ):
        employee = create_employee()
        facts = self._finalize_quarter(
            attendance, employee.id, [date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1)],
        )
        approved = bonuses.sync_quarterly(facts[-1].id)
        assert approved.status is BonusStatus.APPROVED

        # February gains a schedule after the fact and nothing was worked
        employee_service.upsert_config(
            employee.id, date(2025, 2, 1), schedule=make_schedule(),
        )
        february = attendance.recalc_month(employee.id, date(2025, 2, 1), finalize=True)
        assert not february.is_perfect

        assert bonuses.sync_quarterly(february.id) is None
        denied = bonuses.get_bonus(approved.id)
        assert denied.status is BonusStatus.DENIED
        assert denied.decision_reason == REASON_QUARTER_NOT_PERFECT
        assert denied.quarter_key == "2025-Q1"
        assert [b.id for b in bonuses.list_bonuses(bonus_type=BonusType.QUARTERLY_ATTENDANCE)] == [approved.id]

    def test_incomplete_quarter(self, attendance, bonuses, create_employee):
        employee = create_employee()
        facts = self._finalize_quarter(attendance, employee.id, [date(2025, 1, 1), date(2025, 2, 1)])

        assert bonuses.sync_quarterly(facts[-1].id) is None
        assert bonuses.list_bonuses(bonus_type=BonusType.QUARTERLY_ATTENDANCE) == []

    def test_pending_month_disqualifies(self, attendance, bonuses, create_employee):
        employee = create_employee()
        facts = self._finalize_quarter(attendance, employee.id, [date(2025, 1, 1), date(2025, 2, 1)])
        attendance.recalc_month(employee.id, date(2025, 3, 1))

        assert bonuses.sync_quarterly(facts[-1].id) is None


class TestKpiBonus:

    @pytest.fixture
    def kpi_employee(self, create_employee):
        return create_employee(kpi_bonus_enabled=True, kpi_bonus_default_amount=Decimal("250"))

    def test_candidate_is_pending(self, bonuses, kpi_employee):
        bonus = bonuses.ensure_kpi_candidate(kpi_employee.id, date(2025, 3, 20))

        assert bonus.status is BonusStatus.PENDING
        assert bonus.amount == Decimal("250")
        assert bonus.source_month == date(2025, 3, 1)
        assert bonus.payable_date == date(2025, 4, 15)

    def test_disabled_kpi_creates_nothing(self, bonuses, create_employee):
        employee = create_employee()
        assert bonuses.ensure_kpi_candidate(employee.id, date(2025, 3, 1)) is None

    def test_ensure_is_idempotent(self, bonuses, audit_service, kpi_employee):
        first = bonuses.ensure_kpi_candidate(kpi_employee.id, date(2025, 3, 1))
        second = bonuses.ensure_kpi_candidate(kpi_employee.id, date(2025, 3, 1))

        assert first.id == second.id
        assert len(audit_service.entries_for(BONUS_ENTITY_TYPE, first.id)) == 1

    def test_approve_with_amount_override(self, bonuses, kpi_employee, actor_id, clock):
        candidate = bonuses.ensure_kpi_candidate(kpi_employee.id, date(2025, 3, 1))

        decided = bonuses.decide_bonus(
            candidate.id, BonusStatus.APPROVED, amount=Decimal("175.50"), actor_id=actor_id,
        )

        assert decided.status is BonusStatus.APPROVED
        assert decided.payable_amount == Decimal("175.50")
        assert decided.amount == Decimal("250")
        assert decided.decision_by_id == actor_id
        assert decided.decided_at == clock.now_utc()

    def test_deny_clears_approved_amount(self, bonuses, kpi_employee):
        candidate = bonuses.ensure_kpi_candidate(kpi_employee.id, date(2025, 3, 1))
        bonuses.decide_bonus(candidate.id, BonusStatus.APPROVED, amount=Decimal("10"))

        denied = bonuses.decide_bonus(candidate.id, BonusStatus.DENIED, reason="Missed target")

        assert denied.status is BonusStatus.DENIED
        assert denied.approved_amount is None
        assert denied.decision_reason == "Missed target"

    def test_invalid_decision(self, bonuses, kpi_employee):
        candidate = bonuses.ensure_kpi_candidate(kpi_employee.id, date(2025, 3, 1))

        with pytest.raises(InvalidBonusDecisionError):
            bonuses.decide_bonus(candidate.id, BonusStatus.PAID)

    def test_decided_bonus_is_left_alone(self, bonuses, kpi_employee):
        candidate = bonuses.ensure_kpi_candidate(kpi_employee.id, date(2025, 3, 1))
        bonuses.decide_bonus(candidate.id, BonusStatus.APPROVED)

        again = bonuses.ensure_kpi_candidate(kpi_employee.id, date(2025, 3, 1))

        assert again.status is BonusStatus.APPROVED

    def test_unknown_bonus(self, bonuses):
        with pytest.raises(BonusNotFoundError):
            bonuses.decide_bonus(uuid4(), BonusStatus.APPROVED)
