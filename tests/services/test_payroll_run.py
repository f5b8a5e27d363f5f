"""
Tests for PayrollRunService: period settlement end to end.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.exceptions import (
    InvalidPeriodTransitionError,
    PayrollPeriodNotFoundError,
    PayrollPeriodPaidError,
)
from payroll_modules.bonus import BonusService, BonusStatus, BonusType
from payroll_modules.settlement import CheckStatus, PeriodStatus, SettlementService
from payroll_services import MonthCloseService, PayrollRunService


@pytest.fixture
def payroll_run(session, clock, settings):
    return PayrollRunService(session, clock, settings)


@pytest.fixture
def month_close(session, clock, settings):
    return MonthCloseService(session, clock, settings)


class TestPeriodRun:

    def test_end_to_end_settlement(self, session, clock, settings, payroll_run, month_close, create_employee, actor_id):
        employee = create_employee("Ada", "ada@example.com")
        month_close.finalize_month(employee.id, date(2025, 3, 1), actor_id)

        run = payroll_run.ensure_and_recalc_period(date(2025, 3, 20), actor_id)
        session.rollback()

        assert run.period.period_key == "2025-03-B"
        assert run.period.pay_date == date(2025, 4, 15)
        (check,) = run.checks
        assert check.total_amount == Decimal("2100")

        settlement = SettlementService(session, clock, settings)
        assert settlement.get_check(run.period.id, employee.id).total_amount == Decimal("2100")

        payroll_run.approve_period(run.period.id, actor_id)
        paid = payroll_run.mark_period_paid(run.period.id, actor_id)

        assert paid.status is PeriodStatus.PAID
        assert settlement.get_check(run.period.id, employee.id).status is CheckStatus.PAID
        bonus = BonusService(session, clock, settings).find_bonus(
            employee.id, BonusType.MONTHLY_ATTENDANCE, date(2025, 3, 1),
        )
        assert bonus.status is BonusStatus.PAID
        assert bonus.paid_at == clock.now_utc()

    def test_auto_approve(self, payroll_run, create_employee):
        create_employee()

        run = payroll_run.ensure_and_recalc_period(date(2025, 3, 5), auto_approve=True)

        assert run.period.pay_date == date(2025, 3, 31)
        assert [c.status for c in run.checks] == [CheckStatus.APPROVED]

    def test_rerun_is_stable(self, payroll_run, create_employee):
        create_employee()
        create_employee()

        first = payroll_run.ensure_and_recalc_period(date(2025, 3, 20))
        second = payroll_run.ensure_and_recalc_period(date(2025, 3, 25))

        assert second.period.id == first.period.id
        assert [c.id for c in second.checks] == [c.id for c in first.checks]
        assert [c.total_amount for c in second.checks] == [c.total_amount for c in first.checks]

    def test_export(self, payroll_run, create_employee):
        create_employee("Ada", "ada@example.com")
        run = payroll_run.ensure_and_recalc_period(date(2025, 3, 20))

        csv_text = payroll_run.export_csv(run.period.id)

        assert csv_text.splitlines()[1] == (
            "Ada,ada@example.com,2025-03-16,2025-03-31,2000.00,0.00,0.00,0.00,0.00,2000.00"
        )


class TestFailures:

    def test_paid_period_recalc_fails_and_is_logged(self, payroll_run, create_employee, captured_logs):
        create_employee()
        run = payroll_run.ensure_and_recalc_period(date(2025, 3, 20))
        payroll_run.mark_period_paid(run.period.id)

        with pytest.raises(PayrollPeriodPaidError):
            payroll_run.ensure_and_recalc_period(date(2025, 3, 20))

        failed = [r for r in captured_logs() if r["message"] == "payroll_period_recalc_failed"]
        assert failed[0]["exc_code"] == "PAYROLL_PERIOD_PAID"
        assert failed[0]["exc_period_id"] == str(run.period.id)

    def test_invalid_transition_rolls_back(self, session, clock, settings, payroll_run):
        run = payroll_run.ensure_and_recalc_period(date(2025, 3, 20))
        payroll_run.mark_period_paid(run.period.id)

        with pytest.raises(InvalidPeriodTransitionError):
            payroll_run.approve_period(run.period.id)

        assert SettlementService(session, clock, settings).get_period(run.period.id).is_paid

    def test_unknown_period(self, payroll_run):
        with pytest.raises(PayrollPeriodNotFoundError):
            payroll_run.approve_period(uuid4())
