"""
Tests for EmployeeService and the effective-dated config timeline.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_engines.types import ScheduleEntry
from payroll_kernel.exceptions import EmployeeAlreadyExistsError, EmployeeNotFoundError
from payroll_kernel.models.audit_log import AuditEvent
from payroll_modules.employees import ConfigTimeline, EmployeeConfig, normalize_schedule


class TestEmployees:

    def test_create_and_get(self, employee_service, actor_id):
        employee = employee_service.create_employee("E100", "Ada Lovelace", "ada@example.com", actor_id)

        loaded = employee_service.get_employee(employee.id)
        assert loaded == employee
        assert loaded.is_active

    def test_duplicate_number_rejected(self, employee_service):
        employee_service.create_employee("E100", "Ada")

        with pytest.raises(EmployeeAlreadyExistsError) as exc_info:
            employee_service.create_employee("E100", "Someone Else")
        assert exc_info.value.employee_number == "E100"

    def test_unknown_employee(self, employee_service):
        with pytest.raises(EmployeeNotFoundError):
            employee_service.get_employee(uuid4())

    def test_active_listing_ordered_by_number(self, employee_service):
        b = employee_service.create_employee("E002", "B")
        a = employee_service.create_employee("E001", "A")
        gone = employee_service.create_employee("E003", "C")
        employee_service.set_active(gone.id, False)

        assert [e.id for e in employee_service.list_active_employees()] == [a.id, b.id]


class TestConfigs:

    def test_upsert_replaces_same_effective_date(self, employee_service, create_employee, make_schedule):
        employee = create_employee()

        updated = employee_service.upsert_config(
            employee.id,
            date(2024, 1, 1),
            base_semi_monthly_salary=Decimal("2500"),
            schedule=make_schedule(),
        )

        timeline = employee_service.config_timeline(employee.id)
        assert len(timeline) == 1
        assert timeline[0].id == updated.id
        assert timeline[0].base_semi_monthly_salary == Decimal("2500")
        assert [e.is_enabled for e in timeline[0].schedule] == [False, True, True, True, True, True, False]

    def test_schedule_always_has_seven_entries(self, employee_service, create_employee):
        employee = create_employee(schedule=[
            ScheduleEntry(weekday=3, is_enabled=True, expected_hours=Decimal("4")),
        ])

        config = employee_service.get_effective_config(employee.id, date(2025, 1, 1))

        assert [e.weekday for e in config.schedule] == list(range(7))
        assert config.schedule[3].expected_hours == Decimal("4")
        assert not config.schedule[0].is_enabled

    def test_effective_config_uses_latest_prior_date(self, employee_service, create_employee):
        employee = create_employee()
        employee_service.upsert_config(
            employee.id, date(2025, 3, 1), base_semi_monthly_salary=Decimal("3000"),
        )

        assert employee_service.get_effective_config(employee.id, date(2023, 12, 31)) is None
        assert employee_service.get_effective_config(
            employee.id, date(2025, 2, 28),
        ).base_semi_monthly_salary == Decimal("2000")
        assert employee_service.get_effective_config(
            employee.id, date(2025, 3, 1),
        ).base_semi_monthly_salary == Decimal("3000")

    def test_upsert_is_audited(self, employee_service, audit_service, create_employee, actor_id):
        employee = create_employee()

        entries = audit_service.list_entries(AuditEvent.CONFIG_UPDATED)

        assert len(entries) == 1
        assert entries[0].actor_id == actor_id
        assert entries[0].payload["employeeId"] == str(employee.id)
        assert entries[0].payload["effectiveOn"] == "2024-01-01"
        assert entries[0].payload["created"] is True
        assert len(entries[0].payload["schedule"]) == 7

    def test_upsert_is_logged(self, employee_service, create_employee, captured_logs):
        employee = create_employee()
        employee_service.upsert_config(
            employee.id, date(2024, 1, 1), base_semi_monthly_salary=Decimal("2100"),
        )

        records = [r for r in captured_logs() if r["message"] == "employee_config_upserted"]

        assert [r["config_created"] for r in records] == [True, False]
        assert all(r["employee_id"] == str(employee.id) for r in records)

    def test_upsert_for_unknown_employee(self, employee_service):
        with pytest.raises(EmployeeNotFoundError):
            employee_service.upsert_config(uuid4(), date(2025, 1, 1))


class TestTimeline:

    def _config(self, effective_on, salary):
        return EmployeeConfig(
            id=uuid4(),
            employee_id=uuid4(),
            effective_on=effective_on,
            base_semi_monthly_salary=Decimal(salary),
        )

    def test_lookup_by_effective_date(self):
        timeline = ConfigTimeline([
            self._config(date(2025, 3, 1), "3"),
            self._config(date(2025, 1, 1), "1"),
        ])

        assert timeline.effective_on(date(2024, 12, 31)) is None
        assert timeline.effective_on(date(2025, 1, 1)).base_semi_monthly_salary == Decimal("1")
        assert timeline.effective_on(date(2025, 2, 28)).base_semi_monthly_salary == Decimal("1")
        assert timeline.effective_on(date(2025, 3, 1)).base_semi_monthly_salary == Decimal("3")
        assert timeline.schedule_for(date(2024, 6, 1)) is None
        assert len(timeline.schedule_for(date(2025, 6, 1))) == 7

    def test_invalid_weekday_rejected(self):
        with pytest.raises(ValueError):
            normalize_schedule([ScheduleEntry(weekday=7)])
