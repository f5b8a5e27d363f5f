"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers catch errors by TYPE and read structured attributes, never by parsing
message text:

    try:
        settlement.recalc_period(period_id)
    except PayrollPeriodPaidError as e:
        api_response(code=e.code, period=e.period_id)

Every class carries a class-level ``code`` (machine-readable, API-safe) and
stores its context as instance attributes so that it survives logging and
serialization (see ``StructuredFormatter``, which emits ``exc_<attr>`` keys).

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- ConfigurationError
    |   +-- InvalidTimeZoneError
    |
    +-- EmployeeError
    |   +-- EmployeeNotFoundError
    |   +-- EmployeeAlreadyExistsError
    |
    +-- CalendarError
    |   +-- HolidayNotFoundError
    |
    +-- TimekeepingError
    |   +-- TimeOffRequestNotFoundError
    |
    +-- AttendanceError
    |   +-- AttendanceFactNotFoundError
    |   +-- AttendanceFactNotFinalizedError
    |   +-- InvalidAttendanceReviewError
    |
    +-- BonusError
    |   +-- BonusNotFoundError
    |   +-- InvalidBonusDecisionError
    |   +-- BonusAlreadyPaidError
    |
    +-- SettlementError
    |   +-- PayrollPeriodNotFoundError
    |   +-- PayrollPeriodPaidError
    |   +-- InvalidPeriodTransitionError
    |
    +-- AuditError
    |   +-- AuditLogImmutableError
    |
    +-- BatchError
        +-- TaskNotRegisteredError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                          | When Raised
-------------|-------------------------------|-------------------------------------
Config       | INVALID_TIME_ZONE             | Zone name not in the IANA database
Employee     | EMPLOYEE_NOT_FOUND            | Unknown employee id
             | EMPLOYEE_ALREADY_EXISTS       | Duplicate employee number
Calendar     | HOLIDAY_NOT_FOUND             | Deleting a date with no holiday
Timekeeping  | TIME_OFF_REQUEST_NOT_FOUND    | Reviewing an unknown request
Attendance   | ATTENDANCE_FACT_NOT_FOUND     | Unknown fact id on direct lookup
             | ATTENDANCE_FACT_NOT_FINALIZED | Bonus sync on a PENDING fact
             | INVALID_ATTENDANCE_REVIEW     | Blank or oversized review notes
Bonus        | BONUS_NOT_FOUND               | Unknown bonus id
             | INVALID_BONUS_DECISION        | Decision status not APPROVED/DENIED
             | BONUS_ALREADY_PAID            | Deciding a PAID bonus
Settlement   | PAYROLL_PERIOD_NOT_FOUND      | Unknown period id
             | PAYROLL_PERIOD_PAID           | Recalculating a PAID period
             | INVALID_PERIOD_TRANSITION     | Status change that is not forward
Audit        | AUDIT_LOG_IMMUTABLE           | UPDATE/DELETE of an audit row
Batch        | TASK_NOT_REGISTERED           | Unknown batch task type

Input-missing conditions (no schedule, no activity) are NEVER errors: the
reconciliation engine defaults them to zero.
"""


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Configuration exceptions


class ConfigurationError(PayrollKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidTimeZoneError(ConfigurationError):
    """Configured time zone is not a known IANA zone identifier."""

    code: str = "INVALID_TIME_ZONE"

    def __init__(self, zone_name: str):
        self.zone_name = zone_name
        super().__init__(f"Unknown time zone: {zone_name!r}")


# Employee exceptions


class EmployeeError(PayrollKernelError):
    """Base exception for employee errors."""

    code: str = "EMPLOYEE_ERROR"


class EmployeeNotFoundError(EmployeeError):
    """Employee with given ID was not found."""

    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}")


class EmployeeAlreadyExistsError(EmployeeError):
    """Employee number is already registered."""

    code: str = "EMPLOYEE_ALREADY_EXISTS"

    def __init__(self, employee_number: str):
        self.employee_number = employee_number
        super().__init__(f"Employee already exists: {employee_number}")


# Calendar exceptions


class CalendarError(PayrollKernelError):
    """Base exception for holiday calendar errors."""

    code: str = "CALENDAR_ERROR"


class HolidayNotFoundError(CalendarError):
    """No holiday is defined on the given date."""

    code: str = "HOLIDAY_NOT_FOUND"

    def __init__(self, holiday_date: str):
        self.holiday_date = holiday_date
        super().__init__(f"No holiday on {holiday_date}")


# Timekeeping exceptions


class TimekeepingError(PayrollKernelError):
    """Base exception for timekeeping capture errors."""

    code: str = "TIMEKEEPING_ERROR"


class TimeOffRequestNotFoundError(TimekeepingError):
    """Time-off request with given ID was not found."""

    code: str = "TIME_OFF_REQUEST_NOT_FOUND"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Time-off request not found: {request_id}")


# Attendance exceptions


class AttendanceError(PayrollKernelError):
    """Base exception for attendance fact errors."""

    code: str = "ATTENDANCE_ERROR"


class AttendanceFactNotFoundError(AttendanceError):
    """Attendance fact with given ID was not found."""

    code: str = "ATTENDANCE_FACT_NOT_FOUND"

    def __init__(self, fact_id: str):
        self.fact_id = fact_id
        super().__init__(f"Attendance fact not found: {fact_id}")


class AttendanceFactNotFinalizedError(AttendanceError):
    """Bonus synchronization requires a FINALIZED attendance fact."""

    code: str = "ATTENDANCE_FACT_NOT_FINALIZED"

    def __init__(self, fact_id: str, status: str):
        self.fact_id = fact_id
        self.status = status
        super().__init__(
            f"Attendance fact {fact_id} is {status}, expected finalized"
        )


class InvalidAttendanceReviewError(AttendanceError):
    """Review notes must be non-blank and at most 500 characters."""

    code: str = "INVALID_ATTENDANCE_REVIEW"

    def __init__(self, fact_id: str, reason: str):
        self.fact_id = fact_id
        self.reason = reason
        super().__init__(f"Invalid review for attendance fact {fact_id}: {reason}")


# Bonus exceptions


class BonusError(PayrollKernelError):
    """Base exception for bonus errors."""

    code: str = "BONUS_ERROR"


class BonusNotFoundError(BonusError):
    """Bonus with given ID was not found."""

    code: str = "BONUS_NOT_FOUND"

    def __init__(self, bonus_id: str):
        self.bonus_id = bonus_id
        super().__init__(f"Bonus not found: {bonus_id}")


class InvalidBonusDecisionError(BonusError):
    """A decision must resolve to APPROVED or DENIED."""

    code: str = "INVALID_BONUS_DECISION"

    def __init__(self, bonus_id: str, requested_status: str):
        self.bonus_id = bonus_id
        self.requested_status = requested_status
        super().__init__(
            f"Cannot decide bonus {bonus_id} as {requested_status!r}: "
            "expected approved or denied"
        )


class BonusAlreadyPaidError(BonusError):
    """PAID bonuses are terminal."""

    code: str = "BONUS_ALREADY_PAID"

    def __init__(self, bonus_id: str):
        self.bonus_id = bonus_id
        super().__init__(f"Bonus {bonus_id} is already paid")


# Settlement exceptions


class SettlementError(PayrollKernelError):
    """Base exception for payroll period settlement errors."""

    code: str = "SETTLEMENT_ERROR"


class PayrollPeriodNotFoundError(SettlementError):
    """Payroll period with given ID was not found."""

    code: str = "PAYROLL_PERIOD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Payroll period not found: {period_id}")


class PayrollPeriodPaidError(SettlementError):
    """PAID periods are terminal and cannot be recalculated."""

    code: str = "PAYROLL_PERIOD_PAID"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Payroll period {period_id} is already paid")


class InvalidPeriodTransitionError(SettlementError):
    """Period status may only move forward (DRAFT -> APPROVED -> PAID)."""

    code: str = "INVALID_PERIOD_TRANSITION"

    def __init__(self, period_id: str, from_status: str, to_status: str):
        self.period_id = period_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Payroll period {period_id} cannot move from "
            f"{from_status} to {to_status}"
        )


# Audit exceptions


class AuditError(PayrollKernelError):
    """Base exception for audit trail errors."""

    code: str = "AUDIT_ERROR"


class AuditLogImmutableError(AuditError):
    """Audit rows are append-only."""

    code: str = "AUDIT_LOG_IMMUTABLE"

    def __init__(self, entry_id: str, operation: str):
        self.entry_id = entry_id
        self.operation = operation
        super().__init__(
            f"Audit log entry {entry_id} is append-only ({operation} rejected)"
        )


# Batch exceptions


class BatchError(PayrollKernelError):
    """Base exception for batch execution errors."""

    code: str = "BATCH_ERROR"


class TaskNotRegisteredError(BatchError):
    """Requested batch task type is not registered."""

    code: str = "TASK_NOT_REGISTERED"

    def __init__(self, task_type: str, available: list[str]):
        self.task_type = task_type
        self.available = available
        super().__init__(
            f"Task type {task_type!r} is not registered "
            f"(available: {', '.join(available) or 'none'})"
        )
