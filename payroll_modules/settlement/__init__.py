"""Semi-monthly payroll periods, checks and CSV export."""

from payroll_modules.settlement.export import CSV_HEADERS, render_period_csv
from payroll_modules.settlement.models import (
    CheckStatus,
    PayrollCheck,
    PayrollPeriod,
    PeriodStatus,
)
from payroll_modules.settlement.periods import PeriodWindow, is_forward_transition, resolve_period
from payroll_modules.settlement.service import PERIOD_ENTITY_TYPE, SettlementService

__all__ = [
    "CSV_HEADERS",
    "PERIOD_ENTITY_TYPE",
    "CheckStatus",
    "PayrollCheck",
    "PayrollPeriod",
    "PeriodStatus",
    "PeriodWindow",
    "SettlementService",
    "is_forward_transition",
    "render_period_csv",
    "resolve_period",
]
