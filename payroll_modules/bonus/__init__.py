"""Attendance and KPI bonuses: eligibility sync and decisions."""

from payroll_modules.bonus.models import BonusStatus, BonusType, PayrollBonus
from payroll_modules.bonus.pay_dates import monthly_bonus_pay_date, quarterly_bonus_pay_date
from payroll_modules.bonus.service import (
    BONUS_ENTITY_TYPE,
    REASON_MONTH_NOT_PERFECT,
    REASON_QUARTER_NOT_PERFECT,
    BonusService,
)

__all__ = [
    "BONUS_ENTITY_TYPE",
    "REASON_MONTH_NOT_PERFECT",
    "REASON_QUARTER_NOT_PERFECT",
    "BonusService",
    "BonusStatus",
    "BonusType",
    "PayrollBonus",
    "monthly_bonus_pay_date",
    "quarterly_bonus_pay_date",
]
