"""
Semi-monthly period resolution.

A reference date on or before the 15th falls in [1st, 15th] of its month,
paid on the last day of that month.  Later dates fall in [16th, last day],
paid on the 15th of the following month.  Pay instants are local pay time
(noon by default) on the pay date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from payroll_kernel.domain.zoned_time import (
    ZonedRange,
    add_months,
    first_of_month,
    last_of_month,
    local_instant,
    to_local_date,
)
from payroll_modules.settlement.models import PeriodStatus

FIRST_HALF_LAST_DAY = 15


@dataclass(frozen=True)
class PeriodWindow:
    """Calendar bounds and pay date of one semi-monthly period."""

    period_start: date
    period_end: date
    pay_date: date

    def pay_at(self, zone: ZoneInfo, pay_hour: int = 12) -> datetime:
        return local_instant(self.pay_date, zone, time(hour=pay_hour))

    def span(self, zone: ZoneInfo) -> ZonedRange:
        return ZonedRange(self.period_start, self.period_end, zone)


def resolve_period(reference: date | datetime, zone: ZoneInfo) -> PeriodWindow:
    local = to_local_date(reference, zone)
    month_start = first_of_month(local)
    if local.day <= FIRST_HALF_LAST_DAY:
        return PeriodWindow(
            period_start=month_start,
            period_end=month_start.replace(day=FIRST_HALF_LAST_DAY),
            pay_date=last_of_month(month_start),
        )
    return PeriodWindow(
        period_start=month_start.replace(day=FIRST_HALF_LAST_DAY + 1),
        period_end=last_of_month(month_start),
        pay_date=add_months(month_start, 1).replace(day=FIRST_HALF_LAST_DAY),
    )


def is_forward_transition(current: PeriodStatus, target: PeriodStatus) -> bool:
    return target.rank > current.rank
