"""
Bonus pay-date rules.

Attendance bonuses are paid on the configured day (the 15th) of a later
month at local pay time.  A monthly bonus goes to the first such pay
instant strictly after the month was finalized, so a late finalization
rolls forward instead of landing on a pay date already in the past.
Quarterly bonuses are paid on the pay day of the month after the quarter.
"""

from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from payroll_kernel.domain.zoned_time import add_months, first_of_month, local_instant


def pay_instant(day: date, zone: ZoneInfo, pay_hour: int = 12) -> datetime:
    """UTC instant of local pay time on ``day``."""
    return local_instant(day, zone, time(hour=pay_hour))


def monthly_bonus_pay_date(
    month_start: date,
    finalized_at: datetime,
    zone: ZoneInfo,
    pay_day: int = 15,
    pay_hour: int = 12,
) -> date:
    offset = 1
    candidate = add_months(first_of_month(month_start), offset).replace(day=pay_day)
    while pay_instant(candidate, zone, pay_hour) <= finalized_at:
        offset += 1
        candidate = add_months(first_of_month(month_start), offset).replace(day=pay_day)
    return candidate


def quarterly_bonus_pay_date(quarter_start: date, pay_day: int = 15) -> date:
    return add_months(quarter_start, 3).replace(day=pay_day)
