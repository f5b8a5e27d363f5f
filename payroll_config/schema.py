"""
Payroll settings schema.

Defines the operational constants of reconciliation and settlement with
sensible defaults.  Values are loaded from YAML and the environment by
``payroll_config.get_active_settings()``.
"""

from dataclasses import dataclass
from decimal import Decimal
from zoneinfo import ZoneInfo

from payroll_kernel.domain.zoned_time import DEFAULT_TIME_ZONE, resolve_zone
from payroll_kernel.logging_config import get_logger

logger = get_logger("config.schema")


@dataclass(frozen=True)
class PayrollSettings:
    """
    Operational settings.

        settings = PayrollSettings(time_zone="America/New_York")
    """

    time_zone: str = DEFAULT_TIME_ZONE

    # Make-up requests must be approved within this many days of their start.
    make_up_claim_window_days: int = 14
    monthly_make_up_cap_hours: Decimal = Decimal("8")

    # Perfect attendance allows up to this many tardy minutes per month (inclusive).
    tardy_minutes_threshold: int = 90

    # Bonus pay dates fall on this day of month; pay instants at this local hour.
    bonus_pay_day: int = 15
    pay_hour: int = 12

    def __post_init__(self):
        # Raises InvalidTimeZoneError for an unknown zone
        resolve_zone(self.time_zone)

        if self.make_up_claim_window_days < 0:
            raise ValueError("make_up_claim_window_days cannot be negative")
        if self.monthly_make_up_cap_hours < 0:
            raise ValueError("monthly_make_up_cap_hours cannot be negative")
        if self.tardy_minutes_threshold < 0:
            raise ValueError("tardy_minutes_threshold cannot be negative")
        if not 1 <= self.bonus_pay_day <= 28:
            raise ValueError(
                f"bonus_pay_day must be between 1 and 28, got {self.bonus_pay_day}"
            )
        if not 0 <= self.pay_hour <= 23:
            raise ValueError(f"pay_hour must be between 0 and 23, got {self.pay_hour}")

        logger.debug(
            "payroll_settings_initialized",
            extra={
                "time_zone": self.time_zone,
                "make_up_claim_window_days": self.make_up_claim_window_days,
                "monthly_make_up_cap_hours": str(self.monthly_make_up_cap_hours),
                "tardy_minutes_threshold": self.tardy_minutes_threshold,
            },
        )

    @property
    def zone(self) -> ZoneInfo:
        return resolve_zone(self.time_zone)
