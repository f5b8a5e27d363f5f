"""Tests for zoned calendar arithmetic."""

from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from payroll_kernel.domain.quantities import minutes_to_hours, round2, to_decimal
from payroll_kernel.domain.zoned_time import (
    add_months,
    day_end,
    day_start,
    month_key,
    month_keys_between,
    month_range,
    parse_month_key,
    quarter_key,
    quarter_months,
    quarter_start,
    resolve_zone,
    to_local_date,
    weekday_index,
)
from payroll_kernel.exceptions import InvalidTimeZoneError

LA = ZoneInfo("America/Los_Angeles")
UTC = timezone.utc


class TestZones:

    def test_default_zone(self):
        assert resolve_zone() == LA

    def test_unknown_zone_raises(self):
        with pytest.raises(InvalidTimeZoneError) as exc_info:
            resolve_zone("Mars/Olympus_Mons")
        assert exc_info.value.zone_name == "Mars/Olympus_Mons"
        assert exc_info.value.code == "INVALID_TIME_ZONE"

    def test_local_date_of_instant(self):
        assert to_local_date(datetime(2025, 3, 1, 7, 59, tzinfo=UTC), LA) == date(2025, 2, 28)
        assert to_local_date(datetime(2025, 3, 1, 8, 0, tzinfo=UTC), LA) == date(2025, 3, 1)

    def test_plain_date_passes_through(self):
        assert to_local_date(date(2025, 3, 1), LA) == date(2025, 3, 1)

    def test_naive_instant_rejected(self):
        with pytest.raises(ValueError):
            to_local_date(datetime(2025, 3, 1, 12, 0), LA)


class TestDayBoundaries:

    def test_dst_start_day_is_23_hours(self):
        assert (day_start(date(2025, 3, 10), LA) - day_start(date(2025, 3, 9), LA)).total_seconds() == 23 * 3600

    def test_dst_end_day_is_25_hours(self):
        assert (day_start(date(2025, 11, 3), LA) - day_start(date(2025, 11, 2), LA)).total_seconds() == 25 * 3600

    def test_day_end_is_inclusive(self):
        end = day_end(date(2025, 1, 15), LA)
        assert to_local_date(end, LA) == date(2025, 1, 15)
        assert end.microsecond == 999999

    def test_weekday_index_starts_on_sunday(self):
        assert weekday_index(date(2025, 2, 2)) == 0  # Sunday
        assert weekday_index(date(2025, 2, 3)) == 1  # Monday
        assert weekday_index(date(2025, 2, 8)) == 6  # Saturday


class TestMonths:

    def test_month_range_across_dst(self):
        span = month_range(date(2025, 3, 20), LA)

        assert span.start_date == date(2025, 3, 1)
        assert span.end_date == date(2025, 3, 31)
        assert span.start == datetime(2025, 3, 1, 8, 0, tzinfo=UTC)
        assert span.end_exclusive == datetime(2025, 4, 1, 7, 0, tzinfo=UTC)
        assert span.day_count == 31
        assert len(list(span.days())) == 31

    def test_month_range_from_instant_uses_local_day(self):
        # 2025-04-01 03:00 UTC is still March 31 in Los Angeles.
        span = month_range(datetime(2025, 4, 1, 3, 0, tzinfo=UTC), LA)
        assert span.start_date == date(2025, 3, 1)

    def test_leap_february(self):
        assert month_range(date(2024, 2, 10), LA).day_count == 29

    def test_add_months_clamps(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2025, 12, 15), 1) == date(2026, 1, 15)
        assert add_months(date(2025, 1, 1), -1) == date(2024, 12, 1)

    def test_month_keys(self):
        assert month_key(date(2025, 3, 17)) == "2025-03"
        assert parse_month_key("2025-03") == date(2025, 3, 1)

    def test_malformed_month_key(self):
        with pytest.raises(ValueError):
            parse_month_key("March 2025")

    def test_month_keys_between_either_order(self):
        expected = ["2024-12", "2025-01", "2025-02"]
        assert month_keys_between(date(2024, 12, 20), date(2025, 2, 1)) == expected
        assert month_keys_between(date(2025, 2, 1), date(2024, 12, 20)) == expected


class TestQuarters:

    @pytest.mark.parametrize(
        "day,start,key",
        [
            (date(2025, 1, 1), date(2025, 1, 1), "2025-Q1"),
            (date(2025, 3, 31), date(2025, 1, 1), "2025-Q1"),
            (date(2025, 4, 1), date(2025, 4, 1), "2025-Q2"),
            (date(2025, 11, 5), date(2025, 10, 1), "2025-Q4"),
        ],
    )
    def test_quarter_start_and_key(self, day, start, key):
        assert quarter_start(day) == start
        assert quarter_key(day) == key

    def test_quarter_months(self):
        assert quarter_months(date(2025, 5, 20)) == (
            date(2025, 4, 1), date(2025, 5, 1), date(2025, 6, 1),
        )


class TestQuantities:

    def test_round_half_up(self):
        assert round2(Decimal("2.345")) == Decimal("2.35")
        assert round2(Decimal("2.344")) == Decimal("2.34")
        assert str(round2(Decimal("100"))) == "100.00"

    def test_minutes_to_hours(self):
        assert minutes_to_hours(90) == Decimal("1.50")
        assert minutes_to_hours(1) == Decimal("0.02")
        assert minutes_to_hours(0) == Decimal("0.00")

    def test_to_decimal(self):
        assert to_decimal(None) == Decimal("0")
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal("7.25") == Decimal("7.25")
