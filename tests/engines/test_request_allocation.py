"""
Tests for RequestAllocator.

Covers:
- Even spread of request hours over the clipped day span
- Proportional split of requests crossing a month boundary
- Make-up claim window eligibility
- Clamping of malformed requests
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from payroll_kernel.domain.zoned_time import ZonedRange
from payroll_engines.allocation import RequestAllocator
from payroll_engines.types import DayBucket, RequestKind, TimeOffRequest

LA = ZoneInfo("America/Los_Angeles")
FEB = ZonedRange(date(2025, 2, 1), date(2025, 2, 28), LA)
JAN = ZonedRange(date(2025, 1, 1), date(2025, 1, 31), LA)


def _request(kind, start, end, hours, approved_at=None):
    return TimeOffRequest(
        kind=kind,
        start_date=start,
        end_date=end,
        hours=Decimal(hours),
        approved_at=approved_at,
    )


class TestSpread:
    """Hours are spread evenly across the request's days."""

    def setup_method(self):
        self.allocator = RequestAllocator(LA, claim_window_days=14)

    def test_single_day_request(self):
        buckets = self.allocator.allocate(
            [_request(RequestKind.PTO, date(2025, 2, 3), date(2025, 2, 3), "4")], FEB,
        )

        assert buckets == {date(2025, 2, 3): DayBucket(pto=Decimal("4"))}

    def test_multi_day_request_spreads_evenly(self):
        buckets = self.allocator.allocate(
            [_request(RequestKind.NON_PTO, date(2025, 2, 3), date(2025, 2, 6), "16")], FEB,
        )

        assert sorted(buckets) == [date(2025, 2, d) for d in (3, 4, 5, 6)]
        assert all(b.non_pto == Decimal("4") for b in buckets.values())
        assert all(b.pto == 0 and b.make_up == 0 for b in buckets.values())

    def test_request_crossing_month_boundary_is_proportional(self):
        """Jan 30 - Feb 2 is four days; February receives half the hours."""
        request = _request(RequestKind.PTO, date(2025, 1, 30), date(2025, 2, 2), "8")

        feb = self.allocator.allocate([request], FEB)
        jan = self.allocator.allocate([request], JAN)

        assert feb == {
            date(2025, 2, 1): DayBucket(pto=Decimal("2")),
            date(2025, 2, 2): DayBucket(pto=Decimal("2")),
        }
        assert sum(b.pto for b in jan.values()) == Decimal("4")
        assert sorted(jan) == [date(2025, 1, 30), date(2025, 1, 31)]

    def test_request_outside_month_is_ignored(self):
        buckets = self.allocator.allocate(
            [_request(RequestKind.PTO, date(2025, 3, 3), date(2025, 3, 4), "8")], FEB,
        )
        assert buckets == {}

    def test_requests_on_same_day_accumulate_by_kind(self):
        day = date(2025, 2, 10)
        buckets = self.allocator.allocate(
            [
                _request(RequestKind.PTO, day, day, "2"),
                _request(RequestKind.PTO, day, day, "1.5"),
                _request(RequestKind.NON_PTO, day, day, "3"),
            ],
            FEB,
        )

        assert buckets[day].pto == Decimal("3.5")
        assert buckets[day].non_pto == Decimal("3")


class TestMalformedRequests:
    """Historical data is clamped, never rejected."""

    def setup_method(self):
        self.allocator = RequestAllocator(LA)

    def test_end_before_start_is_a_one_day_request(self):
        buckets = self.allocator.allocate(
            [_request(RequestKind.PTO, date(2025, 2, 10), date(2025, 2, 5), "6")], FEB,
        )
        assert buckets == {date(2025, 2, 10): DayBucket(pto=Decimal("6"))}

    def test_negative_hours_contribute_nothing(self):
        buckets = self.allocator.allocate(
            [_request(RequestKind.NON_PTO, date(2025, 2, 10), date(2025, 2, 11), "-5")], FEB,
        )
        assert buckets == {}


class TestMakeUpClaimWindow:
    """Make-up hours count only when approved close to their start date."""

    def setup_method(self):
        self.allocator = RequestAllocator(LA, claim_window_days=14)

    def test_make_up_approved_within_window_counts(self):
        request = _request(
            RequestKind.MAKE_UP, date(2025, 2, 8), date(2025, 2, 8), "3",
            approved_at=datetime(2025, 2, 5, 18, 0, tzinfo=timezone.utc),
        )
        assert self.allocator.is_eligible(request)
        assert self.allocator.allocate([request], FEB) == {
            date(2025, 2, 8): DayBucket(make_up=Decimal("3")),
        }

    def test_window_is_inclusive(self):
        # 2025-02-15 20:00 UTC is noon on Feb 15 in Los Angeles: 14 days after start.
        request = _request(
            RequestKind.MAKE_UP, date(2025, 2, 1), date(2025, 2, 1), "2",
            approved_at=datetime(2025, 2, 15, 20, 0, tzinfo=timezone.utc),
        )
        assert self.allocator.is_eligible(request)

    def test_approval_after_window_is_excluded(self):
        request = _request(
            RequestKind.MAKE_UP, date(2025, 2, 1), date(2025, 2, 1), "2",
            approved_at=datetime(2025, 2, 16, 20, 0, tzinfo=timezone.utc),
        )
        assert not self.allocator.is_eligible(request)
        assert self.allocator.allocate([request], FEB) == {}

    def test_approval_date_uses_payroll_zone(self):
        # 2025-02-16 03:00 UTC is still Feb 15 in Los Angeles.
        request = _request(
            RequestKind.MAKE_UP, date(2025, 2, 1), date(2025, 2, 1), "2",
            approved_at=datetime(2025, 2, 16, 3, 0, tzinfo=timezone.utc),
        )
        assert self.allocator.is_eligible(request)

    def test_approval_before_start_counts_by_absolute_distance(self):
        request = _request(
            RequestKind.MAKE_UP, date(2025, 2, 20), date(2025, 2, 20), "2",
            approved_at=datetime(2025, 2, 10, 20, 0, tzinfo=timezone.utc),
        )
        assert self.allocator.is_eligible(request)

    def test_unapproved_make_up_is_excluded(self):
        request = _request(RequestKind.MAKE_UP, date(2025, 2, 8), date(2025, 2, 8), "3")
        assert not self.allocator.is_eligible(request)

    def test_other_kinds_ignore_the_window(self):
        request = _request(RequestKind.PTO, date(2025, 2, 8), date(2025, 2, 8), "3")
        assert self.allocator.is_eligible(request)
