"""
Time sources for payroll services.

Services stamp ``computed_at``, ``finalized_at``, ``decided_at`` and
``paid_at`` from an injected clock.  Bonus pay dates also depend on "now"
(an approval after the cutoff moves to the next month), so tests pin the
clock rather than patching ``datetime``.  Engines stay pure and take the
instant as an argument.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


def _require_aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("DeterministicClock requires a timezone-aware datetime")
    return value


class Clock(ABC):
    """Source of aware datetimes."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Pinned clock for tests and replays.

    The instant only moves through ``set_time`` and ``advance``; repeated
    ``now()`` calls in between return the same value, so rows stamped in one
    operation compare equal to ``clock.now_utc()``.
    """

    DEFAULT_INSTANT = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __init__(self, fixed_time: datetime | None = None):
        self._current = _require_aware(fixed_time or self.DEFAULT_INSTANT)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = _require_aware(time)

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)
