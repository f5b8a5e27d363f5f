"""
ConfigTimeline -- ordered index of an employee's effective-dated configs.

The effective config for a date D is the one with the latest
``effective_on <= D``.  Configs are kept sorted by ``effective_on`` and looked
up with ``bisect`` instead of scanning every row, so month reconciliation
over a long history stays O(log n) per day.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable
from datetime import date

from payroll_engines.types import ScheduleEntry
from payroll_modules.employees.models import EmployeeConfig


class ConfigTimeline:
    """Effective-dated lookup over one employee's configs."""

    def __init__(self, configs: Iterable[EmployeeConfig]):
        self._configs = sorted(configs, key=lambda c: c.effective_on)
        self._dates = [c.effective_on for c in self._configs]

    def __len__(self) -> int:
        return len(self._configs)

    def __iter__(self):
        return iter(self._configs)

    def effective_on(self, day: date) -> EmployeeConfig | None:
        idx = bisect_right(self._dates, day)
        if idx == 0:
            return None
        return self._configs[idx - 1]

    def schedule_for(self, day: date) -> tuple[ScheduleEntry, ...] | None:
        config = self.effective_on(day)
        return config.schedule if config is not None else None
