"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads YAML settings files and environment overrides and parses them into a
``PayrollSettings`` instance.  Callers use ``payroll_config.get_active_settings()``
rather than this module directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys under ``payroll:``  -> ``ValueError``.
* Out-of-range values  -> ``ValueError`` / ``InvalidTimeZoneError`` from the schema.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import PayrollSettings

ZONE_ENV_VARS = ("PAYROLL_TIME_ZONE", "DASHBOARD_TIME_ZONE")
CONFIG_PATH_ENV_VAR = "PAYROLL_CONFIG_PATH"

_INT_FIELDS = frozenset({
    "make_up_claim_window_days",
    "tardy_minutes_threshold",
    "bonus_pay_day",
    "pay_hour",
})
_DECIMAL_FIELDS = frozenset({"monthly_make_up_cap_hours"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    return data or {}


def parse_settings_section(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate and coerce the ``payroll:`` section of a settings document."""
    section = data.get("payroll", {}) or {}
    known = {f.name for f in fields(PayrollSettings)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ValueError(f"Unknown payroll settings: {', '.join(unknown)}")

    parsed: dict[str, Any] = {}
    for key, value in section.items():
        if key in _INT_FIELDS:
            parsed[key] = int(value)
        elif key in _DECIMAL_FIELDS:
            parsed[key] = Decimal(str(value))
        else:
            parsed[key] = str(value)
    return parsed


def zone_from_environment(environ: Mapping[str, str]) -> str | None:
    """First non-empty zone override from the environment."""
    for name in ZONE_ENV_VARS:
        value = environ.get(name)
        if value:
            return value
    return None


def build_settings(
    documents: list[Mapping[str, Any]],
    environ: Mapping[str, str],
) -> PayrollSettings:
    """Merge YAML documents (later wins), then apply environment overrides."""
    merged: dict[str, Any] = {}
    for doc in documents:
        merged.update(parse_settings_section(doc))

    zone = zone_from_environment(environ)
    if zone is not None:
        merged["time_zone"] = zone

    return PayrollSettings(**merged)
