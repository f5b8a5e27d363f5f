"""
payroll_config -- single public entrypoint for operational settings.

Responsibility:
    ``get_active_settings()`` is the one way services obtain the payroll zone
    and reconciliation constants.  The kernel and the engines never read
    configuration; services pass the values they need into them.

Precedence (lowest to highest):
    1. ``PayrollSettings`` dataclass defaults
    2. packaged ``defaults.yaml``
    3. the YAML file named by ``PAYROLL_CONFIG_PATH`` (or ``config_path``)
    4. ``PAYROLL_TIME_ZONE`` / ``DASHBOARD_TIME_ZONE`` environment variables

Audit relevance:
    Every call emits a ``payroll_config_loaded`` log entry with the effective
    values and the files they came from.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from payroll_config.loader import CONFIG_PATH_ENV_VAR, build_settings, load_yaml_file
from payroll_config.schema import PayrollSettings
from payroll_kernel.logging_config import get_logger

logger = get_logger("config")

_DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"


def get_active_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> PayrollSettings:
    """The ONLY public settings entrypoint."""
    env = os.environ if environ is None else environ

    sources = [_DEFAULTS_FILE]
    override = config_path or env.get(CONFIG_PATH_ENV_VAR)
    if override:
        sources.append(Path(override))

    settings = build_settings([load_yaml_file(p) for p in sources], env)

    logger.info(
        "payroll_config_loaded",
        extra={
            "sources": [str(p) for p in sources],
            "time_zone": settings.time_zone,
            "make_up_claim_window_days": settings.make_up_claim_window_days,
            "monthly_make_up_cap_hours": str(settings.monthly_make_up_cap_hours),
            "tardy_minutes_threshold": settings.tardy_minutes_threshold,
            "bonus_pay_day": settings.bonus_pay_day,
            "pay_hour": settings.pay_hour,
        },
    )
    return settings


__all__ = ["PayrollSettings", "get_active_settings"]
