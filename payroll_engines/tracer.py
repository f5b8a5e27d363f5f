"""
Trace logging for pure payroll engines.

``@traced_engine`` leaves the wrapped call untouched and emits one
``PAYROLL_ENGINE_TRACE`` record afterwards.  The record names the engine and
its version and carries a short hash of the chosen keyword arguments, so two
recomputes of the same employee month can be matched in the logs without
dumping the inputs themselves.
"""

from __future__ import annotations

import functools
import hashlib
import time
from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any

from payroll_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_EVENT = "PAYROLL_ENGINE_TRACE"


def _stable_repr(value: Any) -> str:
    if value is None:
        return "~"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return "{" + ",".join(
            f"{key}={_stable_repr(value[key])}" for key in sorted(value, key=str)
        ) + "}"
    if isinstance(value, (list, tuple)):
        return "(" + ",".join(_stable_repr(item) for item in value) + ")"
    return str(value)


def compute_input_fingerprint(fields: tuple[str, ...], kwargs: dict[str, Any]) -> str:
    """First 16 hex chars of a SHA-256 over ``field=value`` pairs."""
    digest = hashlib.sha256()
    for name in fields:
        digest.update(f"{name}={_stable_repr(kwargs.get(name))};".encode())
    return digest.hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            _logger.info(
                TRACE_EVENT,
                extra={
                    "trace_type": TRACE_EVENT,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": (
                        compute_input_fingerprint(fingerprint_fields, kwargs)
                        if fingerprint_fields else ""
                    ),
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
