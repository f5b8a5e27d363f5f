"""Persistence plumbing: declarative base, engine lifecycle, audit log guards."""

from payroll_kernel.db.base import Base, TrackedBase, UTCDateTime, UUIDString
from payroll_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from payroll_kernel.db.immutability import register_immutability_listeners

__all__ = [
    "Base",
    "TrackedBase",
    "UTCDateTime",
    "UUIDString",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "register_immutability_listeners",
    "session_scope",
]
