"""
Payroll Kernel

Shared infrastructure for the attendance and payroll system:
- Zoned calendar boundaries
- Typed errors with machine-readable codes
- Structured JSON logging
- Append-only audit trail
- SQLAlchemy persistence base
"""

__version__ = "0.1.0"
