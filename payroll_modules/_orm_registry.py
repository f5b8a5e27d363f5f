"""
Module ORM Registry (``payroll_modules._orm_registry``).

Responsibility
--------------
Import every module ORM so that ``Base.metadata`` holds the full schema
before ``create_tables()`` runs.  Kernel models come first because module
tables may reference them.

Usage
-----
``payroll_kernel.db.engine.create_tables()`` calls
``import_all_orm_models()``; scripts and ``tests/conftest.py`` go through
``create_tables()``.
"""


def import_all_orm_models() -> None:
    """Idempotent -- repeated calls are harmless."""
    import payroll_kernel.models  # noqa: F401
    import payroll_modules.employees.orm  # noqa: F401
    import payroll_modules.timekeeping.orm  # noqa: F401
    import payroll_modules.attendance.orm  # noqa: F401
    import payroll_modules.bonus.orm  # noqa: F401
    import payroll_modules.settlement.orm  # noqa: F401
