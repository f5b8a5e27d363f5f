"""
SequenceService -- monotonic numbers from locked counter rows.

Responsibility:
    Hands out strictly increasing integers per sequence name.  The audit
    trail takes its ``seq`` from here.

Architecture position:
    Kernel > Services.  Runs inside the caller's transaction (flush only);
    the increment becomes visible when the caller commits and is returned
    on rollback.

Concurrency:
    ``SELECT ... FOR UPDATE`` on the counter row serializes writers on
    PostgreSQL.  The first allocation inserts the row inside a savepoint so
    that losing a creation race only rolls back the insert, after which the
    winner's row is locked and incremented.  SQLite ignores ``FOR UPDATE``
    and serializes writers at the database level instead.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.sequence_counter import PayrollSequenceCounter
from payroll_kernel.services.base import BaseService

logger = get_logger("services.sequence")


class SequenceService(BaseService):
    """
    Named counters.

    Guarantees:
        - ``next_value`` returns a value greater than every value previously
          committed for the same name.
        - Never derives the next value from ``max()`` over the numbered rows.
    """

    AUDIT_ENTRY = "audit_entry"

    def _locked(self, name: str) -> PayrollSequenceCounter | None:
        return self.session.execute(
            select(PayrollSequenceCounter)
            .where(PayrollSequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, name: str) -> int:
        counter = self._locked(name)

        if counter is None:
            savepoint = self.session.begin_nested()
            try:
                self.session.add(PayrollSequenceCounter(name=name, current_value=1))
                self.session.flush()
                savepoint.commit()
                logger.debug("sequence_allocated", extra={"sequence_name": name, "value": 1})
                return 1
            except IntegrityError:
                logger.debug("sequence_counter_race_retry", extra={"sequence_name": name})
                savepoint.rollback()
                counter = self._locked(name)
                if counter is None:
                    raise

        counter.current_value += 1
        self.session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, name: str) -> int | None:
        """Last value handed out, or None before the first allocation."""
        counter = self.session.execute(
            select(PayrollSequenceCounter).where(PayrollSequenceCounter.name == name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None
