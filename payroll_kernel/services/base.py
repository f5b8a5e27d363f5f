"""Shared base for the flush-only payroll services."""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Holds the caller's session.

    Subclasses write with ``session.flush()`` only.  Whoever created the
    session (an orchestrator in ``payroll_services``, the batch executor or a
    test) decides when to commit, so a row and its audit entry always land
    in the same transaction.
    """

    def __init__(self, session: Session):
        self.session = session
