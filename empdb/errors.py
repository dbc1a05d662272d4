"""Exceptions raised by the employee store.

SQL failures are not wrapped: ``sqlite3.Error`` subclasses reach callers as
raised by the driver.
"""
from __future__ import annotations


class EmpDbError(Exception):
    pass


class MissingEmployeeNumber(EmpDbError, ValueError):
    """A write was requested for an employee without an employee number."""


class EmployeeNotFound(EmpDbError, LookupError):
    """Update/delete matched no row (only raised in strict mode)."""

    def __init__(self, empno: str):
        super().__init__(f"employee {empno} not found")
        self.empno = empno


class LookupFailure(EmpDbError, LookupError):
    """A name could not be resolved in the transaction registry."""


class TransactionError(EmpDbError):
    pass


class RollbackError(TransactionError):
    """Commit was requested but the transaction had been marked rollback-only."""


class QueueError(EmpDbError):
    pass
