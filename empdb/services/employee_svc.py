"""
Employee reads and writes.

Every write changes one EMP row and appends one record to the DB2LOG queue
inside a single unit of work (see ``empdb.uow``). Failures at any step are
re-raised unchanged after the connection and statements are released; no
write is retried.
"""
from __future__ import annotations

import logging
from typing import Callable

from ..db import DataSource, get_data_source
from ..domain.employee import Employee, log_message, normalize_sex, normalized_copy, require_empno
from ..errors import EmployeeNotFound
from ..logs import TSQ
from ..repository import employee_repo
from ..repository.employee_repo import BoundStatement
from ..uow import open_scope
from .config_svc import get_config

logger = logging.getLogger(__name__)

# Queue receiving one record per change to EMP
TSQ_NAME = "DB2LOG"


def _settings(ds: DataSource, use_jta: bool | None, strict: bool | None) -> tuple[bool, bool]:
    if use_jta is not None and strict is not None:
        return use_jta, strict
    cfg = get_config(ds.db_path)
    return (
        cfg["use_jta"] if use_jta is None else use_jta,
        cfg["strict_not_found"] if strict is None else strict,
    )


def find_employees_by_last_name(last_name: str | None, ds: DataSource | None = None) -> list[Employee]:
    """Employees whose last name starts with ``last_name`` (any case), ordered by LASTNAME, EMPNO."""
    ds = ds or get_data_source()
    bound = employee_repo.find_stmt(last_name or "")
    conn = ds.get_connection()
    try:
        stmt = conn.prepare_statement(bound.sql)
        try:
            rows = stmt.execute_query(bound.params)
        finally:
            stmt.close()
    finally:
        conn.close()
    results = [employee_repo.row_to_employee(r) for r in rows]
    logger.debug(f"search {bound.params[0]!r}: {len(results)} rows")
    return results


def _write(
    ds: DataSource,
    use_jta: bool,
    strict: bool,
    build: Callable[[], tuple[BoundStatement, Employee]],
    employee: Employee,
    action: str,
) -> int:
    with open_scope(ds, use_jta) as scope:
        bound, logged = build()
        stmt = scope.connection().prepare_statement(bound.sql)
        try:
            affected = stmt.execute_update(bound.params)
            if affected == 0 and strict:
                raise EmployeeNotFound(employee.empno)

            tsq = TSQ(queue_path=ds.queue_path)
            tsq.set_name(TSQ_NAME)
            tsq.write_string(log_message(action, logged))

            scope.commit()
        finally:
            stmt.close()
    logger.info(f"{action.lower()} employee {employee.empno}: {affected} row(s), jta={use_jta}")
    return affected


def create_employee(
    employee: Employee,
    ds: DataSource | None = None,
    use_jta: bool | None = None,
) -> int:
    """Insert ``employee``. The stored sex code is uppercased; the argument is not modified."""
    require_empno(employee)
    ds = ds or get_data_source()
    use_jta, strict = _settings(ds, use_jta, False)

    def build():
        row = normalized_copy(employee)
        return employee_repo.insert_stmt(row), row

    return _write(ds, use_jta, strict, build, employee, "Added")


def update_employee(
    employee: Employee,
    ds: DataSource | None = None,
    use_jta: bool | None = None,
    strict: bool | None = None,
) -> int:
    """
    Rewrite the EMP row whose EMPNO equals ``employee.empno``.

    The sex code on ``employee`` itself is uppercased. Returns the number of
    rows changed; 0 means no such employee (an error only when strict).
    """
    require_empno(employee)
    ds = ds or get_data_source()
    use_jta, strict = _settings(ds, use_jta, strict)

    def build():
        employee.sex = normalize_sex(employee.sex)
        return employee_repo.update_stmt(employee), employee

    return _write(ds, use_jta, strict, build, employee, "Updated")


def delete_employee(
    employee: Employee,
    ds: DataSource | None = None,
    use_jta: bool | None = None,
    strict: bool | None = None,
) -> int:
    require_empno(employee)
    ds = ds or get_data_source()
    use_jta, strict = _settings(ds, use_jta, strict)

    def build():
        return employee_repo.delete_stmt(employee), employee

    return _write(ds, use_jta, strict, build, employee, "Deleted")
