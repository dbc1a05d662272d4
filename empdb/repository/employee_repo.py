from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, NamedTuple

from ..domain.employee import Employee

# Column order is shared by SELECT, INSERT and UPDATE and must not change:
# existing schemas and callers depend on the ordinal positions.
COLUMNS = (
    "BIRTHDATE", "BONUS", "COMM", "EDLEVEL", "EMPNO",
    "FIRSTNME", "HIREDATE", "JOB", "LASTNAME", "MIDINIT",
    "PHONENO", "SALARY", "SEX", "WORKDEPT",
)

FIND_SQL = (
    "SELECT " + ", ".join(COLUMNS) + " "
    "FROM EMP WHERE LASTNAME LIKE ? ORDER BY LASTNAME, EMPNO"
)
INSERT_SQL = (
    "INSERT INTO EMP (" + ", ".join(COLUMNS) + ") "
    "VALUES (" + ", ".join(["?"] * len(COLUMNS)) + ")"
)
UPDATE_SQL = (
    "UPDATE EMP SET " + ", ".join(f"{c} = ?" for c in COLUMNS) + " "
    "WHERE EMPNO = ?"
)
DELETE_SQL = "DELETE FROM EMP WHERE EMPNO = ?"

CENTS = Decimal("0.01")


class BoundStatement(NamedTuple):
    sql: str
    params: tuple


def _column_values(e: Employee) -> tuple:
    # WORKDEPT is not maintained by this application
    deptno = None
    return (
        e.birthdate,
        e.bonus,
        e.comm,
        e.edlevel,
        e.empno,
        e.firstname,
        e.hire_date,
        e.job,
        e.lastname,
        e.midinit,
        e.phoneno,
        e.salary,
        e.sex,
        deptno,
    )


def find_stmt(last_name: str) -> BoundStatement:
    """Case-insensitive prefix search on LASTNAME."""
    return BoundStatement(FIND_SQL, ((last_name or "").upper() + "%",))


def insert_stmt(e: Employee) -> BoundStatement:
    return BoundStatement(INSERT_SQL, _column_values(e))


def update_stmt(e: Employee) -> BoundStatement:
    """
    14 SET values followed by the WHERE key.

    Both EMPNO positions come from ``e.empno`` at call time, so an update
    rewrites the row it matches with the same number. Renumbering an employee
    needs a delete followed by a create.
    """
    return BoundStatement(UPDATE_SQL, _column_values(e) + (e.empno,))


def delete_stmt(e: Employee) -> BoundStatement:
    return BoundStatement(DELETE_SQL, (e.empno,))


def _to_date(v: Any) -> date | None:
    if v is None or v == "":
        return None
    if isinstance(v, date):
        return v
    return date.fromisoformat(str(v)[:10])


def _to_decimal(v: Any) -> Decimal | None:
    if v is None or v == "":
        return None
    return Decimal(str(v))


def _to_money(v: Any) -> Decimal | None:
    # DECIMAL(9,2): NUMERIC affinity drops trailing zeros on the way in
    d = _to_decimal(v)
    return None if d is None else d.quantize(CENTS)


def _to_str(v: Any) -> str | None:
    return None if v is None else str(v)


def row_to_employee(row: Mapping[str, Any]) -> Employee:
    """Build an Employee from a row keyed by EMP column name (sqlite3.Row, csv.DictReader row, dict)."""
    edlevel = row["EDLEVEL"]
    return Employee(
        birthdate=_to_date(row["BIRTHDATE"]),
        bonus=_to_money(row["BONUS"]),
        comm=_to_money(row["COMM"]),
        edlevel=0 if edlevel is None or edlevel == "" else int(edlevel),
        empno=_to_str(row["EMPNO"]),
        firstname=row["FIRSTNME"],
        hire_date=_to_date(row["HIREDATE"]),
        job=row["JOB"],
        lastname=row["LASTNAME"],
        midinit=row["MIDINIT"],
        phoneno=_to_str(row["PHONENO"]),
        salary=_to_money(row["SALARY"]),
        sex=row["SEX"],
        workdept=row["WORKDEPT"],
    )
