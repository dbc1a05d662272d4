from __future__ import annotations

from dataclasses import dataclass, replace, asdict
from datetime import date
from decimal import Decimal

from ..errors import MissingEmployeeNumber


@dataclass
class Employee:
    """One row of the EMP table.

    ``workdept`` is carried for reads only; writes always store NULL.
    ``edlevel`` is never None: an absent value is 0.
    """
    empno: str | None = None
    lastname: str | None = None
    firstname: str | None = None
    midinit: str | None = None
    job: str | None = None
    workdept: str | None = None
    birthdate: date | None = None
    hire_date: date | None = None
    phoneno: str | None = None
    sex: str | None = None
    salary: Decimal | None = None
    bonus: Decimal | None = None
    comm: Decimal | None = None
    edlevel: int = 0

    def to_dict(self) -> dict:
        out = asdict(self)
        for k in ("birthdate", "hire_date"):
            if out[k] is not None:
                out[k] = out[k].isoformat()
        for k in ("salary", "bonus", "comm"):
            if out[k] is not None:
                out[k] = str(out[k])
        return out


def normalize_sex(value: str | None) -> str | None:
    return value.upper() if value is not None else None


def normalized_copy(employee: Employee) -> Employee:
    """Copy of ``employee`` with the sex code uppercased; the argument is untouched."""
    return replace(employee, sex=normalize_sex(employee.sex))


def require_empno(employee: Employee) -> str:
    empno = employee.empno
    if empno is None or not str(empno).strip():
        raise MissingEmployeeNumber("employee number is required")
    return empno


def log_message(action: str, employee: Employee) -> str:
    """Text appended to the activity queue, e.g. ``Added 000010 with last name: HAAS``."""
    return f"{action} {employee.empno} with last name: {employee.lastname}"
