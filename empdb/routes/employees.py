from __future__ import annotations

import logging
import sqlite3
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..domain.employee import Employee
from ..errors import EmployeeNotFound
from ..services.employee_svc import (
    create_employee,
    delete_employee,
    find_employees_by_last_name,
    update_employee,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class EmployeeBody(BaseModel):
    empno: str
    lastname: Optional[str] = None
    firstname: Optional[str] = None
    midinit: Optional[str] = Field(None, max_length=1)
    job: Optional[str] = None
    birthdate: Optional[date] = None
    hire_date: Optional[date] = None
    phoneno: Optional[str] = None
    sex: Optional[str] = Field(None, max_length=1)
    salary: Optional[Decimal] = None
    bonus: Optional[Decimal] = None
    comm: Optional[Decimal] = None
    edlevel: Optional[int] = Field(None, ge=0)

    def to_employee(self) -> Employee:
        data = self.model_dump()
        data["edlevel"] = data["edlevel"] or 0
        return Employee(**data)


class DeleteBody(BaseModel):
    empno: str
    lastname: Optional[str] = None


def _run(fn, employee: Employee, use_jta: Optional[bool]) -> int:
    try:
        return fn(employee, use_jta=use_jta)
    except EmployeeNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except sqlite3.IntegrityError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception:
        logger.exception(f"{fn.__name__} failed for {employee.empno}")
        raise HTTPException(status_code=500, detail="internal error")


@router.get("/api/employees/search")
def api_employees_search(last_name: str = ""):
    items = find_employees_by_last_name(last_name)
    return {"items": [e.to_dict() for e in items]}


@router.post("/api/employees/create", status_code=201)
def api_employees_create(body: EmployeeBody, use_jta: Optional[bool] = None):
    emp = body.to_employee()
    _run(create_employee, emp, use_jta)
    return {"message": "ok", "employee": emp.to_dict()}


@router.post("/api/employees/update")
def api_employees_update(body: EmployeeBody, use_jta: Optional[bool] = None):
    emp = body.to_employee()
    affected = _run(update_employee, emp, use_jta)
    return {"message": "ok", "updated": affected, "employee": emp.to_dict()}


@router.post("/api/employees/delete")
def api_employees_delete(body: DeleteBody, use_jta: Optional[bool] = None):
    emp = Employee(empno=body.empno, lastname=body.lastname)
    affected = _run(delete_employee, emp, use_jta)
    return {"message": "ok", "deleted": affected}
