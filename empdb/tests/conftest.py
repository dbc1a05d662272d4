import os
import sys
import sqlite3
from datetime import date
from decimal import Decimal

import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    base = tmp_path_factory.mktemp("db")
    path = base / "employee_test.db"
    queue_path = base / "tsq_test.db"
    # Point empdb to these temp stores
    os.environ["EMPDB_DB_PATH"] = str(path)
    os.environ["EMPDB_QUEUE_PATH"] = str(queue_path)
    from empdb.db import ensure_schema
    ensure_schema(str(path), str(queue_path))
    return str(path)


@pytest.fixture(scope="session")
def tmp_queue_path(tmp_db_path):
    return os.environ["EMPDB_QUEUE_PATH"]


@pytest.fixture()
def ds(tmp_db_path, tmp_queue_path):
    from empdb.db import DataSource
    return DataSource(tmp_db_path, tmp_queue_path)


@pytest.fixture()
def client(tmp_db_path):
    from empdb.services.config_svc import ensure_default_config
    ensure_default_config()
    # Import app after DB ready so startup hooks can use it
    from empdb.api import app
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path, tmp_queue_path):
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("EMPDB_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    for path, tables in ((tmp_db_path, ["EMP", "config"]), (tmp_queue_path, ["queue_record"])):
        conn = sqlite3.connect(path)
        try:
            for t in tables:
                conn.execute(f"DELETE FROM {t}")
            conn.commit()
        finally:
            conn.close()
    yield


@pytest.fixture()
def make_employee():
    from empdb.domain.employee import Employee

    def _make(empno="999999", lastname="ZZZTEST", **kw):
        data = dict(
            empno=empno,
            lastname=lastname,
            firstname="TEST",
            midinit="Q",
            job="ANALYST",
            birthdate=date(1980, 5, 17),
            hire_date=date(2010, 1, 4),
            phoneno="1234",
            sex="f",
            salary=Decimal("52750.00"),
            bonus=Decimal("500.00"),
            comm=Decimal("1904.00"),
            edlevel=16,
        )
        data.update(kw)
        return Employee(**data)

    return _make


@pytest.fixture()
def queue_messages(tmp_queue_path):
    def _messages(queue="DB2LOG"):
        conn = sqlite3.connect(tmp_queue_path)
        try:
            rows = conn.execute(
                "SELECT message FROM queue_record WHERE queue=? ORDER BY id", (queue,)
            ).fetchall()
        finally:
            conn.close()
        return [r[0] for r in rows]

    return _messages


@pytest.fixture()
def emp_count(tmp_db_path):
    def _count(empno=None):
        conn = sqlite3.connect(tmp_db_path)
        try:
            if empno is None:
                return conn.execute("SELECT COUNT(1) FROM EMP").fetchone()[0]
            return conn.execute("SELECT COUNT(1) FROM EMP WHERE EMPNO=?", (empno,)).fetchone()[0]
        finally:
            conn.close()

    return _count
