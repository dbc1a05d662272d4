from __future__ import annotations

# empdb/db.py
import os
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterator, Sequence

import yaml

from . import jta
from .errors import TransactionError

# DB path resolution order:
# 1) env EMPDB_DB_PATH / EMPDB_QUEUE_PATH (highest priority)
# 2) config.yaml test_db_path / test_queue_db_path when running under tests
# 3) config.yaml db_path / queue_db_path
# 4) fallback: <project root>/employee.db, queue store next to it as tsq.db
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "employee.db")
SCHEMA_PATH = os.path.join(_PROJECT_ROOT, "schema.sql")

# Schema name of the queue store on relational connections
QUEUE_SCHEMA = "tsq"

sqlite3.register_adapter(Decimal, str)
sqlite3.register_adapter(date, lambda d: d.isoformat())


def _read_config_yaml() -> dict:
    cfg_path = os.environ.get("EMPDB_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    out = {}
    for k in ("db_path", "test_db_path", "queue_db_path", "test_queue_db_path"):
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    return out


def _is_test() -> bool:
    return (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)


def _ensure_dir(path: str) -> str:
    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)
    return path


def get_db_path() -> str:
    env_path = os.environ.get("EMPDB_DB_PATH")
    cfg = _read_config_yaml()
    if env_path:
        path = env_path
    elif _is_test() and cfg.get("test_db_path"):
        path = cfg["test_db_path"]
    elif cfg.get("db_path"):
        path = cfg["db_path"]
    else:
        path = _ROOT_DB
    return _ensure_dir(path)


def get_queue_path(db_path: str | None = None) -> str:
    env_path = os.environ.get("EMPDB_QUEUE_PATH")
    cfg = _read_config_yaml()
    if env_path:
        path = env_path
    elif _is_test() and cfg.get("test_queue_db_path"):
        path = cfg["test_queue_db_path"]
    elif cfg.get("queue_db_path"):
        path = cfg["queue_db_path"]
    else:
        path = os.path.join(os.path.dirname(db_path or get_db_path()) or ".", "tsq.db")
    return _ensure_dir(path)


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Autocommit SQLite connection for schema, config and admin work.
    Employee writes go through DataSource instead.
    """
    path = db_path or get_db_path()
    conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
    try:
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


def ensure_schema(db_path: str | None = None, queue_path: str | None = None) -> None:
    from .logs import ensure_queue_schema

    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        ddl = f.read()
    with get_conn(db_path) as conn:
        conn.executescript(ddl)
    ensure_queue_schema(queue_path or get_queue_path(db_path))


@dataclass
class PoolStats:
    """Acquire/release counters for connections and statements."""
    connections_acquired: int = 0
    connections_released: int = 0
    statements_acquired: int = 0
    statements_released: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def bump(self, name: str) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)

    @property
    def balanced(self) -> bool:
        return (
            self.connections_acquired == self.connections_released
            and self.statements_acquired == self.statements_released
        )


class Statement:
    """A prepared SQL text bound to one cursor."""

    def __init__(self, conn: "Connection", sql: str):
        self.sql = sql
        self._conn = conn
        self._cur = conn.raw.cursor()
        self.closed = False
        conn.stats.bump("statements_acquired")

    def execute_query(self, params: Sequence = ()) -> list[sqlite3.Row]:
        return self._cur.execute(self.sql, tuple(params)).fetchall()

    def execute_update(self, params: Sequence = ()) -> int:
        """Run a DML statement and return the number of affected rows."""
        self._cur.execute(self.sql, tuple(params))
        return self._cur.rowcount

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._cur.close()
        finally:
            self._conn.stats.bump("statements_released")


class Connection:
    """
    Relational connection handed out by DataSource.

    The underlying sqlite3 connection runs in deferred mode: the first DML
    statement opens a transaction implicitly, and closing without commit
    discards it. When obtained inside an active UserTransaction the
    connection is enlisted and may only be completed by that transaction.
    """

    def __init__(self, raw: sqlite3.Connection, stats: PoolStats):
        self.raw = raw
        self.stats = stats
        self.enlisted = False
        self.closed = False

    def prepare_statement(self, sql: str) -> Statement:
        return Statement(self, sql)

    def commit(self) -> None:
        if self.enlisted:
            raise TransactionError("connection is enlisted in a UserTransaction; commit through the transaction")
        self.raw.commit()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.raw.close()
        finally:
            self.stats.bump("connections_released")


class ConnectionResource:
    """Enlists a Connection in a UserTransaction."""

    def __init__(self, conn: Connection):
        self.conn = conn

    def prepare(self) -> None:
        # SQLite has no prepared state; the work already sits in the open transaction.
        pass

    def commit(self) -> None:
        self.conn.raw.commit()

    def rollback(self) -> None:
        if not self.conn.closed:
            self.conn.raw.rollback()


class DataSource:
    """Hands out Connections to the employee database with the queue store attached."""

    def __init__(self, db_path: str | None = None, queue_path: str | None = None, timeout: float = 5.0):
        self.db_path = db_path or get_db_path()
        self.queue_path = queue_path or get_queue_path(self.db_path)
        self.timeout = timeout
        self.stats = PoolStats()

    def get_connection(self) -> Connection:
        raw = sqlite3.connect(self.db_path, timeout=self.timeout, check_same_thread=False)
        try:
            raw.row_factory = sqlite3.Row
            raw.execute(f"ATTACH DATABASE ? AS {QUEUE_SCHEMA}", (self.queue_path,))
        except Exception:
            raw.close()
            raise
        conn = Connection(raw, self.stats)
        self.stats.bump("connections_acquired")

        utx = jta.current_transaction()
        if utx is not None:
            try:
                utx.enlist(ConnectionResource(conn))
            except Exception:
                conn.close()
                raise
            conn.enlisted = True
        return conn


def get_data_source() -> DataSource:
    return DataSource(get_db_path(), get_queue_path())
