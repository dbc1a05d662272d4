"""
Append-only transactional queues (the activity log).

Records live in their own SQLite file, separate from the employee database.
``TSQ.write_string`` joins the unit of work that is current for the caller:
inside a local scope the record is written through the scope's connection
(which has the queue file attached), inside an explicit transaction it is
buffered and written by the enlisted ``QueueResource`` at prepare time.
Outside any scope the write is committed on its own.
"""
from __future__ import annotations

import datetime as dt
import sqlite3

from .db import get_conn, get_queue_path
from .errors import QueueError

MAX_NAME_LEN = 16

DDL = """
CREATE TABLE IF NOT EXISTS queue_record (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  queue TEXT NOT NULL,
  ts TEXT NOT NULL,
  message TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_queue_record_queue ON queue_record(queue, id);
"""


def ensure_queue_schema(queue_path: str | None = None):
    with get_conn(queue_path or get_queue_path()) as conn:
        conn.executescript(DDL)


def insert_sql(schema: str = "main") -> str:
    return f"INSERT INTO {schema}.queue_record(queue, ts, message) VALUES(?,?,?)"


def _now() -> str:
    return dt.datetime.now().astimezone().isoformat()


def record_params(queue: str, message: str) -> tuple:
    return (queue, _now(), message)


class TSQ:
    def __init__(self, name: str | None = None, queue_path: str | None = None):
        self.name: str | None = None
        self.queue_path = queue_path
        if name is not None:
            self.set_name(name)

    def set_name(self, name: str) -> None:
        if not name or len(name) > MAX_NAME_LEN:
            raise QueueError(f"invalid queue name: {name!r}")
        self.name = name

    def write_string(self, message: str) -> None:
        if self.name is None:
            raise QueueError("queue name not set")
        if not isinstance(message, str):
            raise QueueError("queue records must be strings")

        from .uow import current_scope

        scope = current_scope()
        if scope is not None:
            scope.append_log(self.name, message)
            return
        with get_conn(self.queue_path or get_queue_path()) as conn:
            conn.execute(insert_sql(), record_params(self.name, message))


class QueueResource:
    """
    Queue writes buffered for an explicit transaction.

    prepare() takes the exclusive lock on the queue file and inserts the buffered
    records without committing. With that lock held, readers cannot make the
    later COMMIT fail. commit() and rollback() finish that local transaction.
    """

    def __init__(self, queue_path: str, timeout: float = 5.0):
        self.queue_path = queue_path
        self.timeout = timeout
        self.pending: list[tuple] = []
        self._conn: sqlite3.Connection | None = None

    def append(self, queue: str, message: str) -> None:
        self.pending.append(record_params(queue, message))

    def prepare(self) -> None:
        if not self.pending:
            return
        self._conn = sqlite3.connect(self.queue_path, timeout=self.timeout, isolation_level=None)
        self._conn.execute("BEGIN EXCLUSIVE")
        self._conn.executemany(insert_sql(), self.pending)

    def commit(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.execute("COMMIT")
        finally:
            self._release()

    def rollback(self) -> None:
        if self._conn is None:
            self.pending = []
            return
        try:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
        finally:
            self._release()

    def _release(self) -> None:
        self.pending = []
        conn, self._conn = self._conn, None
        conn.close()


def search_queue(queue: str | None, page: int, size: int, queue_path: str | None = None):
    """Committed queue records, newest first. Returns (total, items)."""
    where = ""
    params: dict = {}
    if queue:
        where = " WHERE queue = :queue"
        params["queue"] = queue
    sql = f"SELECT id, queue, ts, message FROM queue_record{where} ORDER BY id DESC LIMIT :limit OFFSET :offset"
    count_sql = f"SELECT COUNT(1) AS cnt FROM queue_record{where}"
    with get_conn(queue_path or get_queue_path()) as conn:
        total = conn.execute(count_sql, params).fetchone()["cnt"]
        rows = conn.execute(sql, {**params, "limit": size, "offset": (page - 1) * size}).fetchall()
        return total, [dict(r) for r in rows]
