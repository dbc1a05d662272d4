"""
Unit-of-work scopes for employee writes.

Two interchangeable ways to make a relational write and a queue append
succeed or fail together:

- ImplicitScope: the relational connection is the unit of work. Nothing is
  begun explicitly; the queue append goes through the same connection and
  ``commit()`` commits that connection. If the scope ends without a commit the
  connection is closed and SQLite discards the open transaction.
- ExplicitScope: a UserTransaction is looked up and begun before any write;
  the connection and the queue writer enlist in it and ``commit()`` commits
  through it. Ending without a commit rolls the transaction back.

Either way the connection is released exactly once when the scope exits.
"""
from __future__ import annotations

import logging
from contextvars import ContextVar

from . import jta
from .db import QUEUE_SCHEMA, Connection, DataSource
from .logs import QueueResource, insert_sql, record_params

logger = logging.getLogger(__name__)

_current_scope: ContextVar["TransactionScope | None"] = ContextVar("empdb_scope", default=None)


def current_scope() -> "TransactionScope | None":
    return _current_scope.get()


class TransactionScope:
    def __init__(self, ds: DataSource):
        self.ds = ds
        self.committed = False
        self._conn: Connection | None = None
        self._token = None

    def __enter__(self) -> "TransactionScope":
        self._token = _current_scope.set(self)
        try:
            self.begin()
        except BaseException:
            self._reset()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self.close()
        except Exception:
            if exc_type is None:
                raise
            # keep the original failure; the cleanup error is only reported
            logger.exception(f"cleanup failed while handling {exc_type.__name__}")
        return False

    def begin(self) -> None:
        pass

    def connection(self) -> Connection:
        if self._conn is None:
            self._conn = self.ds.get_connection()
        return self._conn

    def append_log(self, queue: str, message: str) -> None:
        raise NotImplementedError

    def commit(self) -> None:
        raise NotImplementedError

    def abort(self) -> None:
        pass

    def close(self) -> None:
        try:
            if not self.committed:
                self.abort()
        finally:
            try:
                if self._conn is not None:
                    self._conn.close()
            finally:
                self._reset()

    def _reset(self) -> None:
        if self._token is not None:
            _current_scope.reset(self._token)
            self._token = None


class ImplicitScope(TransactionScope):
    def append_log(self, queue: str, message: str) -> None:
        stmt = self.connection().prepare_statement(insert_sql(QUEUE_SCHEMA))
        try:
            stmt.execute_update(record_params(queue, message))
        finally:
            stmt.close()

    def commit(self) -> None:
        if self._conn is not None:
            self._conn.commit()
        self.committed = True

    def abort(self) -> None:
        # No rollback call: closing the connection discards the open transaction.
        if self._conn is not None:
            logger.warning("unit of work ended without commit; changes are discarded")


class ExplicitScope(TransactionScope):
    def __init__(self, ds: DataSource, name: str = jta.USER_TRANSACTION_NAME):
        super().__init__(ds)
        self.name = name
        self.utx = None
        self._queue: QueueResource | None = None

    def begin(self) -> None:
        self.utx = jta.lookup(self.name)
        self.utx.begin()

    def append_log(self, queue: str, message: str) -> None:
        if self._queue is None:
            res = QueueResource(self.ds.queue_path, self.ds.timeout)
            self.utx.enlist(res)
            self._queue = res
        self._queue.append(queue, message)

    def commit(self) -> None:
        self.utx.commit()
        self.committed = True

    def abort(self) -> None:
        if self.utx is not None and self.utx.active:
            logger.warning("transaction ended without commit; rolling back")
            self.utx.rollback()


def open_scope(ds: DataSource, use_jta: bool) -> TransactionScope:
    return ExplicitScope(ds) if use_jta else ImplicitScope(ds)
