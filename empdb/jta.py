"""
Explicitly demarcated transactions spanning several resources.

A UserTransaction is obtained by name through ``lookup()`` and made current
for the calling context by ``begin()``. Resources opened while it is current
(relational connections, queue writers) enlist themselves; ``commit()`` runs a
prepare pass over every enlisted resource and then commits each one. If any
prepare fails, every resource is rolled back and the failure is re-raised.
"""
from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Callable, Protocol

from .errors import LookupFailure, RollbackError, TransactionError

logger = logging.getLogger(__name__)

USER_TRANSACTION_NAME = "java:comp/UserTransaction"

STATUS_ACTIVE = "ACTIVE"
STATUS_MARKED_ROLLBACK = "MARKED_ROLLBACK"
STATUS_PREPARING = "PREPARING"
STATUS_COMMITTING = "COMMITTING"
STATUS_COMMITTED = "COMMITTED"
STATUS_ROLLEDBACK = "ROLLEDBACK"
STATUS_NO_TRANSACTION = "NO_TRANSACTION"


class XAResource(Protocol):
    def prepare(self) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


_current: ContextVar["UserTransaction | None"] = ContextVar("empdb_user_transaction", default=None)


def current_transaction() -> "UserTransaction | None":
    """The UserTransaction begun in this context and not yet completed, if any."""
    return _current.get()


class UserTransaction:
    def __init__(self):
        self.status = STATUS_NO_TRANSACTION
        self._resources: list[XAResource] = []
        self._token = None

    @property
    def active(self) -> bool:
        return self.status in (STATUS_ACTIVE, STATUS_MARKED_ROLLBACK)

    def begin(self) -> None:
        if _current.get() is not None:
            raise TransactionError("nested transactions are not supported")
        self._resources = []
        self.status = STATUS_ACTIVE
        self._token = _current.set(self)

    def enlist(self, resource: XAResource) -> None:
        if not self.active:
            raise TransactionError(f"cannot enlist resource, transaction status is {self.status}")
        self._resources.append(resource)

    def set_rollback_only(self) -> None:
        if not self.active:
            raise TransactionError("no transaction is active")
        self.status = STATUS_MARKED_ROLLBACK

    def commit(self) -> None:
        if not self.active:
            raise TransactionError("commit called without an active transaction")
        if self.status == STATUS_MARKED_ROLLBACK:
            self.rollback()
            raise RollbackError("transaction was marked rollback-only")

        self.status = STATUS_PREPARING
        try:
            for res in self._resources:
                res.prepare()
        except Exception:
            self._rollback_all()
            raise

        self.status = STATUS_COMMITTING
        try:
            for res in self._resources:
                res.commit()
        except Exception:
            # Resources committed before the failure stay committed.
            logger.error(f"commit failed part way through {len(self._resources)} enlisted resources")
            self._rollback_all()
            raise
        self.status = STATUS_COMMITTED
        self._end()

    def rollback(self) -> None:
        if self.status in (STATUS_NO_TRANSACTION, STATUS_COMMITTED, STATUS_ROLLEDBACK):
            raise TransactionError("rollback called without an active transaction")
        first_err = self._rollback_all()
        if first_err is not None:
            raise first_err

    def _rollback_all(self) -> Exception | None:
        first_err: Exception | None = None
        for res in reversed(self._resources):
            try:
                res.rollback()
            except Exception as e:
                logger.warning(f"resource rollback failed: {e}")
                if first_err is None:
                    first_err = e
        self.status = STATUS_ROLLEDBACK
        self._end()
        return first_err

    def _end(self) -> None:
        self._resources = []
        if self._token is not None:
            _current.reset(self._token)
            self._token = None


_registry: dict[str, Callable[[], object]] = {USER_TRANSACTION_NAME: UserTransaction}


def bind(name: str, factory: Callable[[], object]) -> None:
    _registry[name] = factory


def unbind(name: str) -> None:
    _registry.pop(name, None)


def lookup(name: str):
    try:
        factory = _registry[name]
    except KeyError:
        raise LookupFailure(f"name not bound: {name}") from None
    return factory()
