"""
Database helpers for the record-store repositories.

PostgreSQL gets per-transaction `lock_timeout` / `statement_timeout` values.
SQLite has neither; its connection `timeout` option bounds lock waits and
`transaction_mode = IMMEDIATE` makes every transaction take the write lock
up front.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from django.db import DEFAULT_DB_ALIAS, connections, transaction  # type: ignore
from django.db.utils import OperationalError  # type: ignore

from shared.domain.exceptions import StoreTimeout

logger = logging.getLogger(__name__)

# query_canceled (statement_timeout) and lock_not_available (lock_timeout)
_TIMEOUT_SQLSTATES = frozenset({"57014", "55P03"})
_SQLITE_LOCK_MESSAGES = ("database is locked", "database table is locked")


def is_timeout_error(exc: OperationalError) -> bool:
    """True if the error is a lock-wait or statement timeout rather than a real failure."""

    cause = exc.__cause__
    code = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if code in _TIMEOUT_SQLSTATES:
        return True
    message = str(exc).lower()
    return any(fragment in message for fragment in _SQLITE_LOCK_MESSAGES)


def set_local_timeouts(
    *,
    statement_timeout_ms: int | None = None,
    lock_timeout_ms: int | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> None:
    """Bound the current PostgreSQL transaction. No-op on other backends."""

    connection = connections[using]
    if connection.vendor != "postgresql":
        return
    if not connection.in_atomic_block:
        raise RuntimeError("SET LOCAL timeouts only make sense inside transaction.atomic()")

    with connection.cursor() as cursor:
        if statement_timeout_ms:
            cursor.execute(f"SET LOCAL statement_timeout = {int(statement_timeout_ms)}")
        if lock_timeout_ms:
            cursor.execute(f"SET LOCAL lock_timeout = {int(lock_timeout_ms)}")


@contextmanager
def bounded_read(timeout_ms: int | None, *, using: str = DEFAULT_DB_ALIAS) -> Iterator[None]:
    """
    Run record-store reads under a statement timeout.

    Raises StoreTimeout when the bound is exceeded or the store stays locked.
    Other database errors propagate unchanged.
    """

    connection = connections[using]
    try:
        if connection.vendor == "postgresql":
            with transaction.atomic(using=using):
                set_local_timeouts(statement_timeout_ms=timeout_ms, using=using)
                yield
        else:
            yield
    except OperationalError as exc:
        if not is_timeout_error(exc):
            raise
        logger.warning("Record store read exceeded %sms: %s", timeout_ms, exc)
        raise StoreTimeout(f"Record store did not answer within {timeout_ms}ms") from exc
