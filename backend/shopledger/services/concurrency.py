# Overview: Atomic-unit helpers for ledger writes: write-lock acquisition, row locking, retry.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


class TransientStoreError(RuntimeError):
    """
    The store could not complete the unit in time (lock timeout, deadlock,
    dropped connection, optimistic-lock clash). Nothing was committed; the
    caller may retry.
    """
    retryable = True


class NestedUnitError(RuntimeError):
    """
    An atomic unit was opened on a session that still holds uncommitted
    writes. Programming error: never retried.
    """


def _has_uncommitted_writes(session) -> bool:
    if session.new or session.dirty or session.deleted:
        return True
    if db.engine.dialect.name != "sqlite" or not session.in_transaction():
        return False
    # pysqlite opens its transaction on the first DML, so an open one means
    # something was flushed and not committed.
    return bool(session.connection().connection.driver_connection.in_transaction)


def begin_atomic() -> None:
    """
    Open the write side of an atomic unit on the current session.

    SQLite: BEGIN IMMEDIATE takes the database write lock up front, waiting
    at most the driver busy timeout.
    PostgreSQL: lock_timeout is scoped to this transaction so a blocked row
    lock aborts instead of hanging.

    Raises NestedUnitError if the session carries pending or flushed writes.
    """
    if _has_uncommitted_writes(db.session()):
        raise NestedUnitError(
            "Atomic unit opened with uncommitted changes on the session; commit or roll back first"
        )

    dialect = db.engine.dialect.name
    if dialect == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))
    elif dialect == "postgresql":
        timeout_ms = int(current_app.config.get("LEDGER_LOCK_TIMEOUT_MS", 5000))
        db.session.execute(
            text("SELECT set_config('lock_timeout', :timeout, true)"),
            {"timeout": f"{timeout_ms}ms"},
        )


def lock_for_update(query):
    """
    Apply row-level locking for critical operations and refresh any stale
    identity-map copy of the locked rows.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_atomic() covers it there.
    """
    return query.with_for_update().populate_existing()


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Execute one atomic unit, rolling back on any failure.

    OperationalError (locks, deadlocks, lost connections) and StaleDataError
    (optimistic locking conflicts) are retried with exponential backoff; when
    attempts run out they surface as TransientStoreError. Every other error is
    rolled back and re-raised unchanged.
    """
    if attempts is None:
        attempts = int(current_app.config.get("LEDGER_RETRY_ATTEMPTS", 3))
    if backoff_base is None:
        backoff_base = float(current_app.config.get("LEDGER_RETRY_BACKOFF", 0.1))
    attempts = max(attempts, 1)

    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                current_app.logger.error(
                    "Atomic unit failed after %d attempts: %s", attempts, exc
                )
                raise TransientStoreError("Store temporarily unavailable; retry the request") from exc
            current_app.logger.warning(
                "Transient store failure (attempt %d/%d): %s", attempt + 1, attempts, exc
            )
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
