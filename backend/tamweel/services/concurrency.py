# Overview: Service-layer operations for concurrency; encapsulates business logic and database work.

from __future__ import annotations

import time
from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


UNIT_OF_WORK_KEY = "tamweel.unit_of_work_depth"
MAX_BACKOFF_SECONDS = 0.5


def _session_info() -> dict:
    return db.session().info


def unit_of_work_depth() -> int:
    return _session_info().get(UNIT_OF_WORK_KEY, 0)


def in_unit_of_work() -> bool:
    return unit_of_work_depth() > 0


@contextmanager
def unit_of_work():
    """
    Mark the current session as owned by an enclosing transaction or batch.

    Store calls made inside flush instead of committing, and do not retry on
    their own; the outermost unit commits, rolls back and retries.
    """
    info = _session_info()
    info[UNIT_OF_WORK_KEY] = info.get(UNIT_OF_WORK_KEY, 0) + 1
    try:
        yield
    finally:
        info[UNIT_OF_WORK_KEY] -= 1


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (compare-and-swap conflicts). Inside a unit of work the call runs once;
    the enclosing unit decides whether to retry.
    """
    if in_unit_of_work():
        return func()

    if attempts is None:
        attempts = current_app.config.get("STORE_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("STORE_RETRY_BACKOFF", 0.1)

    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            current_app.logger.debug("Retrying after conflict (attempt %s): %s", attempt + 1, exc)
            time.sleep(min(backoff_base * (2 ** attempt), MAX_BACKOFF_SECONDS))
    if last_exc:
        raise last_exc


def run_atomic(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Run `func` as one database transaction and commit it.

    Nested calls only flush, so the outermost caller owns the commit. Any
    error rolls the whole transaction back before propagating.
    """
    if in_unit_of_work():
        result = func()
        db.session.flush()
        return result

    def _op():
        try:
            with unit_of_work():
                result = func()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return result

    return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
