# Overview: Transaction helpers for units of work that race on shared rows.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Correctness on SQLite comes from the conditional decrement and the
    version_id_col checks, not from this lock.
    """
    return query.with_for_update()


def _default_attempts() -> int:
    return int(current_app.config.get("CONFLICT_RETRY_ATTEMPTS", 2))


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.05):
    """
    Execute a unit of work, retrying on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). The session is rolled back before every
    retry and on any other failure, so a failed unit of work never leaves
    partial changes behind. When retries are exhausted the conflict is
    raised as ConflictError.
    """
    if attempts is None:
        attempts = _default_attempts()

    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise ConflictError(
                    "The record was modified concurrently; please retry"
                ) from exc
            current_app.logger.warning("Concurrent update conflict, retrying (attempt %d/%d): %s",
                           attempt + 1, attempts, exc)
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
