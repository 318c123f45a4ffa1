# Overview: Service-layer helpers for row locking and retrying stock-changing commits.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    SELECT ... FOR UPDATE on the rows whose stock is about to change
    (materials during production, a warung during a visit).

    SQLite has no row locks and ignores it; Postgres/MySQL honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run ``func`` and retry it after a rollback when the database reports a
    lock or a stale row.

    ``func`` must redo its reads from scratch: everything it loaded is gone
    after the rollback. Business exceptions (ValidationError, ProductionError,
    ...) pass straight through without a retry.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt == attempts:
                raise
            delay = backoff_base * (2 ** (attempt - 1))
            current_app.logger.warning(
                "Retrying after %s (attempt %s of %s, sleeping %.2fs)",
                type(exc).__name__, attempt, attempts, delay,
            )
            time.sleep(delay)
