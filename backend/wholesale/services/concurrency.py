# Overview: Row locking and retry helpers for the order, invoice and credit write paths.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger("wholesale.db")


def lock_for_update(query):
    """
    Row-level lock for invoice generation and credit application.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; Postgres honors it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a unit of DB work, retrying on lock contention (OperationalError)
    and optimistic version conflicts (StaleDataError).

    The session is rolled back before each retry; the last failure is re-raised.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            logger.warning("Retrying after %s (attempt %d of %d)", type(exc).__name__, attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))
