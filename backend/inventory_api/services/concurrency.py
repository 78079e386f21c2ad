# Overview: Unit-of-work helper and lock-wait bounds for stock mutations.

from __future__ import annotations

import logging
from contextlib import contextmanager

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from ..extensions import db

logger = logging.getLogger(__name__)


def _apply_lock_timeout() -> None:
    """
    Bound how long this unit of work may wait on a row lock.

    PostgreSQL: SET LOCAL lock_timeout (scoped to the current transaction).
    SQLite: handled by the connection busy timeout set in create_app().
    """
    seconds = current_app.config.get("STOCK_LOCK_TIMEOUT_SECONDS")
    if not seconds:
        return
    if db.session.get_bind().dialect.name == "postgresql":
        db.session.execute(text(f"SET LOCAL lock_timeout = '{int(seconds * 1000)}ms'"))


@contextmanager
def atomic():
    """
    Atomic unit of work on the request session.

    Commits when the block exits cleanly. Any exception rolls everything
    back; SQLAlchemy faults are re-raised as StorageError so callers never see
    driver detail. No retries: the caller decides what to do next.
    """
    try:
        _apply_lock_timeout()
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Unit of work aborted by storage fault")
        raise StorageError() from exc
    except BaseException:
        db.session.rollback()
        raise
