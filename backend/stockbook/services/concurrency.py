# Overview: Retry helper for whole-store database writes; SQLite "database is locked" and dropped connections are retried.

from __future__ import annotations

import logging
import time
from typing import Callable

from sqlalchemy.exc import OperationalError

from ..extensions import db

logger = logging.getLogger(__name__)


def commit_with_retry(write: Callable[[], None], *, attempts: int = 3, backoff_base: float = 0.1) -> None:
    """
    Run `write` and commit the session, starting over on OperationalError.

    `write` must be safe to repeat: each attempt begins from a rolled-back
    session. The last failure propagates.
    """
    for attempt in range(1, attempts + 1):
        try:
            write()
            db.session.commit()
            return
        except OperationalError as exc:
            db.session.rollback()
            if attempt == attempts:
                logger.error("Database write failed after %d attempts: %s", attempts, exc.orig)
                raise
            delay = backoff_base * (2 ** (attempt - 1))
            logger.warning(
                "Database write failed (attempt %d/%d), retrying in %.2fs: %s",
                attempt, attempts, delay, exc.orig,
            )
            time.sleep(delay)
