"""
Id allocation for tickets and updates.

Each sequence is a row in ``sequences``. ``next_value`` bumps it with a single
``UPDATE ... SET value = value + 1``; the row stays locked by the store until
the caller's transaction ends, so concurrent allocators queue behind each
other, whether they run in this process or another one. The increment is
undone if the caller rolls back, so committed ids have no gaps.

``run_in_transaction`` is the retry boundary for everything that allocates:
lock timeouts, deadlocks and seeding races roll the whole unit back and run it
again, up to ``SEQUENCE_RETRY_ATTEMPTS`` times, before surfacing ``Conflict``.
"""
import logging
import random
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import Conflict
from app.models.sequence import Sequence
from app.models.ticket import Ticket
from app.models.update import Update

logger = logging.getLogger(__name__)

T = TypeVar("T")

TICKET = "ticket"
UPDATE = "update"

# sequence name -> table whose ids it hands out
SEQUENCE_TABLES = {
    TICKET: Ticket,
    UPDATE: Update,
}

# serialization_failure, deadlock_detected, lock_not_available, unique_violation
RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03", "23505"}
RETRYABLE_MESSAGES = ("database is locked", "unique constraint failed", "deadlock")


def _is_retryable(exc: DBAPIError) -> bool:
    if exc.connection_invalidated:
        return True
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in RETRYABLE_SQLSTATES:
        return True
    text = str(orig).lower()
    return any(m in text for m in RETRYABLE_MESSAGES)


def _seed(db: Session, name: str) -> None:
    """Create the counter row, starting after the highest id already stored."""
    model = SEQUENCE_TABLES[name]
    start = db.query(func.coalesce(func.max(model.id), 0)).scalar()
    db.add(Sequence(name=name, value=int(start)))
    try:
        db.flush()
    except IntegrityError:
        raise Conflict(f"Sequence {name!r} was seeded concurrently")
    logger.info("Seeded sequence %s at %s", name, start)


def next_value(db: Session, name: str) -> int:
    """
    Allocate the next id of ``name`` inside the caller's open transaction.

    Unique and strictly increasing per name across every process sharing the
    database, provided the caller commits through ``run_in_transaction``.
    """
    if name not in SEQUENCE_TABLES:
        raise ValueError(f"Unknown sequence: {name}")

    bump = (
        update(Sequence)
        .where(Sequence.name == name)
        .values(value=Sequence.value + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(bump)
    if result.rowcount == 0:
        _seed(db, name)
        db.execute(bump)

    value = db.execute(select(Sequence.value).where(Sequence.name == name)).scalar_one()
    return int(value)


def ensure_sequences(db: Session) -> None:
    """Seed any missing counter rows. Safe to run from several processes at startup."""
    for name in SEQUENCE_TABLES:
        if db.get(Sequence, name) is not None:
            continue
        try:
            _seed(db, name)
            db.commit()
        except Conflict:
            db.rollback()


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    attempts: Optional[int] = None,
) -> T:
    """
    Run ``work`` and commit, rolling back on any failure.

    Retryable store errors re-run ``work`` from scratch in a new transaction;
    everything else propagates after the rollback.
    """
    attempts = attempts or settings.SEQUENCE_RETRY_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except Conflict as e:
            db.rollback()
            logger.warning("Allocation conflict (attempt %s/%s): %s", attempt, attempts, e)
        except DBAPIError as e:
            db.rollback()
            if not _is_retryable(e):
                raise
            logger.warning("Retryable store error (attempt %s/%s): %s", attempt, attempts, e.orig)
        except Exception:
            db.rollback()
            raise
        if attempt < attempts:
            time.sleep(random.uniform(0, 0.02 * attempt))

    logger.error("Giving up after %s attempts", attempts)
    raise Conflict()
