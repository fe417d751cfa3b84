"""Transaction boundary for engine operations

Engine functions run inside their caller's transaction. `atomically` is the
boundary used by the web and CLI layers: it opens the transaction, commits
on success, and re-runs the whole operation when the database reports a
serialization conflict.
"""

from __future__ import annotations

import logging
import typing as t

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from .errors import ConcurrencyError

logger = logging.getLogger(__name__)

TReturn = t.TypeVar("TReturn")

# serialization_failure, deadlock_detected, lock_not_available, unique_violation
RetryableSQLStates = frozenset({"40001", "40P01", "55P03", "23505"})


def is_conflict(ex: DBAPIError) -> bool:
    """Whether `ex` means another transaction won a race rather than a bug"""
    sqlstate = getattr(ex.orig, "sqlstate", None)
    if sqlstate is not None:
        return sqlstate in RetryableSQLStates

    message = str(ex.orig).lower()
    if isinstance(ex, OperationalError):
        return "locked" in message or "busy" in message
    if isinstance(ex, IntegrityError):
        return "unique constraint failed" in message
    return False


def atomically(
    fn: t.Callable[..., TReturn],
    /,
    *args: t.Any,
    session: Session,
    attempts: int = 3,
    **kwargs: t.Any,
) -> TReturn:
    """Run `fn(*args, session=session, **kwargs)` in one transaction

    Conflicts are retried up to `attempts` times in total, after which
    `ConcurrencyError` is raised. Any other exception rolls the transaction
    back and propagates unchanged.
    """
    name = getattr(fn, "__qualname__", repr(fn))
    for attempt in range(1, attempts + 1):
        try:
            with session.begin():
                return fn(*args, session=session, **kwargs)
        except DBAPIError as ex:
            if not is_conflict(ex):
                raise
            if attempt == attempts:
                logger.error(
                    "transaction conflict persisted, giving up",
                    extra={"operation": name, "attempts": attempts, "error": str(ex.orig)},
                )
                raise ConcurrencyError(f"{name} conflicted with a concurrent change {attempts} times") from ex
            logger.warning(
                "transaction conflict, retrying",
                extra={"operation": name, "attempt": attempt, "error": str(ex.orig)},
            )
    raise AssertionError("unreachable")
