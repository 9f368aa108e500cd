"""Map SQLAlchemy failures onto application errors. Lock races become conflicts; the rest are storage failures."""

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from palletflow.application.exceptions import (
    ApplicationError,
    ConcurrencyConflictError,
    StorageFailureError,
)

# serialization_failure, deadlock_detected, lock_not_available
_LOCK_SQLSTATES = frozenset({"40001", "40P01", "55P03"})
_LOCK_MARKERS = (
    "database is locked",
    "database table is locked",
    "deadlock",
    "could not serialize",
    "lock timeout",
    "could not obtain lock",
)


def is_lock_conflict(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, StaleDataError):
        return True
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _LOCK_SQLSTATES:
        return True
    text = str(orig).lower()
    return any(marker in text for marker in _LOCK_MARKERS)


def translate_error(exc: SQLAlchemyError) -> ApplicationError:
    if is_lock_conflict(exc):
        return ConcurrencyConflictError(f"Concurrent update on pallet row: {exc.__class__.__name__}")
    return StorageFailureError(f"Storage operation failed: {exc.__class__.__name__}")
