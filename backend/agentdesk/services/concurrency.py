# Overview: Store-call guards: timeout/availability mapping and optimistic revision checks.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import OperationalError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from .results import CommissionError, ErrorKind


class ConcurrencyConflict(CommissionError):
    """Record was changed by another writer since it was read."""
    kind = ErrorKind.CONCURRENCY_CONFLICT
    default_message = "Commission was modified by another request; reload and retry"


class StoreUnavailable(CommissionError):
    """Store did not answer within the configured timeout (or refused the connection)."""
    kind = ErrorKind.STORE_UNAVAILABLE
    default_message = "Commission store is unavailable; try again later"


class StoreError(CommissionError):
    """Any other persistence failure. The driver message is logged, not surfaced."""
    kind = ErrorKind.STORE_ERROR
    default_message = "Commission store error"


def _translate(operation: str, exc: Exception) -> CommissionError:
    if isinstance(exc, StaleDataError):
        current_app.logger.warning("Optimistic revision conflict during %s: %s", operation, exc)
        return ConcurrencyConflict()
    if isinstance(exc, (OperationalError, PoolTimeoutError)):
        current_app.logger.error("Store unavailable during %s: %s", operation, exc)
        return StoreUnavailable()
    current_app.logger.error("Store error during %s: %s", operation, exc)
    return StoreError(f"Failed to {operation}")


def run_store_call(operation: str, func):
    """
    Execute one store round trip.

    Never retried here: the caller decides whether to try again. The
    per-call timeout itself is enforced by the engine options built in
    config.build_engine_options.
    """
    try:
        return func()
    except (StaleDataError, SQLAlchemyError) as exc:
        db.session.rollback()
        raise _translate(operation, exc) from exc


def commit_session(operation: str) -> None:
    """Commit the current unit of work; all staged fields land together or not at all."""
    run_store_call(operation, db.session.commit)


def check_expected_version(record, expected_version: int | None) -> None:
    """
    Compare a caller-supplied revision against the stored one.

    None means the caller did not read-before-write; the version_id_col
    check at flush still protects against concurrent writers in flight.
    """
    if expected_version is None:
        return
    if expected_version != record.version_id:
        raise ConcurrencyConflict(
            f"Commission {record.id} is at revision {record.version_id}, "
            f"not {expected_version}; reload and retry"
        )
