# Overview: Tagged result type returned by every public commission operation.

"""
Public operations never raise across the service boundary. Domain
failures are raised internally as CommissionError subclasses (each
carrying its ErrorKind) and converted into OperationResult.failure by
@public_operation. Anything else is logged and reported generically.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import current_app

from ..extensions import db


class ErrorKind(str, enum.Enum):
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    STORE_ERROR = "STORE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CommissionError(Exception):
    """Base for failures that map onto an ErrorKind."""
    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


@dataclass(frozen=True)
class OperationResult:
    success: bool
    data: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    # UI views the caller should refresh after a successful mutation
    invalidates: tuple[str, ...] = ()

    @classmethod
    def ok(cls, data: Any = None, *, invalidates: tuple[str, ...] = ()) -> "OperationResult":
        return cls(success=True, data=data, invalidates=tuple(invalidates))

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "OperationResult":
        return cls(success=False, error=message, error_kind=kind)

    @property
    def is_err(self) -> bool:
        return not self.success


def public_operation(operation: str):
    """
    Wrap a service entry point so it always returns an OperationResult.

    The session is rolled back on every failure so no partial state
    survives a failed operation.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs) -> OperationResult:
            try:
                result = f(*args, **kwargs)
            except CommissionError as e:
                db.session.rollback()
                return OperationResult.failure(e.kind, e.message)
            except Exception:
                db.session.rollback()
                current_app.logger.exception("Unexpected failure in %s", operation)
                return OperationResult.failure(ErrorKind.INTERNAL_ERROR, f"Failed to {operation}")
            if isinstance(result, OperationResult):
                return result
            return OperationResult.ok(result)
        return wrapper
    return decorator
