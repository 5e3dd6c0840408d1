# src/core/errors.py — v1
"""Error taxonomy for remote store failures.

Remote store errors are classified exactly once, at the adapter boundary,
into a closed ErrorKind. Everything downstream (engine, subscriptions,
controllers) branches on the kind, never on message text.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class StoreErrorCode(str, Enum):
    """Error codes reported by the remote document store."""

    UNAVAILABLE = "unavailable"
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission-denied"
    NOT_FOUND = "not-found"
    CANCELLED = "cancelled"
    OTHER = "other"


class ErrorKind(str, Enum):
    """Retry classification of a store error."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class StoreError(Exception):
    """Raised (or delivered) by a document store adapter."""

    def __init__(self, code: StoreErrorCode | str, message: str = "") -> None:
        self.code = _coerce_code(code)
        self.message = message or self.code.value
        super().__init__(f"[{self.code.value}] {self.message}")


_KIND_BY_CODE: dict[StoreErrorCode, ErrorKind] = {
    StoreErrorCode.UNAVAILABLE: ErrorKind.TRANSIENT,
    StoreErrorCode.CANCELLED: ErrorKind.TRANSIENT,
    StoreErrorCode.UNAUTHENTICATED: ErrorKind.PERMANENT,
    StoreErrorCode.PERMISSION_DENIED: ErrorKind.PERMANENT,
    StoreErrorCode.NOT_FOUND: ErrorKind.NOT_FOUND,
    StoreErrorCode.OTHER: ErrorKind.UNKNOWN,
}


class QueryError(BaseModel):
    """A classified, user-presentable store failure."""

    code: StoreErrorCode
    kind: ErrorKind
    message: str
    operation: str = ""

    @property
    def permanent(self) -> bool:
        return self.kind is ErrorKind.PERMANENT

    @property
    def retryable(self) -> bool:
        """UNKNOWN is retried conservatively, like TRANSIENT."""
        return self.kind in (ErrorKind.TRANSIENT, ErrorKind.UNKNOWN)

    @property
    def signature(self) -> str:
        """Identity used to de-duplicate repeated notifications."""
        return f"{self.code.value}:{self.message}"


def _coerce_code(code: StoreErrorCode | str) -> StoreErrorCode:
    if isinstance(code, StoreErrorCode):
        return code
    try:
        return StoreErrorCode(str(code).lower())
    except ValueError:
        return StoreErrorCode.OTHER


def classify_code(code: StoreErrorCode | str) -> ErrorKind:
    """Map a store error code to its retry classification."""
    return _KIND_BY_CODE[_coerce_code(code)]


def describe_error(code: StoreErrorCode | str, operation: str) -> str:
    """Return the user-facing message for a store error code."""
    code = _coerce_code(code)
    if code is StoreErrorCode.UNAVAILABLE:
        return "Database connection unavailable. Please check your internet connection."
    if code is StoreErrorCode.PERMISSION_DENIED:
        return "Access denied. Please check your permissions."
    if code is StoreErrorCode.NOT_FOUND:
        return "Data not found"
    if code is StoreErrorCode.UNAUTHENTICATED:
        return "Authentication required. Please log in again."
    if code is StoreErrorCode.CANCELLED:
        return "Operation was cancelled"
    return f"Error during {operation}. Please try again."


def classify_error(error: BaseException, operation: str = "operation") -> QueryError:
    """Classify any exception raised by a store adapter.

    Exceptions that are not StoreError carry no code and are treated
    as StoreErrorCode.OTHER (kind UNKNOWN).
    """
    code = error.code if isinstance(error, StoreError) else StoreErrorCode.OTHER
    return QueryError(
        code=code,
        kind=classify_code(code),
        message=describe_error(code, operation),
        operation=operation,
    )
