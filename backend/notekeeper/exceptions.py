"""
Notekeeper Backend: Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for every failure a note operation
       can produce.
How:   Each exception carries a message, an optional context dict, and an
       `ErrorKind` drawn from a small closed set. Global exception handlers
       (registered in main.py) translate each kind into an HTTP status code
       and a structured JSON body.
Who:   Raised by the note stores and the request context; caught by the
       handlers in main.py.

Exception Hierarchy:
    NotekeeperError (base)
    ├── ValidationError     → 400 Bad Request   (kind: validation_error)
    ├── NotFoundError       → 404 Not Found     (kind: not_found)
    ├── StoreTimeoutError   → 504 Gateway Timeout (kind: timeout)
    └── BackendError        → 500 Internal Server Error (kind: backend_error)

Both store backends raise exactly these types, so callers can match on the
exception class (or `exc.kind`) and never need to parse message text.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Closed set of failure classes a store operation can report."""

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    BACKEND = "backend_error"


class NotekeeperError(Exception):
    """
    Base exception for all Notekeeper application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where the handler allows)
        kind:     The ErrorKind this exception class belongs to
    """

    kind: ErrorKind = ErrorKind.BACKEND

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NotekeeperError):
    """
    Raised when client input is malformed or cannot be decoded.

    When:    Detected before the request reaches a store. The stores
             themselves perform no field-level validation: empty titles
             and contents are accepted.
    HTTP:    400 Bad Request
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(NotekeeperError):
    """
    Raised when an operation references an identifier with no live record.

    When:    get/update/delete of an id that was never created or was
             already deleted. Deleting the same id twice raises this on
             the second call.
    HTTP:    404 Not Found
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource_id = resource_id


class StoreTimeoutError(NotekeeperError):
    """
    Raised when the caller's deadline elapses before a store operation completes.

    When:    The request context deadline was already past when the call was
             made, or passed while the backend was still working. In the
             latter case the in-flight operation is cancelled.
    HTTP:    504 Gateway Timeout
    """

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        operation: str = "operation",
        timeout: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The {operation} did not complete before the request deadline"
        ctx = context or {}
        ctx["operation"] = operation
        if timeout is not None:
            ctx["timeout"] = timeout
        super().__init__(message=message, context=ctx)
        self.operation = operation


class BackendError(NotekeeperError):
    """
    Raised for any other failure of the underlying storage engine.

    When:    Connection lost, constraint violation, malformed row, store
             already shut down. Never retried by the store.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. Driver details
        are kept in `context` and logged server-side only.
    """

    kind = ErrorKind.BACKEND

    def __init__(
        self,
        message: str = "A storage error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
