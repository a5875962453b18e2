"""
Catdex — Error Taxonomy
=========================

What:  Application exceptions for every failure the request pipeline can hit.
Why:   Handlers raise typed errors; one place decides the HTTP status code.
How:   Each exception carries an ErrorKind tag, a client-safe message and a
       context dict (logged server-side, never returned to the client).
       http_status_for() is the only function that maps a kind to a status.
Who:   Raised by the validation layer, the upload ingestor, the repository
       and the pool manager; converted to responses in main.py.

Exception Hierarchy:
    CatdexError (base)
    ├── ValidationError          → 400 Bad Request
    │   └── MissingUploadError   → 400 Bad Request (no `image` file part)
    ├── NotFoundError            → 404 Not Found
    ├── PoolExhaustedError       → 500 Internal Server Error (retryable)
    ├── UnexpectedError          → 500 Internal Server Error
    └── ConfigurationError       → startup only, never reaches a handler
"""

import enum
import logging
from typing import Any, Dict, Optional


class ErrorKind(str, enum.Enum):
    """Closed set of failure kinds. The value doubles as the JSON `error` code."""

    VALIDATION = "validation_error"
    MISSING_UPLOAD = "missing_upload"
    NOT_FOUND = "not_found"
    POOL_EXHAUSTED = "db_pool_exhausted"
    UNEXPECTED = "unexpected_error"


_HTTP_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.MISSING_UPLOAD: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.POOL_EXHAUSTED: 500,
    ErrorKind.UNEXPECTED: 500,
}

# NOT_FOUND is an expected outcome, so it stays below WARNING
_LOG_LEVEL: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: logging.WARNING,
    ErrorKind.MISSING_UPLOAD: logging.WARNING,
    ErrorKind.NOT_FOUND: logging.INFO,
    ErrorKind.POOL_EXHAUSTED: logging.ERROR,
    ErrorKind.UNEXPECTED: logging.ERROR,
}


def http_status_for(kind: ErrorKind) -> int:
    """Map an error kind to the HTTP status code returned to the client."""
    return _HTTP_STATUS[kind]


def log_level_for(kind: ErrorKind) -> int:
    """Map an error kind to the level it is logged at by the exception handler."""
    return _LOG_LEVEL[kind]


class CatdexError(Exception):
    """
    Base exception for all Catdex request errors.

    Attributes:
        kind:     ErrorKind tag used for status mapping and the JSON error code
        message:  User-facing description (safe to return in an API response)
        context:  Debug info such as operation name and identifiers (logged only)
    """

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return http_status_for(self.kind)


class ValidationError(CatdexError):
    """
    Raised when client input is malformed or missing.

    When:    Invalid `id` path segment, empty `name`, oversized upload,
             or a row the store rejected on insert.
    HTTP:    400 Bad Request

    Always raised before any connection is taken or file is written, except
    for the insert-rejected case which by nature happens at the store.
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


class MissingUploadError(ValidationError):
    """
    Raised when the multipart body has no `image` file part.

    Kept distinct from ValidationError internally so logs say exactly what was
    missing; at the HTTP boundary both are a 400.
    """

    kind = ErrorKind.MISSING_UPLOAD

    def __init__(
        self,
        field: str = "image",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=f"A file upload named '{field}' is required",
            field=field,
            context=context,
        )


class NotFoundError(CatdexError):
    """
    Raised when a point lookup finds no row.

    HTTP:    404 Not Found. A normal outcome; logged at INFO, not as an error.
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


class PoolExhaustedError(CatdexError):
    """
    Raised when no database connection became available within the pool timeout.

    Distinct from a query failure: nothing was executed and no connection was
    held. Surfaced as a 500 that the client may retry.
    """

    kind = ErrorKind.POOL_EXHAUSTED

    def __init__(
        self,
        timeout: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if timeout is not None:
            ctx["timeout_seconds"] = timeout
        super().__init__(
            message="The server is busy. Please try again shortly.",
            context=ctx,
        )


class UnexpectedError(CatdexError):
    """
    Raised for any other database, filesystem or worker-dispatch failure.

    HTTP:    500 Internal Server Error
    The context names the failed operation and its identifying parameters so
    the error log is enough to diagnose it; the client gets a generic message.
    """

    kind = ErrorKind.UNEXPECTED

    def __init__(
        self,
        operation: str,
        message: str = "An internal error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation


class ConfigurationError(Exception):
    """Raised at startup when required configuration is absent or unusable."""
