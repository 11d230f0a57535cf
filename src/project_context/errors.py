"""Error taxonomy shared by every protocol surface.

Only four kinds of failure ever cross the dispatch boundary. Each concrete
exception pins its ``kind``; ``normalize_error`` maps any exception onto the
message the caller is allowed to see.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERMISSION = "permission"
    INTERNAL = "internal"


class ProjectContextError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ProjectContextError):
    kind = ErrorKind.VALIDATION


class NotFoundError(ProjectContextError):
    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(ProjectContextError):
    kind = ErrorKind.PERMISSION


class InternalError(ProjectContextError):
    kind = ErrorKind.INTERNAL


_ERROR_TYPES: dict[ErrorKind, type[ProjectContextError]] = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.PERMISSION: PermissionDeniedError,
    ErrorKind.INTERNAL: InternalError,
}


def classify(exc: BaseException) -> ErrorKind:
    if isinstance(exc, ProjectContextError):
        return exc.kind
    return ErrorKind.INTERNAL


def normalize_error(exc: BaseException) -> ProjectContextError:
    """Return the caller-facing error for *exc*.

    Validation, not-found and permission messages are kept behind a fixed
    prefix. Anything else collapses to a generic internal error.
    """
    kind = classify(exc)
    detail = exc.message if isinstance(exc, ProjectContextError) else ""
    match kind:
        case ErrorKind.VALIDATION:
            message = f"Invalid request: {detail}"
        case ErrorKind.NOT_FOUND:
            message = f"Resource not found: {detail}"
        case ErrorKind.PERMISSION:
            message = f"Permission denied: {detail}"
        case ErrorKind.INTERNAL:
            message = "Internal server error"
    return _ERROR_TYPES[kind](message)
