"""Translate normalized errors into HTTP responses."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse

from project_context.api.schemas import ErrorResponse
from project_context.errors import ErrorKind, ProjectContextError

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PERMISSION: status.HTTP_403_FORBIDDEN,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def project_context_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ProjectContextError)
    body = ErrorResponse(error=exc.kind.value, message=exc.message)
    return JSONResponse(status_code=STATUS_BY_KIND[exc.kind], content=body.model_dump())
