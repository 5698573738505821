"""
Central error handling for the HR management backend

Services raise AppError subclasses; the handlers below turn them (and any
framework or unexpected error) into one JSON envelope:

    {"error": true, "status_code": 401, "kind": "unauthorized",
     "detail": "...", "path": "/api/v1/..."}
"""
import logging
import traceback
from typing import Any, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto a stable error kind"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[Any] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"
    default_message = "Resource already exists"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "unauthorized"
    default_message = "Unauthorized"


class InvalidCredentialError(AppError):
    """A credential supplied by an authenticated user did not verify"""
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "invalid_credential"
    default_message = "Invalid credentials"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"
    default_message = "Resource not found"


class ValidationFailedError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "validation_failed"
    default_message = "Validation failed"


_KIND_BY_STATUS = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation_failed",
}


def _envelope(request: Request, status_code: int, kind: str, detail: Any, **extra) -> dict:
    content = {
        "error": True,
        "status_code": status_code,
        "kind": kind,
        "detail": detail,
        "path": str(request.url.path),
    }
    content.update({k: v for k, v in extra.items() if v is not None})
    return content


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Handle domain errors raised by services and guards

    Operational errors are logged at WARNING; the response never carries
    more than the error's public message.
    """
    logger.warning(
        "%s %s -> %s (%s): %s",
        request.method, request.url.path, exc.status_code, exc.kind, exc.message,
    )
    headers = None
    if isinstance(exc, UnauthorizedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(request, exc.status_code, exc.kind, exc.message, errors=exc.errors),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException with consistent JSON response format
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(
            request,
            exc.status_code,
            _KIND_BY_STATUS.get(exc.status_code, "http_error"),
            exc.detail,
        ),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError with consistent JSON response format

    Does not leak internal validation details in production.
    """
    from app.core.config import settings

    if settings.is_production:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_envelope(request, 422, "validation_failed", "Validation error: Invalid request data"),
        )

    # ctx may hold exception instances (e.g. ValueError) that are not JSON-serializable
    errors = []
    for e in exc.errors():
        err = dict(e)
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {
                k: (str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v)
                for k, v in err["ctx"].items()
            }
        errors.append(err)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_envelope(request, 422, "validation_failed", "Validation error", errors=errors),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with consistent JSON response format

    Does not leak internal error details in production.
    """
    from app.core.config import settings

    logger.error("Unhandled exception: %s", exc, exc_info=True)

    if settings.is_production:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_envelope(request, 500, "internal_error", "Internal server error"),
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(
            request,
            500,
            "internal_error",
            str(exc),
            traceback=traceback.format_exc() if settings.APP_ENV == "local" else None,
        ),
    )
