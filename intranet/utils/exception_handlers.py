import traceback

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError, HTTPException
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError

from intranet.config.settings import settings
from intranet.utils.logger import logger
from intranet.utils.exceptions import BaseAPIException


def _failure(status_code: int, message: str, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
        headers=headers,
    )


async def base_api_exception_handler(request: Request, exc: BaseAPIException):
    """Handle custom API exceptions and log them."""
    logger.warning(
        f"{exc.__class__.__name__}: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return _failure(exc.status_code, exc.detail, headers=exc.headers)


def _describe_error(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
    field = ".".join(loc)
    message = error.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    """
    Handle validation errors.

    A malformed identifier in the path becomes "Invalid id"; everything else
    is reported as the joined list of field messages. Both are 400s.
    """
    errors = exc.errors()

    for error in errors:
        loc = error.get("loc", ())
        if loc and loc[0] == "path" and error.get("type", "").startswith("uuid"):
            logger.warning(f"Invalid id on {request.method} {request.url.path}")
            return _failure(status.HTTP_400_BAD_REQUEST, f"Invalid id: {error.get('input')}")

    message = ", ".join(_describe_error(error) for error in errors) or "Validation error"
    logger.warning(f"Validation error on {request.method} {request.url.path}: {message}")
    return _failure(status.HTTP_400_BAD_REQUEST, message)


def is_unique_violation(exc: IntegrityError) -> bool:
    """Postgres reports SQLSTATE 23505; SQLite only says so in the message."""
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == "23505" or getattr(orig, "pgcode", None) == "23505":
        return True
    message = str(orig).lower()
    return "unique constraint" in message or "duplicate key" in message


async def integrity_error_handler(request: Request, exc: IntegrityError):
    """
    Unique-key violations that slipped past the explicit duplicate checks are 409s.
    Any other constraint failure (NOT NULL, foreign key, check) is a bad request.
    """
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    if is_unique_violation(exc):
        return _failure(status.HTTP_409_CONFLICT, "Duplicate field value entered.")
    return _failure(status.HTTP_400_BAD_REQUEST, "Invalid or missing field value.")


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """slowapi 429 in the standard error envelope, keeping its Retry-After headers."""
    logger.warning(f"Rate limit exceeded on {request.method} {request.url.path}: {exc.detail}")
    response = _failure(status.HTTP_429_TOO_MANY_REQUESTS, f"Rate limit exceeded: {exc.detail}")
    limiter = getattr(request.app.state, "limiter", None)
    view_limit = getattr(request.state, "view_rate_limit", None)
    if limiter is not None and view_limit is not None:
        response = limiter._inject_headers(response, view_limit)
    return response


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTPException and log them."""
    logger.error(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )
    return _failure(exc.status_code, str(exc.detail), headers=exc.headers)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions. The stack is only exposed outside production."""
    logger.exception(
        f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}",
        exc_info=exc,
    )
    extra = {}
    if not settings.is_production:
        extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error", **extra)
