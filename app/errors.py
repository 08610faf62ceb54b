"""
Failure taxonomy shared by the services and the HTTP boundary.

Services raise the typed errors below; ``register_exception_handlers``
is the single place that maps them to a status code and to the
``{"errors": {"body": [...]}}`` response shape.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "UNKNOWN_ERROR"


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class AuthError(AppError):
    """Missing, invalid or expired token, or bad credentials."""

    status_code = 401


class ForbiddenError(AppError):
    """Authenticated, but not allowed to touch the resource."""

    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ValidationError(AppError):
    status_code = 422


def is_unique_violation(exc: IntegrityError, constraint: str, column: str) -> bool:
    """
    Return True when *exc* was raised by the unique constraint *constraint*
    (PostgreSQL reports the constraint name) or on *column* (SQLite reports
    ``UNIQUE constraint failed: table.column``).
    """
    message = str(exc.orig)
    return constraint in message or f"UNIQUE constraint failed: {column}" in message


def error_body(*messages: str) -> dict:
    return {"errors": {"body": [m for m in messages if m]}}


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        messages.append(f"{location} {error['msg']}".strip())
    return JSONResponse(status_code=422, content=error_body(*messages))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unknown_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unknown error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content=error_body(UNKNOWN_ERROR))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unknown_error_handler)
