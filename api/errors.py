"""Global exception handlers for FastAPI."""

import logging
import sqlite3

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import APIError, error_response, ErrorCodes
from core.exceptions import DuplicateFieldError, NotFoundError

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _field_name(loc: tuple) -> str | None:
    parts = [str(p) for p in loc]
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or None


def validation_errors(exc: RequestValidationError) -> list[APIError]:
    """One APIError per failing field, in the order pydantic reported them."""
    return [
        APIError(
            code=ErrorCodes.VALIDATION_ERROR,
            message=error.get("msg", "Invalid value"),
            field=_field_name(tuple(error.get("loc", ()))),
        )
        for error in exc.errors()
    ]


def register_error_handlers(app: FastAPI, expose_details: bool = False) -> None:
    """
    Register global exception handlers on the app.

    Args:
        app: Application to register on
        expose_details: Include exception text in 500 responses (development only)
    """

    def _respond(request: Request, status_code: int, code: str, message: str, errors=None):
        request_id = _request_id(request)
        # 500s are built outside RequestIDMiddleware, so the header is set here too
        headers = {"X-Request-ID": request_id} if request_id else None
        return JSONResponse(
            status_code=status_code,
            content=error_response(
                code, message, errors=errors, request_id=request_id
            ).model_dump(mode="json"),
            headers=headers,
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _respond(request, 404, ErrorCodes.NOT_FOUND, str(exc))

    @app.exception_handler(DuplicateFieldError)
    async def duplicate_handler(request: Request, exc: DuplicateFieldError):
        return _respond(
            request, 400, ErrorCodes.ALREADY_EXISTS, str(exc),
            errors=[APIError(code=ErrorCodes.ALREADY_EXISTS, message=str(exc), field=exc.field)],
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _respond(
            request, 400, ErrorCodes.VALIDATION_ERROR, "Validation errors",
            errors=validation_errors(exc),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _respond(request, 400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(sqlite3.Error)
    async def store_error_handler(request: Request, exc: sqlite3.Error):
        logger.exception("Store error while handling %s %s", request.method, request.url.path)
        message = f"Database error: {exc}" if expose_details else "A database error occurred"
        return _respond(request, 500, ErrorCodes.SERVICE_UNAVAILABLE, message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        message = str(exc) if expose_details else "An internal error occurred"
        return _respond(request, 500, ErrorCodes.INTERNAL_ERROR, message)
