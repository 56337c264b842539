"""Error Handlers — global exception handlers for the relay API.

Invariants:
    - RelayError → its own status and to_response() body (Graph passthrough included)
    - Non-JSON Graph failures are replayed as raw bytes with Graph's content type
    - RequestValidationError → 400 with field-level details
    - Exception (catch-all) → 500 with the exception message, traceback logged server-side

Design Decisions:
    - Three-layer handler: domain (RelayError), validation (Pydantic), catch-all (Exception)
    - Catch-all echoes str(exc): callers are our own Bubble workflows and need
      the reason (e.g. ConnectError) to debug a failed run
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from mira_exchange.core.errors import (
    CalendarPassthroughError, ErrorSeverity, RelayError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_relay_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_relay_error_handler(app: FastAPI) -> None:
    """Register relay domain/upstream error handler."""

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        """Handle all relay client/upstream errors."""
        logger.error(
            f"RelayError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        if isinstance(exc, CalendarPassthroughError) and exc.raw_content is not None:
            return Response(
                content=exc.raw_content, status_code=exc.http_status,
                media_type=exc.content_type,
            )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all: logs the traceback, reports only the message."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc!r}",
            exc_info=True,
            extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "ok": False,
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": str(exc) or exc.__class__.__name__,
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "ok": False,
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Missing or invalid request fields",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
