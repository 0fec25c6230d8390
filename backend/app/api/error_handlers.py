"""Error Handlers — global exception handlers for the TaskDesk API.

Invariants:
    - TaskDeskError → structured JSON with error code, message, severity;
      not-found responses name the missing resource
    - 401 carries WWW-Authenticate: Bearer, 503 carries Retry-After
    - RequestValidationError → field-level error details
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (TaskDeskError), validation (Pydantic), catch-all (Exception)
    - Extracted from main.py so the app module only wires routers
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.core.errors import (
    AuthenticationError, DatabaseError, ErrorSeverity, ResourceNotFoundError,
    TaskDeskError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:
    """Register TaskDesk domain/infrastructure error handler."""

    @app.exception_handler(TaskDeskError)
    async def taskdesk_error_handler(request: Request, exc: TaskDeskError):
        """Handle all TaskDesk domain/infrastructure errors."""
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"TaskDeskError: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "user_id": exc.context.user_id,
                "task_id": exc.context.task_id,
                "pending_id": exc.context.pending_id,
            },
        )
        content = exc.to_response()
        if isinstance(exc, ResourceNotFoundError):
            content["error"]["resource"] = {
                "type": exc.resource_type, "id": exc.resource_id,
            }
        return JSONResponse(
            status_code=exc.http_status,
            content=content,
            headers=_headers_for(exc),
        )


def _headers_for(exc: TaskDeskError) -> dict[str, str] | None:
    """401 tells bearer clients how to authenticate; 503 asks them to retry."""
    if isinstance(exc, AuthenticationError):
        return {"WWW-Authenticate": "Bearer"}
    if isinstance(exc, DatabaseError):
        return {"Retry-After": "5"}
    return None


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
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
