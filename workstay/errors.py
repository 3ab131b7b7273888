"""Standardized error handling for the API.

This module provides:
1. Domain exception classes raised by services and repositories
2. Exception handlers for FastAPI
3. Standard error response models

Usage:
    from workstay.errors import NotFoundError, ValidationError

    # In services:
    if opportunity is None:
        raise NotFoundError(detail="opportunity not found", resource_id=opportunity_id)

    # Register handlers in main.py:
    from workstay.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for API errors."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"
    # Infrastructure failures hide their detail from clients.
    expose_detail: bool = True

    def __init__(
        self,
        detail: str | None = None,
        error_code: str | None = None,
        **context: Any,
    ) -> None:
        self.detail = detail or self.__class__.detail
        self.error_code = error_code
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        if not self.expose_detail:
            return ErrorResponse(error=self.error, detail=self.__class__.detail)
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context,
        )


class NotFoundError(APIError):
    """Resource not found error (404)."""

    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class ValidationError(APIError):
    """Request cannot be satisfied as given (400)."""

    status_code = 400
    error = "validation_error"
    detail = "Invalid request"


class UnauthorizedError(APIError):
    """Unauthorized error (401)."""

    status_code = 401
    error = "unauthorized"
    detail = "Authentication required"


class ForbiddenError(APIError):
    """Forbidden error (403)."""

    status_code = 403
    error = "forbidden"
    detail = "Access denied"


class ConflictError(APIError):
    """Duplicate key or concurrent modification (409)."""

    status_code = 409
    error = "conflict"
    detail = "Resource conflict"


class InvalidStateError(APIError):
    """Operation not allowed in the resource's current state (409)."""

    status_code = 409
    error = "invalid_state"
    detail = "Operation not allowed in current state"


class StorageError(APIError):
    """Object storage operation failed (500)."""

    status_code = 500
    error = "storage_error"
    detail = "Storage operation failed"
    expose_detail = False


class PersistenceError(APIError):
    """Database error (500)."""

    status_code = 500
    error = "database_error"
    detail = "Database operation failed"
    expose_detail = False


class ExternalServiceError(APIError):
    """External service error (502)."""

    status_code = 502
    error = "external_service_error"
    detail = "External service request failed"
    expose_detail = False


class ServiceUnavailableError(APIError):
    """Service unavailable error (503)."""

    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors."""
    if exc.status_code >= 500:
        logger.error(
            "API error: %s (status=%d, path=%s, context=%s)",
            exc.detail,
            exc.status_code,
            request.url.path,
            exc.context,
        )
    else:
        logger.warning(
            "API error: %s (status=%d, path=%s)",
            exc.detail,
            exc.status_code,
            request.url.path,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render framework HTTPExceptions in the standard error format."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=_status_to_error_type(exc.status_code),
            detail=str(exc.detail),
        ).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


def _status_to_error_type(status_code: int) -> str:
    """Map HTTP status code to error type string."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        409: "conflict",
        422: "validation_error",
        500: "internal_error",
        502: "bad_gateway",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
