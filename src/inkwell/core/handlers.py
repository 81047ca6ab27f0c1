"""
Global exception handlers for the FastAPI application.

This module translates application exceptions into error envelopes with
the matching HTTP status. Anything not handled here propagates to the
error-boundary middleware, which answers with a generic 500.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
from structlog import get_logger

from inkwell.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InkwellError,
    NotFoundError,
    RateLimitExceededError,
    UpstreamUnavailableError,
    ValidationError,
)
from inkwell.core.responses import error_response

__all__ = [
    "validation_error_handler",
    "request_validation_error_handler",
    "authentication_error_handler",
    "authorization_error_handler",
    "not_found_error_handler",
    "conflict_error_handler",
    "rate_limit_exceeded_error_handler",
    "upstream_unavailable_error_handler",
    "http_exception_handler",
    "inkwell_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)


def _details(exc: InkwellError) -> dict[str, Any]:
    details: dict[str, Any] = {"code": exc.code}
    if isinstance(exc.details, dict):
        details.update(exc.details)
    elif exc.details is not None:
        details["context"] = exc.details
    return details


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handles `ValidationError`, returning a `400 Bad Request`."""
    return error_response(exc.message, status.HTTP_400_BAD_REQUEST, _details(exc))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handles FastAPI's schema validation failures, returning a `422`.

    The pydantic error list is forwarded as ``details`` so clients can
    highlight the offending fields.
    """
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return error_response("Validation failed", status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handles `AuthenticationError`, returning a `401 Unauthorized`."""
    logger.warning(
        "authentication_failure",
        error=exc.code,
        client_ip=request.client.host if request.client else None,
        path=request.url.path,
    )
    return error_response(
        exc.message,
        status.HTTP_401_UNAUTHORIZED,
        _details(exc),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def authorization_error_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    """Handles `AuthorizationError`, returning a `403 Forbidden`."""
    logger.warning("authorization_failure", error=exc.code, path=request.url.path)
    return error_response(exc.message, status.HTTP_403_FORBIDDEN, _details(exc))


async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return error_response(exc.message, status.HTTP_404_NOT_FOUND, _details(exc))


async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return error_response(exc.message, status.HTTP_409_CONFLICT, _details(exc))


async def rate_limit_exceeded_error_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
    return error_response(exc.message, status.HTTP_429_TOO_MANY_REQUESTS, _details(exc))


async def upstream_unavailable_error_handler(request: Request, exc: UpstreamUnavailableError) -> JSONResponse:
    """Handles `UpstreamUnavailableError` on a request path, returning a `500`.

    The upstream's own message stays in the logs; clients receive the code only.
    """
    logger.error(
        "upstream_unavailable",
        error_code=exc.code,
        error_message=exc.message,
        method=request.method,
        path=request.url.path,
    )
    return error_response(
        "Service temporarily unavailable",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"code": exc.code},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wraps framework `HTTPException`s (404 for unknown routes, 405, ...) in the envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    status_code = exc.status_code if exc.status_code >= 400 else status.HTTP_500_INTERNAL_SERVER_ERROR
    return error_response(message, status_code, headers=getattr(exc, "headers", None))


async def inkwell_error_handler(request: Request, exc: InkwellError) -> JSONResponse:
    """Handles the base `InkwellError`, returning a `500 Internal Server Error`.

    This serves as a fallback for application errors without a more specific handler.
    """
    logger.error(
        "application_error",
        error_code=exc.code,
        error_message=exc.message,
        path=request.url.path,
    )
    return error_response(
        "An unexpected error occurred.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"code": exc.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all custom exception handlers with the FastAPI application.

    Starlette resolves handlers along the exception's MRO, so subclasses such as
    `DuplicateSlugError` land on their family's handler.

    Args:
        app: The `FastAPI` application instance.
    """
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(AuthorizationError, authorization_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_error_handler)
    app.add_exception_handler(UpstreamUnavailableError, upstream_unavailable_error_handler)
    app.add_exception_handler(InkwellError, inkwell_error_handler)
