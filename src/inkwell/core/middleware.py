"""Middleware configuration for the FastAPI application.

Global stages run for every request, outermost first:

1. error boundary - the only stage that catches downstream exceptions;
2. CORS;
3. access logging;
4. global per-IP rate limit (health probes exempt).

Starlette wraps later registrations around earlier ones, so they are added
here in reverse.
"""

import time

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from inkwell.core.config.settings import Settings
from inkwell.core.rate_limiting import GLOBAL, enforce_rate_limit
from inkwell.core.responses import server_error_response

logger = structlog.get_logger(__name__)

# Probes must still report a store outage instead of being refused by it.
UNLIMITED_PATHS = frozenset({"/api/health"})


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure all middleware for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance
        settings (Settings): Application settings (CORS origins)
    """
    app.middleware("http")(global_rate_limit_middleware)
    app.middleware("http")(access_log_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset", "Retry-After"],
    )
    app.middleware("http")(error_boundary_middleware)


async def error_boundary_middleware(request: Request, call_next):
    """Converts any uncaught failure into a generic 500 error envelope.

    The full traceback is logged with the method and path; nothing about the
    failure is echoed back to the client.
    """
    try:
        return await call_next(request)
    except Exception:
        logger.exception(
            "unhandled_exception",
            method=request.method,
            path=request.url.path,
        )
        return server_error_response()


async def access_log_middleware(request: Request, call_next):
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request_completed",
        status=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
        client_ip=request.client.host if request.client else None,
    )
    return response


async def global_rate_limit_middleware(request: Request, call_next):
    if request.url.path.rstrip("/") in UNLIMITED_PATHS:
        return await call_next(request)
    limiter = request.app.state.resources.rate_limiter
    return await enforce_rate_limit(limiter, GLOBAL, request, call_next)
