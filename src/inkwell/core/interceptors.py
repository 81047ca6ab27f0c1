"""Route-level interceptors.

Each interceptor holds configuration only; shared clients are looked up on
``request.app.state.resources`` when a request arrives. None of them raise:
failures end the chain with an error envelope.
"""

from __future__ import annotations

from typing import Iterable

import structlog
from fastapi import Request, Response
from starlette import status

from inkwell.core.exceptions import AuthenticationError, UpstreamUnavailableError
from inkwell.core.pipeline import CallNext, get_request_context
from inkwell.core.rate_limiting import RateLimitPolicy, enforce_rate_limit
from inkwell.core.responses import error_response

__all__ = [
    "ContentTypeGuard",
    "Authenticate",
    "UserRateLimit",
    "RequireRole",
    "ACCEPTED_CONTENT_TYPES",
]

logger = structlog.get_logger(__name__)

ACCEPTED_CONTENT_TYPES = ("application/json", "multipart/form-data")
BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class ContentTypeGuard:
    """Rejects bodies that are neither JSON nor multipart with 415."""

    stage = 10

    def __init__(self, accepted: Iterable[str] = ACCEPTED_CONTENT_TYPES):
        self.accepted = tuple(accepted)

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        if request.method in BODYLESS_METHODS:
            return await call_next(request)

        content_type = request.headers.get("content-type", "")
        media_type = content_type.split(";", 1)[0].strip().lower()
        if media_type not in self.accepted:
            return error_response(
                "Unsupported Media Type",
                status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
                {"expected": list(self.accepted), "received": media_type or None},
            )
        return await call_next(request)


class Authenticate:
    """Resolves the bearer token into a user and session on the request context."""

    stage = 20

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        sessions = request.app.state.resources.sessions
        try:
            session = await sessions.resolve(request.headers.get("authorization"))
        except AuthenticationError as exc:
            return error_response(
                exc.message,
                status.HTTP_401_UNAUTHORIZED,
                {"code": exc.code},
                headers={"WWW-Authenticate": "Bearer"},
            )
        except UpstreamUnavailableError as exc:
            logger.error("session_resolution_failed", error_code=exc.code, path=request.url.path)
            return error_response(
                "Service temporarily unavailable",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                {"code": exc.code},
            )

        context = get_request_context(request)
        context.user = session.user
        context.session = session
        structlog.contextvars.bind_contextvars(user_id=str(session.user.id))
        return await call_next(request)


class UserRateLimit:
    """Per-identity limiter; keys on the authenticated user when there is one."""

    stage = 30

    def __init__(self, policy: RateLimitPolicy):
        self.policy = policy

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        limiter = request.app.state.resources.rate_limiter
        return await enforce_rate_limit(limiter, self.policy, request, call_next)


class RequireRole:
    """Lets the request through only when the context user holds one of ``roles``."""

    stage = 40

    def __init__(self, *roles: str):
        self.roles = frozenset(str(getattr(role, "value", role)) for role in roles)

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        user = get_request_context(request).user
        if user is None:
            return error_response(
                "Authentication required",
                status.HTTP_401_UNAUTHORIZED,
                {"code": "authentication_required"},
                headers={"WWW-Authenticate": "Bearer"},
            )
        role = str(getattr(user.role, "value", user.role))
        if role not in self.roles:
            logger.warning("role_check_failed", user_id=str(user.id), role=role, required=sorted(self.roles))
            return error_response(
                "Insufficient permissions",
                status.HTTP_403_FORBIDDEN,
                {"code": "permission_denied", "required": sorted(self.roles)},
            )
        return await call_next(request)
