"""Apply a rate limit policy to one request.

Shared by the global IP middleware and the per-route interceptor. It never
raises: a rejected request gets a 429 envelope, a store outage gets either a
500 envelope (fail-closed) or passes through (fail-open).
"""

from __future__ import annotations

from typing import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette import status

from inkwell.core.exceptions import StoreUnavailableError
from inkwell.core.rate_limiting.limiter import FixedWindowRateLimiter, resolve_identity
from inkwell.core.rate_limiting.policies import RateLimitPolicy
from inkwell.core.responses import error_response, server_error_response

logger = structlog.get_logger(__name__)

STORE_UNAVAILABLE_CODE = "rate_limit_store_unavailable"


async def enforce_rate_limit(
    limiter: FixedWindowRateLimiter,
    policy: RateLimitPolicy,
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    if not limiter.enabled:
        return await call_next(request)

    identity = resolve_identity(request)
    try:
        decision = await limiter.check_and_consume(
            identity, policy.window_ms, policy.limit, policy=policy.name
        )
    except StoreUnavailableError as exc:
        logger.error(
            STORE_UNAVAILABLE_CODE,
            policy=policy.name,
            identity=str(identity),
            fail_open=limiter.fail_open,
            error=str(exc),
        )
        if limiter.fail_open:
            return await call_next(request)
        return server_error_response(
            "Rate limiting is temporarily unavailable", {"code": STORE_UNAVAILABLE_CODE}
        )

    headers = decision.headers()
    if not decision.allowed:
        logger.warning(
            "rate_limit_exceeded",
            policy=policy.name,
            identity=str(identity),
            count=decision.count,
            limit=decision.limit,
        )
        return error_response(
            policy.message,
            status.HTTP_429_TOO_MANY_REQUESTS,
            {"code": "rate_limit_exceeded", "limit": decision.limit, "reset_at": decision.reset_at},
            headers=headers,
        )

    response = await call_next(request)
    # An inner, route-level limiter already reported the tighter window.
    for name, value in headers.items():
        response.headers.setdefault(name, value)
    return response
