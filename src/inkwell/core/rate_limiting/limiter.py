"""Fixed-window rate limit engine.

Each identity gets one counter per policy, stored under
``rate_limit:{policy}:{scope}:{identity}``. The first request of a window
creates the counter and attaches the window's expiry; later requests only
increment it. When the key expires the next request starts a fresh window.

Two increment strategies are available:

* atomic (default): a Lua script increments and, when the count is 1,
  sets the expiry in the same server-side step;
* two-step (``RATE_LIMIT_ATOMIC=false``): ``INCR`` followed by a separate
  ``EXPIRE`` when the count is 1. Concurrent first hits write the same TTL,
  but a crash between the two calls leaves a counter without expiry. Such a
  window lasts until the key is deleted by hand; the engine does not repair it.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog
from fastapi import Request

from inkwell.core.pipeline import get_request_context
from inkwell.infrastructure.redis import KeyValueStore

logger = structlog.get_logger(__name__)

KEY_NAMESPACE = "rate_limit"


@dataclass(frozen=True, slots=True)
class Identity:
    """Rate-limit subject: ``ip`` for anonymous callers, ``user`` once authenticated."""

    scope: str
    value: str

    def __str__(self) -> str:
        return f"{self.scope}:{self.value}"


def resolve_identity(request: Request) -> Identity:
    """Authenticated user id if the request context carries one, otherwise the forwarded IP."""
    user = get_request_context(request).user
    if user is not None:
        return Identity("user", str(user.id))
    forwarded = request.headers.get("x-forwarded-for", "").strip()
    return Identity("ip", forwarded or "unknown")


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: datetime
    limit: int
    count: int

    def seconds_until_reset(self, now: Optional[float] = None) -> int:
        now = time.time() if now is None else now
        return max(0, math.ceil(self.reset_at.timestamp() - now))

    def headers(self, now: Optional[float] = None) -> dict[str, str]:
        reset = self.seconds_until_reset(now)
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(reset),
        }
        if not self.allowed:
            headers["Retry-After"] = str(reset)
        return headers


class FixedWindowRateLimiter:
    """Counts requests per identity in fixed windows backed by the key-value store.

    ``enabled`` and ``fail_open`` are carried here so every enforcement point
    (global middleware and route interceptors) applies the same policy.
    Store failures propagate from :meth:`check_and_consume` as
    ``StoreUnavailableError``; callers decide between admitting and rejecting.
    """

    def __init__(
        self,
        store: KeyValueStore,
        atomic: bool = True,
        enabled: bool = True,
        fail_open: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.atomic = atomic
        self.enabled = enabled
        self.fail_open = fail_open
        self._clock = clock

    @staticmethod
    def key_for(identity: Identity | str, policy: str = "default") -> str:
        return f"{KEY_NAMESPACE}:{policy}:{identity}"

    async def check_and_consume(
        self,
        identity: Identity | str,
        window_ms: int,
        limit: int,
        policy: str = "default",
    ) -> RateLimitDecision:
        key = self.key_for(identity, policy)
        if self.atomic:
            count, ttl_ms = await self.store.incr_with_expiry(key, window_ms)
        else:
            count, ttl_ms = await self._incr_then_expire(key, window_ms)

        now = self._clock()
        if ttl_ms < 0:
            logger.warning("rate_limit_window_without_expiry", key=key, count=count)
            ttl_ms = window_ms
        reset_at = datetime.fromtimestamp(now + ttl_ms / 1000, tz=timezone.utc)

        return RateLimitDecision(
            allowed=count <= limit,
            remaining=max(0, limit - count),
            reset_at=reset_at,
            limit=limit,
            count=count,
        )

    async def _incr_then_expire(self, key: str, window_ms: int) -> tuple[int, int]:
        count = await self.store.incr(key)
        if count == 1:
            await self.store.expire(key, max(1, math.ceil(window_ms / 1000)))
        ttl_seconds = await self.store.ttl(key)
        return count, ttl_seconds * 1000 if ttl_seconds >= 0 else ttl_seconds
