"""
Redis Connection Module

This module wraps the single shared ``redis.asyncio`` client used for rate
limiting, caching, OAuth state and refresh tokens. The client is created once
per application (see ``inkwell.core.resources``) and closed on shutdown.

Connection behaviour is fully driven by settings:

* reconnects back off linearly, ``min(failures * REDIS_RETRY_DELAY_MS,
  REDIS_MAX_RETRY_DELAY_MS)``, for at most ``REDIS_MAX_RETRIES`` attempts;
* with ``REDIS_ENABLE_OFFLINE_QUEUE`` disabled, commands are not retried at all
  and fail as soon as the connection is lost;
* ``REDIS_CONNECT_TIMEOUT_MS`` bounds connects, ``REDIS_COMMAND_TIMEOUT_MS``
  bounds every command.

Connection and timeout failures surface as :class:`StoreUnavailableError` for
the single operation that hit them.
"""

from __future__ import annotations

from typing import Optional

import structlog
from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import AbstractBackoff, NoBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from inkwell.core.config.settings import Settings
from inkwell.core.exceptions import StoreUnavailableError

logger = structlog.get_logger(__name__)

# INCR, set the expiry only on the first hit of a window, report the remaining TTL.
INCR_WITH_EXPIRY_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
return {count, redis.call('PTTL', KEYS[1])}
"""

_UNAVAILABLE = (RedisConnectionError, RedisTimeoutError, OSError)


class LinearBackoff(AbstractBackoff):
    """Delay grows by ``step`` per failed attempt and never exceeds ``cap`` (seconds)."""

    def __init__(self, step: float, cap: float, log_attempts: bool = False):
        self._step = step
        self._cap = cap
        self._log_attempts = log_attempts

    def reset(self) -> None:
        pass

    def compute(self, failures: int) -> float:
        delay = min(failures * self._step, self._cap)
        if self._log_attempts:
            logger.warning("redis_reconnecting", attempt=failures, delay_seconds=delay)
        return delay


def build_retry_policy(settings: Settings) -> Retry:
    if not settings.REDIS_ENABLE_OFFLINE_QUEUE:
        return Retry(NoBackoff(), 0)
    backoff = LinearBackoff(
        step=settings.REDIS_RETRY_DELAY_MS / 1000,
        cap=settings.REDIS_MAX_RETRY_DELAY_MS / 1000,
        log_attempts=settings.REDIS_ENABLE_LOGGING,
    )
    return Retry(backoff, settings.REDIS_MAX_RETRIES)


def create_redis_client(settings: Settings) -> Redis:
    """Build the shared client. No connection is opened until the first command."""
    return Redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=settings.REDIS_CONNECT_TIMEOUT_MS / 1000,
        socket_timeout=settings.REDIS_COMMAND_TIMEOUT_MS / 1000,
        socket_keepalive=settings.REDIS_KEEPALIVE_MS > 0,
        health_check_interval=settings.REDIS_KEEPALIVE_MS // 1000,
        retry=build_retry_policy(settings),
        retry_on_error=[RedisConnectionError, RedisTimeoutError],
    )


class KeyValueStore:
    """Thin async facade over the shared Redis client.

    Keys are transparently namespaced with ``key_prefix``; ``keys()`` strips it
    again so results can be passed straight back to ``delete()``.
    """

    def __init__(self, client: Redis, key_prefix: str = "", enable_logging: bool = False):
        self._client = client
        self._prefix = key_prefix
        self._enable_logging = enable_logging
        self._incr_script = client.register_script(INCR_WITH_EXPIRY_SCRIPT)

    @classmethod
    def from_settings(cls, settings: Settings) -> "KeyValueStore":
        return cls(
            create_redis_client(settings),
            key_prefix=settings.REDIS_KEY_PREFIX,
            enable_logging=settings.REDIS_ENABLE_LOGGING,
        )

    @property
    def client(self) -> Redis:
        return self._client

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _error(self, operation: str, exc: BaseException) -> StoreUnavailableError:
        if self._enable_logging:
            logger.error("redis_error", operation=operation, error=str(exc))
        return StoreUnavailableError(f"Key-value store unavailable during {operation}")

    async def connect(self, ready_check: bool = True) -> None:
        """Open the connection eagerly; used at startup unless lazy connect is configured."""
        if self._enable_logging:
            logger.info("redis_connecting")
        if ready_check:
            await self.ping()
        if self._enable_logging:
            logger.info("redis_ready")

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except _UNAVAILABLE as exc:
            raise self._error("ping", exc) from exc

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(self._key(key))
        except _UNAVAILABLE as exc:
            raise self._error("get", exc) from exc

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        try:
            return bool(await self._client.set(self._key(key), value, ex=ttl_seconds))
        except _UNAVAILABLE as exc:
            raise self._error("set", exc) from exc

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(await self._client.delete(*(self._key(k) for k in keys)))
        except _UNAVAILABLE as exc:
            raise self._error("delete", exc) from exc

    async def incr(self, key: str) -> int:
        try:
            return int(await self._client.incr(self._key(key)))
        except _UNAVAILABLE as exc:
            raise self._error("incr", exc) from exc

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        try:
            return bool(await self._client.expire(self._key(key), ttl_seconds))
        except _UNAVAILABLE as exc:
            raise self._error("expire", exc) from exc

    async def pexpire(self, key: str, ttl_ms: int) -> bool:
        try:
            return bool(await self._client.pexpire(self._key(key), ttl_ms))
        except _UNAVAILABLE as exc:
            raise self._error("pexpire", exc) from exc

    async def ttl(self, key: str) -> int:
        """Seconds to live; -1 when the key has no expiry, -2 when it is missing."""
        try:
            return int(await self._client.ttl(self._key(key)))
        except _UNAVAILABLE as exc:
            raise self._error("ttl", exc) from exc

    async def pttl(self, key: str) -> int:
        try:
            return int(await self._client.pttl(self._key(key)))
        except _UNAVAILABLE as exc:
            raise self._error("pttl", exc) from exc

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._client.exists(self._key(key)))
        except _UNAVAILABLE as exc:
            raise self._error("exists", exc) from exc

    async def keys(self, pattern: str) -> list[str]:
        try:
            found = await self._client.keys(self._key(pattern))
        except _UNAVAILABLE as exc:
            raise self._error("keys", exc) from exc
        return [k[len(self._prefix):] for k in found]

    async def incr_with_expiry(self, key: str, ttl_ms: int) -> tuple[int, int]:
        """Atomically increment ``key`` and start its window on the first hit.

        Returns the post-increment count and the remaining TTL in milliseconds.
        """
        try:
            count, pttl = await self._incr_script(keys=[self._key(key)], args=[ttl_ms])
        except _UNAVAILABLE as exc:
            raise self._error("incr_with_expiry", exc) from exc
        return int(count), int(pttl)

    async def aclose(self) -> None:
        await self._client.aclose()
        if self._enable_logging:
            logger.info("redis_closed")
