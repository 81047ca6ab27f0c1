"""Read-through JSON cache on top of the shared key-value store.

Caching is an optimisation only: a store outage or an unreadable entry is
logged and treated as a miss, so callers fall back to the database. Errors
raised by a fetcher are the caller's own and propagate unchanged.
"""

from __future__ import annotations

import asyncio
import functools
import json
from enum import IntEnum
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from inkwell.core.exceptions import StoreUnavailableError
from inkwell.infrastructure.redis import KeyValueStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CacheTTL(IntEnum):
    """Standard lifetimes in seconds."""

    SHORT = 300
    MEDIUM = 1800
    LONG = 3600
    VERY_LONG = 86400


DEFAULT_PREFIX = "cache"


class Cache:
    def __init__(self, store: KeyValueStore):
        self.store = store
        self._inflight: dict[str, asyncio.Future] = {}

    @staticmethod
    def build_key(key: str, prefix: str = DEFAULT_PREFIX) -> str:
        return f"{prefix}:{key}"

    async def get(self, key: str, prefix: str = DEFAULT_PREFIX) -> Optional[Any]:
        full_key = self.build_key(key, prefix)
        try:
            raw = await self.store.get(full_key)
        except StoreUnavailableError as exc:
            logger.warning("cache_get_failed", key=full_key, error=str(exc))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("cache_decode_failed", key=full_key, error=str(exc))
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int = CacheTTL.MEDIUM,
        prefix: str = DEFAULT_PREFIX,
    ) -> bool:
        full_key = self.build_key(key, prefix)
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            logger.warning("cache_encode_failed", key=full_key, error=str(exc))
            return False
        try:
            return await self.store.set(full_key, payload, int(ttl))
        except StoreUnavailableError as exc:
            logger.warning("cache_set_failed", key=full_key, error=str(exc))
            return False

    async def delete(self, key: str, prefix: str = DEFAULT_PREFIX) -> bool:
        full_key = self.build_key(key, prefix)
        try:
            return await self.store.delete(full_key) > 0
        except StoreUnavailableError as exc:
            logger.warning("cache_delete_failed", key=full_key, error=str(exc))
            return False

    async def exists(self, key: str, prefix: str = DEFAULT_PREFIX) -> bool:
        full_key = self.build_key(key, prefix)
        try:
            return await self.store.exists(full_key)
        except StoreUnavailableError as exc:
            logger.warning("cache_exists_failed", key=full_key, error=str(exc))
            return False

    async def ttl(self, key: str, prefix: str = DEFAULT_PREFIX) -> int:
        """Remaining lifetime in seconds, or -1 when unknown."""
        full_key = self.build_key(key, prefix)
        try:
            return await self.store.ttl(full_key)
        except StoreUnavailableError as exc:
            logger.warning("cache_ttl_failed", key=full_key, error=str(exc))
            return -1

    async def get_or_set(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        ttl: int = CacheTTL.MEDIUM,
        prefix: str = DEFAULT_PREFIX,
    ) -> T:
        """Return the cached value, or fetch, store and return it.

        Concurrent misses for the same key within this process wait on a single
        fetch instead of each calling ``fetcher``.
        """
        cached = await self.get(key, prefix)
        if cached is not None:
            return cached

        full_key = self.build_key(key, prefix)
        pending = self._inflight.get(full_key)
        if pending is not None:
            return await asyncio.shield(pending)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._inflight[full_key] = future
        try:
            value = await fetcher()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Waiters re-raise it; mark it retrieved so an unawaited future stays quiet.
            future.exception()
            raise
        else:
            future.set_result(value)
            if value is not None:
                await self.set(key, value, ttl, prefix)
            return value
        finally:
            self._inflight.pop(full_key, None)

    async def invalidate_pattern(self, pattern: str, prefix: str = DEFAULT_PREFIX) -> int:
        """Delete every key matching ``prefix:pattern`` in one batch; returns the count removed."""
        full_pattern = self.build_key(pattern, prefix)
        try:
            keys = await self.store.keys(full_pattern)
            if not keys:
                return 0
            return await self.store.delete(*keys)
        except StoreUnavailableError as exc:
            logger.warning("cache_invalidate_failed", pattern=full_pattern, error=str(exc))
            return 0

    def cacheable(
        self,
        key_builder: Callable[..., str],
        ttl: int = CacheTTL.MEDIUM,
        prefix: str = DEFAULT_PREFIX,
    ) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
        """Decorator form of :meth:`get_or_set` for coroutine functions."""

        def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
            @functools.wraps(func)
            async def wrapper(*args: Any, **kwargs: Any) -> T:
                return await self.get_or_set(
                    key_builder(*args, **kwargs),
                    lambda: func(*args, **kwargs),
                    ttl=ttl,
                    prefix=prefix,
                )

            return wrapper

        return decorator
