"""Process-wide clients shared by every request.

One :class:`AppResources` is built per application in the lifespan (or passed
in by tests through ``create_application(resources=...)``) and published on
``app.state.resources``. Interceptors and route dependencies read it at call
time.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from inkwell.core.config.settings import Settings
from inkwell.core.rate_limiting import FixedWindowRateLimiter
from inkwell.domain.services.auth.oauth import GoogleOAuthService
from inkwell.domain.services.auth.password import PasswordHasher
from inkwell.domain.services.auth.session import SessionResolver
from inkwell.domain.services.auth.token import TokenService
from inkwell.infrastructure.cache import Cache
from inkwell.infrastructure.database import (
    check_database_health,
    create_engine,
    create_session_factory,
    pool_stats,
)
from inkwell.infrastructure.email import check_smtp_connection
from inkwell.infrastructure.queue import EmailQueue, create_celery_app
from inkwell.infrastructure.redis import KeyValueStore
from inkwell.infrastructure.storage import ObjectStorage

logger = structlog.get_logger(__name__)

HealthCheck = Callable[[], Awaitable[Any]]


@dataclass
class AppResources:
    settings: Settings
    store: KeyValueStore
    cache: Cache
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    tokens: TokenService
    sessions: SessionResolver
    hasher: PasswordHasher
    oauth: GoogleOAuthService
    rate_limiter: FixedWindowRateLimiter
    storage: ObjectStorage
    email_queue: EmailQueue

    def health_checks(self) -> dict[str, HealthCheck]:
        """Probes reported by ``GET /api/health``; each raises when its service is down."""
        return {
            "redis": self.store.ping,
            "database": partial(check_database_health, self.engine),
            "storage": self.storage.check_connection,
            "queue": self.email_queue.check_connection,
            "smtp": partial(check_smtp_connection, self.settings),
        }

    def pool_stats(self) -> dict[str, Any]:
        return pool_stats(self.engine)

    async def aclose(self) -> None:
        await self.store.aclose()
        await self.engine.dispose()
        logger.info("resources_closed")


def create_resources(settings: Settings) -> AppResources:
    """Build every client from settings. Nothing connects until first use."""
    store = KeyValueStore.from_settings(settings)
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    tokens = TokenService.from_settings(store, settings)

    return AppResources(
        settings=settings,
        store=store,
        cache=Cache(store),
        engine=engine,
        session_factory=session_factory,
        tokens=tokens,
        sessions=SessionResolver(tokens, session_factory),
        hasher=PasswordHasher(settings.BCRYPT_WORK_FACTOR),
        oauth=GoogleOAuthService(settings, store),
        rate_limiter=FixedWindowRateLimiter(
            store,
            atomic=settings.RATE_LIMIT_ATOMIC,
            enabled=settings.RATE_LIMIT_ENABLED,
            fail_open=settings.RATE_LIMIT_FAIL_OPEN,
        ),
        storage=ObjectStorage.from_settings(settings),
        email_queue=EmailQueue(
            create_celery_app(settings),
            health_timeout=settings.QUEUE_HEALTH_TIMEOUT_SECONDS,
        ),
    )
