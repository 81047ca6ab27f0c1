"""Application lifecycle management.

This module handles application startup and shutdown events, ensuring proper
initialization and cleanup of application resources.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from inkwell.core.config.settings import Settings
from inkwell.core.logging import logger
from inkwell.core.resources import AppResources, create_resources
from inkwell.infrastructure.database import create_db_and_tables


def create_lifespan_manager(settings: Settings, resources: Optional[AppResources] = None):
    """Create the application lifespan manager.

    Args:
        settings (Settings): Application settings
        resources (Optional[AppResources]): Pre-built resources. When given they
            are used as-is: no connection is opened, no tables are created and
            they are not closed on shutdown.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build resources, connect the store, create tables; close everything on exit.

        Raises:
            StoreUnavailableError: If the eager store connection fails
            OperationalError: If the database stays unreachable
        """
        owned = resources is None
        app_resources = create_resources(settings) if owned else resources
        app.state.resources = app_resources

        if owned:
            if not settings.REDIS_LAZY_CONNECT:
                await app_resources.store.connect(ready_check=settings.REDIS_ENABLE_READY_CHECK)
            await create_db_and_tables(app_resources.engine)
        logger.info("application_startup", env=settings.APP_ENV, version=settings.VERSION)

        try:
            yield
        finally:
            if owned:
                await app_resources.aclose()
            logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
