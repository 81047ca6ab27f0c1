"""Application factory for creating and configuring the FastAPI application.

This module provides a factory function to create a properly configured FastAPI application
with all necessary middleware, exception handlers, and routers registered.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from inkwell.adapters.api.v1 import api_router
from inkwell.core.config.settings import Settings, settings as default_settings
from inkwell.core.handlers import register_exception_handlers
from inkwell.core.lifecycle import create_lifespan_manager
from inkwell.core.middleware import configure_middleware
from inkwell.core.resources import AppResources


def create_application(
    settings: Optional[Settings] = None,
    resources: Optional[AppResources] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings (Optional[Settings]): Settings to use; defaults to the module singleton
        resources (Optional[AppResources]): Pre-built shared clients, mainly for tests

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    settings = settings or default_settings
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Blog platform API.",
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.DEBUG else None,
        lifespan=create_lifespan_manager(settings, resources),
        default_response_class=JSONResponse,
    )
    if resources is not None:
        app.state.resources = resources

    configure_middleware(app, settings)
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    return app
