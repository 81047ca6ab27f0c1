"""FastAPI dependencies shared by the v1 routers.

Services are assembled per request from the process-wide resources and a
request-scoped database session. Tests replace any of these through
``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated, AsyncIterator, Optional

from fastapi import Depends, Query, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from inkwell.core.exceptions import AuthenticationError
from inkwell.core.pipeline import get_request_context
from inkwell.core.resources import AppResources
from inkwell.domain.entities.user import User
from inkwell.domain.services.auth.user_authentication import UserAuthenticationService
from inkwell.domain.services.blog import BlogService
from inkwell.domain.services.user import UserService
from inkwell.infrastructure.database import session_scope
from inkwell.infrastructure.repositories.blog_repository import BlogRepository
from inkwell.infrastructure.repositories.user_repository import UserRepository
from inkwell.utils.pagination import Pagination, parse_pagination

__all__ = [
    "get_resources",
    "get_db_session",
    "get_current_user",
    "get_pagination",
    "get_auth_service",
    "get_blog_service",
    "get_user_service",
    "Resources",
    "DBSession",
    "CurrentUser",
    "PageParams",
]


def get_resources(request: Request) -> AppResources:
    return request.app.state.resources


Resources = Annotated[AppResources, Depends(get_resources)]


async def get_db_session(resources: Resources) -> AsyncIterator[AsyncSession]:
    async with session_scope(resources.session_factory) as session:
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_current_user(request: Request) -> User:
    """The user put on the request context by the ``Authenticate`` interceptor.

    Raises:
        AuthenticationError: If the route was reached without an authenticated session.
    """
    user = get_request_context(request).user
    if user is None:
        raise AuthenticationError("Authentication required", "authentication_required")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_pagination(
    page: Optional[str] = Query(default=None, description="1-based page number"),
    limit: Optional[str] = Query(default=None, description="Page size, at most 100"),
) -> Pagination:
    return parse_pagination(page, limit)


PageParams = Annotated[Pagination, Depends(get_pagination)]


def get_auth_service(resources: Resources, db_session: DBSession) -> UserAuthenticationService:
    return UserAuthenticationService(
        users=UserRepository(db_session),
        hasher=resources.hasher,
        tokens=resources.tokens,
        oauth=resources.oauth,
        email_queue=resources.email_queue,
    )


def get_blog_service(resources: Resources, db_session: DBSession) -> BlogService:
    return BlogService(BlogRepository(db_session), resources.cache)


def get_user_service(resources: Resources, db_session: DBSession) -> UserService:
    return UserService(
        UserRepository(db_session),
        resources.cache,
        resources.storage,
        avatar_max_bytes=resources.settings.AVATAR_MAX_BYTES,
    )
