"""/blogs routes. Reads are public; writes need a session and are limited per user."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from starlette import status

from inkwell.adapters.api.v1.dependencies import CurrentUser, PageParams, get_blog_service
from inkwell.core.interceptors import Authenticate, ContentTypeGuard, UserRateLimit
from inkwell.core.pipeline import InterceptedRoute, intercept
from inkwell.core.rate_limiting import RELAXED, STANDARD, STRICT
from inkwell.core.responses import success_response
from inkwell.domain.entities.blog import BlogCreate, BlogUpdate
from inkwell.domain.services.blog import BlogService

router = APIRouter(route_class=InterceptedRoute)

Blogs = Annotated[BlogService, Depends(get_blog_service)]


@router.get("", summary="List posts")
async def list_blogs(
    pagination: PageParams,
    service: Blogs,
    published: Optional[bool] = Query(default=None),
):
    items, meta = await service.list_blogs(pagination, published=published)
    return success_response(items, meta=meta)


@router.get("/me/posts", summary="List the caller's posts")
@intercept(Authenticate(), UserRateLimit(RELAXED))
async def list_my_blogs(user: CurrentUser, pagination: PageParams, service: Blogs):
    items, meta = await service.list_author_blogs(user, pagination)
    return success_response(items, meta=meta)


@router.get("/slug/{slug}", summary="Get a post by slug")
async def get_blog_by_slug(slug: str, service: Blogs):
    return success_response(await service.get_blog_by_slug(slug))


@router.get("/{blog_id}", summary="Get a post")
async def get_blog(blog_id: UUID, service: Blogs):
    return success_response(await service.get_blog(blog_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a post")
@intercept(ContentTypeGuard(), Authenticate(), UserRateLimit(STRICT))
async def create_blog(payload: BlogCreate, user: CurrentUser, service: Blogs):
    blog = await service.create_blog(user, payload)
    return success_response(blog, status.HTTP_201_CREATED, message="Post created")


@router.patch("/{blog_id}", summary="Update one of the caller's posts")
@intercept(ContentTypeGuard(), Authenticate(), UserRateLimit(STANDARD))
async def update_blog(blog_id: UUID, payload: BlogUpdate, user: CurrentUser, service: Blogs):
    blog = await service.update_blog(user, blog_id, payload)
    return success_response(blog, message="Post updated")


@router.delete("/{blog_id}", summary="Delete one of the caller's posts")
@intercept(ContentTypeGuard(), Authenticate(), UserRateLimit(STANDARD))
async def delete_blog(blog_id: UUID, user: CurrentUser, service: Blogs):
    await service.delete_blog(user, blog_id)
    return success_response(None, message="Post deleted")
