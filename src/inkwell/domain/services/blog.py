"""Blog use cases: listing, lookup, and author-owned mutations.

Single posts are served through the read-through cache under the ``blogs``
prefix (``blogs:id:{id}`` and ``blogs:slug:{slug}``); every mutation drops
the post's entries so readers never see a stale copy past the write.
"""

from typing import Any, Optional
from uuid import UUID

from structlog import get_logger

from inkwell.core.exceptions import AuthorizationError, BlogNotFoundError, DuplicateSlugError, ValidationError
from inkwell.domain.entities.blog import Blog, BlogCreate, BlogRead, BlogUpdate
from inkwell.domain.entities.user import User, utcnow
from inkwell.infrastructure.cache import Cache, CacheTTL
from inkwell.infrastructure.repositories.blog_repository import BlogRepository
from inkwell.utils.pagination import Pagination
from inkwell.utils.slug import slugify

logger = get_logger(__name__)

CACHE_PREFIX = "blogs"


class BlogService:
    def __init__(self, blogs: BlogRepository, cache: Cache):
        self.blogs = blogs
        self.cache = cache

    async def list_blogs(
        self, pagination: Pagination, published: Optional[bool] = None
    ) -> tuple[list[BlogRead], dict[str, Any]]:
        rows, total = await self.blogs.list(pagination.offset, pagination.limit, published=published)
        return [BlogRead.model_validate(row) for row in rows], pagination.meta(total)

    async def list_author_blogs(
        self, author: User, pagination: Pagination
    ) -> tuple[list[BlogRead], dict[str, Any]]:
        rows, total = await self.blogs.list(pagination.offset, pagination.limit, author_id=author.id)
        return [BlogRead.model_validate(row) for row in rows], pagination.meta(total)

    async def get_blog(self, blog_id: UUID) -> BlogRead:
        async def fetch() -> dict[str, Any]:
            blog = await self.blogs.get_by_id(blog_id)
            if blog is None:
                raise BlogNotFoundError()
            return BlogRead.model_validate(blog).model_dump(mode="json")

        data = await self.cache.get_or_set(f"id:{blog_id}", fetch, ttl=CacheTTL.MEDIUM, prefix=CACHE_PREFIX)
        return BlogRead.model_validate(data)

    async def get_blog_by_slug(self, slug: str) -> BlogRead:
        async def fetch() -> dict[str, Any]:
            blog = await self.blogs.get_by_slug(slug)
            if blog is None:
                raise BlogNotFoundError()
            return BlogRead.model_validate(blog).model_dump(mode="json")

        data = await self.cache.get_or_set(f"slug:{slug}", fetch, ttl=CacheTTL.MEDIUM, prefix=CACHE_PREFIX)
        return BlogRead.model_validate(data)

    async def create_blog(self, author: User, payload: BlogCreate) -> BlogRead:
        slug = slugify(payload.slug or payload.title)
        if not slug:
            raise ValidationError("Cannot derive a slug from the title", "invalid_slug")
        if await self.blogs.slug_exists(slug):
            raise DuplicateSlugError(slug)

        blog = Blog(
            title=payload.title,
            slug=slug,
            content=payload.content,
            excerpt=payload.excerpt,
            cover_image=payload.cover_image,
            published=payload.published,
            published_at=utcnow() if payload.published else None,
            author_id=author.id,
        )
        blog = await self.blogs.save(blog)
        logger.info("blog_created", blog_id=str(blog.id), author_id=str(author.id))
        return BlogRead.model_validate(blog)

    async def update_blog(self, user: User, blog_id: UUID, payload: BlogUpdate) -> BlogRead:
        blog = await self._get_owned(user, blog_id)
        previous_slug = blog.slug
        changes = payload.model_dump(exclude_unset=True)

        # An explicit slug wins; a new title without one regenerates it.
        source = changes.get("slug") or changes.get("title")
        if source:
            slug = slugify(source)
            if not slug:
                raise ValidationError("Cannot derive a slug from the title", "invalid_slug")
            if slug != blog.slug and await self.blogs.slug_exists(slug, exclude_id=blog.id):
                raise DuplicateSlugError(slug)
            blog.slug = slug

        if changes.get("published") is not None:
            if changes["published"] and not blog.published:
                blog.published_at = utcnow()
            elif not changes["published"]:
                blog.published_at = None

        for field in ("title", "content", "published"):
            if changes.get(field) is not None:
                setattr(blog, field, changes[field])
        for field in ("excerpt", "cover_image"):
            if field in changes:
                setattr(blog, field, changes[field])
        blog.updated_at = utcnow()

        blog = await self.blogs.save(blog)
        await self._invalidate(blog.id, previous_slug, blog.slug)
        logger.info("blog_updated", blog_id=str(blog.id), fields=sorted(payload.model_fields_set))
        return BlogRead.model_validate(blog)

    async def delete_blog(self, user: User, blog_id: UUID) -> None:
        blog = await self._get_owned(user, blog_id)
        await self.blogs.delete(blog)
        await self._invalidate(blog.id, blog.slug)

    async def _get_owned(self, user: User, blog_id: UUID) -> Blog:
        blog = await self.blogs.get_by_id(blog_id)
        if blog is None:
            raise BlogNotFoundError()
        if blog.author_id != user.id:
            raise AuthorizationError("You can only modify your own posts", "not_blog_owner")
        return blog

    async def _invalidate(self, blog_id: UUID, *slugs: str) -> None:
        await self.cache.delete(f"id:{blog_id}", prefix=CACHE_PREFIX)
        for slug in set(slugs):
            await self.cache.delete(f"slug:{slug}", prefix=CACHE_PREFIX)
