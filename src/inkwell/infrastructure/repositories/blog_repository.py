"""Blog persistence on top of an async SQLModel session."""

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from structlog import get_logger

from inkwell.domain.entities.blog import Blog

logger = get_logger(__name__)


class BlogRepository:
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_by_id(self, blog_id: UUID) -> Optional[Blog]:
        return await self.db_session.get(Blog, blog_id)

    async def get_by_slug(self, slug: str) -> Optional[Blog]:
        result = await self.db_session.exec(select(Blog).where(Blog.slug == slug))
        return result.first()

    async def slug_exists(self, slug: str, exclude_id: Optional[UUID] = None) -> bool:
        query = select(Blog.id).where(Blog.slug == slug)
        if exclude_id is not None:
            query = query.where(Blog.id != exclude_id)
        result = await self.db_session.exec(query)
        return result.first() is not None

    async def list(
        self,
        offset: int,
        limit: int,
        published: Optional[bool] = None,
        author_id: Optional[UUID] = None,
    ) -> tuple[Sequence[Blog], int]:
        query = select(Blog)
        count = select(func.count()).select_from(Blog)
        if published is not None:
            query = query.where(Blog.published == published)
            count = count.where(Blog.published == published)
        if author_id is not None:
            query = query.where(Blog.author_id == author_id)
            count = count.where(Blog.author_id == author_id)

        rows = await self.db_session.exec(
            query.order_by(Blog.created_at.desc()).offset(offset).limit(limit)
        )
        total = await self.db_session.exec(count)
        return rows.all(), int(total.one())

    async def save(self, blog: Blog) -> Blog:
        self.db_session.add(blog)
        await self.db_session.commit()
        await self.db_session.refresh(blog)
        logger.debug("blog_saved", blog_id=str(blog.id), slug=blog.slug)
        return blog

    async def delete(self, blog: Blog) -> None:
        await self.db_session.delete(blog)
        await self.db_session.commit()
        logger.info("blog_deleted", blog_id=str(blog.id))
