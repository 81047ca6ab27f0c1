from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Text, Uuid
from sqlmodel import Column, Field, SQLModel, String

from inkwell.domain.entities.user import utcnow


class BlogBase(SQLModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(sa_column=Column(Text, nullable=False))
    excerpt: Optional[str] = Field(default=None, max_length=500)
    cover_image: Optional[str] = Field(default=None, max_length=512)
    published: bool = Field(default=False)


class Blog(BlogBase, table=True):
    """A blog post owned by its author.

    ``slug`` is unique across all posts. ``published_at`` is stamped the first
    time the post is published and cleared again if it is unpublished.
    """

    __tablename__ = "blogs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    slug: str = Field(sa_column=Column(String(220), unique=True, index=True, nullable=False))
    author_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    published_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class BlogCreate(BlogBase):
    slug: Optional[str] = Field(default=None, max_length=220)


class BlogUpdate(SQLModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=220)
    content: Optional[str] = None
    excerpt: Optional[str] = Field(default=None, max_length=500)
    cover_image: Optional[str] = Field(default=None, max_length=512)
    published: Optional[bool] = None


class BlogRead(SQLModel):
    id: UUID
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    published: bool
    published_at: Optional[datetime] = None
    author_id: UUID
    created_at: datetime
    updated_at: datetime
