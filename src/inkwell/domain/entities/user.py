from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Column, Field, SQLModel, String


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Role of a user within the system.

    Attributes:
        ADMIN: May list, edit and delete any account.
        USER: Regular author.
    """

    ADMIN = "admin"
    USER = "user"


class AuthProvider(str, Enum):
    SYSTEM = "system"
    GOOGLE = "google"


class User(SQLModel, table=True):
    """A registered account.

    Users authenticate either with email and password (``provider=system``,
    ``hashed_password`` set) or through Google (``provider=google``, no password).
    ``image`` holds the object-storage key of the current avatar, if any.
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=120)
    email: str = Field(sa_column=Column(String(320), unique=True, index=True, nullable=False))
    hashed_password: Optional[str] = Field(default=None, max_length=255)
    image: Optional[str] = Field(default=None, max_length=512)
    role: Role = Field(default=Role.USER, sa_column=Column(String(20), nullable=False))
    provider: AuthProvider = Field(
        default=AuthProvider.SYSTEM, sa_column=Column(String(20), nullable=False)
    )
    email_verified: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    def touch(self) -> None:
        self.updated_at = utcnow()


class UserRead(SQLModel):
    id: UUID
    name: str
    email: str
    image: Optional[str] = None
    role: Role
    provider: AuthProvider
    email_verified: bool
    created_at: datetime
    updated_at: datetime


class UserAdminUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    role: Optional[Role] = None
    email_verified: Optional[bool] = None
