"""User persistence on top of an async SQLModel session."""

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from structlog import get_logger

from inkwell.domain.entities.user import User

logger = get_logger(__name__)


class UserRepository:
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return await self.db_session.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db_session.exec(select(User).where(User.email == email.lower()))
        return result.first()

    async def list(self, offset: int, limit: int) -> tuple[Sequence[User], int]:
        rows = await self.db_session.exec(
            select(User).order_by(User.created_at.desc()).offset(offset).limit(limit)
        )
        total = await self.db_session.exec(select(func.count()).select_from(User))
        return rows.all(), int(total.one())

    async def save(self, user: User) -> User:
        user.email = user.email.lower()
        self.db_session.add(user)
        await self.db_session.commit()
        await self.db_session.refresh(user)
        logger.debug("user_saved", user_id=str(user.id))
        return user

    async def delete(self, user: User) -> None:
        await self.db_session.delete(user)
        await self.db_session.commit()
        logger.info("user_deleted", user_id=str(user.id))
