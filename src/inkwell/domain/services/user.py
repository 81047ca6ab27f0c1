"""Account use cases: profile, avatar management and administration."""

import secrets
from typing import Any
from uuid import UUID

from structlog import get_logger

from inkwell.core.exceptions import AvatarValidationError, UserNotFoundError
from inkwell.domain.entities.user import User, UserAdminUpdate, UserRead
from inkwell.infrastructure.cache import Cache, CacheTTL
from inkwell.infrastructure.repositories.user_repository import UserRepository
from inkwell.infrastructure.storage import ObjectStorage
from inkwell.utils.pagination import Pagination

logger = get_logger(__name__)

CACHE_PREFIX = "users"
AVATAR_PREFIX = "avatars"
AVATAR_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def avatar_key(user_id: UUID, content_type: str) -> str:
    return f"{AVATAR_PREFIX}/{user_id}/{secrets.token_hex(16)}.{AVATAR_CONTENT_TYPES[content_type]}"


class UserService:
    def __init__(self, users: UserRepository, cache: Cache, storage: ObjectStorage, avatar_max_bytes: int):
        self.users = users
        self.cache = cache
        self.storage = storage
        self.avatar_max_bytes = avatar_max_bytes

    async def get_profile(self, user_id: UUID) -> UserRead:
        async def fetch() -> dict[str, Any]:
            return UserRead.model_validate(await self._get(user_id)).model_dump(mode="json")

        data = await self.cache.get_or_set(f"profile:{user_id}", fetch, ttl=CacheTTL.SHORT, prefix=CACHE_PREFIX)
        return UserRead.model_validate(data)

    async def list_users(self, pagination: Pagination) -> tuple[list[UserRead], dict[str, Any]]:
        rows, total = await self.users.list(pagination.offset, pagination.limit)
        return [UserRead.model_validate(row) for row in rows], pagination.meta(total)

    async def get_user(self, user_id: UUID) -> UserRead:
        return UserRead.model_validate(await self._get(user_id))

    async def update_user(self, user_id: UUID, payload: UserAdminUpdate) -> UserRead:
        user = await self._get(user_id)
        for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(user, field, value)
        user.touch()
        user = await self.users.save(user)
        await self.cache.delete(f"profile:{user_id}", prefix=CACHE_PREFIX)
        logger.info("user_updated_by_admin", user_id=str(user_id), fields=sorted(payload.model_fields_set))
        return UserRead.model_validate(user)

    async def delete_user(self, user_id: UUID) -> None:
        user = await self._get(user_id)
        for key in await self.storage.list_objects(f"{AVATAR_PREFIX}/{user_id}/"):
            await self.storage.delete_object(key)
        await self.users.delete(user)
        await self.cache.delete(f"profile:{user_id}", prefix=CACHE_PREFIX)
        # The user's posts went with the account; drop every cached post.
        removed = await self.cache.invalidate_pattern("*", prefix="blogs")
        logger.info("user_deleted_by_admin", user_id=str(user_id), cache_entries_removed=removed)

    async def upload_avatar(self, user: User, data: bytes, content_type: str) -> UserRead:
        if content_type not in AVATAR_CONTENT_TYPES:
            raise AvatarValidationError(
                "Unsupported image type",
                details={"allowed": sorted(AVATAR_CONTENT_TYPES)},
            )
        if not data:
            raise AvatarValidationError("Uploaded file is empty")
        if len(data) > self.avatar_max_bytes:
            raise AvatarValidationError(
                "Avatar exceeds the maximum size",
                details={"max_bytes": self.avatar_max_bytes},
            )

        key = await self.storage.put_object(avatar_key(user.id, content_type), data, content_type)
        previous = user.image
        user.image = key
        user.touch()
        user = await self.users.save(user)
        await self._delete_stored_avatar(previous)
        await self.cache.delete(f"profile:{user.id}", prefix=CACHE_PREFIX)
        logger.info("avatar_uploaded", user_id=str(user.id), key=key, size=len(data))
        return UserRead.model_validate(user)

    async def remove_avatar(self, user: User) -> UserRead:
        previous = user.image
        if previous is None:
            return UserRead.model_validate(user)
        user.image = None
        user.touch()
        user = await self.users.save(user)
        await self._delete_stored_avatar(previous)
        await self.cache.delete(f"profile:{user.id}", prefix=CACHE_PREFIX)
        logger.info("avatar_removed", user_id=str(user.id))
        return UserRead.model_validate(user)

    def avatar_url(self, image: str | None) -> str | None:
        """Public URL for a stored avatar; external URLs (Google pictures) pass through."""
        if image is None or not image.startswith(f"{AVATAR_PREFIX}/"):
            return image
        return self.storage.object_url(image)

    async def _delete_stored_avatar(self, image: str | None) -> None:
        if image is None or not image.startswith(f"{AVATAR_PREFIX}/"):
            return
        if await self.storage.head_object(image) is not None:
            await self.storage.delete_object(image)

    async def _get(self, user_id: UUID) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user
