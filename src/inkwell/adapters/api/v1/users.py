"""/users routes: the caller's profile and avatar, plus admin account management."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from structlog import get_logger

from inkwell.adapters.api.v1.dependencies import CurrentUser, PageParams, Resources, get_user_service
from inkwell.adapters.api.v1.schemas import ProfilePayload
from inkwell.core.interceptors import Authenticate, ContentTypeGuard, RequireRole, UserRateLimit
from inkwell.core.pipeline import InterceptedRoute, intercept
from inkwell.core.rate_limiting import RELAXED, STANDARD, STRICT
from inkwell.core.responses import success_response
from inkwell.domain.entities.user import Role, UserAdminUpdate, UserRead
from inkwell.domain.services.user import UserService

logger = get_logger(__name__)
router = APIRouter(route_class=InterceptedRoute)

Users = Annotated[UserService, Depends(get_user_service)]


def profile_payload(service: UserService, user: UserRead) -> ProfilePayload:
    return ProfilePayload(**user.model_dump(), image_url=service.avatar_url(user.image))


@router.get("/profile", summary="The caller's profile")
@intercept(Authenticate(), UserRateLimit(RELAXED))
async def get_profile(user: CurrentUser, service: Users):
    profile = await service.get_profile(user.id)
    return success_response(profile_payload(service, profile))


@router.post("/avatar", summary="Upload a new avatar")
@intercept(ContentTypeGuard(), Authenticate(), UserRateLimit(STRICT))
async def upload_avatar(
    user: CurrentUser,
    service: Users,
    resources: Resources,
    file: UploadFile = File(...),
):
    # One byte past the limit is enough to reject an oversized upload.
    data = await file.read(resources.settings.AVATAR_MAX_BYTES + 1)
    updated = await service.upload_avatar(user, data, file.content_type or "")
    return success_response(profile_payload(service, updated), message="Avatar updated")


@router.delete("/avatar", summary="Remove the caller's avatar")
@intercept(ContentTypeGuard(), Authenticate(), UserRateLimit(STRICT))
async def remove_avatar(user: CurrentUser, service: Users):
    updated = await service.remove_avatar(user)
    return success_response(profile_payload(service, updated), message="Avatar removed")


@router.get("", summary="List users (admin)")
@intercept(Authenticate(), UserRateLimit(STANDARD), RequireRole(Role.ADMIN))
async def list_users(pagination: PageParams, service: Users):
    items, meta = await service.list_users(pagination)
    return success_response(items, meta=meta)


@router.get("/{user_id}", summary="Get a user (admin)")
@intercept(Authenticate(), UserRateLimit(STANDARD), RequireRole(Role.ADMIN))
async def get_user(user_id: UUID, service: Users):
    return success_response(await service.get_user(user_id))


@router.patch("/{user_id}", summary="Update a user (admin)")
@intercept(ContentTypeGuard(), Authenticate(), UserRateLimit(STANDARD), RequireRole(Role.ADMIN))
async def update_user(user_id: UUID, payload: UserAdminUpdate, admin: CurrentUser, service: Users):
    updated = await service.update_user(user_id, payload)
    logger.info("admin_user_update", admin_id=str(admin.id), user_id=str(user_id))
    return success_response(updated, message="User updated")


@router.delete("/{user_id}", summary="Delete a user (admin)")
@intercept(ContentTypeGuard(), Authenticate(), UserRateLimit(STANDARD), RequireRole(Role.ADMIN))
async def delete_user(user_id: UUID, admin: CurrentUser, service: Users):
    await service.delete_user(user_id)
    logger.info("admin_user_delete", admin_id=str(admin.id), user_id=str(user_id))
    return success_response(None, message="User deleted")
