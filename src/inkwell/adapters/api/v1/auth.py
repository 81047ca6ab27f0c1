"""/auth routes: email/password accounts, token refresh, logout and Google sign-in."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from starlette import status

from inkwell.adapters.api.v1.dependencies import CurrentUser, get_auth_service
from inkwell.adapters.api.v1.schemas import (
    AuthPayload,
    LogoutRequest,
    RefreshTokenRequest,
    SigninRequest,
    SignupRequest,
)
from inkwell.core.interceptors import Authenticate, ContentTypeGuard, UserRateLimit
from inkwell.core.pipeline import InterceptedRoute, intercept
from inkwell.core.rate_limiting import RELAXED, STANDARD, STRICT
from inkwell.core.responses import success_response
from inkwell.domain.entities.user import UserRead
from inkwell.domain.services.auth.user_authentication import UserAuthenticationService

router = APIRouter(route_class=InterceptedRoute)

AuthService = Annotated[UserAuthenticationService, Depends(get_auth_service)]


def auth_payload(user, tokens) -> dict:
    return AuthPayload(user=UserRead.model_validate(user), tokens=tokens).model_dump(mode="json")


@router.get("/google", summary="Start Google sign-in")
async def google_authorize(service: AuthService):
    url = await service.google_authorization_url()
    return success_response({"url": url})


@router.get("/google/callback", summary="Complete Google sign-in")
async def google_callback(
    service: AuthService,
    code: str = Query(min_length=1),
    state: str = Query(min_length=1),
):
    user, tokens = await service.google_callback(code, state)
    return success_response(auth_payload(user, tokens), message="Signed in with Google")


@router.post("/signup", status_code=status.HTTP_201_CREATED, summary="Register with email and password")
@intercept(ContentTypeGuard(), UserRateLimit(STRICT))
async def signup(payload: SignupRequest, service: AuthService):
    user, tokens = await service.signup(payload.name, payload.email, payload.password)
    return success_response(
        auth_payload(user, tokens), status.HTTP_201_CREATED, message="Account created"
    )


@router.post("/signin", summary="Sign in with email and password")
@intercept(ContentTypeGuard(), UserRateLimit(STRICT))
async def signin(payload: SigninRequest, service: AuthService):
    user, tokens = await service.signin(payload.email, payload.password)
    return success_response(auth_payload(user, tokens), message="Signed in")


@router.post("/refresh-token", summary="Exchange a refresh token for a new access token")
@intercept(ContentTypeGuard(), UserRateLimit(STANDARD))
async def refresh_token(payload: RefreshTokenRequest, service: AuthService):
    tokens = await service.refresh(payload.refresh_token)
    return success_response(tokens.model_dump(mode="json", exclude_none=True))


@router.post("/logout", summary="Revoke the caller's refresh token")
@intercept(ContentTypeGuard(), Authenticate(), UserRateLimit(STANDARD))
async def logout(payload: LogoutRequest, user: CurrentUser, service: AuthService):
    revoked = await service.logout(user, payload.refresh_token)
    return success_response({"refresh_token_revoked": revoked}, message="Logged out")


@router.get("/me", summary="Current user")
@intercept(Authenticate(), UserRateLimit(RELAXED))
async def me(user: CurrentUser):
    return success_response(UserRead.model_validate(user))
