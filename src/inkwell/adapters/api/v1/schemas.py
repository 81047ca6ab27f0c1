"""Request and response bodies for the v1 API."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from inkwell.domain.entities.user import UserRead
from inkwell.domain.services.auth.token import TokenPair


class SignupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class SigninRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None


class AuthPayload(BaseModel):
    user: UserRead
    tokens: TokenPair


class ProfilePayload(UserRead):
    image_url: Optional[str] = None
