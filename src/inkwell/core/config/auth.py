"""Authentication settings: token lifetimes and OAuth provider credentials.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings


class AuthSettings(BaseSettings):
    """Defines settings for token issuance and the Google OAuth provider.

    Access tokens are HS256 JWTs signed with ``SECRET_KEY``; refresh tokens are
    opaque random strings kept in Redis for ``REFRESH_TOKEN_EXPIRE_SECONDS``.

    Security Note:
        - OAuth client secrets should never be exposed in logs or version control.
    """

    # OAuth settings
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: SecretStr = SecretStr("")
    GOOGLE_REDIRECT_URI: str = "http://localhost:8000/api/auth/google/callback"
    OAUTH_STATE_TTL_SECONDS: int = Field(ge=1, default=600)

    # Token settings
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "inkwell"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(ge=1, default=15)
    REFRESH_TOKEN_EXPIRE_SECONDS: int = Field(ge=1, default=7200)

    BCRYPT_WORK_FACTOR: int = Field(ge=4, le=31, default=12)
