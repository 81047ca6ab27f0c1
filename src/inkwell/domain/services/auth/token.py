import json
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional
from uuid import UUID

from jwt import PyJWTError
from jwt import decode as jwt_decode
from jwt import encode as jwt_encode
from pydantic import BaseModel
from structlog import get_logger

from inkwell.core.config.settings import Settings
from inkwell.core.exceptions import AuthenticationError
from inkwell.domain.entities.user import User
from inkwell.infrastructure.redis import KeyValueStore

logger = get_logger(__name__)

REFRESH_TOKEN_KEY = "users:refresh_token:{token}"


class TokenPair(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    expires_in: int


class TokenService:
    """Issues and validates access and refresh tokens.

    Access tokens are short-lived HS256 JWTs signed with the application secret.
    Refresh tokens are opaque 128-character hex strings; the key-value store maps
    each one to the owning user for ``refresh_ttl`` seconds, so revoking a
    refresh token is a single delete.

    Attributes:
        store (KeyValueStore): Holds refresh tokens.
    """

    def __init__(
        self,
        store: KeyValueStore,
        secret_key: str,
        algorithm: str = "HS256",
        issuer: str = "inkwell",
        access_token_minutes: int = 15,
        refresh_ttl: int = 7200,
    ):
        self.store = store
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._issuer = issuer
        self.access_token_minutes = access_token_minutes
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, store: KeyValueStore, settings: Settings) -> "TokenService":
        return cls(
            store,
            secret_key=settings.SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            issuer=settings.JWT_ISSUER,
            access_token_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
            refresh_ttl=settings.REFRESH_TOKEN_EXPIRE_SECONDS,
        )

    @property
    def access_token_seconds(self) -> int:
        return self.access_token_minutes * 60

    def create_access_token(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "role": str(getattr(user.role, "value", user.role)),
            "iss": self._issuer,
            "iat": now,
            "exp": now + timedelta(minutes=self.access_token_minutes),
            "jti": secrets.token_urlsafe(24),
        }
        token = jwt_encode(payload, self._secret_key, algorithm=self._algorithm)
        logger.debug("access_token_created", user_id=str(user.id))
        return token

    def decode_access_token(self, token: str) -> Mapping[str, Any]:
        """Validate signature, issuer and expiry.

        Raises:
            AuthenticationError: If the token is malformed, forged or expired.
        """
        try:
            return jwt_decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub", "jti"]},
            )
        except PyJWTError as e:
            logger.warning("access_token_rejected", error=str(e))
            raise AuthenticationError("Invalid or expired token", "invalid_token") from e

    async def create_refresh_token(self, user: User) -> str:
        token = secrets.token_hex(64)
        payload = json.dumps(
            {"id": str(user.id), "email": user.email, "role": str(getattr(user.role, "value", user.role))}
        )
        await self.store.set(REFRESH_TOKEN_KEY.format(token=token), payload, self.refresh_ttl)
        return token

    async def read_refresh_token(self, token: str) -> Mapping[str, Any]:
        """Return the user record cached for ``token``.

        Raises:
            AuthenticationError: If the token is unknown, revoked or expired.
        """
        raw = await self.store.get(REFRESH_TOKEN_KEY.format(token=token))
        if raw is None:
            raise AuthenticationError("Invalid or expired refresh token", "invalid_refresh_token")
        try:
            owner = json.loads(raw)
            UUID(str(owner["id"]))
        except (ValueError, TypeError, KeyError) as e:
            logger.error("refresh_token_payload_corrupt", error=str(e))
            raise AuthenticationError("Invalid or expired refresh token", "invalid_refresh_token") from e
        return owner

    async def revoke_refresh_token(self, token: str, user_id: Optional[str] = None) -> bool:
        """Delete ``token``; when ``user_id`` is given only that user's token is removed."""
        if user_id is not None:
            try:
                owner = await self.read_refresh_token(token)
            except AuthenticationError:
                return False
            if owner.get("id") != user_id:
                return False
        return await self.store.delete(REFRESH_TOKEN_KEY.format(token=token)) > 0

    async def issue_token_pair(self, user: User) -> TokenPair:
        return TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=await self.create_refresh_token(user),
            expires_in=self.access_token_seconds,
        )
