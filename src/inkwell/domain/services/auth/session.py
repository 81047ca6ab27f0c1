"""Resolve a bearer credential into an authenticated session."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from structlog import get_logger

from inkwell.core.exceptions import AuthenticationError, UpstreamUnavailableError
from inkwell.domain.entities.user import User
from inkwell.domain.services.auth.token import TokenService

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthSession:
    user: User
    claims: Mapping[str, Any]

    @property
    def token_id(self) -> str:
        return str(self.claims.get("jti", ""))


class SessionResolver:
    """Validates the access token and loads its user.

    Raises ``AuthenticationError`` for any missing, malformed or stale
    credential (including tokens of deleted users) and
    ``UpstreamUnavailableError`` when the user cannot be loaded.
    """

    def __init__(self, tokens: TokenService, session_factory: async_sessionmaker[AsyncSession]):
        self.tokens = tokens
        self.session_factory = session_factory

    async def resolve(self, authorization: Optional[str]) -> AuthSession:
        if not authorization:
            raise AuthenticationError("Authentication required", "missing_credentials")
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("Invalid authorization header", "invalid_authorization_header")

        claims = self.tokens.decode_access_token(token.strip())
        try:
            user_id = UUID(str(claims["sub"]))
        except ValueError as e:
            raise AuthenticationError("Invalid or expired token", "invalid_token") from e

        try:
            async with self.session_factory() as db_session:
                user = await db_session.get(User, user_id)
        except (SQLAlchemyError, OSError) as e:
            logger.error("session_user_lookup_failed", error=str(e))
            raise UpstreamUnavailableError("Database unavailable", "database_unavailable") from e

        if user is None:
            raise AuthenticationError("User no longer exists", "invalid_token")
        return AuthSession(user=user, claims=claims)
