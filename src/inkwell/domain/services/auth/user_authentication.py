from typing import Optional
from uuid import UUID

from structlog import get_logger

from inkwell.core.exceptions import (
    AuthenticationError,
    DuplicateUserError,
    EmailQueueError,
    InvalidCredentialsError,
)
from inkwell.domain.entities.user import AuthProvider, Role, User
from inkwell.domain.services.auth.oauth import GoogleOAuthService
from inkwell.domain.services.auth.password import PasswordHasher
from inkwell.domain.services.auth.token import TokenPair, TokenService
from inkwell.infrastructure.queue import EmailQueue
from inkwell.infrastructure.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class UserAuthenticationService:
    """Sign-up, sign-in, token refresh, logout and Google sign-in.

    Attributes:
        users (UserRepository): Account persistence.
        hasher (PasswordHasher): bcrypt password hashing.
        tokens (TokenService): Access/refresh token issuance.
        oauth (GoogleOAuthService): Google authorization-code flow.
        email_queue (EmailQueue): Publishes the welcome email.
    """

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenService,
        oauth: GoogleOAuthService,
        email_queue: EmailQueue,
    ):
        self.users = users
        self.hasher = hasher
        self.tokens = tokens
        self.oauth = oauth
        self.email_queue = email_queue

    async def signup(self, name: str, email: str, password: str) -> tuple[User, TokenPair]:
        if await self.users.get_by_email(email) is not None:
            raise DuplicateUserError()

        user = await self.users.save(
            User(
                name=name,
                email=email,
                hashed_password=await self.hasher.hash(password),
                role=Role.USER,
                provider=AuthProvider.SYSTEM,
            )
        )
        logger.info("user_registered", user_id=str(user.id))
        await self._send_welcome(user)
        return user, await self.tokens.issue_token_pair(user)

    async def signin(self, email: str, password: str) -> tuple[User, TokenPair]:
        user = await self.users.get_by_email(email)
        if user is None:
            raise InvalidCredentialsError()
        if user.provider != AuthProvider.SYSTEM or not user.hashed_password:
            raise AuthenticationError(
                f"This account signs in with {getattr(user.provider, 'value', user.provider)}",
                "wrong_auth_provider",
            )
        if not await self.hasher.verify(password, user.hashed_password):
            logger.warning("signin_failed", user_id=str(user.id))
            raise InvalidCredentialsError()

        logger.info("user_signed_in", user_id=str(user.id))
        return user, await self.tokens.issue_token_pair(user)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a live refresh token for a new access token."""
        owner = await self.tokens.read_refresh_token(refresh_token)
        user = await self.users.get_by_id(UUID(str(owner["id"])))
        if user is None:
            await self.tokens.revoke_refresh_token(refresh_token)
            raise AuthenticationError("Invalid or expired refresh token", "invalid_refresh_token")
        return TokenPair(
            access_token=self.tokens.create_access_token(user),
            expires_in=self.tokens.access_token_seconds,
        )

    async def logout(self, user: User, refresh_token: Optional[str]) -> bool:
        revoked = False
        if refresh_token:
            revoked = await self.tokens.revoke_refresh_token(refresh_token, str(user.id))
        logger.info("user_logged_out", user_id=str(user.id), refresh_token_revoked=revoked)
        return revoked

    async def google_authorization_url(self) -> str:
        return await self.oauth.authorization_url()

    async def google_callback(self, code: str, state: str) -> tuple[User, TokenPair]:
        profile = await self.oauth.fetch_profile(code, state)
        user = await self.users.get_by_email(profile.email)
        if user is None:
            user = await self.users.save(
                User(
                    name=profile.name,
                    email=profile.email,
                    image=profile.picture,
                    email_verified=profile.email_verified,
                    provider=AuthProvider.GOOGLE,
                )
            )
            logger.info("user_registered", user_id=str(user.id), provider="google")
            await self._send_welcome(user)
        return user, await self.tokens.issue_token_pair(user)

    async def _send_welcome(self, user: User) -> None:
        # Delivery is best-effort; the account already exists at this point.
        try:
            await self.email_queue.enqueue_welcome_email(to=user.email, name=user.name)
        except EmailQueueError as e:
            logger.warning("welcome_email_not_enqueued", user_id=str(user.id), error=e.message)
