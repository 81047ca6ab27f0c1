import secrets
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from authlib.integrations.httpx_client import AsyncOAuth2Client
from authlib.oauth2.rfc6749.errors import OAuth2Error
from structlog import get_logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from inkwell.core.config.settings import Settings
from inkwell.core.exceptions import AuthenticationError, UpstreamUnavailableError, ValidationError
from inkwell.infrastructure.redis import KeyValueStore

logger = get_logger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
OAUTH_STATE_KEY = "oauth:state:{state}"


@dataclass(frozen=True)
class GoogleProfile:
    email: str
    name: str
    picture: Optional[str]
    email_verified: bool


class GoogleOAuthService:
    """
    Authorization-code flow against Google.

    The ``state`` handed to Google is remembered in the key-value store for a
    few minutes and consumed on callback, so each authorization URL can be
    redeemed once.
    """

    def __init__(self, settings: Settings, store: KeyValueStore):
        self.store = store
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET.get_secret_value()
        self.redirect_uri = settings.GOOGLE_REDIRECT_URI
        self.state_ttl = settings.OAUTH_STATE_TTL_SECONDS

    def _client(self) -> AsyncOAuth2Client:
        if not self.client_id or not self.client_secret:
            raise ValidationError("Google sign-in is not configured", "oauth_not_configured")
        return AsyncOAuth2Client(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope="openid email profile",
            redirect_uri=self.redirect_uri,
        )

    async def authorization_url(self) -> str:
        state = secrets.token_urlsafe(32)
        async with self._client() as client:
            url, _ = client.create_authorization_url(
                GOOGLE_AUTHORIZE_URL, state=state, access_type="offline", prompt="select_account"
            )
        await self.store.set(OAUTH_STATE_KEY.format(state=state), "1", self.state_ttl)
        return url

    async def fetch_profile(self, code: str, state: str) -> GoogleProfile:
        """
        Exchange the authorization code and read the user's profile.

        Raises:
            AuthenticationError: If the state is unknown or Google rejects the code.
            UpstreamUnavailableError: If Google cannot be reached.
        """
        if not await self.store.delete(OAUTH_STATE_KEY.format(state=state)):
            raise AuthenticationError("Invalid or expired OAuth state", "invalid_oauth_state")

        try:
            userinfo = await self._exchange(code)
        except OAuth2Error as e:
            logger.warning("oauth_code_rejected", provider="google", error=str(e))
            raise AuthenticationError("Google sign-in failed", "oauth_failed") from e
        except httpx.HTTPError as e:
            logger.error("oauth_provider_unreachable", provider="google", error=str(e))
            raise UpstreamUnavailableError("Google sign-in is unavailable", "oauth_unavailable") from e

        email = userinfo.get("email")
        if not email:
            raise AuthenticationError("Google account has no email address", "oauth_failed")
        return GoogleProfile(
            email=email.lower(),
            name=userinfo.get("name") or email.split("@", 1)[0],
            picture=userinfo.get("picture"),
            email_verified=bool(userinfo.get("email_verified", False)),
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _exchange(self, code: str) -> Dict[str, Any]:
        async with self._client() as client:
            await client.fetch_token(GOOGLE_TOKEN_URL, code=code)
            response = await client.get(GOOGLE_USERINFO_URL)
            response.raise_for_status()
            return response.json()
