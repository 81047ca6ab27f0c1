import pytest
from sqlalchemy.exc import OperationalError

from inkwell.core.exceptions import AuthenticationError, UpstreamUnavailableError
from inkwell.domain.services.auth.session import SessionResolver
from inkwell.domain.services.auth.token import TokenService


class StubSession:
    def __init__(self, users, error=None):
        self.users = users
        self.error = error

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def get(self, model, key):
        if self.error is not None:
            raise self.error
        return self.users.get(key)


@pytest.fixture
def tokens(store):
    return TokenService(store, secret_key="s" * 32)


def make_resolver(tokens, users, error=None):
    return SessionResolver(tokens, lambda: StubSession(users, error))


@pytest.mark.asyncio
async def test_resolves_bearer_token(tokens, author):
    resolver = make_resolver(tokens, {author.id: author})
    session = await resolver.resolve(f"Bearer {tokens.create_access_token(author)}")
    assert session.user is author
    assert session.token_id == session.claims["jti"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "header, code",
    [
        (None, "missing_credentials"),
        ("", "missing_credentials"),
        ("Basic dXNlcjpwdw==", "invalid_authorization_header"),
        ("Bearer ", "invalid_authorization_header"),
        ("Bearer not-a-jwt", "invalid_token"),
    ],
)
async def test_rejects_bad_headers(tokens, author, header, code):
    resolver = make_resolver(tokens, {author.id: author})
    with pytest.raises(AuthenticationError) as exc_info:
        await resolver.resolve(header)
    assert exc_info.value.code == code


@pytest.mark.asyncio
async def test_deleted_user_is_unauthenticated(tokens, author):
    resolver = make_resolver(tokens, {})
    with pytest.raises(AuthenticationError) as exc_info:
        await resolver.resolve(f"Bearer {tokens.create_access_token(author)}")
    assert exc_info.value.code == "invalid_token"


@pytest.mark.asyncio
async def test_database_outage_is_upstream_error(tokens, author):
    error = OperationalError("SELECT 1", {}, ConnectionRefusedError())
    resolver = make_resolver(tokens, {author.id: author}, error=error)
    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await resolver.resolve(f"Bearer {tokens.create_access_token(author)}")
    assert exc_info.value.code == "database_unavailable"
