from unittest.mock import AsyncMock, MagicMock

import pytest

from inkwell.adapters.api.v1.dependencies import get_auth_service
from inkwell.core.exceptions import InvalidCredentialsError
from inkwell.core.interceptors import ContentTypeGuard
from inkwell.core.pipeline import INTERCEPTORS_ATTR, InterceptedRoute

pytestmark = pytest.mark.feature


def test_body_without_content_type_is_rejected_before_auth(client):
    response = client.post("/api/blogs", content=b'{"title": "x"}')

    assert response.status_code == 415
    body = response.json()
    assert body["success"] is False
    assert body["error"]["details"]["received"] is None


def test_admin_route_requires_authentication_first(client):
    response = client.get("/api/users")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_admin_route_rejects_plain_users(client, services, login, author):
    response = client.get("/api/users", headers=login(author))

    assert response.status_code == 403
    assert response.json()["error"]["details"]["code"] == "permission_denied"


def test_admin_route_lists_users(client, services, login, admin):
    response = client.get("/api/users", headers=login(admin), params={"limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["meta"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}


def test_invalid_token_is_unauthorized(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
    assert response.json()["error"]["details"]["code"] == "invalid_token"


def test_session_store_outage_is_server_error(client, resources, author):
    headers = resources.sessions.login(author)
    resources.sessions.down = True

    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 500
    assert response.json()["error"]["details"]["code"] == "database_unavailable"


def test_signin_is_strictly_limited(app, client):
    service = MagicMock()
    service.signin = AsyncMock(side_effect=InvalidCredentialsError())
    app.dependency_overrides[get_auth_service] = lambda: service
    payload = {"email": "ada@example.com", "password": "wrong-password"}

    statuses = [client.post("/api/auth/signin", json=payload).status_code for _ in range(5)]
    rejected = client.post("/api/auth/signin", json=payload)

    assert statuses == [401] * 5
    assert rejected.status_code == 429
    assert rejected.headers["RateLimit-Limit"] == "5"
    assert rejected.headers["RateLimit-Remaining"] == "0"
    assert int(rejected.headers["Retry-After"]) > 0
    assert rejected.json()["error"]["details"]["code"] == "rate_limit_exceeded"
    assert service.signin.await_count == 5


def test_global_limit_headers_on_public_route(client, services):
    response = client.get("/api/blogs")

    assert response.status_code == 200
    assert response.headers["RateLimit-Limit"] == "100"
    assert response.headers["RateLimit-Remaining"] == "99"


def test_route_limit_headers_take_precedence(client, login, author):
    response = client.get("/api/auth/me", headers=login(author))

    assert response.status_code == 200
    assert response.headers["RateLimit-Limit"] == "60"
    assert response.json()["data"]["email"] == "ada@example.com"


def test_users_are_limited_independently(client, login, author, other_user, store):
    client.get("/api/auth/me", headers=login(author))
    client.get("/api/auth/me", headers=login(other_user))

    assert store.data[f"rate_limit:relaxed:user:{author.id}"] == 1
    assert store.data[f"rate_limit:relaxed:user:{other_user.id}"] == 1


def test_store_outage_fails_closed(client, store):
    store.down = True

    response = client.get("/api/blogs")

    assert response.status_code == 500
    assert response.json()["error"]["details"]["code"] == "rate_limit_store_unavailable"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_every_intercepted_write_route_checks_content_type(app):
    unguarded = []
    for route in app.routes:
        if not isinstance(route, InterceptedRoute) or route.methods <= {"GET", "HEAD", "OPTIONS"}:
            continue
        interceptors = getattr(route.endpoint, INTERCEPTORS_ATTR, ())
        if not any(isinstance(i, ContentTypeGuard) for i in interceptors):
            unguarded.append(f"{sorted(route.methods)} {route.path}")

    assert unguarded == []
