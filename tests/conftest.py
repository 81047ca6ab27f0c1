import os

# Settings are read once at import time; fix the environment before anything imports inkwell.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient

from inkwell.core.application import create_application
from inkwell.core.config.settings import Settings
from inkwell.core.rate_limiting import FixedWindowRateLimiter
from inkwell.domain.entities.user import Role, User
from tests.fakes import FakeClock, FakeKeyValueStore, FakeResources


@pytest.fixture
def test_settings() -> Settings:
    return Settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> FakeKeyValueStore:
    return FakeKeyValueStore(clock)


@pytest.fixture
def limiter(store, clock) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(store, clock=clock)


@pytest.fixture
def resources(test_settings, store, limiter) -> FakeResources:
    return FakeResources(settings=test_settings, store=store, rate_limiter=limiter)


@pytest.fixture
def app(test_settings, resources):
    application = create_application(settings=test_settings, resources=resources)
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def author() -> User:
    return User(name="Ada", email="ada@example.com", hashed_password="x", role=Role.USER)


@pytest.fixture
def other_user() -> User:
    return User(name="Grace", email="grace@example.com", hashed_password="x", role=Role.USER)


@pytest.fixture
def admin() -> User:
    return User(name="Root", email="root@example.com", hashed_password="x", role=Role.ADMIN)
