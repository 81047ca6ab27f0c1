import pytest

from inkwell.adapters.api.v1.dependencies import get_blog_service, get_user_service
from inkwell.domain.services.blog import BlogService
from inkwell.domain.services.user import UserService
from tests.fakes import FakeBlogRepository, FakeUserRepository


@pytest.fixture
def blog_repo() -> FakeBlogRepository:
    return FakeBlogRepository()


@pytest.fixture
def user_repo(author, other_user, admin) -> FakeUserRepository:
    return FakeUserRepository(author, other_user, admin)


@pytest.fixture
def services(app, resources, blog_repo, user_repo):
    """Route the blog and user endpoints to in-memory repositories."""
    app.dependency_overrides[get_blog_service] = lambda: BlogService(blog_repo, resources.cache)
    app.dependency_overrides[get_user_service] = lambda: UserService(
        user_repo,
        resources.cache,
        resources.storage,
        avatar_max_bytes=resources.settings.AVATAR_MAX_BYTES,
    )
    return app.dependency_overrides


@pytest.fixture
def login(resources):
    return resources.sessions.login
