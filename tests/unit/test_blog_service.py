import pytest

from inkwell.core.exceptions import AuthorizationError, BlogNotFoundError, DuplicateSlugError, ValidationError
from inkwell.domain.entities.blog import BlogCreate, BlogUpdate
from inkwell.domain.services.blog import BlogService
from inkwell.infrastructure.cache import Cache
from inkwell.utils.pagination import Pagination
from tests.fakes import FakeBlogRepository


@pytest.fixture
def blogs():
    return FakeBlogRepository()


@pytest.fixture
def service(blogs, store):
    return BlogService(blogs, Cache(store))


async def create(service, author, title="Hello World", **fields):
    return await service.create_blog(author, BlogCreate(title=title, content="Body", **fields))


@pytest.mark.asyncio
async def test_create_derives_slug_from_title(service, author):
    blog = await create(service, author, "Hello, World!")
    assert blog.slug == "hello-world"
    assert blog.author_id == author.id
    assert blog.published is False
    assert blog.published_at is None


@pytest.mark.asyncio
async def test_create_prefers_explicit_slug(service, author):
    blog = await create(service, author, slug="My Custom Slug", published=True)
    assert blog.slug == "my-custom-slug"
    assert blog.published_at is not None


@pytest.mark.asyncio
async def test_duplicate_slug_is_conflict(service, author, other_user):
    await create(service, author)
    with pytest.raises(DuplicateSlugError) as exc_info:
        await create(service, other_user)
    assert exc_info.value.details == {"slug": "hello-world"}


@pytest.mark.asyncio
async def test_title_without_slug_characters_is_rejected(service, author):
    with pytest.raises(ValidationError):
        await create(service, author, "!!!")


@pytest.mark.asyncio
async def test_get_blog_is_cached(service, blogs, author):
    created = await create(service, author)
    first = await service.get_blog(created.id)
    second = await service.get_blog(created.id)
    assert first == second
    assert blogs.reads == 1


@pytest.mark.asyncio
async def test_get_blog_by_slug_is_cached_separately(service, blogs, store, author):
    created = await create(service, author)
    assert (await service.get_blog_by_slug("hello-world")).id == created.id
    assert "blogs:slug:hello-world" in store.data


@pytest.mark.asyncio
async def test_missing_blog(service, author):
    with pytest.raises(BlogNotFoundError):
        await service.get_blog_by_slug("nope")


@pytest.mark.asyncio
async def test_update_invalidates_cached_entries(service, store, author):
    created = await create(service, author)
    await service.get_blog(created.id)
    await service.get_blog_by_slug("hello-world")

    updated = await service.update_blog(author, created.id, BlogUpdate(title="Second Take"))

    assert updated.slug == "second-take"
    assert f"blogs:id:{created.id}" not in store.data
    assert "blogs:slug:hello-world" not in store.data
    assert (await service.get_blog(created.id)).title == "Second Take"


@pytest.mark.asyncio
async def test_update_to_taken_slug_is_conflict(service, author):
    await create(service, author, "Taken")
    second = await create(service, author, "Free")
    with pytest.raises(DuplicateSlugError):
        await service.update_blog(author, second.id, BlogUpdate(slug="taken"))


@pytest.mark.asyncio
async def test_publishing_sets_and_clears_timestamp(service, author):
    created = await create(service, author)
    published = await service.update_blog(author, created.id, BlogUpdate(published=True))
    assert published.published_at is not None
    unpublished = await service.update_blog(author, created.id, BlogUpdate(published=False))
    assert unpublished.published_at is None


@pytest.mark.asyncio
async def test_only_author_may_modify(service, author, admin):
    created = await create(service, author)
    with pytest.raises(AuthorizationError):
        await service.update_blog(admin, created.id, BlogUpdate(title="Hijack"))
    with pytest.raises(AuthorizationError):
        await service.delete_blog(admin, created.id)


@pytest.mark.asyncio
async def test_delete_removes_post_and_cache(service, blogs, store, author):
    created = await create(service, author)
    await service.get_blog(created.id)
    await service.delete_blog(author, created.id)
    assert blogs.rows == {}
    assert f"blogs:id:{created.id}" not in store.data
    with pytest.raises(BlogNotFoundError):
        await service.get_blog(created.id)


@pytest.mark.asyncio
async def test_listing_filters_and_paginates(service, author, other_user):
    for i in range(3):
        await create(service, author, f"Post {i}", published=True)
    await create(service, other_user, "Draft")

    items, meta = await service.list_blogs(Pagination(1, 2), published=True)
    assert len(items) == 2
    assert meta == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    mine, mine_meta = await service.list_author_blogs(other_user, Pagination(1, 10))
    assert [b.title for b in mine] == ["Draft"]
    assert mine_meta["total"] == 1
