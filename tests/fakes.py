"""In-memory stand-ins for the external collaborators used across the test suite."""

from __future__ import annotations

import asyncio
import fnmatch
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional
from uuid import UUID

from inkwell.core.config.settings import Settings
from inkwell.core.exceptions import (
    AuthenticationError,
    EmailQueueError,
    StorageError,
    StoreUnavailableError,
    UpstreamUnavailableError,
)
from inkwell.core.rate_limiting import FixedWindowRateLimiter
from inkwell.domain.entities.blog import Blog
from inkwell.domain.entities.user import User
from inkwell.domain.services.auth.session import AuthSession
from inkwell.infrastructure.cache import Cache
from inkwell.infrastructure.storage import StoredObject


class FakeClock:
    def __init__(self, start: Optional[float] = None):
        self.now = time.time() if start is None else start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeKeyValueStore:
    """Dictionary-backed store with key expiry driven by a :class:`FakeClock`.

    ``down = True`` makes every command raise ``StoreUnavailableError``.
    ``yield_between_steps = True`` inserts a scheduling point inside ``incr`` so
    concurrent callers interleave like they would against a real server.
    """

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock or FakeClock()
        self.data: dict[str, Any] = {}
        self.expires_at: dict[str, float] = {}
        self.down = False
        self.yield_between_steps = False
        self.closed = False
        self.commands: list[str] = []

    def _check(self, command: str) -> None:
        self.commands.append(command)
        if self.down:
            raise StoreUnavailableError(f"Key-value store unavailable during {command}")

    def _purge(self, key: str) -> None:
        deadline = self.expires_at.get(key)
        if deadline is not None and deadline <= self.clock.now:
            self.data.pop(key, None)
            self.expires_at.pop(key, None)

    def _pttl(self, key: str) -> int:
        self._purge(key)
        if key not in self.data:
            return -2
        if key not in self.expires_at:
            return -1
        return int(round((self.expires_at[key] - self.clock.now) * 1000))

    async def ping(self) -> bool:
        self._check("ping")
        return True

    async def get(self, key: str) -> Optional[str]:
        self._check("get")
        self._purge(key)
        value = self.data.get(key)
        return None if value is None else str(value)

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        self._check("set")
        self.data[key] = value
        if ttl_seconds:
            self.expires_at[key] = self.clock.now + ttl_seconds
        else:
            self.expires_at.pop(key, None)
        return True

    async def delete(self, *keys: str) -> int:
        self._check("delete")
        removed = 0
        for key in keys:
            self._purge(key)
            if key in self.data:
                del self.data[key]
                self.expires_at.pop(key, None)
                removed += 1
        return removed

    async def incr(self, key: str) -> int:
        self._check("incr")
        self._purge(key)
        if self.yield_between_steps:
            await asyncio.sleep(0)
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = value
        return value

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        self._check("expire")
        self._purge(key)
        if key not in self.data:
            return False
        self.expires_at[key] = self.clock.now + ttl_seconds
        return True

    async def pexpire(self, key: str, ttl_ms: int) -> bool:
        self._check("pexpire")
        self._purge(key)
        if key not in self.data:
            return False
        self.expires_at[key] = self.clock.now + ttl_ms / 1000
        return True

    async def ttl(self, key: str) -> int:
        self._check("ttl")
        pttl = self._pttl(key)
        return pttl if pttl < 0 else int(math.ceil(pttl / 1000))

    async def pttl(self, key: str) -> int:
        self._check("pttl")
        return self._pttl(key)

    async def exists(self, key: str) -> bool:
        self._check("exists")
        self._purge(key)
        return key in self.data

    async def keys(self, pattern: str) -> list[str]:
        self._check("keys")
        for key in list(self.data):
            self._purge(key)
        return [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]

    async def incr_with_expiry(self, key: str, ttl_ms: int) -> tuple[int, int]:
        self._check("incr_with_expiry")
        self._purge(key)
        count = int(self.data.get(key, 0)) + 1
        self.data[key] = count
        if count == 1:
            self.expires_at[key] = self.clock.now + ttl_ms / 1000
        return count, self._pttl(key)

    async def aclose(self) -> None:
        self.closed = True


class FakeObjectStorage:
    def __init__(self, public_url: str = "https://cdn.test/bucket"):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.public_url = public_url
        self.down = False

    def _check(self) -> None:
        if self.down:
            raise StorageError("Object storage request failed")

    def object_url(self, key: str) -> str:
        return f"{self.public_url}/{key}"

    async def put_object(self, key: str, data: bytes, content_type: str) -> str:
        self._check()
        self.objects[key] = (data, content_type)
        return key

    async def get_object(self, key: str) -> bytes:
        self._check()
        if key not in self.objects:
            raise StorageError(f"Could not read object {key}")
        return self.objects[key][0]

    async def delete_object(self, key: str) -> None:
        self._check()
        self.objects.pop(key, None)

    async def list_objects(self, prefix: str = "") -> list[str]:
        self._check()
        return [key for key in self.objects if key.startswith(prefix)]

    async def head_object(self, key: str) -> Optional[StoredObject]:
        self._check()
        if key not in self.objects:
            return None
        data, content_type = self.objects[key]
        return StoredObject(key=key, size=len(data), content_type=content_type, etag=None)

    async def check_connection(self) -> None:
        self._check()


class FakeEmailQueue:
    def __init__(self):
        self.sent: list[dict[str, Any]] = []
        self.down = False

    async def enqueue_email(self, *, to: str, subject: str, text: str, html: Optional[str] = None) -> str:
        if self.down:
            raise EmailQueueError()
        self.sent.append({"task": "send", "to": to, "subject": subject})
        return f"task-{len(self.sent)}"

    async def enqueue_welcome_email(self, *, to: str, name: str) -> str:
        if self.down:
            raise EmailQueueError()
        self.sent.append({"task": "welcome", "to": to, "name": name})
        return f"task-{len(self.sent)}"

    async def check_connection(self) -> None:
        if self.down:
            raise EmailQueueError("Broker unreachable")


class FakeSessionResolver:
    """Maps bearer tokens to users registered with :meth:`login`."""

    def __init__(self):
        self.users: dict[str, User] = {}
        self.down = False

    def login(self, user: User, token: Optional[str] = None) -> dict[str, str]:
        token = token or f"token-{user.id}"
        self.users[token] = user
        return {"Authorization": f"Bearer {token}"}

    async def resolve(self, authorization: Optional[str]) -> AuthSession:
        if self.down:
            raise UpstreamUnavailableError("Database unavailable", "database_unavailable")
        if not authorization:
            raise AuthenticationError("Authentication required", "missing_credentials")
        scheme, _, token = authorization.partition(" ")
        user = self.users.get(token) if scheme.lower() == "bearer" else None
        if user is None:
            raise AuthenticationError("Invalid or expired token", "invalid_token")
        return AuthSession(user=user, claims={"sub": str(user.id), "jti": token})


class FakeUserRepository:
    def __init__(self, *users: User):
        self.rows: dict[UUID, User] = {u.id: u for u in users}

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return self.rows.get(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.rows.values() if u.email == email.lower()), None)

    async def list(self, offset: int, limit: int):
        rows = sorted(self.rows.values(), key=lambda u: u.created_at, reverse=True)
        return rows[offset:offset + limit], len(rows)

    async def save(self, user: User) -> User:
        user.email = user.email.lower()
        self.rows[user.id] = user
        return user

    async def delete(self, user: User) -> None:
        self.rows.pop(user.id, None)


class FakeBlogRepository:
    def __init__(self, *blogs: Blog):
        self.rows: dict[UUID, Blog] = {b.id: b for b in blogs}
        self.reads = 0

    async def get_by_id(self, blog_id: UUID) -> Optional[Blog]:
        self.reads += 1
        return self.rows.get(blog_id)

    async def get_by_slug(self, slug: str) -> Optional[Blog]:
        self.reads += 1
        return next((b for b in self.rows.values() if b.slug == slug), None)

    async def slug_exists(self, slug: str, exclude_id: Optional[UUID] = None) -> bool:
        return any(b.slug == slug and b.id != exclude_id for b in self.rows.values())

    async def list(self, offset: int, limit: int, published: Optional[bool] = None, author_id: Optional[UUID] = None):
        rows = [
            b for b in self.rows.values()
            if (published is None or b.published == published)
            and (author_id is None or b.author_id == author_id)
        ]
        rows.sort(key=lambda b: b.created_at, reverse=True)
        return rows[offset:offset + limit], len(rows)

    async def save(self, blog: Blog) -> Blog:
        self.rows[blog.id] = blog
        return blog

    async def delete(self, blog: Blog) -> None:
        self.rows.pop(blog.id, None)


async def _connected() -> None:
    return None


@dataclass
class FakeResources:
    """Same surface as ``AppResources`` for everything the HTTP layer touches."""

    settings: Settings
    store: FakeKeyValueStore
    rate_limiter: FixedWindowRateLimiter
    sessions: FakeSessionResolver = field(default_factory=FakeSessionResolver)
    storage: FakeObjectStorage = field(default_factory=FakeObjectStorage)
    email_queue: FakeEmailQueue = field(default_factory=FakeEmailQueue)
    database_check: Callable[[], Any] = _connected
    cache: Cache = field(init=False)

    def __post_init__(self) -> None:
        self.cache = Cache(self.store)

    def health_checks(self) -> dict[str, Callable[[], Any]]:
        return {
            "redis": self.store.ping,
            "database": self.database_check,
            "storage": self.storage.check_connection,
            "queue": self.email_queue.check_connection,
            "smtp": _connected,
        }

    def pool_stats(self) -> dict[str, int]:
        return {"size": 2, "checked_out": 0, "overflow": 0}

    async def aclose(self) -> None:
        await self.store.aclose()
