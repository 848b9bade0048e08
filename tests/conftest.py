"""Shared test fixtures.

The API runs in-process over ``httpx.ASGITransport`` against a throwaway
SQLite database (aiosqlite) and an in-memory Redis double.
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

# Keep the per-IP limiter out of the way of multi-request tests.
os.environ["SAMARPAN_RATE_LIMIT_REQUESTS"] = "100000"
os.environ["SAMARPAN_LOG_FORMAT"] = "console"

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan import redis_client
from samarpan.config import get_settings
from samarpan.database import close_db, create_schema, get_session, init_db
from samarpan.gamification.seed import seed_badges
from samarpan.main import create_app

get_settings.cache_clear()

PASSWORD = "SecurePass1"


class FakePipeline:
    """Queues commands and runs them against the owning FakeRedis on execute()."""

    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._calls: list[tuple[str, tuple[Any, ...]]] = []

    def incr(self, key: str) -> FakePipeline:
        self._calls.append(("incr", (key,)))
        return self

    def expire(self, key: str, seconds: int) -> FakePipeline:
        self._calls.append(("expire", (key, seconds)))
        return self

    async def execute(self) -> list[Any]:
        results = [await getattr(self._redis, name)(*args) for name, args in self._calls]
        self._calls.clear()
        return results


class FakeRedis:
    """In-memory stand-in for the redis.asyncio calls the application makes."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:  # noqa: ANN401
        self.store[key] = str(value)
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def setex(self, key: str, seconds: int, value: Any) -> bool:  # noqa: ANN401
        return await self.set(key, value, ex=seconds)

    async def incr(self, key: str) -> int:
        value = int(self.store.get(key, "0")) + 1
        self.store[key] = str(value)
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        if key not in self.store:
            return False
        self.ttls[key] = seconds
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def scan_iter(self, match: str = "*", count: int | None = None) -> AsyncIterator[str]:
        for key in [k for k in self.store if fnmatch.fnmatchcase(k, match)]:
            yield key

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)


@dataclass
class Account:
    """A signed-in test user with its own cookie jar."""

    client: AsyncClient
    user: dict[str, Any]

    @property
    def id(self) -> str:
        return self.user["id"]


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> FakeRedis:
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "_pool", fake)
    return fake


@pytest_asyncio.fixture
async def app(tmp_path: Any, fake_redis: FakeRedis) -> AsyncGenerator[FastAPI, None]:  # noqa: ANN401
    """Application wired to a fresh SQLite file with the default badges seeded."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'samarpan.db'}")
    await create_schema()
    async for session in get_session():
        await seed_badges(session)
        await session.commit()

    yield create_app()

    await close_db()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous HTTP client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def make_client(app: FastAPI) -> AsyncGenerator[Callable[[], AsyncClient], None]:
    """Factory for extra clients; each keeps its own session cookie."""
    clients: list[AsyncClient] = []

    def _make() -> AsyncClient:
        ac = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(ac)
        return ac

    yield _make

    for ac in clients:
        await ac.aclose()


async def signup(
    client: AsyncClient,
    email: str,
    first_name: str = "Test",
    last_name: str = "User",
    password: str = PASSWORD,
) -> dict[str, Any]:
    """Register and log in; the session cookie lands in ``client``."""
    response = await client.post(
        "/api/register",
        json={"email": email, "password": password, "firstName": first_name, "lastName": last_name},
    )
    assert response.status_code == 201, response.text
    response = await client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["user"]


@pytest_asyncio.fixture
async def sign_in(make_client: Callable[[], AsyncClient]) -> Callable[..., Awaitable[Account]]:
    """Create a signed-in account: ``await sign_in("x@iimb.ac.in", "First", "Last")``."""

    async def _sign_in(email: str, first_name: str = "Test", last_name: str = "User") -> Account:
        ac = make_client()
        user = await signup(ac, email, first_name, last_name)
        return Account(client=ac, user=user)

    return _sign_in


@pytest_asyncio.fixture
async def student(sign_in: Callable[..., Awaitable[Account]]) -> Account:
    return await sign_in("asha.rao@iimb.ac.in", "Asha", "Rao")


@pytest_asyncio.fixture
async def admin(sign_in: Callable[..., Awaitable[Account]]) -> Account:
    return await sign_in("faculty.mehta@iimb.ac.in", "Ravi", "Mehta")


def opportunity_payload(**overrides: Any) -> dict[str, Any]:  # noqa: ANN401
    payload: dict[str, Any] = {
        "title": "Weekend Math Tutoring",
        "shortDescription": "Teach arithmetic to middle-school students",
        "fullDescription": "Two-hour sessions every Saturday at the community centre.",
        "type": "teaching",
        "duration": "1week",
        "skills": ["Teaching", "Mathematics"],
        "location": "Bannerghatta Road",
        "coinsPerHour": 10,
        "maxCoins": 100,
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def create_opportunity(admin: Account) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Publish an opportunity as the admin fixture; keyword overrides use camelCase keys."""

    async def _create(**overrides: Any) -> dict[str, Any]:  # noqa: ANN401
        response = await admin.client.post("/api/opportunities", json=opportunity_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest_asyncio.fixture
async def db_session(app: FastAPI) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for test assertions."""
    async for session in get_session():
        yield session
