"""
Pytest configuration for GymGo backend tests.

The app runs in-process over httpx's ASGI transport against an in-memory
SQLite database. Redis is replaced by a dict-backed fake and Celery email
tasks are recorded instead of queued.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "development"
os.environ["API_KEY_MOBILE"] = "test-mobile-key"
os.environ["CRON_SECRET"] = "test-cron-secret"

import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.core.dependencies import get_redis
from app.main import app
from app.models import Base
from app.workers import email_tasks

MOBILE_API_KEY = "test-mobile-key"
CRON_SECRET = "test-cron-secret"


def unique_email(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


def unique_slug(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:6]}"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeRedis:
    """The handful of redis.asyncio commands the services use, backed by a dict."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}

    async def setex(self, key: str, ttl: int, value: Any) -> bool:
        self.store[key] = str(value)
        return True

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if key in self.store)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed


@dataclass
class RecordedTask:
    """Stands in for a Celery task; ``.delay`` only records its kwargs."""

    calls: list[dict[str, Any]] = field(default_factory=list)

    def delay(self, **kwargs: Any) -> None:
        self.calls.append(kwargs)


# ---------------------------------------------------------------------------
# Database / app fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture(autouse=True)
def email_outbox(monkeypatch: pytest.MonkeyPatch) -> dict[str, RecordedTask]:
    outbox = {
        "invitation": RecordedTask(),
        "password_reset": RecordedTask(),
    }
    monkeypatch.setattr(email_tasks, "send_invitation_email", outbox["invitation"])
    monkeypatch.setattr(email_tasks, "send_password_reset_email", outbox["password_reset"])
    return outbox


@pytest_asyncio.fixture
async def client(session_factory, fake_redis) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_redis() -> FakeRedis:
        return fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------

def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class GymApi:
    """Thin helpers over the HTTP API for setting up test scenarios."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def register(self, email: str, password: str = "password123", display_name: str = "Test User") -> str:
        resp = await self.client.post("/api/v1/auth/register", json={
            "email": email,
            "password": password,
            "display_name": display_name,
        })
        assert resp.status_code == 201, f"Register failed: {resp.text}"
        return resp.json()["access_token"]

    async def login(self, email: str, password: str = "password123") -> dict:
        resp = await self.client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, f"Login failed: {resp.text}"
        return resp.json()

    async def create_org(self, token: str, slug: str, name: str = "Test Gym", **extra: Any) -> dict:
        resp = await self.client.post(
            "/api/v1/organizations",
            json={"name": name, "slug": slug, **extra},
            headers=auth(token),
        )
        assert resp.status_code == 201, f"Create org failed: {resp.text}"
        return resp.json()

    async def invite(self, token: str, slug: str, email: str, role: str) -> dict:
        resp = await self.client.post(
            f"/api/v1/organizations/{slug}/invitations",
            json={"email": email, "role": role},
            headers=auth(token),
        )
        assert resp.status_code == 201, f"Invite failed: {resp.text}"
        return resp.json()

    async def add_staff(self, owner_token: str, slug: str, role: str, email: str | None = None) -> str:
        """Register a user, invite them with ``role`` and accept; returns their access token."""
        email = email or unique_email(role)
        token = await self.register(email)
        invitation_token = (await self.invite(owner_token, slug, email, role))["token"]
        resp = await self.client.post(
            f"/api/v1/auth/invitations/{invitation_token}/accept", headers=auth(token)
        )
        assert resp.status_code == 200, f"Accept invite failed: {resp.text}"
        return token

    async def create_member(self, token: str, slug: str, **fields: Any) -> dict:
        body = {
            "email": unique_email("member"),
            "full_name": "Ana Torres",
            "membership_end_date": (date.today() + timedelta(days=30)).isoformat(),
            **fields,
        }
        resp = await self.client.post(f"/api/v1/organizations/{slug}/members", json=body, headers=auth(token))
        assert resp.status_code == 201, f"Create member failed: {resp.text}"
        return resp.json()

    async def create_class(self, token: str, slug: str, **fields: Any) -> dict:
        resp = await self.client.post(f"/api/v1/organizations/{slug}/classes", json=fields, headers=auth(token))
        assert resp.status_code == 201, f"Create class failed: {resp.text}"
        return resp.json()


@dataclass
class Gym:
    slug: str
    org: dict
    admin_token: str
    admin_email: str

    @property
    def headers(self) -> dict[str, str]:
        return auth(self.admin_token)

    def url(self, path: str = "") -> str:
        return f"/api/v1/organizations/{self.slug}{path}"


@pytest.fixture
def api(client) -> GymApi:
    return GymApi(client)


@pytest_asyncio.fixture
async def gym(api: GymApi) -> Gym:
    """An admin user with a freshly created gym."""
    email = unique_email("admin")
    token = await api.register(email)
    slug = unique_slug("gym")
    org = await api.create_org(token, slug)
    return Gym(slug=slug, org=org, admin_token=token, admin_email=email)
