from __future__ import annotations
import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ["ENVIRONMENT"] = "test"
os.environ["CLERK_JWKS_URL"] = ""
os.environ["CLERK_ISSUER"] = ""
os.environ["CLERK_JWT_KEY"] = "test-secret"
os.environ["GEMINI_API_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""

import json
from types import SimpleNamespace
import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db import Base, get_session
from app.deps import get_view_counter, get_validator, get_matcher, get_queue
from app.models.user import UserProfile
from app.security import make_dev_token
from app.services.content_validation import ContentValidator
from app.services.matching import CreatorMatcher
from app.services.view_counts import VideoStats, LinkPreview
from app.services.platforms import detect_platform


def auth(sub: str, **claims) -> dict:
    return {"Authorization": f"Bearer {make_dev_token(sub, **claims)}"}


class FakeViewCounter:
    """Stands in for ViewCounter: `views` maps url -> count, None means the lookup fails."""

    def __init__(self, views: dict | None = None):
        self.views = dict(views or {})
        self.calls: list[str] = []

    async def fetch(self, url: str) -> VideoStats:
        self.calls.append(url)
        count = self.views.get(url)
        if count is None:
            return VideoStats(url=url, platform=detect_platform(url), success=False, error="lookup failed")
        return VideoStats(url=url, platform=detect_platform(url), view_count=count, success=True, title="Fetched title", author="chan")

    async def fetch_many(self, urls: list[str]) -> list[VideoStats]:
        return [await self.fetch(u) for u in urls]

    async def link_preview(self, url: str) -> LinkPreview:
        return LinkPreview(title="Preview title", description="Preview description", image="https://img.example.com/x.jpg")


class FakeModels:
    """Mimics client.aio.models: pops queued replies (dict -> JSON text, Exception -> raised)."""

    def __init__(self, replies: list | None = None, default=None):
        self.replies = list(replies or [])
        self.default = default
        self.calls: list[dict] = []

    async def generate_content(self, *, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(text=json.dumps(reply))


def fake_genai(replies: list | None = None, default=None):
    models = FakeModels(replies, default)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


class FakeQueue:
    def __init__(self):
        self.enqueued: list[tuple] = []

    def enqueue(self, func, *args, **kwargs):
        self.enqueued.append((func, args, kwargs))
        return SimpleNamespace(id=f"job-{len(self.enqueued)}")


@pytest_asyncio.fixture
async def sessionmaker_():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    maker = async_sessionmaker(engine, expire_on_commit=False)

    async def _get_session():
        async with maker() as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    yield maker
    app.dependency_overrides.clear()
    await engine.dispose()


@pytest.fixture
def counter():
    c = FakeViewCounter()
    app.dependency_overrides[get_view_counter] = lambda: c
    return c


@pytest.fixture
def genai_models():
    """Validator and matcher backed by a fake Gemini client; queue replies on the returned FakeModels."""
    client, models = fake_genai()
    app.dependency_overrides[get_validator] = lambda: ContentValidator(client, model="test-model")
    app.dependency_overrides[get_matcher] = lambda: CreatorMatcher(client, model="test-model")
    return models


@pytest.fixture
def queue():
    q = FakeQueue()
    app.dependency_overrides[get_queue] = lambda: q
    return q


@pytest_asyncio.fixture
async def client(sessionmaker_):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def make_user(maker, user_id: str, role: str | None = None, *, wallet_balance: float = 0, total_earnings: float = 0,
                    username: str | None = None) -> None:
    async with maker() as s:
        s.add(UserProfile(
            user_id=user_id,
            email=f"{user_id}@example.com",
            username=username or user_id,
            role=role,
            wallet_balance=wallet_balance,
            total_earnings=total_earnings,
        ))
        await s.commit()
