import itertools
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from reading_admin.core.security import create_access_token
from reading_admin.database import Base, get_db
from reading_admin.main import app
from reading_admin.models.member import Member
from reading_admin.models.story import Story
from reading_admin.models.user import User
from reading_admin.services.cache import InMemoryScoreCache, get_score_cache


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryScoreCache(default_ttl=900, clock=clock)


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory, cache):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_score_cache] = lambda: cache
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _user_headers(db, email: str, role: str) -> dict:
    user = User(email=email, name=email.split("@")[0], role=role)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_headers(db):
    return await _user_headers(db, "admin@example.com", "admin")


@pytest.fixture
async def editor_headers(db):
    return await _user_headers(db, "editor@example.com", "editor")


@pytest.fixture
def make_story(db, now):
    async def _make(title="Story", days_old=10, word_count=500, active=True):
        story = Story(
            title=title,
            content="Once upon a time.",
            word_count=word_count,
            active=active,
            published_at=now - timedelta(days=days_old),
        )
        db.add(story)
        await db.commit()
        await db.refresh(story)
        return story
    return _make


@pytest.fixture
def make_members(db):
    numbers = itertools.count()

    async def _make(count: int):
        members = []
        for _ in range(count):
            i = next(numbers)
            members.append(Member(name=f"Reader {i}", email=f"reader{i}@example.com"))
        db.add_all(members)
        await db.commit()
        for member in members:
            await db.refresh(member)
        return members
    return _make
