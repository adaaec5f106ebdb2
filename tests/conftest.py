"""
Pytest fixtures for test database, client, and authentication.

Runs against in-memory SQLite through aiosqlite. Tables are created and
dropped around every test. The rate limiter is swapped for an in-memory
store driven by a fake clock so window expiry can be tested without sleeping.
"""

import os

# Must be set before flashvote modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event as sa_event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from flashvote.main import app
from flashvote.db.base import Base, utcnow
from flashvote.db.session import get_db
from flashvote.models import Event, EventAdmin, Item, Location, Subject
from flashvote.models.subject import DEFAULT_NEG_LABEL, DEFAULT_POS_LABEL
from flashvote.services.interfaces import InMemoryRateLimitStore
from flashvote.services.notification_service import VoteFeed, get_vote_feed
from flashvote.services.strategy_factory import get_rate_limit_store
from tests.helpers import EDITOR_ID, OUTSIDER_ID, OWNER_ID, VIEWER_ID, auth_headers_for

TEST_DATABASE_URL = "sqlite+aiosqlite://"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@sa_event.listens_for(test_engine.sync_engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # ON DELETE CASCADE / SET NULL only fire with this pragma on
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(clock: FakeClock) -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore(60, clock=clock)


@pytest.fixture
def vote_feed() -> VoteFeed:
    return VoteFeed()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession, rate_limiter: InMemoryRateLimitStore, vote_feed: VoteFeed
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB, rate limiter and feed dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limit_store] = lambda: rate_limiter
    app.dependency_overrides[get_vote_feed] = lambda: vote_feed

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    """Authorization headers for the owner of test_event."""
    return auth_headers_for(OWNER_ID)


@pytest.fixture
def editor_headers() -> dict:
    return auth_headers_for(EDITOR_ID)


@pytest.fixture
def viewer_headers() -> dict:
    return auth_headers_for(VIEWER_ID)


@pytest.fixture
def outsider_headers() -> dict:
    return auth_headers_for(OUTSIDER_ID)


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession) -> Event:
    """An open event with an editor and a viewer grant."""
    event = Event(title="Burger Week", slug="burger-week", owner_id=OWNER_ID)
    db_session.add(event)
    await db_session.flush()
    db_session.add_all([
        EventAdmin(event_id=event.id, user_id=EDITOR_ID, role="editor"),
        EventAdmin(event_id=event.id, user_id=VIEWER_ID, role="viewer"),
    ])
    await db_session.commit()
    await db_session.refresh(event)
    return event


@pytest_asyncio.fixture
async def other_event(db_session: AsyncSession) -> Event:
    event = Event(title="Taco Tuesday", slug="taco-tuesday", owner_id=OUTSIDER_ID)
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event


@pytest_asyncio.fixture
async def test_subject(db_session: AsyncSession, test_event: Event) -> Subject:
    """Event-level question."""
    subject = Subject(event_id=test_event.id, label="Best burger in town?", pos_label="Yes", neg_label="No")
    db_session.add(subject)
    await db_session.commit()
    await db_session.refresh(subject)
    return subject


@pytest_asyncio.fixture
async def second_subject(db_session: AsyncSession, test_event: Event) -> Subject:
    subject = Subject(event_id=test_event.id, label="Would you come back?", pos_label="Yes", neg_label="No")
    db_session.add(subject)
    await db_session.commit()
    await db_session.refresh(subject)
    return subject


@pytest_asyncio.fixture
async def test_item(db_session: AsyncSession, test_event: Event) -> Item:
    """An item with its default "Recommend" subject."""
    item = Item(event_id=test_event.id, item_slug="double-smash", name="Double Smash")
    db_session.add(item)
    await db_session.flush()
    db_session.add(Subject(
        event_id=test_event.id,
        item_id=item.id,
        label="",
        pos_label=DEFAULT_POS_LABEL,
        neg_label=DEFAULT_NEG_LABEL,
        meta={"is_default": True},
    ))
    await db_session.commit()
    await db_session.refresh(item)
    return item


@pytest_asyncio.fixture
async def test_location(db_session: AsyncSession, test_event: Event) -> Location:
    location = Location(
        event_id=test_event.id,
        name="Downtown Grill",
        address="1 Main St",
        city="Springfield",
        zip_code="62701",
    )
    db_session.add(location)
    await db_session.commit()
    await db_session.refresh(location)
    return location


@pytest_asyncio.fixture
async def archived_event(db_session: AsyncSession) -> Event:
    event = Event(title="Last Year", slug="last-year", owner_id=OWNER_ID, archived_at=utcnow())
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event


@pytest_asyncio.fixture
async def archived_subject(db_session: AsyncSession, archived_event: Event) -> Subject:
    subject = Subject(event_id=archived_event.id, label="Still hungry?")
    db_session.add(subject)
    await db_session.commit()
    await db_session.refresh(subject)
    return subject
