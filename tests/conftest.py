"""
Pytest configuration and fixtures for scrolltracker tests.

Provides:
- Async test database with SQLite (foreign keys enforced)
- Test client for API testing
- Bearer token helpers for the dashboard API
- Factory fixtures for creating test data
"""

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool, event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from scrolltracker.config import Settings, get_settings
from scrolltracker.core.database import get_db
from scrolltracker.core.datetime_utils import utc_now
from scrolltracker.main import app
from scrolltracker.metrics.records import EventRecord
from scrolltracker.models import Base
from scrolltracker.models.tracker import ScrollEvent, Tracker

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_JWT_SECRET = "test-jwt-secret-0123456789abcdef0123456789"


# Override settings for testing
class TestSettings(Settings):
    database_url: str = TEST_DATABASE_URL
    debug: bool = True
    auth_jwt_secret: str = TEST_JWT_SECRET
    base_url: str = "http://localhost:8000"
    environment: str = "development"
    public_api_key: str = ""
    service_api_key: str = ""
    allowed_origins: str = ""


@pytest_asyncio.fixture
async def db_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def test_settings() -> TestSettings:
    """Settings instance served to the app; tests may mutate it before requests."""
    return TestSettings()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession, test_settings: TestSettings
) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with database and settings overrides."""
    from scrolltracker.core.rate_limit import limiter

    async def override_get_db():
        yield db_session

    def override_get_settings():
        return test_settings

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = override_get_settings

    # Reset rate limiter storage before each test
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================================
# Auth helpers
# ============================================================================


def make_token(
    owner: str,
    secret: str = TEST_JWT_SECRET,
    audience: str = "authenticated",
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """Sign a bearer token the way the auth provider does."""
    now = datetime.now(UTC)
    return jwt.encode(
        {"sub": owner, "aud": audience, "iat": now, "exp": now + expires_in},
        secret,
        algorithm="HS256",
    )


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Factory for Authorization headers for a given owner."""

    def _headers(owner: str = "owner-1", **kwargs) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(owner, **kwargs)}"}

    return _headers


# ============================================================================
# Factory Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def tracker_factory(db_session: AsyncSession):
    """Factory for creating test trackers."""

    async def _create_tracker(
        owner: str = "owner-1",
        tracker_id: str | None = None,
        created_at: datetime | None = None,
    ) -> Tracker:
        tracker = Tracker(
            id=tracker_id or uuid.uuid4().hex[:16],
            owner=owner,
            created_at=created_at or utc_now(),
        )
        db_session.add(tracker)
        await db_session.flush()
        return tracker

    return _create_tracker


@pytest_asyncio.fixture
async def event_factory(db_session: AsyncSession):
    """Factory for creating stored scroll events."""

    async def _create_event(
        tracker: Tracker,
        scroll_depth: int = 50,
        occurred_at: datetime | None = None,
        page_url: str = "https://example.com/article",
        ip_address: str | None = "203.0.113.7",
        **fields,
    ) -> ScrollEvent:
        scroll_event = ScrollEvent(
            tracker_id=tracker.id,
            scroll_depth=scroll_depth,
            page_url=page_url,
            occurred_at=occurred_at or utc_now(),
            ip_address=ip_address,
            **fields,
        )
        db_session.add(scroll_event)
        await db_session.flush()
        return scroll_event

    return _create_event


@pytest.fixture
def count_events(db_session: AsyncSession):
    """Count stored scroll events, optionally for one tracker."""

    async def _count(tracker_id: str | None = None) -> int:
        query = select(func.count()).select_from(ScrollEvent)
        if tracker_id is not None:
            query = query.where(ScrollEvent.tracker_id == tracker_id)
        result = await db_session.execute(query)
        return result.scalar_one()

    return _count


# ============================================================================
# In-Memory Test Helpers (no DB)
# ============================================================================


@pytest.fixture
def make_record():
    """
    Factory for in-memory EventRecord objects (no DB).

    Use for unit tests of the aggregation functions.
    """

    def _make(
        scroll_depth: int = 0,
        occurred_at: datetime | None = None,
        **fields,
    ) -> EventRecord:
        return EventRecord(
            occurred_at=occurred_at or datetime(2026, 1, 10, 12, 0, 0),
            scroll_depth=scroll_depth,
            **fields,
        )

    return _make


@pytest.fixture
def make_session():
    """Factory for EventRecords carrying session metrics."""

    def _make(
        total_time_on_page: int,
        max_scroll_depth: int,
        scroll_events_count: int | None = None,
        ua: str | None = None,
        viewport_w: int | None = None,
        viewport_h: int | None = None,
    ) -> EventRecord:
        return EventRecord(
            occurred_at=datetime(2026, 1, 10, 12, 0, 0),
            scroll_depth=max_scroll_depth,
            total_time_on_page=total_time_on_page,
            max_scroll_depth=max_scroll_depth,
            scroll_events_count=scroll_events_count,
            ua=ua,
            viewport_w=viewport_w,
            viewport_h=viewport_h,
        )

    return _make
