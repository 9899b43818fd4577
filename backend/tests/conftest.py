"""Shared test fixtures for ARKA-ED backend tests."""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.db.models import Base, Profile
from app.models.progress import SubmissionResult
from app.services.session_service import SessionResolver

# Use an in-memory SQLite database for tests.
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionFactory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

TEST_SECRET = "test-secret-key-with-at-least-32-characters"


@event.listens_for(engine.sync_engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Monkey-patch JSONB columns to render as JSON for SQLite tests.
from sqlalchemy.dialects.postgresql import JSONB as _JSONB  # noqa: E402


def _register_jsonb_for_sqlite():
    """Register a compilation rule so JSONB compiles to JSON on SQLite."""
    from sqlalchemy.ext.compiler import compiles

    @compiles(_JSONB, "sqlite")
    def _compile_jsonb_sqlite(element, compiler, **kw):
        return "JSON"


_register_jsonb_for_sqlite()


@pytest_asyncio.fixture
async def db() -> AsyncSession:
    """Create tables and yield a fresh async session for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionFactory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def test_profile(db: AsyncSession) -> Profile:
    """Create and return an onboarded student profile."""
    profile = Profile(
        id=str(uuid.uuid4()),
        email="student@example.com",
        full_name="Test Student",
        role="student",
        onboarding_completed=True,
    )
    db.add(profile)
    await db.commit()
    return profile


@pytest.fixture
def resolver() -> SessionResolver:
    return SessionResolver(
        secret_key=TEST_SECRET,
        cookie_name="arka_session",
        expiration_minutes=60,
        refresh_minutes=10,
    )


@pytest.fixture
def make_submission():
    """Factory for submission results with sensible defaults."""

    def _make(is_correct: bool = True, category: str = "chest-pain", tags=("em",), **kwargs):
        return SubmissionResult(
            case_id=kwargs.pop("case_id", "chest-pain-001"),
            case_category=category,
            specialty_tags=list(tags),
            is_correct=is_correct,
            **kwargs,
        )

    return _make


@pytest.fixture
def session_factory() -> async_sessionmaker:
    """Session factory bound to the test database, for app-level wiring."""
    return TestSessionFactory
