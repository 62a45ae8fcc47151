"""
Pytest fixtures for famguard tests.
"""

import os

# Must be set before famguard.config is first imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only-0123456789")

from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from famguard.kernel.identity.jwt import JWTManager
from famguard.kernel.identity.resolver import IdentityResolver
from famguard.kernel.identity.types import Identity, ParticipantRef
from famguard.kernel.models import Base
from famguard.kernel.relationships.relationship_graph import RelationshipGraph
from tests.factories import FamilyWorld, seed_world


# Every session of one test shares a single in-memory connection
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine) -> async_sessionmaker:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def world(db_session: AsyncSession) -> FamilyWorld:
    """Seed three families with their adults and children, and commit."""
    seeded = await seed_world(db_session)
    await db_session.commit()
    return seeded


@pytest.fixture
def resolve(db_session: AsyncSession) -> Callable:
    """Resolve a participant reference, failing the test if it does not resolve."""
    resolver = IdentityResolver(RelationshipGraph(db_session))

    async def _resolve(ref: ParticipantRef) -> Identity:
        identity = await resolver.resolve_participant(ref)
        assert identity is not None, f"{ref} did not resolve"
        return identity

    return _resolve


@pytest.fixture
def jwt_manager() -> JWTManager:
    """Create a JWT manager for tests."""
    return JWTManager(
        secret_key="another-test-secret-key-for-testing-only",
        algorithm="HS256",
        access_token_expire_minutes=30,
        child_session_expire_minutes=60,
    )


@pytest_asyncio.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, with each request in its own test-database session."""
    from famguard.api.deps import get_db
    from famguard.main import app

    async def _get_test_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
