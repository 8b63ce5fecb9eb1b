"""
Shared fixtures: an in-memory SQLite database per test and event builders.
"""
from types import SimpleNamespace
from typing import AsyncGenerator, Dict

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tabulation.data_access.sql_store import SQLAlchemyStore
from tabulation.orm import Base, Category, Segment
from tabulation.tests.factories import add_scores, seed_event

# Test database setup
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def store(db_session: AsyncSession) -> SQLAlchemyStore:
    return SQLAlchemyStore(db_session)


@pytest_asyncio.fixture
async def event_factory(db_session: AsyncSession):
    async def factory(**kwargs) -> SimpleNamespace:
        return await seed_event(db_session, **kwargs)
    return factory


@pytest_asyncio.fixture
async def score_writer(db_session: AsyncSession):
    async def writer(segment: Segment, category: Category, values: Dict) -> None:
        await add_scores(db_session, segment, category, values)
    return writer
