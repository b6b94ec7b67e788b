from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from database import SeededCatalog, close_db, create_user, init_test_db, seed_catalog
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.deps.sql import get_db as get_sql_db
from app.main import app
from app.models.assessment import LevelLabel
from app.models.user import User

ALL_LEVELS = (LevelLabel.low, LevelLabel.moderate, LevelLabel.high)


@pytest_asyncio.fixture
async def session_maker(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine, maker = await init_test_db(tmp_path / "test.db")
    try:
        yield maker
    finally:
        await close_db(engine)


@pytest_asyncio.fixture
async def database(session_maker: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(session_maker: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncClient, None]:
    # 与线上一致：每个请求一个新会话
    async def override_get_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_sql_db] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(session_maker: async_sessionmaker[AsyncSession]) -> User:
    return await create_user(session_maker)


@pytest_asyncio.fixture
async def other_user(session_maker: async_sessionmaker[AsyncSession]) -> User:
    return await create_user(session_maker, name="Other User")


@pytest_asyncio.fixture
async def sample_catalog(session_maker: async_sessionmaker[AsyncSession]) -> SeededCatalog:
    """两个维度：第一个 2 道题，第二个 1 道题，均配齐三个等级描述"""
    return await seed_catalog(
        session_maker,
        [
            ("judge", 2, ALL_LEVELS),
            ("pleaser", 1, ALL_LEVELS),
        ],
    )


@pytest_asyncio.fixture
async def incomplete_catalog(session_maker: async_sessionmaker[AsyncSession]) -> SeededCatalog:
    """一个维度 2 道题，缺少 High 等级的描述"""
    return await seed_catalog(session_maker, [("avoider", 2, (LevelLabel.low, LevelLabel.moderate))])
