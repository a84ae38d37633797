"""测试配置和 fixtures."""

import json
from collections.abc import AsyncGenerator
from datetime import datetime
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from contentfactory.config import Settings, get_settings
from contentfactory.main import app
from contentfactory.models.article import Article
from contentfactory.models.database import get_session
from contentfactory.models.history import AnalysisResult, SearchHistory


@pytest_asyncio.fixture
async def test_engine():
    """创建测试数据库引擎."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """创建测试会话工厂."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def async_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """创建测试用的内存数据库会话."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings() -> Settings:
    """测试配置，不读取 .env."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        openai_api_key="",
        wechat_api_key="test-wechat-key",
        public_base_url="https://cdn.example.com",
        siliconflow_api_key="test-image-key",
    )


@pytest_asyncio.fixture
async def client(session_factory, settings) -> AsyncGenerator[AsyncClient, None]:
    """创建测试客户端."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_settings] = lambda: settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_history(
    session: AsyncSession,
    result: dict[str, Any] | None = None,
    **fields: Any,
) -> SearchHistory:
    """创建搜索历史，result 中的值会序列化为 JSON 文本."""
    history = SearchHistory(
        type=fields.pop("type", "wechat"),
        keyword=fields.pop("keyword", "人工智能"),
        article_count=fields.pop("article_count", 10),
        avg_read=fields.pop("avg_read", 1200.0),
        avg_like=fields.pop("avg_like", 35.0),
        original_rate=fields.pop("original_rate", 40.0),
        status=fields.pop("status", "completed"),
        search_time=fields.pop("search_time", datetime.utcnow()),
        **fields,
    )
    session.add(history)
    await session.flush()

    if result is not None:
        encoded = {
            key: value if isinstance(value, str) or value is None else json.dumps(value, ensure_ascii=False)
            for key, value in result.items()
        }
        session.add(AnalysisResult(search_history_id=history.id, **encoded))

    await session.commit()
    return history


async def create_article(session: AsyncSession, **fields: Any) -> Article:
    """创建文章."""
    article = Article(
        title=fields.pop("title", "AI 写作指南"),
        content=fields.pop("content", "# AI 写作指南\n\n正文内容"),
        platform=fields.pop("platform", "wechat"),
        style=fields.pop("style", "professional"),
        status=fields.pop("status", "pending"),
        **fields,
    )
    session.add(article)
    await session.commit()
    return article


@pytest.fixture
def make_history(async_session):
    """搜索历史工厂."""

    async def _make(result: dict[str, Any] | None = None, **fields: Any) -> SearchHistory:
        return await create_history(async_session, result, **fields)

    return _make


@pytest.fixture
def make_article(async_session):
    """文章工厂."""

    async def _make(**fields: Any) -> Article:
        return await create_article(async_session, **fields)

    return _make
