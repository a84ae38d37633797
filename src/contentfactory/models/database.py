"""数据库初始化和会话管理."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

logger = logging.getLogger(__name__)

# 进程级引擎和会话工厂，由 init_db / close_db 显式管理
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

# 旧版本数据库缺失的列: 表名 -> {列名: 类型}
_LEGACY_COLUMNS: dict[str, dict[str, str]] = {
    "analysis_result": {
        "structured_topic_insights": "TEXT",
        "rule_based_insights": "TEXT",
        "ai_generated_insights": "TEXT",
        "ai_analysis_status": "VARCHAR",
    },
    "publish_records": {
        "platform_data": "TEXT",
        "retry_count": "INTEGER DEFAULT 0",
    },
}


async def init_db(database_url: str) -> None:
    """初始化数据库，创建所有表."""
    global _engine, _session_factory

    # 确保所有表模型已注册到 metadata
    from contentfactory.models import article, history  # noqa: F401

    _engine = create_async_engine(database_url, echo=False)
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    if database_url.startswith("sqlite"):
        await _add_legacy_columns()


async def close_db() -> None:
    """释放数据库连接池."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        logger.info("数据库连接已释放")
    _engine = None
    _session_factory = None


async def _add_legacy_columns() -> None:
    """为旧版本 SQLite 数据库补齐新增列."""
    if _session_factory is None:
        return

    async with _session_factory() as session:
        for table, columns in _LEGACY_COLUMNS.items():
            result = await session.execute(text(f"PRAGMA table_info({table})"))
            existing = {row[1] for row in result.fetchall()}

            for column, ddl in columns.items():
                if column not in existing:
                    logger.info(f"添加 {table}.{column} 列")
                    await session.execute(
                        text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")
                    )

        await session.commit()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """获取数据库会话（用于依赖注入）."""
    if _session_factory is None:
        msg = "数据库未初始化，请先调用 init_db()"
        raise RuntimeError(msg)

    async with _session_factory() as session:
        yield session


def async_session_maker() -> async_sessionmaker[AsyncSession]:
    """获取会话工厂（用于命令行维护任务）."""
    if _session_factory is None:
        msg = "数据库未初始化，请先调用 init_db()"
        raise RuntimeError(msg)
    return _session_factory
