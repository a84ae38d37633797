"""修复已存储小红书记录中的乱码.

用法: python -m contentfactory.repair
"""

import asyncio
import json
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlmodel import select

from contentfactory.config import get_settings
from contentfactory.models.database import async_session_maker, close_db, init_db
from contentfactory.models.history import SearchHistory
from contentfactory.utils.encoding import repair_text, repair_value

logger = logging.getLogger(__name__)

REPAIRED_FIELDS = ("structured_topic_insights", "all_articles", "word_cloud")


def _repair_json_text(raw: str | None, field: str) -> str | None:
    """修复 JSON 文本中的字符串，无法解析时原样返回."""
    if not raw:
        return raw
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"跳过无法解析的字段 {field}: {e}")
        return raw
    repaired = repair_value(value)
    if repaired == value:
        return raw
    return json.dumps(repaired, ensure_ascii=False)


async def repair_stored_histories(session: AsyncSession) -> int:
    """修复所有小红书搜索历史，返回被修改的记录数."""
    stmt = (
        select(SearchHistory)
        .where(SearchHistory.type == "xiaohongshu")
        .options(selectinload(SearchHistory.analysis_result))
    )
    histories = (await session.execute(stmt)).scalars().all()
    logger.info(f"找到 {len(histories)} 条小红书记录")

    changed = 0
    for history in histories:
        modified = False

        keyword = repair_text(history.keyword)
        if keyword != history.keyword:
            logger.info(f"修复关键词 {history.id}: {history.keyword!r} -> {keyword!r}")
            history.keyword = keyword
            modified = True

        result = history.analysis_result
        if result is not None:
            for field in REPAIRED_FIELDS:
                raw = getattr(result, field)
                fixed = _repair_json_text(raw, field)
                if fixed != raw:
                    setattr(result, field, fixed)
                    modified = True

        if modified:
            changed += 1

    await session.commit()
    logger.info(f"修复完成，共修改 {changed} 条记录")
    return changed


async def _run() -> int:
    await init_db(get_settings().database_url)
    try:
        async with async_session_maker()() as session:
            return await repair_stored_histories(session)
    finally:
        await close_db()


def main() -> None:
    """命令行入口."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(_run())


if __name__ == "__main__":
    main()
