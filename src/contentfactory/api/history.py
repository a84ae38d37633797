"""搜索历史 API."""

import logging
import math
from typing import Any, Literal, get_args

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlmodel import select

from contentfactory.api.errors import bad_request, not_found, parse_id
from contentfactory.core.canonical import build_complete_result
from contentfactory.models.database import get_session
from contentfactory.models.history import SearchHistory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/history", tags=["history"])

SourceType = Literal["wechat", "xiaohongshu"]


def history_fields(history: SearchHistory) -> dict[str, Any]:
    """搜索历史的公共字段."""
    return {
        "id": history.id,
        "type": history.type,
        "keyword": history.keyword,
        "searchTime": history.search_time.isoformat(),
        "articleCount": history.article_count,
        "avgRead": history.avg_read,
        "avgLike": history.avg_like,
        "originalRate": history.original_rate,
        "status": history.status,
        "errorMessage": history.error_message,
        "duration": history.duration,
    }


async def _load_history(session: AsyncSession, history_id: int) -> SearchHistory | None:
    stmt = (
        select(SearchHistory)
        .where(SearchHistory.id == history_id)
        .options(selectinload(SearchHistory.analysis_result))
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


def source_type(type: str | None = Query(None, description="来源")) -> SourceType | None:
    """校验来源参数，先于数据库会话执行."""
    if type is not None and type not in get_args(SourceType):
        raise bad_request(f"无效的来源: {type}")
    return type


@router.get("")
async def list_history(
    type: SourceType | None = Depends(source_type),
    page: int = Query(1, ge=1, description="页码"),
    limit: int = Query(10, ge=1, le=100, description="每页数量"),
    keyword: str | None = Query(None, description="关键词（不区分大小写）"),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取搜索历史列表."""
    conditions = []
    if type:
        conditions.append(SearchHistory.type == type)
    if keyword:
        conditions.append(SearchHistory.keyword.ilike(f"%{keyword}%"))

    count_stmt = select(func.count()).select_from(SearchHistory).where(*conditions)
    total = (await session.execute(count_stmt)).scalar_one()

    offset = (page - 1) * limit
    stmt = (
        select(SearchHistory)
        .where(*conditions)
        .options(selectinload(SearchHistory.analysis_result))
        .order_by(SearchHistory.search_time.desc())
        .offset(offset)
        .limit(limit)
    )
    histories = (await session.execute(stmt)).scalars().all()

    items = []
    for history in histories:
        has_result = history.analysis_result is not None
        items.append({
            **history_fields(history),
            "hasAnalysisResult": has_result,
            "result_summary": {
                "totalArticles": history.article_count,
                "avgLikes": history.avg_like,
                "avgRead": history.avg_read,
                "originalRate": history.original_rate,
            }
            if has_result
            else None,
        })

    has_more = offset + limit < total
    return {
        "success": True,
        "data": items,
        "total": total,
        "hasMore": has_more,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit),
            "hasMore": has_more,
        },
    }


@router.get("/{history_id}")
async def get_history(
    history_id: str,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取搜索历史详情及规范化的分析结果."""
    history = await _load_history(session, parse_id(history_id))
    if not history:
        raise not_found("未找到该历史记录")

    complete = build_complete_result(history, history.analysis_result)
    return {
        "success": True,
        "data": {
            **history_fields(history),
            "analysisResult": complete.to_response() if complete else None,
        },
    }


@router.delete("/{history_id}")
async def delete_history(
    history_id: str,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """删除搜索历史，分析结果随之删除."""
    history = await _load_history(session, parse_id(history_id))
    if not history:
        raise not_found("未找到该历史记录")

    await session.delete(history)
    await session.commit()
    logger.info(f"已删除搜索历史 {history.id}: {history.keyword}")

    return {"success": True, "message": "历史记录删除成功"}
