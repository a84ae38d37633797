"""选题洞察 API."""

from datetime import datetime, timedelta
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlmodel import select

from contentfactory.api.errors import not_found, parse_id
from contentfactory.core.canonical import TOPIC_INSIGHTS_FIELDS, build_complete_result, resolve_list_field
from contentfactory.core.insights import collect_keywords, normalize_insights, resolve_topic_insights
from contentfactory.models.database import get_session
from contentfactory.models.history import SearchHistory

router = APIRouter(prefix="/api/insights", tags=["insights"])


@router.get("/history")
async def list_insight_history(
    hours: int = Query(12, ge=0, description="时间范围（小时），0 表示全部"),
    platform: Literal["wechat", "xiaohongshu"] | None = Query(None, description="来源"),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取已完成分析的搜索历史."""
    stmt = (
        select(SearchHistory)
        .where(SearchHistory.status == "completed")
        .options(selectinload(SearchHistory.analysis_result))
        .order_by(SearchHistory.search_time.desc())
    )
    if hours > 0:
        stmt = stmt.where(SearchHistory.search_time >= datetime.utcnow() - timedelta(hours=hours))
    if platform:
        stmt = stmt.where(SearchHistory.type == platform)

    histories = (await session.execute(stmt)).scalars().all()

    items = []
    for history in histories:
        result = history.analysis_result
        count = len(resolve_list_field(result, TOPIC_INSIGHTS_FIELDS)) if result else 0
        items.append({
            "id": str(history.id),
            "keyword": history.keyword,
            "type": history.type,
            "createdAt": history.search_time.isoformat(),
            "completedAt": history.search_time.isoformat(),
            "status": history.status,
            "totalArticles": history.article_count or 0,
            "structuredTopicInsightsCount": count,
        })

    return {"success": True, "data": items, "count": len(items)}


@router.get("/detail/{history_id}")
async def get_insight_detail(
    history_id: str,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取单次分析的选题洞察详情."""
    id_ = parse_id(history_id)
    stmt = (
        select(SearchHistory)
        .where(SearchHistory.id == id_)
        .options(selectinload(SearchHistory.analysis_result))
    )
    history = (await session.execute(stmt)).scalar_one_or_none()
    if not history or not history.analysis_result:
        raise not_found("未找到该洞察数据")

    insights = normalize_insights(resolve_topic_insights(history.analysis_result))
    complete = build_complete_result(history, history.analysis_result)

    return {
        "success": True,
        "data": {
            "id": id_,
            "keyword": history.keyword,
            "structuredTopicInsights": insights,
            "topArticleInsights": [
                item.model_dump(mode="json", by_alias=True) for item in complete.top_article_insights
            ],
            "basicStats": complete.basic_stats.model_dump(mode="json", by_alias=True),
            "allKeywords": collect_keywords(insights),
        },
    }
