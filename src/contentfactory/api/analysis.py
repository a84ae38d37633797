"""分析结果保存 API."""

import json
import logging
from datetime import datetime, time
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from contentfactory.api.errors import ApiError, bad_request
from contentfactory.config import Settings, get_settings
from contentfactory.models.database import get_session
from contentfactory.models.history import SEARCH_TYPES, AnalysisResult, SearchHistory
from contentfactory.utils.encoding import repair_text, repair_value

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


def _dumps(value: Any) -> str | None:
    """序列化可选字段，空值存为 NULL."""
    if not value:
        return None
    return json.dumps(value, ensure_ascii=False)


def _number(value: Any, default: float = 0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, int | float):
        return value
    return default


def _integer(value: Any) -> int | None:
    """只接受整数毫秒数."""
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return None


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return default


def filter_topic_insights(value: Any) -> list[dict[str, Any]]:
    """只保留同时包含 title 和 coreFinding 的洞察对象."""
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning(f"structuredTopicInsights 不是数组: {type(value).__name__}")
        return []

    valid = [
        item
        for item in value
        if isinstance(item, dict) and item.get("title") and item.get("coreFinding")
    ]
    logger.info(f"验证结构化洞察数据: {len(value)} -> {len(valid)}")
    return valid


async def _count_today(session: AsyncSession) -> int:
    today = datetime.combine(datetime.utcnow().date(), time.min)
    stmt = select(func.count()).select_from(SearchHistory).where(SearchHistory.search_time >= today)
    return (await session.execute(stmt)).scalar_one()


@router.post("/save")
async def save_analysis(
    body: dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> dict:
    """保存一次搜索及其分析结果."""
    data = repair_value(body)

    keyword = data.get("keyword")
    articles = data.get("articles")
    if not keyword or not articles:
        raise bad_request("缺少必需字段: keyword, articles", "MISSING_FIELDS")

    search_type = data.get("type")
    if search_type not in SEARCH_TYPES:
        raise bad_request("无效或缺少type字段，必须是 wechat 或 xiaohongshu", "INVALID_TYPE")

    if settings.analysis_daily_quota > 0:
        used = await _count_today(session)
        if used >= settings.analysis_daily_quota:
            logger.warning(f"今日分析次数已达上限: {used}/{settings.analysis_daily_quota}")
            raise ApiError(429, "今日分析次数已达上限", "QUOTA_EXCEEDED")

    topic_insights = filter_topic_insights(data.get("structuredTopicInsights"))
    ai_insights = data.get("aiInsights")
    rule_insights = data.get("ruleInsights")
    metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else None

    history = SearchHistory(
        type=search_type,
        keyword=repair_text(str(keyword)),
        article_count=int(_number(data.get("articleCount"))),
        avg_read=_number(data.get("avgRead")),
        avg_like=_number(data.get("avgLike")),
        original_rate=_number(data.get("originalRate")),
        duration=data.get("duration") if isinstance(data.get("duration"), int) else None,
        status="completed",
    )
    session.add(history)
    await session.flush()

    meta = metadata or {}
    ai_json = _dumps(ai_insights)
    result = AnalysisResult(
        search_history_id=history.id,
        insights=_dumps(data.get("insights")) or "[]",
        word_cloud=json.dumps(data.get("wordCloud") or [], ensure_ascii=False),
        top_liked_articles=json.dumps(data.get("topLikedArticles") or [], ensure_ascii=False),
        top_interaction_articles=json.dumps(data.get("topInteractionArticles") or [], ensure_ascii=False),
        all_articles=json.dumps(articles, ensure_ascii=False),
        ai_summaries=_dumps(data.get("aiSummaries")),
        structured_info=_dumps(data.get("structuredInfo")),
        ai_insights=ai_json,
        ai_generated_insights=ai_json,
        rule_based_insights=_dumps(rule_insights),
        structured_topic_insights=_dumps(topic_insights),
        analysis_version=_text(meta.get("analysisVersion"), "1.0"),
        ai_model_used=_text(meta.get("modelUsed"), "unknown"),
        processing_time=_integer(meta.get("processingTime")),
        ai_analysis_status="completed" if metadata else None,
    )
    session.add(result)
    await session.commit()

    logger.info(f"分析结果已保存: {history.keyword} (history={history.id}, result={result.id})")

    ai_count = len(ai_insights) if isinstance(ai_insights, list) else 0
    rule_count = len(rule_insights) if isinstance(rule_insights, list) else 0
    return {
        "success": True,
        "data": {
            "searchHistoryId": history.id,
            "analysisResultId": result.id,
            "message": "AI增强分析结果保存成功",
            "metadata": {
                "hasAISummaries": bool(data.get("aiSummaries")),
                "hasAIInsights": bool(ai_insights),
                "hasRuleInsights": bool(rule_insights),
                "totalInsights": ai_count + rule_count,
            },
        },
    }
