"""选题洞察规范化."""

import time
from typing import Any

from contentfactory.core.canonical import resolve_list_field
from contentfactory.models.history import AnalysisResult

UNTITLED_INSIGHT = "未命名洞察"
NO_CORE_FINDING = "暂无核心发现"
DEFAULT_DIFFICULTY = "medium"
DEFAULT_CONFIDENCE = 0.8

INSIGHT_LIST_FIELDS = ("recommendedTopics", "contentStrategy", "targetAudience", "dataSupport")
TOPIC_SOURCE_FIELDS = ("structured_topic_insights", "ai_generated_insights")


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def normalize_insight(item: Any, index: int, now_ms: int) -> dict[str, Any]:
    """补全单条洞察的缺省字段."""
    data = item if isinstance(item, dict) else {}

    keyword_analysis = data.get("keywordAnalysis")
    keyword_analysis = keyword_analysis if isinstance(keyword_analysis, dict) else {}

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, int | float):
        confidence = DEFAULT_CONFIDENCE

    normalized = {
        **data,
        "id": data.get("id") or f"insight_{now_ms}_{index}",
        "title": data.get("title") or UNTITLED_INSIGHT,
        "coreFinding": data.get("coreFinding") or NO_CORE_FINDING,
        "difficulty": data.get("difficulty") or DEFAULT_DIFFICULTY,
        "confidence": confidence,
        "keywordAnalysis": {
            **keyword_analysis,
            "highFrequency": _as_list(keyword_analysis.get("highFrequency")),
            "missingKeywords": _as_list(keyword_analysis.get("missingKeywords")),
        },
    }
    for field in INSIGHT_LIST_FIELDS:
        normalized[field] = _as_list(data.get(field))

    return normalized


def normalize_insights(items: Any, now_ms: int | None = None) -> list[dict[str, Any]]:
    """
    规范化洞察列表.

    Args:
        items: 解析后的洞察列表，非数组时返回空列表
        now_ms: 生成缺省 ID 使用的毫秒时间戳，默认取当前时间

    Returns:
        每个元素都包含完整字段的洞察列表
    """
    if not isinstance(items, list):
        return []

    if now_ms is None:
        now_ms = int(time.time() * 1000)

    return [normalize_insight(item, index, now_ms) for index, item in enumerate(items)]


def collect_keywords(insights: list[dict[str, Any]]) -> list[str]:
    """汇总所有洞察的高频词和缺失关键词，去重并保持首次出现的顺序."""
    seen: dict[str, None] = {}
    for insight in insights:
        analysis = insight.get("keywordAnalysis") or {}
        for keyword in [*_as_list(analysis.get("highFrequency")), *_as_list(analysis.get("missingKeywords"))]:
            if isinstance(keyword, str):
                seen.setdefault(keyword, None)
    return list(seen)


def resolve_topic_insights(result: AnalysisResult) -> list[Any]:
    """读取选题洞察，新字段为空时退回旧字段."""
    return resolve_list_field(result, TOPIC_SOURCE_FIELDS)


