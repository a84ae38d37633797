"""分析结果规范化.

数据库中的分析结果以 JSON 文本存储，字段可能为空、格式错误，且存在新旧两套字段名。
这里把 (SearchHistory, AnalysisResult) 转换成一个字段齐全的 CompleteAnalysisResult，
调用方不需要再处理任何缺省值。
"""

import json
import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from functools import partial
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from contentfactory.models.history import AnalysisResult, SearchHistory

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "未知标题"
SUMMARY_FALLBACK_LENGTH = 200
DEFAULT_ENGAGEMENT = "medium"

# 字段解析优先级：按顺序尝试，第一个非空结果生效，不做合并
AI_INSIGHTS_FIELDS = ("ai_insights", "ai_generated_insights")
RULE_INSIGHTS_FIELDS = ("rule_based_insights", "rule_insights")
TOPIC_INSIGHTS_FIELDS = (
    "structured_topic_insights",
    "ai_generated_insights",
    "ai_insights",
)


class CamelModel(BaseModel):
    """以 camelCase 输出的响应模型."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


class BasicStats(CamelModel):
    """基础统计."""

    avg_read: float = 0
    avg_like: float = 0
    original_rate: float = 0
    avg_interaction: float = 0


class StructuredInfo(CamelModel):
    """AI 提取的结构化信息."""

    keywords: list[Any] = Field(default_factory=list)
    topics: list[Any] = Field(default_factory=list)
    arguments: list[Any] = Field(default_factory=list)
    unique_angles: list[Any] = Field(default_factory=list)
    target_audience: list[Any] = Field(default_factory=list)
    content_gaps: list[Any] = Field(default_factory=list)
    trending_topics: list[Any] = Field(default_factory=list)


class InteractionPattern(CamelModel):
    """互动模式."""

    read_engagement: str = DEFAULT_ENGAGEMENT
    comment_engagement: str = DEFAULT_ENGAGEMENT
    share_potential: str = DEFAULT_ENGAGEMENT


class TopArticleInsight(CamelModel):
    """TOP 文章分析."""

    article_id: str
    title: str
    summary: str
    key_arguments: list[Any] = Field(default_factory=list)
    data_points: list[Any] = Field(default_factory=list)
    unique_angles: list[Any] = Field(default_factory=list)
    target_audience: list[Any] = Field(default_factory=list)
    content_gaps: list[Any] = Field(default_factory=list)
    success_factors: list[Any] = Field(default_factory=list)
    interaction_pattern: InteractionPattern = Field(default_factory=InteractionPattern)


class AnalysisMetadata(CamelModel):
    """分析元数据."""

    model_used: str = "unknown"
    processing_time: int = 0
    analysis_version: str = "1.0"
    timestamp: datetime


class CompleteAnalysisResult(CamelModel):
    """规范化后的完整分析结果."""

    keyword: str
    total_articles: int
    processed_articles: int
    basic_stats: BasicStats
    word_cloud: list[Any]
    top_article_insights: list[TopArticleInsight]
    structured_topic_insights: list[Any]
    ai_summaries: list[Any]
    ai_insights: list[Any]
    structured_info: StructuredInfo
    rule_insights: list[Any]
    all_articles: list[Any]
    metadata: AnalysisMetadata

    def to_response(self) -> dict[str, Any]:
        """转换为 JSON 响应."""
        return self.model_dump(mode="json", by_alias=True)


def parse_json_field(raw: str | None, expected: type, field: str) -> Any | None:
    """解析单个 JSON 字段，为空、格式错误或类型不符时返回 None."""
    if not raw:
        return None

    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"解析字段 {field} 失败: {e}")
        return None

    if not isinstance(value, expected):
        logger.warning(f"字段 {field} 类型错误: 期望 {expected.__name__}，实际 {type(value).__name__}")
        return None

    return value


def parse_list(raw: str | None, field: str) -> list[Any]:
    """解析 JSON 数组字段，失败时返回空数组."""
    return parse_json_field(raw, list, field) or []


def first_non_empty(accessors: Iterable[Callable[[], list[Any]]]) -> list[Any]:
    """依次调用取值函数，返回第一个非空结果."""
    for accessor in accessors:
        value = accessor()
        if value:
            return value
    return []


def resolve_list_field(result: AnalysisResult, fields: Iterable[str]) -> list[Any]:
    """按字段优先级解析新旧字段."""
    return first_non_empty(
        partial(parse_list, getattr(result, field), field) for field in fields
    )


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int | float):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def _as_text(value: Any, default: str) -> str:
    """取字符串值，数字转为字符串，其它类型使用默认值."""
    if isinstance(value, str) and value:
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return default


def _as_int(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


def interaction_rate(article: dict[str, Any]) -> float | None:
    """单篇文章互动率 (点赞 + 在看) / 阅读 * 100，阅读数为 0 时返回 None."""
    read = _as_number(article.get("read"))
    if read <= 0:
        return None
    interactions = _as_number(article.get("praise")) + _as_number(article.get("looking"))
    return interactions / read * 100


def average_interaction(articles: list[Any]) -> float:
    """文章列表的平均互动率."""
    rates = [
        rate
        for article in articles
        if isinstance(article, dict) and (rate := interaction_rate(article)) is not None
    ]
    if not rates:
        return 0
    return round(sum(rates) / len(rates), 1)


def derive_top_article_insights(top_liked: list[Any]) -> list[TopArticleInsight]:
    """从点赞 TOP 文章生成 TopArticleInsight 列表."""
    insights: list[TopArticleInsight] = []

    for index, entry in enumerate(top_liked):
        item = entry if isinstance(entry, dict) else {}

        content = item.get("content")
        summary = _as_text(
            item.get("summary"),
            content[:SUMMARY_FALLBACK_LENGTH] if isinstance(content, str) else "",
        )

        pattern = item.get("interactionPattern")
        pattern = pattern if isinstance(pattern, dict) else {}

        insights.append(
            TopArticleInsight(
                article_id=str(item.get("articleId") or item.get("id") or f"article_{index}"),
                title=_as_text(item.get("title"), UNKNOWN_TITLE),
                summary=summary,
                key_arguments=_as_list(item.get("keyArguments")),
                data_points=_as_list(item.get("dataPoints")),
                unique_angles=_as_list(item.get("uniqueAngles")),
                target_audience=_as_list(item.get("targetAudience")),
                content_gaps=_as_list(item.get("contentGaps")),
                success_factors=_as_list(item.get("successFactors")),
                interaction_pattern=InteractionPattern(
                    read_engagement=_as_text(pattern.get("readEngagement"), DEFAULT_ENGAGEMENT),
                    comment_engagement=_as_text(pattern.get("commentEngagement"), DEFAULT_ENGAGEMENT),
                    share_potential=_as_text(pattern.get("sharePotential"), DEFAULT_ENGAGEMENT),
                ),
            )
        )

    return insights


def build_structured_info(raw: str | None) -> StructuredInfo:
    """解析结构化信息，缺失的数组字段补为空数组."""
    data = parse_json_field(raw, dict, "structured_info") or {}
    return StructuredInfo(
        keywords=_as_list(data.get("keywords")),
        topics=_as_list(data.get("topics")),
        arguments=_as_list(data.get("arguments")),
        unique_angles=_as_list(data.get("uniqueAngles")),
        target_audience=_as_list(data.get("targetAudience")),
        content_gaps=_as_list(data.get("contentGaps")),
        trending_topics=_as_list(data.get("trendingTopics")),
    )


def build_complete_result(
    history: SearchHistory,
    result: AnalysisResult | None,
) -> CompleteAnalysisResult | None:
    """把搜索历史和分析结果转换为规范化的完整分析结果.

    没有分析结果时返回 None，由调用方决定如何处理。
    """
    if result is None:
        return None

    all_articles = parse_list(result.all_articles, "all_articles")

    return CompleteAnalysisResult(
        keyword=history.keyword,
        total_articles=history.article_count or 0,
        processed_articles=len(all_articles),
        basic_stats=BasicStats(
            avg_read=history.avg_read or 0,
            avg_like=history.avg_like or 0,
            original_rate=history.original_rate or 0,
            avg_interaction=average_interaction(all_articles),
        ),
        word_cloud=parse_list(result.word_cloud, "word_cloud"),
        top_article_insights=derive_top_article_insights(
            parse_list(result.top_liked_articles, "top_liked_articles")
        ),
        structured_topic_insights=resolve_list_field(result, TOPIC_INSIGHTS_FIELDS),
        ai_summaries=parse_list(result.ai_summaries, "ai_summaries"),
        ai_insights=resolve_list_field(result, AI_INSIGHTS_FIELDS),
        structured_info=build_structured_info(result.structured_info),
        rule_insights=resolve_list_field(result, RULE_INSIGHTS_FIELDS),
        all_articles=all_articles,
        metadata=AnalysisMetadata(
            model_used=_as_text(result.ai_model_used, "unknown"),
            processing_time=_as_int(result.processing_time),
            analysis_version=_as_text(result.analysis_version, "1.0"),
            timestamp=result.created_at,
        ),
    )
