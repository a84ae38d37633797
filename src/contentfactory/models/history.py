"""搜索历史与分析结果模型."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Relationship, SQLModel

SEARCH_TYPES = ("wechat", "xiaohongshu")


class SearchHistory(SQLModel, table=True):
    """一次关键词搜索."""

    __tablename__ = "search_history"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    type: str = Field(default="wechat", index=True, description="来源: wechat|xiaohongshu")
    keyword: str = Field(index=True, description="搜索关键词")
    search_time: datetime = Field(default_factory=datetime.utcnow, index=True)
    article_count: int = Field(default=0, description="文章数量")
    avg_read: float = Field(default=0, description="平均阅读量")
    avg_like: float = Field(default=0, description="平均点赞量")
    original_rate: float = Field(default=0, description="原创率")
    status: str = Field(default="pending", description="状态: pending|completed|error")
    error_message: str | None = Field(default=None, description="错误信息")
    duration: int | None = Field(default=None, description="耗时（毫秒）")

    analysis_result: Optional["AnalysisResult"] = Relationship(
        back_populates="search_history",
        sa_relationship_kwargs={"uselist": False, "cascade": "all, delete-orphan"},
    )


class AnalysisResult(SQLModel, table=True):
    """搜索对应的分析结果，JSON 字段以文本形式存储."""

    __tablename__ = "analysis_result"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    search_history_id: int = Field(
        foreign_key="search_history.id", unique=True, description="关联搜索历史"
    )

    insights: str | None = Field(default=None, description="合并洞察 (JSON 数组)")
    word_cloud: str | None = Field(default=None, description="词云 (JSON 数组)")
    all_articles: str | None = Field(default=None, description="全部文章 (JSON 数组)")
    top_liked_articles: str | None = Field(default=None, description="点赞 TOP (JSON 数组)")
    top_interaction_articles: str | None = Field(
        default=None, description="互动率 TOP (JSON 数组)"
    )

    ai_summaries: str | None = Field(default=None, description="AI 摘要 (JSON 数组)")
    structured_info: str | None = Field(default=None, description="结构化信息 (JSON 对象)")
    ai_insights: str | None = Field(default=None, description="AI 洞察 (JSON 数组)")
    ai_generated_insights: str | None = Field(
        default=None, description="AI 洞察旧字段 (JSON 数组)"
    )
    rule_based_insights: str | None = Field(default=None, description="规则洞察 (JSON 数组)")
    rule_insights: str | None = Field(default=None, description="规则洞察旧字段 (JSON 数组)")
    structured_topic_insights: str | None = Field(
        default=None, description="结构化选题洞察 (JSON 数组)"
    )

    analysis_version: str | None = Field(default=None)
    ai_model_used: str | None = Field(default=None)
    processing_time: int | None = Field(default=None, description="AI 处理耗时（毫秒）")
    ai_analysis_status: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    search_history: Optional[SearchHistory] = Relationship(back_populates="analysis_result")
