"""发布文章与发布记录模型."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Relationship, SQLModel

ARTICLE_STATUSES = ("draft", "pending", "published", "withdrawn")
PUBLISH_STATUSES = ("pending", "published", "failed", "withdrawn")


class Article(SQLModel, table=True):
    """待发布/已发布的文章."""

    __tablename__ = "articles"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(description="标题")
    content: str = Field(description="原始内容 (Markdown/文本)")
    html_content: str | None = Field(default=None, description="渲染后的 HTML")
    plain_content: str | None = Field(default=None, description="纯文本（用于搜索）")
    platform: str = Field(description="主平台")
    style: str = Field(description="写作风格")
    length: str = Field(default="medium", description="篇幅: short|medium|long")
    target_platforms: str = Field(default="[]", description="目标平台 (JSON 数组)")
    custom_instructions: str | None = Field(default=None)
    insight_id: str | None = Field(default=None, description="来源洞察 ID（软引用）")
    topic_direction: str | None = Field(default=None)
    status: str = Field(default="draft", description="状态: draft|pending|published|withdrawn")
    has_images: bool = Field(default=False)
    image_config: str | None = Field(default=None, description="图片配置 (JSON 对象)")
    sections: str | None = Field(default=None, description="章节 (JSON 数组)")
    estimated_reading_time: int | None = Field(default=None, description="预计阅读时间（分钟）")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    publish_records: list["PublishRecord"] = Relationship(
        back_populates="article",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class PublishRecord(SQLModel, table=True):
    """一次向某个平台发布的尝试."""

    __tablename__ = "publish_records"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    article_id: int = Field(foreign_key="articles.id", index=True)
    platform: str = Field(description="平台")
    status: str = Field(default="pending", description="状态: pending|published|failed|withdrawn")
    published_url: str | None = Field(default=None)
    published_at: datetime | None = Field(default=None)
    withdrawn_at: datetime | None = Field(default=None)
    error_message: str | None = Field(default=None)
    retry_count: int = Field(default=0, ge=0)
    platform_data: str | None = Field(default=None, description="平台返回数据 (JSON 对象)")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    article: Optional[Article] = Relationship(back_populates="publish_records")

    def mark_published(self, url: str | None = None) -> None:
        """标记发布成功."""
        if self.status == "withdrawn":
            msg = "已撤回的发布记录不能重新发布"
            raise ValueError(msg)
        self.status = "published"
        self.published_url = url
        self.published_at = datetime.utcnow()
        self.error_message = None
        self.updated_at = datetime.utcnow()

    def mark_failed(self, error: str) -> None:
        """标记发布失败，重试次数只增不减."""
        if self.status in ("published", "withdrawn"):
            msg = f"状态为 {self.status} 的发布记录不能标记为失败"
            raise ValueError(msg)
        self.status = "failed"
        self.error_message = error
        self.retry_count += 1
        self.updated_at = datetime.utcnow()

    def mark_withdrawn(self) -> None:
        """撤回已发布的记录."""
        if self.status != "published":
            msg = f"只有已发布的记录可以撤回，当前状态: {self.status}"
            raise ValueError(msg)
        self.status = "withdrawn"
        self.withdrawn_at = datetime.utcnow()
        self.updated_at = datetime.utcnow()
