"""发布管理文章 API."""

import json
import logging
import math
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlmodel import select

from contentfactory.api.errors import bad_request, not_found, parse_id
from contentfactory.models.article import ARTICLE_STATUSES, Article, PublishRecord
from contentfactory.models.database import get_session
from contentfactory.utils.html_parser import derive_plain_content

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/articles", tags=["articles"])

THUMBNAIL_WITH_IMAGES = "https://images.unsplash.com/photo-1677442136019-21780ecad995?w=200&h=100&fit=crop"
THUMBNAIL_DEFAULT = "https://images.unsplash.com/photo-1551288049-bebda4e38f71?w=200&h=100&fit=crop"
INVALID_ARTICLE_ID = "无效的文章ID"
ARTICLE_NOT_FOUND = "文章不存在"


class ArticleUpdate(BaseModel):
    """文章部分更新，只处理请求中出现的字段."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = None
    content: str | None = None
    html_content: str | None = None
    status: str | None = None
    custom_instructions: str | None = None


def _loads(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"JSON 字段解析失败: {raw[:50]}")
        return default


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def publish_record_summary(record: PublishRecord) -> dict[str, Any]:
    return {
        "platform": record.platform,
        "status": record.status,
        "publishedAt": _iso(record.published_at),
        "withdrawnAt": _iso(record.withdrawn_at),
    }


def publish_record_detail(record: PublishRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        **publish_record_summary(record),
        "publishedUrl": record.published_url,
        "errorMessage": record.error_message,
        "retryCount": record.retry_count,
        "platformData": _loads(record.platform_data, None),
        "createdAt": _iso(record.created_at),
        "updatedAt": _iso(record.updated_at),
    }


def platform_condition(platform: str) -> Any:
    """平台筛选条件，multi 表示同时面向公众号和小红书."""
    if platform == "multi":
        return Article.target_platforms.contains('"wechat","xiaohongshu"')
    return or_(Article.platform == platform, Article.target_platforms.contains(f'"{platform}"'))


async def _get_article(session: AsyncSession, article_id: str) -> Article:
    stmt = (
        select(Article)
        .where(Article.id == parse_id(article_id, INVALID_ARTICLE_ID))
        .options(selectinload(Article.publish_records))
    )
    article = (await session.execute(stmt)).scalar_one_or_none()
    if not article:
        raise not_found(ARTICLE_NOT_FOUND)
    return article


@router.get("")
async def list_articles(
    search: str | None = Query(None, description="标题或正文关键词"),
    status: str | None = Query(None, description="状态，all 表示全部"),
    platform: str | None = Query(None, description="平台，multi 表示多平台"),
    page: int = Query(1, ge=1, description="页码"),
    limit: int = Query(10, ge=1, le=100, description="每页数量"),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取文章列表."""
    conditions = []
    if search:
        conditions.append(or_(Article.title.contains(search), Article.plain_content.contains(search)))
    if status and status != "all":
        conditions.append(Article.status == status)
    if platform and platform != "all":
        conditions.append(platform_condition(platform))

    count_stmt = select(func.count()).select_from(Article).where(*conditions)
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = (
        select(Article)
        .where(*conditions)
        .options(selectinload(Article.publish_records))
        .order_by(Article.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    articles = (await session.execute(stmt)).scalars().all()

    items = [
        {
            "id": str(article.id),
            "title": article.title,
            "createdAt": _iso(article.created_at),
            "status": article.status,
            "targetPlatforms": _loads(article.target_platforms, []),
            "thumbnail": THUMBNAIL_WITH_IMAGES if article.has_images else THUMBNAIL_DEFAULT,
            "publishRecords": [publish_record_summary(r) for r in article.publish_records],
            "content": article.content,
            "htmlContent": article.html_content,
            "platform": article.platform,
            "style": article.style,
            "length": article.length,
            "hasImages": article.has_images,
            "estimatedReadingTime": article.estimated_reading_time,
            "sections": _loads(article.sections, []),
        }
        for article in articles
    ]

    return {
        "success": True,
        "articles": items,
        "total": total,
        "page": page,
        "totalPages": math.ceil(total / limit),
    }


@router.get("/{article_id}")
async def get_article(
    article_id: str,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取文章详情."""
    article = await _get_article(session, article_id)
    records = sorted(article.publish_records, key=lambda r: r.created_at, reverse=True)

    return {
        "success": True,
        "article": {
            "id": str(article.id),
            "title": article.title,
            "content": article.content,
            "htmlContent": article.html_content,
            "platform": article.platform,
            "style": article.style,
            "length": article.length,
            "targetPlatforms": _loads(article.target_platforms, []),
            "customInstructions": article.custom_instructions,
            "insightId": article.insight_id,
            "topicDirection": article.topic_direction,
            "hasImages": article.has_images,
            "imageConfig": _loads(article.image_config, None),
            "status": article.status,
            "estimatedReadingTime": article.estimated_reading_time,
            "sections": _loads(article.sections, []),
            "createdAt": _iso(article.created_at),
            "updatedAt": _iso(article.updated_at),
            "publishRecords": [publish_record_detail(r) for r in records],
        },
    }


@router.put("/{article_id}")
async def update_article(
    article_id: str,
    update: ArticleUpdate,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """部分更新文章."""
    article = await _get_article(session, article_id)
    fields = update.model_fields_set

    if "status" in fields and update.status not in ARTICLE_STATUSES:
        raise bad_request(f"无效的文章状态: {update.status}")

    if "title" in fields and update.title is not None:
        article.title = update.title
    if "content" in fields and update.content is not None:
        article.content = update.content
        if update.html_content:
            article.html_content = update.html_content
        article.plain_content = derive_plain_content(update.content, update.html_content)
    if "status" in fields:
        article.status = update.status
    if "custom_instructions" in fields:
        article.custom_instructions = update.custom_instructions

    article.updated_at = datetime.utcnow()
    await session.commit()
    logger.info(f"文章已更新 {article.id}: {sorted(fields)}")

    return {
        "success": True,
        "article": {
            "id": str(article.id),
            "title": article.title,
            "content": article.content,
            "htmlContent": article.html_content,
            "status": article.status,
            "updatedAt": _iso(article.updated_at),
        },
        "message": "文章更新成功",
    }


@router.delete("/{article_id}")
async def delete_article(
    article_id: str,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """删除文章及其发布记录."""
    article = await _get_article(session, article_id)

    await session.delete(article)
    await session.commit()
    logger.info(f"文章已删除 {article.id}: {article.title}")

    return {"success": True, "message": "文章删除成功"}


@router.post("/{article_id}/withdraw")
async def withdraw_article(
    article_id: str,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """撤回文章的所有已发布记录."""
    article = await _get_article(session, article_id)

    published = [r for r in article.publish_records if r.status == "published"]
    if not published:
        raise bad_request("没有可撤回的发布记录", "INVALID_STATE")

    for record in published:
        record.mark_withdrawn()
    article.status = "withdrawn"
    article.updated_at = datetime.utcnow()
    await session.commit()
    logger.info(f"文章已撤回 {article.id}: {len(published)} 条发布记录")

    return {
        "success": True,
        "withdrawn": len(published),
        "message": "文章已撤回",
    }
