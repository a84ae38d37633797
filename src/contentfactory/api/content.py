"""内容创作 API."""

import json
import logging
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from contentfactory.api.errors import ApiError, bad_request
from contentfactory.config import Settings, get_settings
from contentfactory.llm.factory import check_ai_availability, create_llm_provider
from contentfactory.llm.generator import ArticleGenerator, GenerationParameters, InsightReference
from contentfactory.models.article import Article
from contentfactory.models.database import get_session
from contentfactory.services.image import ImageDescription, ImageGenerator, render_image_html
from contentfactory.utils.html_parser import derive_plain_content

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/content", tags=["content"])


class SaveToPublishRequest(BaseModel):
    """保存到发布管理的文章."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = None
    content: str | None = None
    html_content: str | None = None
    platform: str | None = None
    style: str | None = None
    length: str | None = None
    target_platforms: list[str] = Field(default_factory=list)
    custom_instructions: str | None = None
    insight_id: str | None = None
    topic_direction: str | None = None
    has_images: bool = False
    image_config: dict[str, Any] | None = None
    estimated_reading_time: int | None = None
    sections: list[Any] | None = None


class GenerateRequest(BaseModel):
    """文章生成请求."""

    topic: str = Field(min_length=1)
    insight: InsightReference | None = None
    parameters: GenerationParameters = Field(default_factory=GenerationParameters)


class RegenerateImageRequest(BaseModel):
    """单张图片重新生成请求."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    image_id: str | None = None
    description: str | None = None
    style: str | None = None


async def get_image_generator(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[ImageGenerator]:
    """创建图片生成器，请求结束后关闭."""
    generator = ImageGenerator(settings)
    try:
        yield generator
    finally:
        await generator.close()


@router.post("/save-to-publish")
async def save_to_publish(
    request: SaveToPublishRequest,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """保存文章到发布管理，状态为 pending."""
    if not (request.title and request.content and request.platform and request.style):
        raise bad_request("标题、内容、平台和风格为必填字段", "MISSING_FIELDS")

    article = Article(
        title=request.title,
        content=request.content,
        html_content=request.html_content,
        plain_content=derive_plain_content(request.content, request.html_content),
        platform=request.platform,
        style=request.style,
        length=request.length or "medium",
        target_platforms=json.dumps(request.target_platforms, ensure_ascii=False, separators=(",", ":")),
        custom_instructions=request.custom_instructions,
        insight_id=request.insight_id,
        topic_direction=request.topic_direction,
        has_images=request.has_images,
        image_config=json.dumps(request.image_config, ensure_ascii=False) if request.image_config else None,
        status="pending",
        estimated_reading_time=request.estimated_reading_time,
        sections=json.dumps(request.sections, ensure_ascii=False) if request.sections else None,
    )
    session.add(article)
    await session.commit()
    logger.info(f"文章已保存到发布管理 {article.id}: {article.title}")

    return {
        "success": True,
        "articleId": article.id,
        "message": "文章已成功保存到发布管理",
    }


@router.post("/generate")
async def generate_article(
    request: GenerateRequest,
    settings: Settings = Depends(get_settings),
) -> dict:
    """调用 AI 生成文章."""
    status = check_ai_availability(settings)
    if not status["available"]:
        raise ApiError(503, status["error"], "AI_UNAVAILABLE")

    provider = create_llm_provider(settings)
    try:
        article = await ArticleGenerator(provider).generate(
            request.topic, request.parameters, request.insight
        )
    finally:
        await provider.close()

    logger.info(f"文章生成完成: {article.title}，{len(article.sections)} 个章节")
    return {
        "success": True,
        "data": {
            "article": {
                "title": article.title,
                "content": article.content,
                "sections": article.sections,
                "estimatedReadingTime": article.estimated_reading_time,
            },
            "metadata": {
                "model": provider.config.model,
                "generatedAt": datetime.utcnow().isoformat(),
                "parameters": request.parameters.model_dump(by_alias=True),
            },
        },
    }


@router.post("/regenerate-image")
async def regenerate_image(
    request: RegenerateImageRequest,
    settings: Settings = Depends(get_settings),
    generator: ImageGenerator = Depends(get_image_generator),
) -> dict:
    """重新生成单张配图，失败时返回备用图片."""
    if not request.image_id or not request.description:
        raise bad_request("缺少必要参数：imageId 和 description", "MISSING_FIELDS")

    if not settings.image_generation_enabled:
        raise ApiError(503, "图片生成服务未启用", "IMAGE_GENERATION_DISABLED")

    desc = ImageDescription(
        id=request.image_id,
        description=request.description,
        style=request.style or settings.image_default_style,
        quality=settings.image_quality,
    )
    image = await generator.generate(desc)

    data: dict[str, Any] = {
        "image": image.model_dump(by_alias=True),
        "html": render_image_html(image),
        "generationTime": image.generation_time,
    }
    if image.source == "fallback":
        data["fallback"] = True
        data["fallbackReason"] = image.fallback_reason

    return {"success": True, "data": data}
