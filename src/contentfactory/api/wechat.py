"""微信公众号 API."""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from contentfactory.api.errors import bad_request
from contentfactory.config import Settings, get_settings
from contentfactory.exceptions import UpstreamError
from contentfactory.models.article import PublishRecord
from contentfactory.models.database import get_session
from contentfactory.services.wechat import PublishPayload, WeChatClient, validate_publish_payload
from contentfactory.utils.html_parser import absolutize_image_urls, extract_first_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wechat", tags=["wechat"])

# TODO: link publish records to the article being published once the client sends articleId
PLACEHOLDER_ARTICLE_ID = 0


class WeChatPublishRequest(BaseModel):
    """发布请求."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    wechat_appid: str | None = None
    title: str | None = None
    content: str | None = None
    summary: str | None = None
    cover_image: str | None = None
    author: str | None = None
    content_format: Literal["markdown", "html"] = "html"
    article_type: Literal["news", "newspic"] = "news"


async def get_wechat_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[WeChatClient]:
    """创建公众号客户端，请求结束后关闭."""
    client = WeChatClient(settings)
    try:
        yield client
    finally:
        await client.close()


async def _record_publish(
    session: AsyncSession,
    data: dict[str, Any] | None = None,
    error: str | None = None,
) -> None:
    """记录发布结果，失败只记日志."""
    record = PublishRecord(article_id=PLACEHOLDER_ARTICLE_ID, platform="wechat")
    if error is None:
        record.mark_published()
        record.platform_data = json.dumps(data, ensure_ascii=False) if data else None
    else:
        record.mark_failed(error)

    try:
        session.add(record)
        await session.commit()
    except Exception:
        logger.exception("记录发布结果失败")
        await session.rollback()


@router.get("/accounts")
async def list_accounts(
    client: WeChatClient = Depends(get_wechat_client),
) -> dict:
    """获取可用的公众号列表."""
    accounts = await client.list_accounts()
    return {
        "success": True,
        "data": {"accounts": accounts, "total": len(accounts)},
    }


@router.post("/publish")
async def publish(
    request: WeChatPublishRequest,
    settings: Settings = Depends(get_settings),
    client: WeChatClient = Depends(get_wechat_client),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """发布文章到公众号草稿箱."""
    if not (request.wechat_appid and request.title and request.content):
        raise bad_request("缺少必需参数：公众号AppID、标题或内容")

    content = absolutize_image_urls(request.content, settings.public_base_url)
    payload = PublishPayload(
        wechat_appid=request.wechat_appid,
        title=request.title,
        content=content,
        summary=request.summary,
        cover_image=request.cover_image or extract_first_image(content),
        author=request.author,
        content_format=request.content_format,
        article_type=request.article_type,
    )

    error = validate_publish_payload(payload)
    if error:
        raise bad_request(error)

    try:
        data = await client.publish(payload)
    except UpstreamError as e:
        await _record_publish(session, error=e.message)
        raise

    await _record_publish(session, data=data)
    return {
        "success": True,
        "data": data,
        "message": "文章已成功发布到公众号草稿箱",
    }
