"""小红书搜索 API."""

from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends

from contentfactory.api.errors import bad_request
from contentfactory.config import Settings, get_settings
from contentfactory.services.xiaohongshu import SearchRequest, XiaohongshuClient

router = APIRouter(prefix="/api/xiaohongshu", tags=["xiaohongshu"])


async def get_xiaohongshu_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[XiaohongshuClient]:
    """创建小红书客户端，请求结束后关闭."""
    client = XiaohongshuClient(settings)
    try:
        yield client
    finally:
        await client.close()


@router.post("/search")
async def search_notes(
    request: SearchRequest,
    client: XiaohongshuClient = Depends(get_xiaohongshu_client),
) -> dict:
    """按关键词搜索小红书笔记."""
    if not request.keyword.strip():
        raise bad_request("关键词不能为空")

    result = await client.search(request)

    response = {
        "success": True,
        "data": result.notes,
        "total": len(result.notes),
        "page": result.page,
        "pageSize": len(result.notes),
        "hasMore": result.has_more,
    }
    if result.is_fallback:
        response["isFallback"] = True
        response["message"] = result.message
    if result.api_info:
        response["apiInfo"] = result.api_info
    return response
