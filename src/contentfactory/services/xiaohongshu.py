"""小红书笔记搜索."""

import logging
from typing import Any, Literal

import httpx
from pydantic import BaseModel

from contentfactory.config import Settings
from contentfactory.exceptions import UpstreamError

logger = logging.getLogger(__name__)

MAX_NOTE_IMAGES = 9
NOTE_URL_TEMPLATE = "https://www.xiaohongshu.com/explore/{id}"
DEFAULT_TAGS = ["小红书", "分享"]

NOTE_TIME_LABELS = {"1": "1天内", "7": "7天内"}


class SearchRequest(BaseModel):
    """搜索参数."""

    keyword: str
    sort_type: str = "general"
    content_type: Literal["all", "image", "video"] = "all"
    time_range: str = "7"
    page: int = 1


class SearchResult(BaseModel):
    """搜索结果."""

    notes: list[dict[str, Any]]
    page: int
    has_more: bool = False
    is_fallback: bool = False
    message: str | None = None
    api_info: dict[str, Any] | None = None


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def convert_note(item: dict[str, Any]) -> dict[str, Any]:
    """把接口返回的 note_card 转换为笔记."""
    card = item["note_card"]
    user = card.get("user") or {}
    interact = card.get("interact_info") or {}
    author_name = user.get("nick_name") or user.get("nickname") or ""
    alt = card.get("display_title") or f"{user.get('nickname') or author_name}的小红书笔记"

    images: list[dict[str, Any]] = []
    cover = card.get("cover")
    if cover:
        images.append({
            "url": cover.get("url_default"),
            "width": cover.get("width"),
            "height": cover.get("height"),
            "alt": alt,
        })
    for image in card.get("image_list") or []:
        for info in image.get("info_list") or []:
            images.append({
                "url": info.get("url"),
                "width": image.get("width"),
                "height": image.get("height"),
                "alt": alt,
            })

    tags: list[str] = []
    for tag in card.get("corner_tag_info") or []:
        text = tag.get("text") if isinstance(tag, dict) else None
        if text and text not in tags:
            tags.append(text)

    content_type = "video" if card.get("type") == "video" else "image"
    note: dict[str, Any] = {
        "id": item.get("id"),
        "title": card.get("display_title") or f"{author_name}的分享",
        "content": card.get("display_title") or f"{author_name}分享了一篇小红书笔记",
        "author": {"name": author_name, "avatar": user.get("avatar"), "followers": 0},
        "publishTime": None,
        "url": NOTE_URL_TEMPLATE.format(id=item.get("id")),
        "images": images[:MAX_NOTE_IMAGES],
        "metrics": {
            "likes": _to_int(interact.get("liked_count")),
            "collects": _to_int(interact.get("collected_count")),
            "comments": _to_int(interact.get("comment_count")),
            "shares": _to_int(interact.get("shared_count")),
        },
        "tags": tags or list(DEFAULT_TAGS),
        "type": content_type,
    }
    if content_type == "video":
        note["video"] = {"url": "", "duration": 0, "cover": (cover or {}).get("url_default") or ""}
    return note


def mock_notes(keyword: str) -> list[dict[str, Any]]:
    """接口不可用时的模拟笔记."""
    return [
        {
            "id": "xhs_mock_001",
            "title": f"关于{keyword}的超实用分享！",
            "content": f"今天来分享一下关于{keyword}的心得体会，希望对大家有帮助。经过长时间的实践和总结，我发现...",
            "author": {"name": "生活小达人", "avatar": "https://via.placeholder.com/50", "followers": 15234},
            "publishTime": None,
            "url": "https://www.xiaohongshu.com/explore/mock_001",
            "images": [{"url": "https://picsum.photos/300/400?random=1", "width": 300, "height": 400, "alt": "分享图片1"}],
            "metrics": {"likes": 15234, "collects": 8921, "comments": 1256, "shares": 342},
            "tags": [keyword, "生活分享", "实用干货", "经验总结"],
            "type": "image",
        },
        {
            "id": "xhs_mock_002",
            "title": f"{keyword}测评，真实体验分享",
            "content": f"最近尝试了很多关于{keyword}的产品/方法，今天来做一期真实的测评分享...",
            "author": {"name": "测评小能手", "avatar": "https://via.placeholder.com/50", "followers": 28756},
            "publishTime": None,
            "url": "https://www.xiaohongshu.com/explore/mock_002",
            "images": [{"url": "https://picsum.photos/300/400?random=2", "width": 300, "height": 400, "alt": "测评图片1"}],
            "metrics": {"likes": 28934, "collects": 15672, "comments": 2891, "shares": 892},
            "tags": [keyword, "测评", "真实体验", "分享"],
            "type": "image",
        },
    ]


class XiaohongshuClient:
    """小红书数据接口客户端."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.api_url = settings.xiaohongshu_api_url
        self.api_key = settings.xiaohongshu_api_key
        self._client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    async def close(self) -> None:
        """关闭客户端."""
        await self._client.aclose()

    def _build_params(self, request: SearchRequest) -> dict[str, Any]:
        return {
            "key": self.api_key,
            "type": 1,
            "keyword": request.keyword.strip(),
            "page": request.page,
            "sort": "general" if request.sort_type == "popularity" else request.sort_type,
            "note_type": "video" if request.content_type == "video" else "image",
            "note_time": NOTE_TIME_LABELS.get(request.time_range, "30天内"),
            "note_range": "不限",
            "proxy": "",
        }

    def _fallback(self, request: SearchRequest, message: str) -> SearchResult:
        logger.warning(f"小红书搜索降级为模拟数据: {message}")
        return SearchResult(
            notes=mock_notes(request.keyword),
            page=request.page,
            is_fallback=True,
            message=message,
        )

    async def search(self, request: SearchRequest) -> SearchResult:
        """
        搜索笔记.

        接口返回非 0 业务码或网络异常时降级为模拟数据；
        HTTP 错误状态抛出 UpstreamError。
        """
        try:
            response = await self._client.post(self.api_url, json=self._build_params(request))
        except httpx.HTTPError as e:
            return self._fallback(request, f"网络异常，使用模拟数据 ({e})")

        if not response.is_success:
            logger.error(f"小红书API调用失败: HTTP {response.status_code}")
            raise UpstreamError(
                f"API调用失败: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                code="XIAOHONGSHU_API_ERROR",
            )

        try:
            data = response.json()
        except ValueError as e:
            return self._fallback(request, f"网络异常，使用模拟数据 ({e})")

        if not isinstance(data, dict) or data.get("code") != 0:
            code = data.get("code") if isinstance(data, dict) else None
            return self._fallback(request, f"API暂时不可用，使用模拟数据 ({code})")

        notes = []
        for item in data.get("items") or []:
            if not isinstance(item, dict) or not item.get("note_card"):
                continue
            try:
                notes.append(convert_note(item))
            except (AttributeError, KeyError, TypeError) as e:
                logger.warning(f"转换笔记数据失败 {item.get('id')}: {e}")

        logger.info(f"成功转换 {len(notes)} 条小红书笔记")
        return SearchResult(
            notes=notes,
            page=request.page,
            has_more=bool(data.get("has_more")),
            api_info={"cost": data.get("cost"), "remainMoney": data.get("remain_money")},
        )
