"""测试小红书搜索 API."""

import httpx
import pytest
from httpx import AsyncClient

from contentfactory.api.xiaohongshu import get_xiaohongshu_client
from contentfactory.main import app
from contentfactory.services.xiaohongshu import XiaohongshuClient


@pytest.fixture
def xhs_response(settings):
    """替换小红书接口的响应."""
    state = {"response": httpx.Response(200, json={
        "code": 0,
        "has_more": False,
        "items": [{"id": "n1", "note_card": {"display_title": "咖啡拉花", "user": {"nick_name": "小咖"}}}],
    })}

    async def override():
        transport = httpx.MockTransport(lambda request: state["response"])
        yield XiaohongshuClient(settings, client=httpx.AsyncClient(transport=transport))

    app.dependency_overrides[get_xiaohongshu_client] = override
    return state


class TestSearch:
    """测试 POST /api/xiaohongshu/search."""

    async def test_success(self, client: AsyncClient, xhs_response) -> None:
        """返回转换后的笔记."""
        response = await client.post("/api/xiaohongshu/search", json={"keyword": "咖啡"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["pageSize"] == 1
        assert data["hasMore"] is False
        assert data["data"][0]["title"] == "咖啡拉花"
        assert "isFallback" not in data

    async def test_fallback(self, client: AsyncClient, xhs_response) -> None:
        """业务错误时返回模拟数据并标记."""
        xhs_response["response"] = httpx.Response(200, json={"code": 500})

        data = (await client.post("/api/xiaohongshu/search", json={"keyword": "咖啡"})).json()

        assert data["isFallback"] is True
        assert data["total"] == 2
        assert "模拟数据" in data["message"]

    async def test_http_error(self, client: AsyncClient, xhs_response) -> None:
        """HTTP 错误透传状态码."""
        xhs_response["response"] = httpx.Response(503)

        response = await client.post("/api/xiaohongshu/search", json={"keyword": "咖啡"})

        assert response.status_code == 503
        assert response.json()["code"] == "XIAOHONGSHU_API_ERROR"

    async def test_blank_keyword(self, client: AsyncClient, xhs_response) -> None:
        """空关键词返回 400."""
        response = await client.post("/api/xiaohongshu/search", json={"keyword": "  "})

        assert response.status_code == 400
        assert response.json()["error"] == "关键词不能为空"
