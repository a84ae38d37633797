"""测试公众号接口客户端."""

import json

import httpx
import pytest

from contentfactory.config import Settings
from contentfactory.exceptions import UpstreamError
from contentfactory.services.wechat import PublishPayload, WeChatClient, validate_publish_payload

ACCOUNTS = [
    {"name": "正常号", "wechatAppid": "wx001", "status": "active"},
    {"name": "已撤销", "wechatAppid": "wx002", "status": "revoked"},
    {"name": "无 AppID", "wechatAppid": "", "status": "active"},
]


def _client(handler, api_key: str = "key-123") -> WeChatClient:
    settings = Settings(_env_file=None, wechat_api_key=api_key, wechat_api_base_url="https://wx.example.com/api")
    return WeChatClient(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestListAccounts:
    """测试获取公众号列表."""

    async def test_filters_accounts(self) -> None:
        """只保留状态正常且有 AppID 的账号."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["key"] = request.headers["X-API-Key"]
            return httpx.Response(200, json={"success": True, "data": {"accounts": ACCOUNTS}})

        accounts = await _client(handler).list_accounts()

        assert [a["wechatAppid"] for a in accounts] == ["wx001"]
        assert captured["url"] == "https://wx.example.com/api/wechat-accounts"
        assert captured["key"] == "key-123"

    async def test_missing_key(self) -> None:
        """未配置密钥时抛出 API_KEY_MISSING."""
        with pytest.raises(UpstreamError) as exc_info:
            await _client(lambda r: httpx.Response(200), api_key="").list_accounts()

        assert exc_info.value.code == "API_KEY_MISSING"
        assert exc_info.value.status_code == 500

    async def test_business_error_mapped(self) -> None:
        """业务错误码映射为中文提示."""
        handler = lambda r: httpx.Response(200, json={"success": False, "code": "API_KEY_INVALID"})  # noqa: E731

        with pytest.raises(UpstreamError) as exc_info:
            await _client(handler).list_accounts()

        assert exc_info.value.message == "API密钥无效"
        assert exc_info.value.code == "API_KEY_INVALID"
        assert exc_info.value.status_code == 400

    async def test_http_error(self) -> None:
        """HTTP 错误状态透传."""
        with pytest.raises(UpstreamError) as exc_info:
            await _client(lambda r: httpx.Response(503)).list_accounts()

        assert exc_info.value.status_code == 503
        assert exc_info.value.code == "WECHAT_API_ERROR"


class TestPublish:
    """测试发布."""

    async def test_sends_payload(self) -> None:
        """请求体使用 camelCase，省略空字段."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "data": {"mediaId": "m-1"}})

        payload = PublishPayload(wechat_appid="wx001", title="标题", content="<p>正文</p>")
        data = await _client(handler).publish(payload)

        assert data == {"mediaId": "m-1"}
        assert captured["url"] == "https://wx.example.com/api/wechat-publish"
        assert captured["body"] == {
            "wechatAppid": "wx001",
            "title": "标题",
            "content": "<p>正文</p>",
            "contentFormat": "html",
            "articleType": "news",
        }

    async def test_network_error(self) -> None:
        """网络异常转换为 UpstreamError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timeout", request=request)

        with pytest.raises(UpstreamError) as exc_info:
            await _client(handler).publish(PublishPayload(wechat_appid="wx", title="t", content="c"))

        assert exc_info.value.status_code == 502


class TestValidatePublishPayload:
    """测试发布参数校验."""

    def test_title_length(self) -> None:
        """标题最多 64 个字符."""
        ok = PublishPayload(wechat_appid="wx", title="字" * 64, content="c")
        too_long = PublishPayload(wechat_appid="wx", title="字" * 65, content="c")

        assert validate_publish_payload(ok) is None
        assert validate_publish_payload(too_long) == "标题长度不能超过64个字符"

    def test_summary_length(self) -> None:
        """摘要最多 120 个字符."""
        payload = PublishPayload(wechat_appid="wx", title="t", content="c", summary="字" * 121)
        assert validate_publish_payload(payload) == "摘要长度不能超过120个字符"
