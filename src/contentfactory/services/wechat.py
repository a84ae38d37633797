"""微信公众号发布接口客户端."""

import logging
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from contentfactory.config import Settings
from contentfactory.exceptions import UpstreamError

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 64
MAX_SUMMARY_LENGTH = 120

ERROR_MESSAGES = {
    "API_KEY_MISSING": "API密钥未提供",
    "API_KEY_INVALID": "API密钥无效",
    "ACCOUNT_NOT_FOUND": "公众号不存在或未授权",
    "ACCOUNT_TOKEN_EXPIRED": "公众号授权已过期",
    "INVALID_PARAMETER": "参数错误",
    "WECHAT_API_ERROR": "微信接口调用失败",
    "INTERNAL_ERROR": "服务器内部错误",
}


class PublishPayload(BaseModel):
    """发送给发布接口的文章."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    wechat_appid: str
    title: str
    content: str
    summary: str | None = None
    cover_image: str | None = None
    author: str | None = None
    content_format: Literal["markdown", "html"] = "html"
    article_type: Literal["news", "newspic"] = "news"


class WeChatClient:
    """公众号接口客户端，失败时抛出 UpstreamError."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = settings.wechat_api_base_url.rstrip("/")
        self.api_key = settings.wechat_api_key
        self._client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    async def close(self) -> None:
        """关闭客户端."""
        await self._client.aclose()

    async def list_accounts(self) -> list[dict[str, Any]]:
        """获取已授权的公众号，只保留状态正常且有 AppID 的账号."""
        data = await self._post("/wechat-accounts", None, "获取公众号列表失败")
        accounts = (data or {}).get("accounts") or []

        valid = [
            account
            for account in accounts
            if isinstance(account, dict)
            and account.get("status") == "active"
            and account.get("wechatAppid")
        ]
        logger.info(f"公众号列表: 共 {len(accounts)} 个，有效 {len(valid)} 个")
        return valid

    async def publish(self, payload: PublishPayload) -> dict[str, Any]:
        """发布文章到公众号草稿箱."""
        body = payload.model_dump(by_alias=True, exclude_none=True)
        logger.info(f"发布文章到公众号 {payload.wechat_appid}: {payload.title}")
        data = await self._post("/wechat-publish", body, "发布文章失败")
        return data or {}

    async def _post(self, path: str, body: dict[str, Any] | None, default_error: str) -> Any:
        if not self.api_key:
            logger.error("微信API密钥未配置")
            raise UpstreamError("微信API密钥未配置", status_code=500, code="API_KEY_MISSING")

        try:
            response = await self._client.post(
                f"{self.base_url}{path}",
                json=body,
                headers={"X-API-Key": self.api_key},
            )
        except httpx.HTTPError as e:
            logger.error(f"微信API请求失败 {path}: {e}")
            raise UpstreamError(f"微信API调用失败: {e}", status_code=502, code="WECHAT_API_ERROR") from e

        if not response.is_success:
            logger.error(f"微信API调用失败 {path}: HTTP {response.status_code} {response.text[:200]}")
            raise UpstreamError(
                f"微信API调用失败: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                code="WECHAT_API_ERROR",
            )

        try:
            result = response.json()
        except ValueError as e:
            raise UpstreamError("微信API响应格式错误", status_code=502, code="WECHAT_API_ERROR") from e

        if not isinstance(result, dict) or not result.get("success"):
            result = result if isinstance(result, dict) else {}
            code = result.get("code") or "WECHAT_API_ERROR"
            message = ERROR_MESSAGES.get(code) or result.get("error") or default_error
            logger.error(f"微信API返回错误 {path}: {code} {message}")
            raise UpstreamError(message, status_code=400, code=code)

        return result.get("data")


def validate_publish_payload(payload: PublishPayload) -> str | None:
    """校验标题和摘要长度，返回错误信息."""
    if len(payload.title) > MAX_TITLE_LENGTH:
        return f"标题长度不能超过{MAX_TITLE_LENGTH}个字符"
    if payload.summary and len(payload.summary) > MAX_SUMMARY_LENGTH:
        return f"摘要长度不能超过{MAX_SUMMARY_LENGTH}个字符"
    return None
