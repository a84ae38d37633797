"""AI 配图服务（硅基流动）."""

import html
import logging
import time
from typing import Literal

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from contentfactory.config import Settings

logger = logging.getLogger(__name__)

FALLBACK_URL_TEMPLATE = "https://picsum.photos/seed/{seed}/{width}/{height}.jpg"

STYLE_ENHANCEMENTS = {
    "photorealistic": "真实照片质感，高清细节，自然光线，专业摄影",
    "business": "商务专业风格，现代办公环境，明亮清晰，商业摄影",
    "lifestyle": "生活化场景，自然真实，温馨氛围，日常摄影",
    "illustration": "插画风格，扁平设计，色彩协调，现代美学",
    "data-viz": "信息图表，清晰专业，数据可视化，商务风格",
}
SHORT_PROMPT_SUFFIX = "，专业级视觉呈现，高质量图像输出"
SHORT_PROMPT_LENGTH = 20


class ImageModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImageDescription(ImageModel):
    """待生成图片的描述."""

    id: str
    description: str
    style: str = "photorealistic"
    width: int = 1024
    height: int = 1024
    quality: Literal["standard", "high"] = "standard"


class GeneratedImage(ImageModel):
    """生成结果，失败时为备用图片."""

    id: str
    url: str
    description: str
    style: str
    width: int
    height: int
    generation_time: int
    source: Literal["ai", "fallback"]
    fallback_reason: str | None = None


def enhance_prompt(description: str, style: str | None) -> str:
    """根据风格补充中文提示词."""
    prompt = description
    enhancement = STYLE_ENHANCEMENTS.get(style or "", STYLE_ENHANCEMENTS["photorealistic"])

    if "高清" not in prompt and "细节" not in prompt:
        prompt += f"，{enhancement}"

    if len(prompt) < SHORT_PROMPT_LENGTH:
        prompt += SHORT_PROMPT_SUFFIX

    return prompt


def fallback_image(desc: ImageDescription, reason: str, generation_time: int = 0) -> GeneratedImage:
    """生成确定性的备用图片."""
    return GeneratedImage(
        id=desc.id,
        url=FALLBACK_URL_TEMPLATE.format(seed=desc.id, width=desc.width, height=desc.height),
        description=desc.description,
        style=desc.style,
        width=desc.width,
        height=desc.height,
        generation_time=generation_time,
        source="fallback",
        fallback_reason=reason,
    )


class ImageGenerator:
    """图片生成器，任何失败都返回备用图片，不抛出异常."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.api_key = settings.siliconflow_api_key
        self.base_url = settings.siliconflow_base_url.rstrip("/")
        self.model = settings.siliconflow_image_model
        self._client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    async def close(self) -> None:
        """关闭客户端."""
        await self._client.aclose()

    async def generate(self, desc: ImageDescription) -> GeneratedImage:
        """生成一张图片."""
        if not self.api_key:
            logger.warning(f"未配置图片生成 API 密钥，使用备用图片: {desc.id}")
            return fallback_image(desc, "missing_api_key")

        started = time.monotonic()
        url = f"{self.base_url}/v1/images/generations"
        payload = {"model": self.model, "prompt": enhance_prompt(desc.description, desc.style)}

        try:
            response = await self._client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            logger.warning(f"图片生成请求失败 {desc.id}: {e}")
            return fallback_image(desc, "network_error", self._elapsed(started))

        if not response.is_success:
            logger.warning(f"图片生成接口返回错误 {desc.id}: HTTP {response.status_code}")
            return fallback_image(desc, f"http_{response.status_code}", self._elapsed(started))

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"图片生成响应解析失败 {desc.id}: {e}")
            return fallback_image(desc, "invalid_response", self._elapsed(started))

        images = data.get("images") if isinstance(data, dict) else None
        if not isinstance(images, list):
            return fallback_image(desc, "invalid_response", self._elapsed(started))

        first = images[0] if images else None
        image_url = first.get("url") if isinstance(first, dict) else None
        if not image_url:
            return fallback_image(desc, "empty_result", self._elapsed(started))

        generation_time = self._elapsed(started)
        logger.info(f"图片生成成功 {desc.id}，耗时 {generation_time}ms")
        return GeneratedImage(
            id=desc.id,
            url=image_url,
            description=desc.description,
            style=desc.style,
            width=desc.width,
            height=desc.height,
            generation_time=generation_time,
            source="ai",
        )

    @staticmethod
    def _elapsed(started: float) -> int:
        return int((time.monotonic() - started) * 1000)


def render_image_html(image: GeneratedImage) -> str:
    """生成插入文章的图片 HTML."""
    description = html.escape(image.description)
    image_class = "generated-image ai-generated" if image.source == "ai" else "generated-image fallback-image"
    image_style = "max-width: 100%; height: auto; border-radius: 8px;"
    notice = ""

    if image.source == "fallback":
        image_style += " border: 2px dashed #ffa500;"
        notice = (
            '\n    <p style="text-align: center; color: #ffa500; font-size: 12px; margin-top: 4px;">'
            f"使用备用图片源 ({html.escape(image.fallback_reason or '')})</p>"
        )

    return (
        f'<div class="{image_class}" data-image-id="{html.escape(image.id)}" data-source="{image.source}">\n'
        f'    <img src="{html.escape(image.url)}" alt="{description}" style="{image_style}" loading="lazy" />\n'
        f'    <p style="text-align: center; color: #666; font-size: 14px; margin-top: 8px;">{description}</p>'
        f"{notice}\n"
        "</div>"
    )
