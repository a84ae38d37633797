"""文章生成器."""

import logging
import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from contentfactory.exceptions import UpstreamError
from contentfactory.llm.base import LLMProvider, Message
from contentfactory.utils.html_parser import estimate_reading_time

logger = logging.getLogger(__name__)

UNTITLED_ARTICLE = "未命名文章"

STYLE_GUIDES = {
    "professional": "专业严谨，用词准确，逻辑清晰，适合正式场合",
    "casual": "轻松活泼，通俗易懂，贴近生活，适合日常分享",
    "humorous": "幽默有趣，适当运用比喻和夸张，增加可读性和趣味性",
}

LENGTH_GUIDES = {
    "short": "500字左右，重点突出，简洁明了",
    "medium": "1000字左右，内容充实，有适当的展开",
    "long": "2000字左右，深度分析，内容丰富详实",
}

PLATFORM_FEATURES = {
    "wechat": "微信公众号：适合深度阅读，注重实用性和专业性",
    "xiaohongshu": "小红书：注重视觉效果，语言活泼，强调用户体验和分享",
}

SYSTEM_PROMPT_TEMPLATE = """你是一位专业的内容创作者，擅长根据指定要求创作高质量的文章。

写作风格：{style}
文章长度：{length}
目标平台：{platforms}

请确保生成的内容：
1. 符合指定的风格和长度要求
2. 结构清晰，包含标题、引言、正文和总结
3. 内容原创且有价值，避免空洞和套话
4. 适当使用数据和案例支撑观点
5. 考虑目标平台的特性和用户喜好

输出格式要求：
- 标题：吸引人且准确反映内容
- 正文：分段合理，逻辑清晰
- 使用markdown格式，包括适当的标题层级
- 在适当位置加入图片占位符 [图片：描述内容]

请确保返回的内容可以直接发布使用。"""

INSIGHT_PROMPT_TEMPLATE = """参考洞察信息：
标题：{title}
核心发现：{core_finding}
推荐选题方向：{topics}
目标受众：{audience}
内容策略：{strategy}

请基于以上洞察信息，创作有针对性的内容。
"""

USER_PROMPT_FOOTER = """
请确保文章内容：
1. 紧扣主题，不偏离核心内容
2. 提供有价值的信息和观点
3. 结构清晰，易于阅读
4. 符合目标平台的传播特点
5. 具有实用性和可操作性

现在请开始创作："""

_TITLE_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_SECTION_RE = re.compile(r"^##\s+(.+)$", re.MULTILINE)


class PlatformSelection(BaseModel):
    """目标平台."""

    wechat: bool = True
    xiaohongshu: bool = False


class GenerationParameters(BaseModel):
    """生成参数."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    style: Literal["professional", "casual", "humorous"] = "professional"
    length: Literal["short", "medium", "long"] = "medium"
    platforms: PlatformSelection = Field(default_factory=PlatformSelection)
    custom_instructions: str | None = None


class InsightReference(BaseModel):
    """作为创作参考的洞察."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    core_finding: str
    recommended_topics: list[str] = Field(default_factory=list)
    target_audience: list[str] = Field(default_factory=list)
    content_strategy: list[str] = Field(default_factory=list)


class GeneratedArticle(BaseModel):
    """生成的文章."""

    title: str
    content: str
    sections: list[str]
    estimated_reading_time: int


def parse_generated_content(content: str) -> GeneratedArticle:
    """从 Markdown 中提取标题、章节和阅读时间."""
    title_match = _TITLE_RE.search(content)
    title = title_match.group(1).strip() if title_match else UNTITLED_ARTICLE

    sections = [match.strip() for match in _SECTION_RE.findall(content)]

    return GeneratedArticle(
        title=title,
        content=content,
        sections=sections,
        estimated_reading_time=estimate_reading_time(content),
    )


class ArticleGenerator:
    """文章生成器."""

    def __init__(self, provider: LLMProvider) -> None:
        self.provider = provider

    async def generate(
        self,
        topic: str,
        parameters: GenerationParameters,
        insight: InsightReference | None = None,
    ) -> GeneratedArticle:
        """生成文章，AI 调用失败时抛出 UpstreamError."""
        messages = self._build_messages(topic, parameters, insight)

        try:
            response = await self.provider.chat(messages)
        except Exception as e:
            logger.error(f"文章生成失败: {e}")
            raise UpstreamError(f"文章生成失败: {e}", status_code=502, code="AI_SERVICE_ERROR") from e

        if not response.strip():
            raise UpstreamError("AI生成失败", status_code=502, code="AI_SERVICE_ERROR")

        return parse_generated_content(response)

    def _build_messages(
        self,
        topic: str,
        parameters: GenerationParameters,
        insight: InsightReference | None,
    ) -> list[Message]:
        """构建对话消息."""
        platforms = [
            feature
            for name, feature in PLATFORM_FEATURES.items()
            if getattr(parameters.platforms, name)
        ]
        system_prompt = SYSTEM_PROMPT_TEMPLATE.format(
            style=STYLE_GUIDES[parameters.style],
            length=LENGTH_GUIDES[parameters.length],
            platforms="；".join(platforms) or "通用平台",
        )

        user_prompt = f'请为我创作一篇关于"{topic}"的文章。\n\n'
        if insight:
            user_prompt += INSIGHT_PROMPT_TEMPLATE.format(
                title=insight.title,
                core_finding=insight.core_finding,
                topics="、".join(insight.recommended_topics),
                audience="、".join(insight.target_audience),
                strategy="、".join(insight.content_strategy),
            )
        if parameters.custom_instructions:
            user_prompt += f"\n特殊要求：{parameters.custom_instructions}\n"
        user_prompt += USER_PROMPT_FOOTER

        return [
            Message(role="system", content=system_prompt),
            Message(role="user", content=user_prompt),
        ]
