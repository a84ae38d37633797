"""LLM Provider 工厂."""

import re
from typing import Any

from contentfactory.config import Settings
from contentfactory.llm.base import LLMConfig, LLMProvider
from contentfactory.llm.ollama import OllamaProvider
from contentfactory.llm.openai import OpenAIProvider

_PLACEHOLDER_KEYS = ("", "your_openai_api_key_here")


def create_llm_provider(settings: Settings) -> LLMProvider:
    """根据配置创建 LLM Provider."""
    if settings.llm_provider == "ollama":
        config = LLMConfig(
            model=settings.ollama_model,
            temperature=settings.ai_temperature,
            max_tokens=settings.ai_max_tokens,
        )
        return OllamaProvider(config=config, host=settings.ollama_host)

    # 默认使用 OpenAI
    config = LLMConfig(
        model=settings.openai_model,
        temperature=settings.ai_temperature,
        max_tokens=settings.ai_max_tokens,
    )
    return OpenAIProvider(
        config=config,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
    )


def check_ai_availability(settings: Settings) -> dict[str, Any]:
    """检查 AI 服务是否可用."""
    if not settings.ai_analysis_enabled:
        return {"available": False, "error": "AI分析功能已禁用", "configured": False}

    if settings.llm_provider == "openai" and settings.openai_api_key in _PLACEHOLDER_KEYS:
        return {"available": False, "error": "请配置OPENAI_API_KEY环境变量", "configured": False}

    return {"available": True, "configured": True}


def describe_ai_config(settings: Settings) -> dict[str, Any]:
    """返回可以展示给前端的 AI 配置，隐藏地址中的密钥."""
    if settings.llm_provider == "ollama":
        model, base_url = settings.ollama_model, settings.ollama_host
    else:
        model, base_url = settings.openai_model, settings.openai_base_url

    return {
        "provider": settings.llm_provider,
        "model": model,
        "temperature": settings.ai_temperature,
        "maxTokens": settings.ai_max_tokens,
        "baseURL": re.sub(r"/api/key/[^/]+", "/api/...", base_url),
    }
