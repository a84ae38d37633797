"""LLM 抽象层."""

from contentfactory.llm.base import LLMConfig, LLMProvider, Message
from contentfactory.llm.factory import check_ai_availability, create_llm_provider, describe_ai_config
from contentfactory.llm.generator import ArticleGenerator, GeneratedArticle, GenerationParameters
from contentfactory.llm.ollama import OllamaProvider
from contentfactory.llm.openai import OpenAIProvider

__all__ = [
    "ArticleGenerator",
    "GeneratedArticle",
    "GenerationParameters",
    "LLMConfig",
    "LLMProvider",
    "Message",
    "OllamaProvider",
    "OpenAIProvider",
    "check_ai_availability",
    "create_llm_provider",
    "describe_ai_config",
]
