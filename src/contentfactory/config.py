"""应用配置管理."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置（环境变量）."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 数据库
    database_url: str = "sqlite+aiosqlite:///./contentfactory.db"

    # AI 分析配置
    ai_analysis_enabled: bool = False
    analysis_daily_quota: int = 0  # 0 表示不限制
    llm_provider: Literal["openai", "ollama"] = "openai"

    # OpenAI 配置（支持所有 OpenAI 兼容接口）
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"
    ai_temperature: float = 0.7
    ai_max_tokens: int = 4000

    # Ollama 配置
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"

    # 微信公众号发布接口
    wechat_api_base_url: str = "https://wx.limyai.com/api/openapi"
    wechat_api_key: str = ""
    public_base_url: str = ""  # 用于把相对图片路径转换成绝对路径

    # 图片生成（硅基流动）
    image_generation_enabled: bool = False
    siliconflow_api_key: str = ""
    siliconflow_base_url: str = "https://api.siliconflow.cn"
    siliconflow_image_model: str = "Kwai-Kolors/Kolors"
    image_default_style: str = "photorealistic"
    image_quality: Literal["standard", "high"] = "standard"

    # 小红书数据接口
    xiaohongshu_api_url: str = "https://www.dajiala.com/fbmain/monitor/v3/xhs"
    xiaohongshu_api_key: str = ""

    # 外部 HTTP 调用
    http_timeout_seconds: float = 30.0


@lru_cache
def get_settings() -> Settings:
    """获取应用配置（带缓存）."""
    return Settings()


def mask_secret(value: str) -> str:
    """隐藏密钥，只保留首尾各 4 位."""
    if not value:
        return ""
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}{'*' * (len(value) - 8)}{value[-4:]}"
