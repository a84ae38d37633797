"""AI 服务状态 API."""

from datetime import datetime

from fastapi import APIRouter, Depends

from contentfactory.config import Settings, get_settings, mask_secret
from contentfactory.llm.factory import check_ai_availability, describe_ai_config

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.get("/status")
async def ai_status(settings: Settings = Depends(get_settings)) -> dict:
    """AI 服务可用性和配置."""
    config = describe_ai_config(settings)
    config["apiKey"] = mask_secret(settings.openai_api_key)

    return {
        "success": True,
        "status": check_ai_availability(settings),
        "config": config,
        "timestamp": datetime.utcnow().isoformat(),
    }
