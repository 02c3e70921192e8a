"""
AI提供商目录与服务指标API端点
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Path

from app.api.deps import get_ai_responder
from app.services.ai import get_available_providers, get_models_for_provider
from app.services.ai.manager import AIResponder

router = APIRouter()


@router.get("/providers", summary="获取AI提供商目录")
async def list_providers() -> Dict[str, Any]:
    """获取所有支持的AI提供商及其模型"""
    return {
        "success": True,
        "providers": get_available_providers()
    }


@router.get("/providers/{provider}/models", summary="获取提供商的模型列表")
async def list_provider_models(
    provider: str = Path(..., description="提供商ID")
) -> Dict[str, Any]:
    """未知提供商返回空列表"""
    return {
        "success": True,
        "provider": provider,
        "models": get_models_for_provider(provider)
    }


@router.get("/metrics", summary="获取AI服务指标")
async def get_ai_metrics(
    responder: AIResponder = Depends(get_ai_responder)
) -> Dict[str, Any]:
    return {
        "success": True,
        "metrics": responder.get_metrics()
    }
