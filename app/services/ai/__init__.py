"""
AI服务模块初始化
"""

from .base import (
    AIProvider, AIServiceFactory, LLMProvider, LLMResponse,
    AI_PROVIDERS, EMPTY_COMPLETION,
    get_available_providers, get_models_for_provider
)
from .manager import AIResponder, AgentReply


def build_ai_responder(settings) -> AIResponder:
    """按配置创建AI应答器"""
    return AIResponder(
        provider_configs=settings.ai_provider_configs,
        default_provider=settings.default_ai_provider,
        default_model=settings.default_ai_model
    )


__all__ = [
    'AIProvider',
    'AIServiceFactory',
    'LLMProvider',
    'LLMResponse',
    'AI_PROVIDERS',
    'EMPTY_COMPLETION',
    'AIResponder',
    'AgentReply',
    'build_ai_responder',
    'get_available_providers',
    'get_models_for_provider'
]
