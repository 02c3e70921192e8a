"""
AI服务管理器 - 按提供商名称分发请求，失败时回退到默认提供商
"""

from dataclasses import dataclass
from typing import Dict, Any, List, Optional

from app.core.events import event_emitter, Events
from app.core.logging import ai_logger
from .base import (
    AIProvider, LLMProvider, LLMResponse, AIServiceFactory,
    AI_PROVIDERS, EMPTY_COMPLETION
)
from .openrouter_provider import register_openrouter_providers
from .gemini_provider import register_gemini_providers
from .llama_provider import register_llama_providers


@dataclass
class AgentReply:
    """AI回复及其来源"""
    content: str
    provider: str
    model: str
    degraded: bool = False  # 是否由默认提供商兜底产生
    error: Optional[str] = None


class AIResponder:
    """
    多提供商AI应答器

    对外契约：总是返回字符串，从不抛出异常。指定的提供商未知或调用失败时，
    用固定的默认提供商/模型重试一次；原始错误只记录日志，不向调用方暴露。
    需要区分是否发生回退的调用方使用 ``ask_detailed``。
    """

    def __init__(
        self,
        provider_configs: Dict[str, Dict[str, Any]],
        default_provider: str = AIProvider.OPENROUTER.value,
        default_model: str = "mistralai/mistral-7b-instruct"
    ):
        register_openrouter_providers()
        register_gemini_providers()
        register_llama_providers()

        self.provider_configs = provider_configs
        self.default_provider = default_provider
        self.default_model = default_model

        # 提供商实例缓存
        self.providers: Dict[AIProvider, LLMProvider] = {}

        # 指标统计
        self.metrics = {
            'total_requests': 0,
            'successful_requests': 0,
            'fallback_requests': 0,
            'failed_requests': 0
        }

    def _get_provider(self, provider: AIProvider) -> LLMProvider:
        """获取（必要时创建）提供商实例"""
        if provider not in self.providers:
            self.providers[provider] = AIServiceFactory.create_llm_provider(
                provider, self.provider_configs.get(provider.value, {})
            )
        return self.providers[provider]

    async def _complete(
        self,
        provider_name: str,
        messages: List[Dict[str, str]],
        model: Optional[str],
        temperature: float,
        max_tokens: Optional[int]
    ) -> LLMResponse:
        try:
            provider = AIProvider(provider_name)
        except ValueError:
            raise ValueError(f"Unsupported AI provider: {provider_name}")

        selected_model = model or AI_PROVIDERS[provider].default_model
        return await self._get_provider(provider).chat_completion(
            messages,
            model=selected_model,
            temperature=temperature,
            max_tokens=max_tokens
        )

    async def ask_detailed(
        self,
        messages: List[Dict[str, str]],
        provider: str = AIProvider.OPENROUTER.value,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = 1000
    ) -> AgentReply:
        """
        生成一次回复并返回来源信息

        Args:
            messages: [{"role": "system"|"user"|"assistant", "content": "..."}]
            provider: 提供商名称
            model: 模型名称，缺省时使用该提供商的默认模型
            temperature: 温度参数
            max_tokens: 最大token数

        Returns:
            AgentReply: 回复内容；degraded=True 表示由默认提供商兜底
        """
        self.metrics['total_requests'] += 1

        try:
            response = await self._complete(provider, messages, model, temperature, max_tokens)
            self.metrics['successful_requests'] += 1
            await event_emitter.emit(Events.AI_REQUEST_SUCCESS, {'provider': provider, 'model': response.model})
            return AgentReply(content=response.content, provider=provider, model=response.model)
        except Exception as e:
            original_error = str(e)
            ai_logger.warning(
                f"Error with {provider} AI service, falling back to "
                f"{self.default_provider}/{self.default_model}: {e}"
            )

        self.metrics['fallback_requests'] += 1
        await event_emitter.emit(Events.AI_PROVIDER_FALLBACK, {
            'provider': provider,
            'model': model,
            'error': original_error
        })

        try:
            response = await self._complete(
                self.default_provider, messages, self.default_model, temperature, max_tokens
            )
            return AgentReply(
                content=response.content,
                provider=self.default_provider,
                model=response.model,
                degraded=True,
                error=original_error
            )
        except Exception as e:
            self.metrics['failed_requests'] += 1
            ai_logger.error(f"Fallback provider {self.default_provider} failed as well: {e}")
            await event_emitter.emit(Events.AI_REQUEST_FAILED, {
                'provider': self.default_provider,
                'error': str(e)
            })
            return AgentReply(
                content=EMPTY_COMPLETION,
                provider=self.default_provider,
                model=self.default_model,
                degraded=True,
                error=str(e)
            )

    async def ask(
        self,
        messages: List[Dict[str, str]],
        provider: str = AIProvider.OPENROUTER.value,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = 1000
    ) -> str:
        """生成一次回复，只返回文本"""
        reply = await self.ask_detailed(
            messages,
            provider=provider,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens
        )
        return reply.content

    def get_metrics(self) -> Dict[str, Any]:
        """获取服务指标"""
        return {
            **self.metrics,
            'active_providers': [provider.value for provider in self.providers]
        }

    async def close(self):
        """关闭所有提供商的HTTP连接"""
        for provider, instance in self.providers.items():
            try:
                await instance.close()
            except Exception as e:
                ai_logger.error(f"Error closing {provider.value} provider: {e}")
        self.providers.clear()
