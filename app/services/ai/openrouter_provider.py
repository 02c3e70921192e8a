"""
OpenRouter API集成实现
OpenRouter兼容OpenAI协议，直接复用openai SDK并替换base_url
"""

from typing import Dict, Any, List

import httpx
from openai import AsyncOpenAI

from app.core.exceptions import AIServiceException
from .base import LLMProvider, AIProvider, LLMResponse, normalize_content


class OpenRouterLLMProvider(LLMProvider):
    """OpenRouter聊天完成服务"""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)

        transport = config.get("transport")
        self.client = AsyncOpenAI(
            api_key=config.get("api_key") or "missing",
            base_url=config.get("base_url", "https://openrouter.ai/api/v1"),
            timeout=config.get("timeout", 60),
            http_client=httpx.AsyncClient(transport=transport) if transport else None
        )

    def _get_provider_name(self) -> AIProvider:
        return AIProvider.OPENROUTER

    def _resolve_model(self, model: str = None) -> str:
        return model or self.default_model

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str = None,
        temperature: float = 0.7,
        max_tokens: int = None,
        **kwargs
    ) -> LLMResponse:
        """OpenRouter聊天完成"""
        if not self.config.get("api_key"):
            raise AIServiceException(f"{self.provider.value} API key is not configured")

        model_name = self._resolve_model(model)
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        try:
            response = await self.client.chat.completions.create(
                model=model_name,
                messages=messages,
                temperature=temperature,
                **kwargs
            )
        except Exception as e:
            raise AIServiceException(f"OpenRouter error: {str(e)}")

        choice = response.choices[0] if response.choices else None
        content = choice.message.content if choice and choice.message else None
        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens
            }

        return LLMResponse(
            content=normalize_content(content),
            model=response.model or model_name,
            usage=usage,
            finish_reason=choice.finish_reason if choice else None,
            metadata={"id": response.id}
        )

    async def close(self):
        await self.client.close()


class AnthropicLLMProvider(OpenRouterLLMProvider):
    """通过OpenRouter调用Anthropic Claude"""

    def _get_provider_name(self) -> AIProvider:
        return AIProvider.ANTHROPIC

    def _resolve_model(self, model: str = None) -> str:
        model_name = model or self.default_model
        if "/" not in model_name:
            model_name = f"anthropic/{model_name}"
        return model_name


def register_openrouter_providers():
    """注册OpenRouter及其转发的提供商"""
    from .base import AIServiceFactory

    AIServiceFactory.register_llm_provider(AIProvider.OPENROUTER, OpenRouterLLMProvider)
    AIServiceFactory.register_llm_provider(AIProvider.ANTHROPIC, AnthropicLLMProvider)
