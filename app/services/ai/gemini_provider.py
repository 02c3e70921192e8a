"""
Google Gemini API集成实现
"""

from typing import Dict, Any, List

import httpx

from app.core.exceptions import AIServiceException
from .base import LLMProvider, AIProvider, LLMResponse, normalize_content


class GeminiLLMProvider(LLMProvider):
    """Gemini generateContent服务"""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.api_key = config.get("api_key")
        self.base_url = config.get("base_url", "https://generativelanguage.googleapis.com/v1beta")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=config.get("timeout", 60),
            headers={"content-type": "application/json"},
            transport=config.get("transport")
        )

    def _get_provider_name(self) -> AIProvider:
        return AIProvider.GEMINI

    @staticmethod
    def _build_prompt(messages: List[Dict[str, str]]) -> str:
        """
        Gemini只接收单段文本：系统提示 + 最后一条消息
        """
        if not messages:
            return ""
        last_message = messages[-1]
        system_message = next((m for m in messages if m.get("role") == "system"), None)
        if system_message and system_message is not last_message:
            return f"{system_message['content']}\n\nUser: {last_message['content']}"
        return last_message["content"]

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str = None,
        temperature: float = 0.7,
        max_tokens: int = None,
        **kwargs
    ) -> LLMResponse:
        """Gemini聊天完成"""
        if not self.api_key:
            raise AIServiceException("Gemini API key is not configured")

        model_name = model or self.default_model
        generation_config = {"temperature": temperature}
        if max_tokens:
            generation_config["maxOutputTokens"] = max_tokens

        request_data = {
            "contents": [{"parts": [{"text": self._build_prompt(messages)}]}],
            "generationConfig": generation_config
        }

        try:
            response = await self.client.post(
                f"/models/{model_name}:generateContent",
                params={"key": self.api_key},
                json=request_data
            )
        except httpx.HTTPError as e:
            raise AIServiceException(f"Gemini request error: {str(e)}")

        if response.status_code != 200:
            raise AIServiceException(f"Gemini API request failed: {response.status_code} - {response.text}")

        try:
            data = response.json()
        except ValueError:
            raise AIServiceException("Gemini returned a non-JSON response")

        content = None
        candidates = data.get("candidates") or []
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
            if parts:
                content = parts[0].get("text")

        usage_data = data.get("usageMetadata") or {}
        return LLMResponse(
            content=normalize_content(content),
            model=model_name,
            usage={
                "prompt_tokens": usage_data.get("promptTokenCount", 0),
                "completion_tokens": usage_data.get("candidatesTokenCount", 0),
                "total_tokens": usage_data.get("totalTokenCount", 0)
            },
            finish_reason=candidates[0].get("finishReason") if candidates else None
        )

    async def close(self):
        await self.client.aclose()


def register_gemini_providers():
    """注册Gemini服务提供商"""
    from .base import AIServiceFactory

    AIServiceFactory.register_llm_provider(AIProvider.GEMINI, GeminiLLMProvider)
