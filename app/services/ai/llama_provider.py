"""
Llama托管服务集成实现
Together、Hugging Face路由和本地Ollama都提供OpenAI兼容的 /chat/completions 接口
"""

from typing import Dict, Any, List

import httpx

from app.core.exceptions import AIServiceException
from .base import LLMProvider, AIProvider, LLMResponse, normalize_content

LLAMA_HOSTS = {
    "together": {"name": "Together AI", "base_url": "https://api.together.xyz/v1", "requires_key": True},
    "huggingface": {"name": "Hugging Face", "base_url": "https://router.huggingface.co/v1", "requires_key": True},
    "ollama": {"name": "Ollama (Local)", "base_url": "http://localhost:11434/v1", "requires_key": False},
}


class LlamaLLMProvider(LLMProvider):
    """Llama聊天完成服务"""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        host_name = (config.get("host") or "together").lower()
        if host_name not in LLAMA_HOSTS:
            raise ValueError(f"Llama host {host_name} not found")

        self.host = LLAMA_HOSTS[host_name]
        self.api_key = config.get("api_key")
        self.base_url = config.get("base_url") or self.host["base_url"]

        headers = {"content-type": "application/json"}
        if self.api_key:
            headers["authorization"] = f"Bearer {self.api_key}"

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=config.get("timeout", 60),
            headers=headers,
            transport=config.get("transport")
        )

    def _get_provider_name(self) -> AIProvider:
        return AIProvider.LLAMA

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str = None,
        temperature: float = 0.7,
        max_tokens: int = None,
        **kwargs
    ) -> LLMResponse:
        """Llama聊天完成"""
        if self.host["requires_key"] and not self.api_key:
            raise AIServiceException(f"API key required for {self.host['name']}")

        model_name = model or self.default_model
        request_data = {
            "model": model_name,
            "messages": messages,
            "temperature": temperature,
            "stream": False
        }
        if max_tokens:
            request_data["max_tokens"] = max_tokens

        try:
            response = await self.client.post("/chat/completions", json=request_data)
        except httpx.HTTPError as e:
            raise AIServiceException(f"Llama request error: {str(e)}")

        if response.status_code != 200:
            raise AIServiceException(f"Llama API error: {response.status_code} - {response.text}")

        try:
            data = response.json()
        except ValueError:
            raise AIServiceException("Llama host returned a non-JSON response")

        choices = data.get("choices") or []
        message = (choices[0].get("message") or {}) if choices else {}

        return LLMResponse(
            content=normalize_content(message.get("content")),
            model=data.get("model", model_name),
            usage=data.get("usage") or {},
            finish_reason=choices[0].get("finish_reason") if choices else None,
            metadata={"id": data.get("id"), "host": self.host["name"]}
        )

    async def close(self):
        await self.client.aclose()


def register_llama_providers():
    """注册Llama服务提供商"""
    from .base import AIServiceFactory

    AIServiceFactory.register_llm_provider(AIProvider.LLAMA, LlamaLLMProvider)
