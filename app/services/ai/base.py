"""
AI服务抽象基类
多个大语言模型提供商的通用接口
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
from enum import Enum

# 提供商返回空内容时的统一占位文本
EMPTY_COMPLETION = "No response from model"


class AIProvider(Enum):
    """AI服务提供商枚举"""
    OPENROUTER = "openrouter"
    GEMINI = "gemini"
    LLAMA = "llama"
    ANTHROPIC = "anthropic"


@dataclass
class ProviderInfo:
    """提供商目录信息"""
    name: str
    models: List[str]
    default_model: str


AI_PROVIDERS: Dict[AIProvider, ProviderInfo] = {
    AIProvider.OPENROUTER: ProviderInfo(
        name="OpenRouter",
        models=[
            "mistralai/mistral-7b-instruct",
            "anthropic/claude-3-haiku",
            "meta-llama/Llama-2-70b-chat-hf",
            "meta-llama/Llama-2-13b-chat-hf",
            "openai/gpt-3.5-turbo",
            "openai/gpt-4"
        ],
        default_model="mistralai/mistral-7b-instruct"
    ),
    AIProvider.GEMINI: ProviderInfo(
        name="Google Gemini",
        models=["gemini-1.5-flash", "gemini-1.5-pro", "gemini-pro"],
        default_model="gemini-1.5-flash"
    ),
    AIProvider.LLAMA: ProviderInfo(
        name="Meta Llama",
        models=[
            "meta-llama/Llama-2-70b-chat-hf",
            "meta-llama/Llama-2-13b-chat-hf",
            "meta-llama/Llama-2-7b-chat-hf",
            "meta-llama/Llama-3-8b-chat-hf",
            "meta-llama/Llama-3-70b-chat-hf"
        ],
        default_model="meta-llama/Llama-2-70b-chat-hf"
    ),
    AIProvider.ANTHROPIC: ProviderInfo(
        name="Anthropic Claude",
        models=["claude-3-haiku", "claude-3-sonnet", "claude-3-opus"],
        default_model="claude-3-haiku"
    ),
}


@dataclass
class LLMResponse:
    """大语言模型响应结果"""
    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)
    finish_reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def normalize_content(content: Optional[str]) -> str:
    """空内容统一替换为占位文本"""
    if content is None or not str(content).strip():
        return EMPTY_COMPLETION
    return content


class LLMProvider(ABC):
    """大语言模型服务抽象基类"""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.provider = self._get_provider_name()

    @abstractmethod
    def _get_provider_name(self) -> AIProvider:
        """获取提供商名称"""
        pass

    @property
    def default_model(self) -> str:
        return AI_PROVIDERS[self.provider].default_model

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str = None,
        temperature: float = 0.7,
        max_tokens: int = None,
        **kwargs
    ) -> LLMResponse:
        """
        聊天完成接口

        Args:
            messages: 消息列表，格式 [{"role": "user", "content": "..."}]
            model: 模型名称
            temperature: 温度参数
            max_tokens: 最大token数
            **kwargs: 其他参数

        Returns:
            LLMResponse: 模型响应，content 永不为空

        Raises:
            AIServiceException: 网络错误、非2xx响应或响应格式错误
        """
        pass

    async def close(self):
        """释放HTTP连接"""
        pass


class AIServiceFactory:
    """AI服务工厂类"""

    _llm_providers = {}

    @classmethod
    def register_llm_provider(cls, provider: AIProvider, provider_class):
        """注册LLM提供商"""
        cls._llm_providers[provider] = provider_class

    @classmethod
    def create_llm_provider(cls, provider: AIProvider, config: Dict[str, Any]) -> LLMProvider:
        """创建LLM服务实例"""
        if provider not in cls._llm_providers:
            raise ValueError(f"Unknown LLM provider: {provider}")
        return cls._llm_providers[provider](config)


def get_available_providers() -> List[Dict[str, Any]]:
    """获取所有提供商目录"""
    return [
        {"id": provider.value, "name": info.name, "models": list(info.models), "default_model": info.default_model}
        for provider, info in AI_PROVIDERS.items()
    ]


def get_models_for_provider(provider: str) -> List[str]:
    """获取指定提供商的模型列表，未知提供商返回空列表"""
    try:
        return list(AI_PROVIDERS[AIProvider(provider)].models)
    except ValueError:
        return []
