"""
应用配置管理
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional, Dict, Any


class Settings(BaseSettings):
    """应用配置"""

    # 基本配置
    app_name: str = "MeetAI Webhook API"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False, description="调试模式")

    # 服务器配置
    host: str = Field(default="0.0.0.0", description="服务器地址")
    port: int = Field(default=8000, description="服务器端口")

    # 数据库配置
    database_url: str = Field(
        default="sqlite+aiosqlite:///./meetai.db",
        description="数据库连接URL"
    )
    database_echo: bool = Field(default=False, description="SQL语句调试输出")
    database_pool_size: int = Field(default=10, description="连接池大小")
    database_max_overflow: int = Field(default=20, description="连接池最大溢出")

    # Celery任务队列配置
    celery_broker_url: str = Field(default="redis://localhost:6379/1", description="Celery消息代理URL")
    celery_result_backend: str = Field(default="redis://localhost:6379/1", description="Celery结果后端URL")

    # Stream视频/聊天平台配置
    stream_api_key: str = Field(default="", description="Stream公开API Key")
    stream_secret_key: str = Field(default="", description="Stream服务端密钥(同时用于Webhook签名)")
    stream_video_base_url: str = Field(
        default="https://video.stream-io-api.com",
        description="Stream视频REST地址"
    )
    stream_chat_base_url: str = Field(
        default="https://chat.stream-io-api.com",
        description="Stream聊天REST地址"
    )
    stream_call_type: str = Field(default="default", description="通话类型")
    stream_greeting_channel_type: str = Field(default="videocall", description="会议问候频道类型")
    stream_chat_channel_type: str = Field(default="messaging", description="代理聊天频道类型")

    # AI服务配置
    openrouter_api_key: Optional[str] = Field(default=None, description="OpenRouter API密钥")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", description="OpenRouter API地址")
    gemini_api_key: Optional[str] = Field(default=None, description="Gemini API密钥")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini API地址"
    )
    llama_host: str = Field(default="together", description="Llama托管方: together/huggingface/ollama")
    llama_api_key: Optional[str] = Field(default=None, description="Llama托管方API密钥")
    llama_base_url: Optional[str] = Field(default=None, description="自定义Llama API地址")
    ai_timeout: float = Field(default=60.0, description="AI请求超时(秒)")

    default_ai_provider: str = Field(default="openrouter", description="兜底AI提供商")
    default_ai_model: str = Field(default="mistralai/mistral-7b-instruct", description="兜底AI模型")
    summary_ai_provider: str = Field(default="gemini", description="会议摘要使用的提供商")
    summary_ai_model: str = Field(default="gemini-1.5-flash", description="会议摘要使用的模型")

    # 外部HTTP调用
    http_timeout: float = Field(default=30.0, description="外部HTTP请求超时(秒)")

    # 重试配置
    greeting_step_attempts: int = Field(default=3, description="问候流程每步最大尝试次数")
    greeting_retry_delay: float = Field(default=0.5, description="问候流程重试基础延迟(秒)")
    job_step_attempts: int = Field(default=3, description="后处理任务每步最大尝试次数")
    job_retry_delay: float = Field(default=1.0, description="后处理任务重试基础延迟(秒)")

    # CORS配置
    allowed_origins: list = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="允许的跨域源"
    )

    # 日志配置
    log_dir: str = Field(default="logs", description="日志目录")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def ai_provider_configs(self) -> Dict[str, Dict[str, Any]]:
        """获取各AI提供商的适配器配置"""
        return {
            "openrouter": {
                "api_key": self.openrouter_api_key,
                "base_url": self.openrouter_base_url,
                "timeout": self.ai_timeout
            },
            "anthropic": {
                "api_key": self.openrouter_api_key,
                "base_url": self.openrouter_base_url,
                "timeout": self.ai_timeout
            },
            "gemini": {
                "api_key": self.gemini_api_key,
                "base_url": self.gemini_base_url,
                "timeout": self.ai_timeout
            },
            "llama": {
                "host": self.llama_host,
                "api_key": self.llama_api_key,
                "base_url": self.llama_base_url,
                "timeout": self.ai_timeout
            }
        }


# 创建全局配置实例
settings = Settings()
