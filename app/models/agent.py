"""
AI代理模型
"""

from sqlalchemy import Column, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from app.db.base import BaseModel

DEFAULT_AI_PROVIDER = "openrouter"
DEFAULT_AI_MODEL = "mistralai/mistral-7b-instruct"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000


class Agent(BaseModel):
    """会议中的AI角色"""
    __tablename__ = "agents"
    name = Column(String(255), nullable=False)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    instructions = Column(Text, nullable=False, comment="系统提示词")
    ai_provider = Column(String(50), nullable=False, default=DEFAULT_AI_PROVIDER)
    ai_model = Column(String(255), nullable=False, default=DEFAULT_AI_MODEL)
    # 数值以文本形式存储
    temperature = Column(String(20), nullable=False, default=str(DEFAULT_TEMPERATURE))
    max_tokens = Column(String(20), nullable=False, default=str(DEFAULT_MAX_TOKENS))

    # 关系
    owner = relationship("User", back_populates="agents")
    meetings = relationship("Meeting", back_populates="agent", cascade="all, delete-orphan")

    @property
    def temperature_value(self) -> float:
        try:
            return float(self.temperature)
        except (TypeError, ValueError):
            return DEFAULT_TEMPERATURE

    @property
    def max_tokens_value(self) -> int:
        try:
            return int(self.max_tokens)
        except (TypeError, ValueError):
            return DEFAULT_MAX_TOKENS

    def generation_options(self) -> dict:
        """AI调用参数"""
        return {
            "provider": self.ai_provider or DEFAULT_AI_PROVIDER,
            "model": self.ai_model or DEFAULT_AI_MODEL,
            "temperature": self.temperature_value,
            "max_tokens": self.max_tokens_value,
        }

    def __repr__(self):
        return f"<Agent(id={self.id}, name='{self.name}', provider='{self.ai_provider}')>"
