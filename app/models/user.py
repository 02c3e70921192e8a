"""
用户模型
"""

from sqlalchemy import Column, String, Index
from sqlalchemy.orm import relationship

from app.db.base import BaseModel


class User(BaseModel):
    """用户模型（账号体系由外部认证服务维护，这里只保存展示信息）"""
    __tablename__ = "users"
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    image = Column(String(500), nullable=True)

    # 关系
    agents = relationship("Agent", back_populates="owner", cascade="all, delete-orphan")
    meetings = relationship("Meeting", back_populates="owner", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_users_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}')>"
