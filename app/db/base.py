"""
数据库基础配置
"""

import uuid

from sqlalchemy import Column, String, DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase

# 数据库元数据配置
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s"
    }
)


class Base(DeclarativeBase):
    """数据库模型基类"""
    metadata = metadata


def generate_id() -> str:
    """生成不透明的字符串主键"""
    return uuid.uuid4().hex


class BaseModel(Base):
    """数据库模型基类"""
    __abstract__ = True

    id = Column(String(64), primary_key=True, default=generate_id, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
