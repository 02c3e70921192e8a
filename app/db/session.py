"""
数据库会话管理
"""

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.db.base import Base


def create_database_engine(database_url: str = None):
    """创建数据库引擎"""
    database_url = database_url or settings.database_url
    engine_kwargs = {"echo": settings.database_echo}

    # 根据数据库类型配置连接池
    if database_url.startswith("postgresql"):
        engine_kwargs.update({
            "pool_size": settings.database_pool_size,
            "max_overflow": settings.database_max_overflow,
            "pool_pre_ping": True,
            "pool_recycle": 3600,  # 1小时回收连接
        })
    elif database_url.startswith("sqlite"):
        engine_kwargs.update({
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False}
        })

    return create_async_engine(database_url, **engine_kwargs)


# 创建数据库引擎和会话工厂
engine = create_database_engine()
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False
)


async def init_db():
    """初始化数据库表"""
    # 导入所有模型以确保它们被注册
    from app.models import user, agent, meeting  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
