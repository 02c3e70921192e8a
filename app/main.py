"""
FastAPI应用入口点
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.core import (
    setup_logging,
    RequestLoggingMiddleware,
    MeetAIException,
    meetai_exception_handler,
    api_logger
)
from app.db.session import init_db, engine
from app.services.ai import build_ai_responder
from app.services.call_platform import CallPlatformClient


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    api_logger.info("Starting MeetAI webhook API...")

    try:
        await init_db()
        api_logger.info("Database initialized successfully")

        app.state.call_platform = CallPlatformClient(
            settings.stream_api_key,
            settings.stream_secret_key,
            video_base_url=settings.stream_video_base_url,
            chat_base_url=settings.stream_chat_base_url,
            timeout=settings.http_timeout
        )
        app.state.ai_responder = build_ai_responder(settings)
        api_logger.info("Call platform and AI clients initialized successfully")

    except Exception as e:
        api_logger.error(f"Failed to initialize application: {e}")
        raise

    api_logger.info("MeetAI webhook API started successfully")

    yield

    api_logger.info("Shutting down MeetAI webhook API...")

    try:
        await app.state.ai_responder.close()
        await app.state.call_platform.close()
        api_logger.info("HTTP clients closed successfully")
    except Exception as e:
        api_logger.error(f"Error closing HTTP clients: {e}")

    await engine.dispose()
    api_logger.info("MeetAI webhook API shutdown completed")


# 设置日志
setup_logging()

# 创建FastAPI应用实例
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Meeting lifecycle webhooks, AI agent greetings and meeting summaries",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

app.add_exception_handler(MeetAIException, meetai_exception_handler)
app.add_middleware(RequestLoggingMiddleware)

# 配置CORS中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """根路径"""
    return {
        "message": "Welcome to MeetAI webhook API",
        "version": settings.app_version,
        "docs_url": "/docs" if settings.debug else None
    }


@app.get("/health")
async def health_check():
    """简单健康检查"""
    return {"status": "healthy", "version": settings.app_version}


# 导入路由
from app.api.v1.api import api_router
app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug"
    )
