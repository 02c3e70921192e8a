"""
API依赖项

进程级客户端在应用启动时创建并挂在 app.state 上，这里只负责取出并组装服务。
测试通过 dependency_overrides 替换其中任意一项。
"""

from typing import Any, Callable, Dict

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config import settings
from app.core.celery_app import enqueue
from app.db.session import AsyncSessionLocal
from app.services.ai.manager import AIResponder
from app.services.call_platform import CallPlatformClient
from app.services.meeting import MeetingService
from app.services.meeting_lifecycle import MeetingLifecycleRouter


def get_session_factory() -> async_sessionmaker:
    return AsyncSessionLocal


def get_meeting_service(
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> MeetingService:
    return MeetingService(session_factory)


def get_call_platform(request: Request) -> CallPlatformClient:
    return request.app.state.call_platform


def get_ai_responder(request: Request) -> AIResponder:
    return request.app.state.ai_responder


def get_enqueue() -> Callable[[str, Dict[str, Any]], Any]:
    return enqueue


def get_webhook_secret() -> str:
    return settings.stream_secret_key


def get_lifecycle_router(
    meetings: MeetingService = Depends(get_meeting_service),
    call_platform: CallPlatformClient = Depends(get_call_platform),
    responder: AIResponder = Depends(get_ai_responder),
    enqueue_job: Callable[[str, Dict[str, Any]], Any] = Depends(get_enqueue)
) -> MeetingLifecycleRouter:
    return MeetingLifecycleRouter(
        meetings,
        call_platform,
        responder,
        enqueue_job,
        call_type=settings.stream_call_type,
        greeting_channel_type=settings.stream_greeting_channel_type,
        step_attempts=settings.greeting_step_attempts,
        step_delay=settings.greeting_retry_delay
    )
