"""
会议相关的异步任务

任务名与事件名一致，入参为单个事件数据字典。每次执行在独立的事件循环中运行，
因此数据库引擎和HTTP客户端都在任务内创建并在结束时释放。
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Dict

from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from app.config import settings
from app.core.celery_app import celery_app, MEETING_PROCESSING_EVENT, CHAT_MESSAGE_EVENT
from app.core.logging import job_logger
from app.db.session import create_database_engine
from app.services.agent_chat import AgentChatResponder
from app.services.ai import build_ai_responder
from app.services.call_platform import CallPlatformClient
from app.services.meeting import MeetingService
from app.services.meeting_processing import MeetingProcessor


@asynccontextmanager
async def meeting_services():
    """创建任务所需的会议服务和AI应答器"""
    engine = create_database_engine()
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False
    )
    responder = build_ai_responder(settings)
    try:
        yield MeetingService(session_factory), responder
    finally:
        await responder.close()
        await engine.dispose()


async def process_meeting(data: Dict[str, Any]) -> Dict[str, Any]:
    async with meeting_services() as (meetings, responder):
        processor = MeetingProcessor(
            meetings,
            responder,
            summary_provider=settings.summary_ai_provider,
            summary_model=settings.summary_ai_model,
            step_attempts=settings.job_step_attempts,
            step_delay=settings.job_retry_delay,
            timeout=settings.http_timeout
        )
        return await processor.process(data["meetingId"], data["transcriptUrl"])


async def reply_to_chat_message(data: Dict[str, Any]) -> Dict[str, Any]:
    async with meeting_services() as (meetings, responder):
        call_platform = CallPlatformClient(
            settings.stream_api_key,
            settings.stream_secret_key,
            video_base_url=settings.stream_video_base_url,
            chat_base_url=settings.stream_chat_base_url,
            timeout=settings.http_timeout
        )
        try:
            chat = AgentChatResponder(
                meetings,
                call_platform,
                responder,
                channel_type=settings.stream_chat_channel_type
            )
            return await chat.reply(data["meetingId"], data["message"], data["agentId"])
        finally:
            await call_platform.close()


@celery_app.task(bind=True, name=MEETING_PROCESSING_EVENT)
def meetings_processing_task(self, data: Dict[str, Any]):
    """会议后处理：转录 -> 摘要"""
    job_logger.info(f"Task {self.request.id} processing meeting {data.get('meetingId')}")
    return asyncio.run(process_meeting(data))


@celery_app.task(bind=True, name=CHAT_MESSAGE_EVENT)
def meetings_chat_message_task(self, data: Dict[str, Any]):
    """代理回复会议聊天消息"""
    job_logger.info(f"Task {self.request.id} replying in meeting {data.get('meetingId')}")
    return asyncio.run(reply_to_chat_message(data))
