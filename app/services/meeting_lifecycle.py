"""
会议生命周期路由

根据已校验的Webhook事件执行对应的状态迁移和副作用：

    upcoming   --session_started-->  active      加入通话、发送AI问候
    active     --session_ended-->    processing  仅数据库
    processing --后处理任务完成-->    completed   保存摘要
    任意状态   --participant_left--> 不变        结束通话

事件源至少投递一次，重复投递依靠带条件的UPDATE保证幂等。
"""

import asyncio
from typing import Any, Callable, Dict

from app.core.celery_app import MEETING_PROCESSING_EVENT
from app.core.events import event_emitter, Events
from app.core.exceptions import (
    ValidationException,
    ResourceNotFoundException,
    UpstreamServiceException
)
from app.core.logging import webhook_logger
from app.core.retry import run_step
from app.models.agent import Agent
from app.schemas.webhook import (
    WEBHOOK_EVENT_TYPES,
    CallSessionStartedEvent,
    CallSessionParticipantLeftEvent,
    CallSessionEndedEvent,
    CallTranscriptionReadyEvent,
    CallRecordingReadyEvent
)
from app.services.ai.manager import AIResponder
from app.services.call_platform import CallPlatformClient
from app.services.meeting import MeetingService

DEFAULT_AGENT_INSTRUCTIONS = "You are a helpful AI agent in a meeting."
GREETING_PROMPT = "The meeting has started. Please greet the participants."


class GreetingSaga:
    """
    代理入会并发送问候

    每一步都可单独重试且幂等：加入通话和创建用户可重复执行，频道是获取或创建，
    问候消息使用固定ID，重复发送不会产生第二条。
    """

    def __init__(
        self,
        call_platform: CallPlatformClient,
        responder: AIResponder,
        call_type: str = "default",
        channel_type: str = "videocall",
        attempts: int = 3,
        delay: float = 0.5
    ):
        self.call_platform = call_platform
        self.responder = responder
        self.call_type = call_type
        self.channel_type = channel_type
        self.attempts = attempts
        self.delay = delay

    @staticmethod
    def greeting_message_id(meeting_id: str) -> str:
        return f"greeting-{meeting_id}"

    def build_greeting_messages(self, agent: Agent):
        return [
            {"role": "system", "content": agent.instructions or DEFAULT_AGENT_INSTRUCTIONS},
            {"role": "user", "content": GREETING_PROMPT}
        ]

    async def _step(self, name: str, func, *args, **kwargs):
        try:
            return await run_step(name, func, *args, attempts=self.attempts, delay=self.delay, **kwargs)
        except UpstreamServiceException as e:
            raise UpstreamServiceException(f"Greeting step {name} failed: {e.message}", e.status_code)
        except Exception as e:
            raise UpstreamServiceException(f"Greeting step {name} failed: {e}")

    async def run(self, meeting_id: str, agent: Agent) -> str:
        """执行全部步骤，返回发送的问候文本"""
        await self._step(
            "join-call",
            self.call_platform.join_call,
            self.call_type, meeting_id, agent.id, agent.name
        )
        webhook_logger.info(f"Agent {agent.name} joined meeting {meeting_id}")

        greeting = await self._step(
            "generate-greeting",
            self.responder.ask,
            self.build_greeting_messages(agent),
            **agent.generation_options()
        )

        await self._step("upsert-chat-user", self.call_platform.upsert_chat_user, agent.id, agent.name)
        await self._step(
            "ensure-channel",
            self.call_platform.create_channel,
            self.channel_type, meeting_id, agent.id
        )
        await self._step(
            "post-greeting",
            self.call_platform.send_message,
            self.channel_type, meeting_id, greeting, agent.id,
            message_id=self.greeting_message_id(meeting_id)
        )
        return greeting


class MeetingLifecycleRouter:
    """会议生命周期事件路由"""

    def __init__(
        self,
        meetings: MeetingService,
        call_platform: CallPlatformClient,
        responder: AIResponder,
        enqueue: Callable[[str, Dict[str, Any]], Any],
        call_type: str = "default",
        greeting_channel_type: str = "videocall",
        step_attempts: int = 3,
        step_delay: float = 0.5
    ):
        self.meetings = meetings
        self.call_platform = call_platform
        self.enqueue = enqueue
        self.call_type = call_type
        self.greeting = GreetingSaga(
            call_platform,
            responder,
            call_type=call_type,
            channel_type=greeting_channel_type,
            attempts=step_attempts,
            delay=step_delay
        )
        self._handlers = {
            event_type: getattr(self, handler_name)
            for event_type, handler_name in EVENT_HANDLERS.items()
        }

    async def handle(self, event) -> Dict[str, str]:
        """处理一个事件，成功时返回 {"status": "ok"}"""
        handler = self._handlers[type(event)]
        webhook_logger.info(f"Processing webhook event {event.type}")
        await handler(event)
        return {"status": "ok"}

    async def on_session_started(self, event: CallSessionStartedEvent):
        meeting_id = event.meeting_id
        if not meeting_id:
            raise ValidationException("Missing meeting ID in call session started event")

        meeting = await self.meetings.get_startable_meeting(meeting_id)
        if meeting is None:
            raise ResourceNotFoundException(message="Meeting not found or already completed")

        if not await self.meetings.activate(meeting_id):
            raise ResourceNotFoundException(message="Meeting not found or already completed")
        await event_emitter.emit(Events.MEETING_STARTED, {"meeting_id": meeting_id})

        agent = await self.meetings.get_agent(meeting.agent_id)
        if agent is None:
            raise ResourceNotFoundException(message="Agent not found for the meeting")

        # 失败不回滚active状态
        try:
            await self.greeting.run(meeting_id, agent)
        except UpstreamServiceException as e:
            webhook_logger.error(f"Error joining agent or sending greeting for meeting {meeting_id}: {e.message}")
            await event_emitter.emit(Events.AGENT_GREETING_FAILED, {
                "meeting_id": meeting_id,
                "agent_id": agent.id,
                "error": e.message
            })
            raise UpstreamServiceException("Failed to join agent or send greeting")

        await event_emitter.emit(Events.AGENT_GREETING_SENT, {"meeting_id": meeting_id, "agent_id": agent.id})

    async def on_participant_left(self, event: CallSessionParticipantLeftEvent):
        meeting_id = event.meeting_id
        if not meeting_id:
            raise ValidationException("Missing meeting ID in participant left event")

        # 无法得知剩余人数，任何人离开都结束通话
        try:
            await self.call_platform.end_call(self.call_type, meeting_id)
        except UpstreamServiceException as e:
            webhook_logger.error(f"Failed to end call session {meeting_id}: {e.message}")
            return
        await event_emitter.emit(Events.MEETING_CALL_ENDED, {"meeting_id": meeting_id})

    async def on_session_ended(self, event: CallSessionEndedEvent):
        meeting_id = event.meeting_id
        if not meeting_id:
            raise ValidationException("Missing meeting ID in call ended event")

        if await self.meetings.mark_processing(meeting_id):
            await event_emitter.emit(Events.MEETING_ENDED, {"meeting_id": meeting_id})
        else:
            webhook_logger.info(f"Meeting {meeting_id} was not active, session_ended ignored")

    async def on_transcription_ready(self, event: CallTranscriptionReadyEvent):
        meeting_id = event.meeting_id
        if not meeting_id:
            raise ValidationException("Missing meeting ID in transcription ready event")

        transcript_url = event.call_transcription.url
        if not await self.meetings.set_transcript_url(meeting_id, transcript_url):
            raise ResourceNotFoundException(message="Meeting not found for transcription")

        try:
            await asyncio.to_thread(
                self.enqueue,
                MEETING_PROCESSING_EVENT,
                {"meetingId": meeting_id, "transcriptUrl": transcript_url}
            )
        except Exception as e:
            raise UpstreamServiceException(f"Failed to enqueue meeting processing: {e}")
        await event_emitter.emit(Events.MEETING_TRANSCRIPT_READY, {"meeting_id": meeting_id})

    async def on_recording_ready(self, event: CallRecordingReadyEvent):
        meeting_id = event.meeting_id
        if not meeting_id:
            raise ValidationException("Missing meeting ID in recording ready event")

        # 尽力而为，不检查会议是否存在
        await self.meetings.set_recording_url(meeting_id, event.call_recording.url)
        await event_emitter.emit(Events.MEETING_RECORDING_READY, {"meeting_id": meeting_id})


EVENT_HANDLERS = {
    CallSessionStartedEvent: "on_session_started",
    CallSessionParticipantLeftEvent: "on_participant_left",
    CallSessionEndedEvent: "on_session_ended",
    CallTranscriptionReadyEvent: "on_transcription_ready",
    CallRecordingReadyEvent: "on_recording_ready",
}

if set(EVENT_HANDLERS) != set(WEBHOOK_EVENT_TYPES):
    raise RuntimeError("Every webhook event type needs exactly one lifecycle handler")
