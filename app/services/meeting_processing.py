"""
会议后处理：获取转录 -> 解析 -> 标注发言人 -> 生成摘要 -> 保存

每一步单独重试；任何一步最终失败都会把会议强制置为completed（不写摘要），
避免会议永远停留在processing。
"""

import json
from typing import Any, Dict, List, Optional

import httpx

from app.core.events import event_emitter, Events
from app.core.exceptions import UpstreamServiceException, AIServiceException
from app.core.logging import job_logger
from app.core.retry import run_step
from app.services.ai.base import EMPTY_COMPLETION
from app.services.ai.manager import AIResponder
from app.services.meeting import MeetingService
from app.services.transcript import (
    TranscriptItem,
    parse_transcript,
    speaker_ids,
    attribute_speakers
)

SUMMARIZER_PROMPT = """You are an expert summarizer. You write readable, concise, simple content. You are given a transcript of a meeting and you need to summarize it.

Use the following markdown structure for every output:

### Overview
Provide a detailed, engaging summary of the session's content. Focus on major features, user workflows, and any key takeaways. Write in a narrative style, using full sentences. Highlight unique or powerful aspects of the product, platform, or discussion.

### Notes
Break down key content into thematic sections with timestamp ranges. Each section should summarize key points, actions, or demos in bullet format."""


class MeetingProcessor:
    """会议后处理任务"""

    def __init__(
        self,
        meetings: MeetingService,
        responder: AIResponder,
        summary_provider: str = "gemini",
        summary_model: Optional[str] = "gemini-1.5-flash",
        step_attempts: int = 3,
        step_delay: float = 1.0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport = None
    ):
        self.meetings = meetings
        self.responder = responder
        self.summary_provider = summary_provider
        self.summary_model = summary_model
        self.step_attempts = step_attempts
        self.step_delay = step_delay
        self.timeout = timeout
        self.transport = transport

    async def _step(self, name: str, func, *args):
        return await run_step(name, func, *args, attempts=self.step_attempts, delay=self.step_delay)

    async def fetch_transcript(self, transcript_url: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(transcript_url)
            except httpx.HTTPError as e:
                raise UpstreamServiceException(f"Transcript fetch error: {e}")

        if not response.is_success:
            raise UpstreamServiceException(
                f"Failed to fetch transcript: {response.status_code}",
                status_code=response.status_code
            )
        return response.text

    async def parse(self, raw: str) -> List[TranscriptItem]:
        return parse_transcript(raw)

    async def add_speakers(self, items: List[TranscriptItem]) -> List[Dict[str, Any]]:
        names = await self.meetings.resolve_speaker_names(speaker_ids(items))
        return attribute_speakers(items, names)

    async def summarize(self, transcript: List[Dict[str, Any]]) -> str:
        reply = await self.responder.ask_detailed(
            [
                {"role": "system", "content": SUMMARIZER_PROMPT},
                {"role": "user", "content": json.dumps(transcript, ensure_ascii=False)}
            ],
            provider=self.summary_provider,
            model=self.summary_model
        )
        # 占位文本（空回复或两个提供商都失败）不当作摘要保存
        if reply.content == EMPTY_COMPLETION:
            raise AIServiceException(f"Summary generation failed: {reply.error or 'empty completion'}")
        return reply.content

    async def process(self, meeting_id: str, transcript_url: str) -> Dict[str, Any]:
        """
        执行完整的后处理流程

        Returns:
            Dict[str, Any]: {"meetingId", "status": "completed", "summarized": bool}
        """
        job_logger.info(f"Processing meeting {meeting_id}")
        try:
            raw = await self._step("fetch-transcript", self.fetch_transcript, transcript_url)
            items = await self._step("parse-transcript", self.parse, raw)
            transcript = await self._step("add-speakers", self.add_speakers, items)
            summary = await self._step("summarize", self.summarize, transcript)
            await self._step("save-summary", self.meetings.complete, meeting_id, summary)
        except Exception as e:
            job_logger.error(f"Meeting processing failed for {meeting_id}: {e}")
            await self.meetings.complete(meeting_id)
            await event_emitter.emit(Events.MEETING_COMPLETED, {
                "meeting_id": meeting_id,
                "summarized": False,
                "error": str(e)
            })
            return {"meetingId": meeting_id, "status": "completed", "summarized": False}

        job_logger.info(f"Meeting {meeting_id} summarized ({len(items)} transcript lines)")
        await event_emitter.emit(Events.MEETING_COMPLETED, {"meeting_id": meeting_id, "summarized": True})
        return {"meetingId": meeting_id, "status": "completed", "summarized": True}
