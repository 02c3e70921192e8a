"""
会议聊天消息的代理回复
"""

from typing import Any, Dict

from app.core.events import event_emitter, Events
from app.core.logging import job_logger
from app.services.ai.manager import AIResponder
from app.services.call_platform import CallPlatformClient
from app.services.meeting import MeetingService


class AgentChatResponder:
    """以代理身份回复会议聊天频道中的消息"""

    def __init__(
        self,
        meetings: MeetingService,
        call_platform: CallPlatformClient,
        responder: AIResponder,
        channel_type: str = "messaging"
    ):
        self.meetings = meetings
        self.call_platform = call_platform
        self.responder = responder
        self.channel_type = channel_type

    async def reply(self, meeting_id: str, message: str, agent_id: str) -> Dict[str, Any]:
        """
        生成并发送代理回复

        代理不存在或没有指令时什么都不做。失败只记录日志并体现在返回值中。

        Returns:
            Dict[str, Any]: {"message": "..."}、{"skipped": "..."} 或 {"error": "..."}
        """
        try:
            agent = await self.meetings.get_agent(agent_id)
            if agent is None or not agent.instructions:
                job_logger.info(f"Agent {agent_id} has no instructions, chat message ignored")
                return {"skipped": "Agent has no instructions"}

            text = await self.responder.ask(
                [
                    {"role": "system", "content": agent.instructions},
                    {"role": "user", "content": message}
                ],
                **agent.generation_options()
            )

            await self.call_platform.create_channel(
                self.channel_type, meeting_id, agent.id, members=[agent.id]
            )
            await self.call_platform.send_message(self.channel_type, meeting_id, text, agent.id)
        except Exception as e:
            job_logger.error(f"Chat message handling failed for meeting {meeting_id}: {e}")
            return {"error": "Failed to process chat message"}

        await event_emitter.emit(Events.AGENT_CHAT_REPLIED, {"meeting_id": meeting_id, "agent_id": agent_id})
        return {"message": "Response sent"}
