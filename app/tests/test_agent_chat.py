"""
代理聊天回复测试
"""

import pytest

from app.core.exceptions import UpstreamServiceException
from app.services.agent_chat import AgentChatResponder


@pytest.fixture
def chat(meeting_service, call_platform, ai_responder) -> AgentChatResponder:
    return AgentChatResponder(meeting_service, call_platform, ai_responder)


class TestAgentChatResponder:
    """聊天回复测试"""

    @pytest.mark.asyncio
    async def test_reply_is_posted_as_agent(self, chat, test_agent, call_platform, ai_responder):
        ai_responder.ask.return_value = "The next step is the review."

        result = await chat.reply("meeting-1", "What is next?", "agent-1")

        assert result == {"message": "Response sent"}
        args, kwargs = ai_responder.ask.call_args
        assert args[0] == [
            {"role": "system", "content": "You are a friendly note taker."},
            {"role": "user", "content": "What is next?"}
        ]
        assert kwargs["provider"] == "gemini"
        call_platform.create_channel.assert_awaited_once_with(
            "messaging", "meeting-1", "agent-1", members=["agent-1"]
        )
        call_platform.send_message.assert_awaited_once_with(
            "messaging", "meeting-1", "The next step is the review.", "agent-1"
        )

    @pytest.mark.asyncio
    async def test_agent_without_instructions_is_ignored(
        self, chat, session_factory, test_agent, call_platform, ai_responder
    ):
        async with session_factory() as session:
            agent = await session.get(type(test_agent), "agent-1")
            agent.instructions = ""
            await session.commit()

        result = await chat.reply("meeting-1", "Anyone there?", "agent-1")

        assert "skipped" in result
        ai_responder.ask.assert_not_awaited()
        call_platform.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_agent_is_ignored(self, chat, db_engine, call_platform):
        result = await chat.reply("meeting-1", "Hello", "no-such-agent")

        assert "skipped" in result
        call_platform.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failures_are_reported(self, chat, test_agent, call_platform):
        call_platform.send_message.side_effect = UpstreamServiceException("chat down")

        result = await chat.reply("meeting-1", "Hello", "agent-1")

        assert result == {"error": "Failed to process chat message"}
