"""
通话平台客户端测试
"""

import json

import httpx
import jwt
import pytest

from app.core.exceptions import UpstreamServiceException
from app.services.call_platform import CallPlatformClient

API_KEY = "stream-key"
SECRET = "stream-secret"


def make_client(handler) -> CallPlatformClient:
    return CallPlatformClient(
        API_KEY,
        SECRET,
        video_base_url="https://video.test",
        chat_base_url="https://chat.test",
        transport=httpx.MockTransport(handler)
    )


class TestVideoCommands:
    """视频通话命令测试"""

    @pytest.mark.asyncio
    async def test_join_call_uses_agent_token(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(201, json={"call": {"id": "m1"}})

        client = make_client(handler)
        await client.join_call("default", "m1", "agent-1", "Scribe")
        await client.close()

        assert captured["url"] == "https://video.test/api/v1/call/default/m1/join"
        assert captured["body"] == {"user": {"id": "agent-1", "name": "Scribe", "role": "user"}}
        token = captured["auth"].removeprefix("Bearer ")
        assert jwt.get_unverified_header(token)["kid"] == API_KEY
        assert jwt.decode(token, SECRET, algorithms=["HS256"])["user_id"] == "agent-1"

    @pytest.mark.asyncio
    async def test_end_call(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            return httpx.Response(200, json={})

        client = make_client(handler)
        await client.end_call("default", "m1")

        assert captured["url"] == "https://video.test/api/v1/call/default/m1/end"

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client = make_client(lambda request: httpx.Response(403, text="forbidden"))

        with pytest.raises(UpstreamServiceException) as exc_info:
            await client.join_call("default", "m1", "agent-1")

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(UpstreamServiceException):
            await client.end_call("default", "m1")


class TestChatCommands:
    """聊天命令测试"""

    @pytest.mark.asyncio
    async def test_upsert_user(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["request"] = request
            return httpx.Response(201, json={"users": {}})

        client = make_client(handler)
        await client.upsert_chat_user("agent-1", "Scribe")

        request = captured["request"]
        assert request.url.path == "/users"
        assert request.url.params["api_key"] == API_KEY
        assert request.headers["stream-auth-type"] == "jwt"
        assert json.loads(request.content) == {
            "users": {"agent-1": {"id": "agent-1", "name": "Scribe", "role": "user"}}
        }

    @pytest.mark.asyncio
    async def test_create_channel_with_members(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(201, json={"channel": {"id": "m1"}})

        client = make_client(handler)
        await client.create_channel("messaging", "m1", "agent-1", members=["agent-1"])

        assert captured["path"] == "/channels/messaging/m1/query"
        assert captured["body"]["data"] == {"created_by_id": "agent-1", "members": ["agent-1"]}

    @pytest.mark.asyncio
    async def test_send_message_with_id(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(201, json={"message": {"id": "greeting-m1"}})

        client = make_client(handler)
        await client.send_message("videocall", "m1", "Hello!", "agent-1", message_id="greeting-m1")

        assert captured["path"] == "/channels/videocall/m1/message"
        assert captured["body"] == {"message": {"text": "Hello!", "user_id": "agent-1", "id": "greeting-m1"}}

    @pytest.mark.asyncio
    async def test_duplicate_message_is_success(self):
        client = make_client(lambda request: httpx.Response(
            400, json={"message": "SendMessage failed: message with id greeting-m1 already exists"}
        ))

        result = await client.send_message("videocall", "m1", "Hello!", "agent-1", message_id="greeting-m1")

        assert result["duplicate"] is True

    @pytest.mark.asyncio
    async def test_bad_request_without_id_raises(self):
        client = make_client(lambda request: httpx.Response(400, json={"message": "already exists"}))

        with pytest.raises(UpstreamServiceException):
            await client.send_message("videocall", "m1", "Hello!", "agent-1")
