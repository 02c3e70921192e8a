"""
Stream通话/聊天平台REST客户端

进程启动时创建一次，注入到需要它的服务中；客户端本身无状态，只持有连接池。
"""

from typing import Dict, Any, List, Optional

import httpx

from app.core.exceptions import UpstreamServiceException
from app.core.logging import get_logger
from app.core.security import create_user_token, create_server_token

logger = get_logger("call_platform")


class CallPlatformClient:
    """通话平台命令出口"""

    def __init__(
        self,
        api_key: str,
        secret: str,
        video_base_url: str = "https://video.stream-io-api.com",
        chat_base_url: str = "https://chat.stream-io-api.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport = None
    ):
        self.api_key = api_key
        self.secret = secret
        self.video_base_url = video_base_url.rstrip("/")
        self.chat_base_url = chat_base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=timeout,
            headers={"content-type": "application/json"},
            transport=transport
        )

    async def _request(
        self,
        operation: str,
        url: str,
        headers: Dict[str, str],
        json: Dict[str, Any] = None,
        params: Dict[str, str] = None
    ) -> httpx.Response:
        try:
            response = await self.client.post(url, headers=headers, json=json, params=params)
        except httpx.HTTPError as e:
            raise UpstreamServiceException(f"{operation} request error: {e}")

        logger.debug(f"{operation}: {response.status_code} {url}")
        return response

    @staticmethod
    def _ensure_ok(operation: str, response: httpx.Response) -> Dict[str, Any]:
        if not response.is_success:
            raise UpstreamServiceException(
                f"Failed to {operation}: {response.status_code} {response.text}",
                status_code=response.status_code
            )
        try:
            return response.json()
        except ValueError:
            return {}

    def _chat_headers(self) -> Dict[str, str]:
        return {
            "Authorization": create_server_token(self.api_key, self.secret),
            "stream-auth-type": "jwt"
        }

    def _chat_url(self, path: str) -> str:
        return f"{self.chat_base_url}{path}"

    async def join_call(
        self,
        call_type: str,
        call_id: str,
        user_id: str,
        name: str = "AI Agent"
    ) -> Dict[str, Any]:
        """以指定用户身份加入通话（使用该用户的短期令牌）"""
        token = create_user_token(user_id, self.api_key, self.secret)
        response = await self._request(
            "join call",
            f"{self.video_base_url}/api/v1/call/{call_type}/{call_id}/join",
            headers={"Authorization": f"Bearer {token}"},
            json={"user": {"id": user_id, "name": name, "role": "user"}}
        )
        data = self._ensure_ok("join call", response)
        logger.info(f"User {user_id} joined call {call_type}:{call_id}")
        return data

    async def end_call(self, call_type: str, call_id: str) -> Dict[str, Any]:
        """结束通话"""
        token = create_server_token(self.api_key, self.secret)
        response = await self._request(
            "end call",
            f"{self.video_base_url}/api/v1/call/{call_type}/{call_id}/end",
            headers={"Authorization": f"Bearer {token}"}
        )
        data = self._ensure_ok("end call", response)
        logger.info(f"Call {call_type}:{call_id} ended")
        return data

    async def upsert_chat_user(self, user_id: str, name: str, role: str = "user") -> Dict[str, Any]:
        """创建或更新聊天用户"""
        response = await self._request(
            "upsert chat user",
            self._chat_url("/users"),
            headers=self._chat_headers(),
            params={"api_key": self.api_key},
            json={"users": {user_id: {"id": user_id, "name": name, "role": role}}}
        )
        return self._ensure_ok("upsert chat user", response)

    async def create_channel(
        self,
        channel_type: str,
        channel_id: str,
        created_by_id: str,
        members: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """获取或创建聊天频道，频道已存在时不做修改"""
        channel_data: Dict[str, Any] = {"created_by_id": created_by_id}
        if members:
            channel_data["members"] = members

        response = await self._request(
            "create channel",
            self._chat_url(f"/channels/{channel_type}/{channel_id}/query"),
            headers=self._chat_headers(),
            params={"api_key": self.api_key},
            json={"data": channel_data, "state": False, "watch": False, "presence": False}
        )
        return self._ensure_ok("create channel", response)

    async def send_message(
        self,
        channel_type: str,
        channel_id: str,
        text: str,
        user_id: str,
        message_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        以指定用户身份发送聊天消息

        传入 message_id 时重复发送是幂等的：平台返回“消息已存在”视为成功。
        """
        message: Dict[str, Any] = {"text": text, "user_id": user_id}
        if message_id:
            message["id"] = message_id

        response = await self._request(
            "send message",
            self._chat_url(f"/channels/{channel_type}/{channel_id}/message"),
            headers=self._chat_headers(),
            params={"api_key": self.api_key},
            json={"message": message}
        )

        if message_id and response.status_code in (400, 409) and "already exists" in response.text:
            logger.info(f"Message {message_id} already posted to {channel_type}:{channel_id}")
            return {"message": {"id": message_id}, "duplicate": True}

        return self._ensure_ok("send message", response)

    async def close(self):
        await self.client.aclose()
