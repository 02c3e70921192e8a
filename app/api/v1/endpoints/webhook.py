"""
通话平台Webhook入口
"""

import json
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Header, Request

from app.api.deps import get_lifecycle_router, get_webhook_secret
from app.core.events import event_emitter, Events
from app.core.exceptions import AuthenticationException, ValidationException
from app.core.logging import webhook_logger
from app.core.security import verify_signature
from app.schemas.webhook import parse_webhook_event
from app.services.meeting_lifecycle import MeetingLifecycleRouter

router = APIRouter()


@router.post("", summary="接收通话平台事件")
async def receive_webhook(
    request: Request,
    x_signature: Optional[str] = Header(default=None),
    x_api_key: Optional[str] = Header(default=None),
    secret: str = Depends(get_webhook_secret),
    lifecycle: MeetingLifecycleRouter = Depends(get_lifecycle_router)
) -> Dict[str, str]:
    """
    处理通话平台推送的生命周期事件

    - **x-signature**: 原始请求体的HMAC-SHA256十六进制签名
    - **x-api-key**: 平台API Key

    处理顺序：请求头 -> 原始请求体 -> 签名 -> JSON -> 事件解码 -> 生命周期路由。
    不关心的事件类型直接返回成功。
    """
    if not x_signature or not x_api_key:
        raise ValidationException("Missing signature or API key")

    body = await request.body()
    if not verify_signature(body, x_signature, secret):
        webhook_logger.warning("Rejected webhook with invalid signature")
        await event_emitter.emit(Events.WEBHOOK_REJECTED, {"reason": "invalid_signature"})
        raise AuthenticationException("Invalid signature")

    try:
        payload = json.loads(body)
    except ValueError:
        raise ValidationException("Invalid JSON")

    event = parse_webhook_event(payload)
    if event is None:
        webhook_logger.info(f"Ignoring webhook event type {payload.get('type')}")
        return {"status": "ok"}

    return await lifecycle.handle(event)
