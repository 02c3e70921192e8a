"""
应用事件系统
"""

from typing import Dict, Any, Callable, List
import asyncio
from datetime import datetime
from loguru import logger


class EventEmitter:
    """事件发射器"""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}
        self._middleware: List[Callable] = []

    def on(self, event: str, handler: Callable):
        """注册事件监听器"""
        if event not in self._listeners:
            self._listeners[event] = []
        self._listeners[event].append(handler)

    def off(self, event: str, handler: Callable):
        """移除事件监听器"""
        if event in self._listeners and handler in self._listeners[event]:
            self._listeners[event].remove(handler)

    def use(self, middleware: Callable):
        """添加中间件"""
        self._middleware.append(middleware)

    async def emit(self, event: str, data: Any = None, **kwargs):
        """发射事件"""
        event_data = {
            'event': event,
            'data': data,
            'timestamp': datetime.now(),
            **kwargs
        }

        # 执行中间件
        for middleware in self._middleware:
            try:
                if asyncio.iscoroutinefunction(middleware):
                    event_data = await middleware(event_data)
                else:
                    event_data = middleware(event_data)

                if event_data is None:
                    return  # 中间件阻止了事件
            except Exception as e:
                logger.error(f"Event middleware error: {e}")
                continue

        # 触发监听器
        for handler in list(self._listeners.get(event, [])):
            try:
                if asyncio.iscoroutinefunction(handler):
                    await handler(event_data)
                else:
                    handler(event_data)
            except Exception as e:
                logger.error(f"Event handler error for '{event}': {e}")


# 全局事件发射器
event_emitter = EventEmitter()


# 事件类型常量
class Events:
    # 会议生命周期
    MEETING_STARTED = "meeting.started"
    MEETING_ENDED = "meeting.ended"
    MEETING_CALL_ENDED = "meeting.call_ended"
    MEETING_TRANSCRIPT_READY = "meeting.transcript_ready"
    MEETING_RECORDING_READY = "meeting.recording_ready"
    MEETING_COMPLETED = "meeting.completed"

    # 代理事件
    AGENT_GREETING_SENT = "agent.greeting_sent"
    AGENT_GREETING_FAILED = "agent.greeting_failed"
    AGENT_CHAT_REPLIED = "agent.chat_replied"

    # AI事件
    AI_REQUEST_SUCCESS = "ai.request_success"
    AI_PROVIDER_FALLBACK = "ai.provider_fallback"
    AI_REQUEST_FAILED = "ai.request_failed"

    # Webhook
    WEBHOOK_REJECTED = "webhook.rejected"


def log_middleware(event_data: Dict[str, Any]) -> Dict[str, Any]:
    """日志中间件"""
    data = event_data.get('data')
    keys = list(data.keys()) if isinstance(data, dict) else None
    logger.bind(name="events").debug(f"Event: {event_data['event']} keys={keys}")
    return event_data


# 添加默认中间件
event_emitter.use(log_middleware)
