"""
通话平台Webhook事件的Pydantic模式

入站事件在边界处完成校验解码，得到按 ``type`` 区分的具体事件类型。
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union, get_args

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from app.core.exceptions import ValidationException


class EventCustomData(BaseModel):
    """通话创建时写入的自定义元数据"""
    meetingId: Optional[str] = Field(None, description="会议ID")


class CallInfo(BaseModel):
    """事件中携带的通话信息"""
    cid: Optional[str] = Field(None, description="通话CID")
    custom: Optional[EventCustomData] = None


class AssetInfo(BaseModel):
    """转录/录制文件信息"""
    url: str = Field(..., description="文件下载地址")
    filename: Optional[str] = None


def meeting_id_from_cid(call_cid: Optional[str]) -> Optional[str]:
    """从 ``<type>:<id>`` 形式的CID中取出会议ID"""
    if not call_cid:
        return None
    parts = call_cid.split(":")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


class _CustomMeetingEvent(BaseModel):
    """会议ID写在 call.custom 中的事件"""
    call: Optional[CallInfo] = None
    call_cid: Optional[str] = None

    @property
    def meeting_id(self) -> Optional[str]:
        if self.call is None or self.call.custom is None:
            return None
        return self.call.custom.meetingId or None


class _CidMeetingEvent(BaseModel):
    """会议ID编码在 call_cid 中的事件"""
    call_cid: Optional[str] = None

    @property
    def meeting_id(self) -> Optional[str]:
        return meeting_id_from_cid(self.call_cid)


class CallSessionStartedEvent(_CustomMeetingEvent):
    type: Literal["call.session_started"]


class CallSessionEndedEvent(_CustomMeetingEvent):
    type: Literal["call.session_ended"]


class CallSessionParticipantLeftEvent(_CidMeetingEvent):
    type: Literal["call.session_participant_left"]
    participant: Optional[Dict[str, Any]] = None


class CallTranscriptionReadyEvent(_CidMeetingEvent):
    type: Literal["call.transcription_ready"]
    call_transcription: AssetInfo


class CallRecordingReadyEvent(_CidMeetingEvent):
    type: Literal["call.recording_ready"]
    call_recording: AssetInfo


WebhookEvent = Annotated[
    Union[
        CallSessionStartedEvent,
        CallSessionParticipantLeftEvent,
        CallSessionEndedEvent,
        CallTranscriptionReadyEvent,
        CallRecordingReadyEvent,
    ],
    Field(discriminator="type"),
]

WEBHOOK_EVENT_TYPES = (
    CallSessionStartedEvent,
    CallSessionParticipantLeftEvent,
    CallSessionEndedEvent,
    CallTranscriptionReadyEvent,
    CallRecordingReadyEvent,
)

SUPPORTED_EVENT_TYPES = frozenset(
    get_args(model.model_fields["type"].annotation)[0] for model in WEBHOOK_EVENT_TYPES
)

_webhook_event_adapter = TypeAdapter(WebhookEvent)


def parse_webhook_event(payload: Any) -> Optional[BaseModel]:
    """
    解码Webhook事件

    Args:
        payload: 已解析的JSON对象

    Returns:
        具体事件对象；不关心的事件类型返回None

    Raises:
        ValidationException: 负载不是对象，或已知事件类型的字段不合法
    """
    if not isinstance(payload, dict):
        raise ValidationException("Webhook payload must be a JSON object")

    event_type = payload.get("type")
    if event_type not in SUPPORTED_EVENT_TYPES:
        return None

    try:
        return _webhook_event_adapter.validate_python(payload)
    except ValidationError as e:
        raise ValidationException(f"Malformed {event_type} event: {e.errors()[0]['msg']}")
