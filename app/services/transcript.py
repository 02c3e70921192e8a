"""
会议转录解析与发言人标注
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from app.core.exceptions import ValidationException

UNKNOWN_SPEAKER = "Unknown"


class TranscriptItem(BaseModel):
    """转录文件中的一条发言（JSONL中的一行）"""
    speaker_id: Optional[str] = None
    type: Optional[str] = None
    text: str = ""
    start_ts: Optional[float] = None
    stop_ts: Optional[float] = None


def parse_transcript(raw: str) -> List[TranscriptItem]:
    """
    解析逐行JSON格式的转录

    空行会被跳过；任何一行不是合法记录都会抛出 ValidationException。
    """
    items = []
    for line_number, line in enumerate(raw.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            items.append(TranscriptItem.model_validate(json.loads(line)))
        except (ValueError, ValidationError) as e:
            raise ValidationException(f"Invalid transcript line {line_number}: {e}")
    return items


def speaker_ids(items: List[TranscriptItem]) -> List[str]:
    """按出现顺序去重后的发言人ID，没有ID的发言不计入"""
    return list(dict.fromkeys(item.speaker_id for item in items if item.speaker_id))


def attribute_speakers(items: List[TranscriptItem], names: Dict[str, str]) -> List[Dict[str, Any]]:
    """给每条发言附加发言人名称，找不到的标为Unknown，条目本身保留"""
    return [
        {
            **item.model_dump(),
            "user": {"name": names.get(item.speaker_id, UNKNOWN_SPEAKER)}
        }
        for item in items
    ]
