"""
数据模型包
"""

from .user import User
from .agent import Agent
from .meeting import Meeting, MeetingStatus

__all__ = [
    "User",
    "Agent",
    "Meeting",
    "MeetingStatus"
]
