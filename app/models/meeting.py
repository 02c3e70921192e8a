"""
会议数据模型
"""

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Index, Enum
from sqlalchemy.orm import relationship
import enum

from app.db.base import BaseModel


class MeetingStatus(enum.Enum):
    """会议状态枚举"""
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    PROCESSING = "processing"
    CANCELLED = "cancelled"


class Meeting(BaseModel):
    """会议模型"""
    __tablename__ = "meetings"
    name = Column(String(255), nullable=False, comment="会议名称")
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    agent_id = Column(String(64), ForeignKey("agents.id", ondelete="CASCADE"), nullable=False)
    status = Column(
        Enum(MeetingStatus, name="meeting_status", values_callable=lambda e: [m.value for m in e]),
        default=MeetingStatus.UPCOMING,
        nullable=False,
        comment="会议状态"
    )
    started_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    transcript_url = Column(Text, nullable=True)
    recording_url = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)

    # 关系
    owner = relationship("User", back_populates="meetings")
    agent = relationship("Agent", back_populates="meetings")

    __table_args__ = (
        Index('ix_meetings_user_status', 'user_id', 'status'),
        Index('ix_meetings_agent_id', 'agent_id'),
    )

    def __repr__(self):
        return f"<Meeting(id={self.id}, name='{self.name}', status={self.status})>"
