"""
会议状态数据访问服务

所有状态迁移都通过带条件的UPDATE完成，数据库的行级比较并设置是唯一的同步手段。
"""

from typing import Dict, Iterable, Optional
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.logging import db_logger
from app.models.agent import Agent
from app.models.meeting import Meeting, MeetingStatus
from app.models.user import User

# 收到 session_started 时不允许再次激活的状态
NON_STARTABLE_STATUSES = (
    MeetingStatus.COMPLETED,
    MeetingStatus.ACTIVE,
    MeetingStatus.CANCELLED,
    MeetingStatus.PROCESSING,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MeetingService:
    """会议状态服务"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _update(self, session: AsyncSession, statement) -> int:
        result = await session.execute(
            statement.execution_options(synchronize_session=False)
        )
        await session.commit()
        return result.rowcount or 0

    async def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        """获取会议"""
        async with self.session_factory() as session:
            return await session.get(Meeting, meeting_id)

    async def get_startable_meeting(self, meeting_id: str) -> Optional[Meeting]:
        """获取可以开始的会议；已开始、已结束或已取消的会议返回None"""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Meeting).where(
                    Meeting.id == meeting_id,
                    Meeting.status.notin_(NON_STARTABLE_STATUSES)
                )
            )
            return result.scalar_one_or_none()

    async def activate(self, meeting_id: str) -> bool:
        """
        将会议置为active并记录开始时间

        UPDATE 使用与查询相同的排除条件，并发的重复投递只有一个能成功。
        """
        async with self.session_factory() as session:
            updated = await self._update(
                session,
                update(Meeting)
                .where(
                    Meeting.id == meeting_id,
                    Meeting.status.notin_(NON_STARTABLE_STATUSES)
                )
                .values(status=MeetingStatus.ACTIVE, started_at=utcnow())
            )
        db_logger.info(f"Meeting {meeting_id} activate: {updated} row(s)")
        return updated > 0

    async def mark_processing(self, meeting_id: str) -> bool:
        """仅当会议处于active时置为processing并记录结束时间"""
        async with self.session_factory() as session:
            updated = await self._update(
                session,
                update(Meeting)
                .where(Meeting.id == meeting_id, Meeting.status == MeetingStatus.ACTIVE)
                .values(status=MeetingStatus.PROCESSING, ended_at=utcnow())
            )
        db_logger.info(f"Meeting {meeting_id} mark_processing: {updated} row(s)")
        return updated > 0

    async def set_transcript_url(self, meeting_id: str, transcript_url: str) -> bool:
        """保存转录地址，返回是否找到会议"""
        async with self.session_factory() as session:
            updated = await self._update(
                session,
                update(Meeting)
                .where(Meeting.id == meeting_id)
                .values(transcript_url=transcript_url)
            )
        return updated > 0

    async def set_recording_url(self, meeting_id: str, recording_url: str) -> bool:
        """保存录制地址"""
        async with self.session_factory() as session:
            updated = await self._update(
                session,
                update(Meeting)
                .where(Meeting.id == meeting_id)
                .values(recording_url=recording_url)
            )
        return updated > 0

    async def complete(self, meeting_id: str, summary: Optional[str] = None) -> bool:
        """将会议置为completed，可同时写入摘要"""
        values = {"status": MeetingStatus.COMPLETED}
        if summary is not None:
            values["summary"] = summary

        async with self.session_factory() as session:
            updated = await self._update(
                session,
                update(Meeting).where(Meeting.id == meeting_id).values(**values)
            )
        db_logger.info(f"Meeting {meeting_id} completed (summary={'yes' if summary is not None else 'no'})")
        return updated > 0

    async def get_agent(self, agent_id: str) -> Optional[Agent]:
        """获取代理"""
        async with self.session_factory() as session:
            return await session.get(Agent, agent_id)

    async def resolve_speaker_names(self, speaker_ids: Iterable[str]) -> Dict[str, str]:
        """
        在用户表和代理表中查找发言人名称

        Returns:
            Dict[str, str]: 发言人ID到名称的映射，找不到的ID不出现在结果中
        """
        ids = {speaker_id for speaker_id in speaker_ids if speaker_id}
        if not ids:
            return {}

        async with self.session_factory() as session:
            users = await session.execute(select(User.id, User.name).where(User.id.in_(ids)))
            agents = await session.execute(select(Agent.id, Agent.name).where(Agent.id.in_(ids)))

            names = {row.id: row.name for row in users}
            for row in agents:
                names.setdefault(row.id, row.name)
        return names
