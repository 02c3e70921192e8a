"""
测试配置和fixtures
"""

import pytest
from typing import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.deps import (
    get_session_factory,
    get_call_platform,
    get_ai_responder,
    get_enqueue,
    get_webhook_secret
)
from app.config import settings
from app.core.security import compute_signature
from app.db.base import Base
from app.models.user import User
from app.models.agent import Agent
from app.models.meeting import Meeting, MeetingStatus
from app.services.ai.manager import AIResponder, AgentReply
from app.services.call_platform import CallPlatformClient
from app.services.meeting import MeetingService
from app.services.meeting_lifecycle import MeetingLifecycleRouter

# 测试用Webhook密钥
WEBHOOK_SECRET = "test-webhook-secret"
GREETING_TEXT = "Hello everyone, I am your meeting assistant."


@pytest.fixture
def webhook_secret() -> str:
    return WEBHOOK_SECRET


@pytest.fixture
async def db_engine():
    """每个测试一个内存数据库"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def meeting_service(session_factory) -> MeetingService:
    return MeetingService(session_factory)


@pytest.fixture
async def test_user(session_factory) -> User:
    """创建测试用户"""
    async with session_factory() as session:
        user = User(id="user-1", name="Alice", email="alice@example.com")
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def test_agent(session_factory, test_user: User) -> Agent:
    """创建测试代理"""
    async with session_factory() as session:
        agent = Agent(
            id="agent-1",
            name="Scribe",
            user_id=test_user.id,
            instructions="You are a friendly note taker.",
            ai_provider="gemini",
            ai_model="gemini-1.5-pro",
            temperature="0.2",
            max_tokens="256"
        )
        session.add(agent)
        await session.commit()
        return agent


@pytest.fixture
def make_meeting(session_factory, test_user: User, test_agent: Agent) -> Callable:
    """按指定状态创建会议"""

    async def _make_meeting(meeting_id: str = "meeting-1", status: MeetingStatus = MeetingStatus.UPCOMING) -> Meeting:
        async with session_factory() as session:
            meeting = Meeting(
                id=meeting_id,
                name="Weekly sync",
                user_id=test_user.id,
                agent_id=test_agent.id,
                status=status
            )
            session.add(meeting)
            await session.commit()
            return meeting

    return _make_meeting


@pytest.fixture
def call_platform() -> AsyncMock:
    """通话平台客户端替身，所有调用默认成功"""
    client = AsyncMock(spec=CallPlatformClient)
    client.join_call.return_value = {}
    client.end_call.return_value = {}
    client.upsert_chat_user.return_value = {}
    client.create_channel.return_value = {}
    client.send_message.return_value = {"message": {"id": "msg-1"}}
    return client


@pytest.fixture
def ai_responder() -> AsyncMock:
    """AI应答器替身"""
    responder = AsyncMock(spec=AIResponder)
    responder.default_provider = "openrouter"
    responder.default_model = "mistralai/mistral-7b-instruct"
    responder.ask.return_value = GREETING_TEXT
    responder.ask_detailed.return_value = AgentReply(
        content="### Overview\nA short sync.\n\n### Notes\n- 00:00-01:00 Intro",
        provider="gemini",
        model="gemini-1.5-flash"
    )
    return responder


@pytest.fixture
def enqueue_job() -> MagicMock:
    return MagicMock(return_value="task-1")


@pytest.fixture
def lifecycle(meeting_service, call_platform, ai_responder, enqueue_job) -> MeetingLifecycleRouter:
    return MeetingLifecycleRouter(
        meeting_service,
        call_platform,
        ai_responder,
        enqueue_job,
        step_attempts=3,
        step_delay=0
    )


@pytest.fixture
async def client(
    monkeypatch,
    session_factory,
    call_platform,
    ai_responder,
    enqueue_job
) -> AsyncGenerator[AsyncClient, None]:
    """提供测试客户端"""
    monkeypatch.setattr(settings, "greeting_retry_delay", 0.0)

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_call_platform] = lambda: call_platform
    app.dependency_overrides[get_ai_responder] = lambda: ai_responder
    app.dependency_overrides[get_enqueue] = lambda: enqueue_job
    app.dependency_overrides[get_webhook_secret] = lambda: WEBHOOK_SECRET

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def post_webhook(client: AsyncClient) -> Callable:
    """发送带签名的Webhook请求"""

    async def _post(body, signature: str = None, api_key: str = "test-api-key", headers: dict = None):
        if isinstance(body, str):
            body = body.encode("utf-8")
        request_headers = {
            "content-type": "application/json",
            "x-signature": signature if signature is not None else compute_signature(body, WEBHOOK_SECRET),
            "x-api-key": api_key
        }
        if headers is not None:
            request_headers = headers
        return await client.post("/api/v1/webhook", content=body, headers=request_headers)

    return _post
