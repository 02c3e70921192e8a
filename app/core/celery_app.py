"""
Celery配置与任务投递
"""

from typing import Dict, Any

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from app.config import settings
from app.core.logging import job_logger, setup_logging

# 事件名即任务名
MEETING_PROCESSING_EVENT = "meetings/processing"
CHAT_MESSAGE_EVENT = "meetings/chat-message"

# 创建Celery实例
celery_app = Celery(
    "meetai",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=['app.tasks.meetings']
)

# Celery配置
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    # 任务路由
    task_routes={
        MEETING_PROCESSING_EVENT: {'queue': 'meetings'},
        CHAT_MESSAGE_EVENT: {'queue': 'chat'},
    },

    # 任务过期时间
    task_time_limit=600,  # 10分钟
    task_soft_time_limit=540,

    # 结果过期时间
    result_expires=3600,

    task_acks_late=True,
    task_reject_on_worker_lost=True,
)


@celery_setup_logging.connect
def configure_worker_logging(**kwargs):
    """Worker使用与API相同的loguru配置"""
    setup_logging()


def enqueue(event_name: str, data: Dict[str, Any]) -> str:
    """
    投递异步任务（不等待结果）

    Args:
        event_name: 事件名，同时也是任务名
        data: 事件数据

    Returns:
        str: 任务ID
    """
    result = celery_app.send_task(event_name, args=[data])
    job_logger.info(f"Enqueued {event_name} task {result.id}")
    return result.id
