"""
日志配置测试
"""

import logging

from loguru import logger

from app.core.logging import (
    COMPONENT_LOGS,
    InterceptHandler,
    _component_filter,
    get_logger,
    webhook_logger,
    job_logger
)


class TestComponentLogs:
    """组件日志拆分测试"""

    def test_component_files_cover_bound_loggers(self):
        assert set(COMPONENT_LOGS.values()) == {"webhook", "jobs", "ai_service"}

    def test_filter_routes_by_bound_name(self):
        messages = []
        sink_id = logger.add(messages.append, format="{message}", filter=_component_filter("webhook"))
        try:
            webhook_logger.info("event accepted")
            job_logger.info("job started")
            get_logger("webhook").warning("signature rejected")
        finally:
            logger.remove(sink_id)

        assert [message.strip() for message in messages] == ["event accepted", "signature rejected"]


class TestInterceptHandler:
    """标准库日志转发测试"""

    def test_forwards_with_logger_name(self):
        records = []
        sink_id = logger.add(lambda message: records.append(message.record), format="{message}")
        stdlib_logger = logging.getLogger("meetai.test.intercept")
        stdlib_logger.handlers = [InterceptHandler()]
        stdlib_logger.propagate = False
        stdlib_logger.setLevel(logging.INFO)
        try:
            stdlib_logger.warning("pool exhausted")
        finally:
            logger.remove(sink_id)
            stdlib_logger.handlers = []

        assert len(records) == 1
        assert records[0]["message"] == "pool exhausted"
        assert records[0]["level"].name == "WARNING"
        assert records[0]["extra"]["name"] == "meetai.test.intercept"
