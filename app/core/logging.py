"""
日志配置

所有日志经loguru输出：控制台、总日志、错误日志，外加按组件（webhook、后台任务、AI调用）拆分的文件。
标准库日志（uvicorn、SQLAlchemy、Celery、httpx）统一转发到loguru。
"""

import sys
import logging
from pathlib import Path
from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# 组件日志文件：文件名 -> 绑定的日志器名称
COMPONENT_LOGS = {
    "webhook.log": "webhook",
    "jobs.log": "jobs",
    "ai_service.log": "ai_service",
}

FORWARDED_LOGGERS = ["uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine", "celery", "httpx"]


class InterceptHandler(logging.Handler):
    """把标准库日志记录转发给loguru"""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # 跳过logging模块自身的栈帧，定位到真正的调用者
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(name=record.name).log(
            level, record.getMessage()
        )


def _component_filter(name: str):
    return lambda record: record["extra"].get("name") == name


def setup_logging():
    """配置loguru的输出目标；API进程和Celery worker启动时各调用一次"""
    from app.config import settings

    logger.remove()
    logger.configure(extra={"name": "app"})

    logger.add(
        sys.stdout,
        format=LOG_FORMAT,
        level="DEBUG" if settings.debug else "INFO",
        colorize=True,
        diagnose=settings.debug
    )

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(log_dir / "meetai.log", format=LOG_FORMAT, level="INFO",
               rotation="1 day", retention="30 days", compression="zip")
    logger.add(log_dir / "meetai_error.log", format=LOG_FORMAT, level="ERROR",
               rotation="1 week", retention="90 days", compression="zip", backtrace=True)

    for filename, name in COMPONENT_LOGS.items():
        logger.add(log_dir / filename, format=LOG_FORMAT, level="INFO",
                   rotation="1 day", retention="7 days", filter=_component_filter(name))

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for logger_name in FORWARDED_LOGGERS:
        logging.getLogger(logger_name).handlers = [InterceptHandler()]

    if not settings.debug:
        # SQL语句和每个出站请求只在调试时输出
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str):
    """获取绑定了组件名称的日志器"""
    return logger.bind(name=name)


api_logger = get_logger("api")
webhook_logger = get_logger("webhook")
ai_logger = get_logger("ai_service")
job_logger = get_logger("jobs")
db_logger = get_logger("database")
