"""
步骤级重试（指数退避）
"""

import asyncio
from typing import Any, Awaitable, Callable

from app.core.logging import get_logger

logger = get_logger("retry")


async def run_step(
    step_name: str,
    func: Callable[..., Awaitable[Any]],
    *args,
    attempts: int = 3,
    delay: float = 1.0,
    **kwargs
) -> Any:
    """
    执行一个可独立重试的步骤

    Args:
        step_name: 步骤名称，用于日志
        func: 每次尝试都会重新调用的协程函数
        attempts: 最大尝试次数
        delay: 基础延迟（秒），第n次重试等待 delay * 2**(n-1)

    Returns:
        步骤结果

    Raises:
        最后一次尝试的异常
    """
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if attempt == attempts - 1:
                logger.error(f"Step {step_name} failed after {attempts} attempt(s): {e}")
                raise

            wait = delay * (2 ** attempt)
            logger.warning(
                f"Step {step_name} failed (attempt {attempt + 1}/{attempts}): {e}, "
                f"retrying in {wait}s"
            )
            await asyncio.sleep(wait)
