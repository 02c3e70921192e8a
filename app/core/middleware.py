"""
中间件与异常处理
"""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.exceptions import MeetAIException, meetai_exception_to_http_exception
from app.core.logging import api_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """请求日志中间件"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # 生成请求ID
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        start_time = time.time()
        api_logger.info(
            f"Request started - {request.method} {request.url.path} [{request_id}]"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            api_logger.error(
                f"Request failed - {request.method} {request.url.path} [{request_id}] "
                f"after {round(process_time, 4)}s: {e}"
            )
            raise

        process_time = time.time() - start_time
        api_logger.info(
            f"Request completed - {request.method} {request.url.path} [{request_id}] "
            f"status={response.status_code} time={round(process_time, 4)}s"
        )

        # 添加响应头
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(round(process_time, 4))

        return response


async def meetai_exception_handler(request: Request, exc: MeetAIException) -> JSONResponse:
    """将MeetAI异常渲染为结构化JSON响应"""
    http_exc = meetai_exception_to_http_exception(exc)

    log = api_logger.error if http_exc.status_code >= 500 else api_logger.warning
    log(
        f"{type(exc).__name__} [{exc.code}] on {request.url.path} "
        f"[{getattr(request.state, 'request_id', 'unknown')}]: {exc.message}"
    )

    return JSONResponse(
        status_code=http_exc.status_code,
        content=http_exc.detail
    )
