"""
步骤重试测试
"""

import pytest
from unittest.mock import AsyncMock, patch

from app.core.retry import run_step


class TestRunStep:
    """run_step测试"""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        func = AsyncMock(return_value=42)

        assert await run_step("answer", func, 1, key="value", attempts=3, delay=0) == 42
        func.assert_awaited_once_with(1, key="value")

    @pytest.mark.asyncio
    async def test_retries_with_exponential_backoff(self):
        func = AsyncMock(side_effect=[RuntimeError("a"), RuntimeError("b"), "ok"])

        with patch("app.core.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await run_step("flaky", func, attempts=3, delay=0.5) == "ok"

        assert [call.args[0] for call in sleep.await_args_list] == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_raises_last_error(self):
        func = AsyncMock(side_effect=[ValueError("first"), ValueError("second")])

        with pytest.raises(ValueError, match="second"):
            await run_step("broken", func, attempts=2, delay=0)
