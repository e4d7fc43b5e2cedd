"""
test_retry.py - 지수 백오프 재시도 테스트
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest

from src.utils.retry import backoff_delays, retry_with_exponential_backoff


class FlakyError(Exception):
    pass


@pytest.fixture
def mock_sleep():
    with patch("src.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        yield sleep


class TestRetryWithExponentialBackoff:
    """retry_with_exponential_backoff 테스트."""

    @pytest.mark.asyncio
    async def test_success_first_try(self, mock_sleep):
        func = AsyncMock(return_value="ok")

        assert await retry_with_exponential_backoff(func) == "ok"
        assert func.await_count == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, mock_sleep):
        func = AsyncMock(side_effect=[FlakyError("1"), FlakyError("2"), "ok"])

        result = await retry_with_exponential_backoff(
            func, max_retries=3, initial_delay=1.0, exceptions=(FlakyError,)
        )

        assert result == "ok"
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_delay_capped(self, mock_sleep):
        func = AsyncMock(side_effect=[FlakyError(), FlakyError(), FlakyError(), "ok"])

        await retry_with_exponential_backoff(
            func,
            max_retries=3,
            initial_delay=4.0,
            max_delay=10.0,
            exceptions=(FlakyError,),
        )

        assert [c.args[0] for c in mock_sleep.await_args_list] == [4.0, 8.0, 10.0]

    @pytest.mark.asyncio
    async def test_raises_last_error(self, mock_sleep):
        func = AsyncMock(side_effect=[FlakyError("first"), FlakyError("last")])

        with pytest.raises(FlakyError, match="last"):
            await retry_with_exponential_backoff(func, max_retries=1, exceptions=(FlakyError,))

        assert func.await_count == 2

    @pytest.mark.asyncio
    async def test_other_exceptions_not_retried(self, mock_sleep):
        func = AsyncMock(side_effect=ValueError("bad input"))

        with pytest.raises(ValueError):
            await retry_with_exponential_backoff(func, exceptions=(FlakyError,))

        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_label_in_logs(self, mock_sleep, caplog):
        func = AsyncMock(side_effect=[FlakyError("busy"), "ok"])

        with caplog.at_level(logging.WARNING, logger="src.utils.retry"):
            await retry_with_exponential_backoff(
                func, max_retries=1, exceptions=(FlakyError,), label="openrouter x-ai/grok-4"
            )

        assert any(
            r.message.startswith("openrouter x-ai/grok-4: attempt 1/2 failed") for r in caplog.records
        )


class TestBackoffDelays:
    """backoff_delays 테스트."""

    def test_exponential(self):
        assert list(backoff_delays(4, initial_delay=1.0)) == [1.0, 2.0, 4.0, 8.0]

    def test_capped(self):
        assert list(backoff_delays(3, initial_delay=20.0, max_delay=30.0)) == [20.0, 30.0, 30.0]

    def test_no_retries(self):
        assert list(backoff_delays(0)) == []
