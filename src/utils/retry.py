"""
재시도 로직 유틸리티.

LLM API 호출(Claude, OpenRouter)이 일시적 오류로 실패하면 지수 백오프로 재시도.
재시도 대상 예외는 호출하는 provider가 지정한다.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delays(
    max_retries: int,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
) -> Iterator[float]:
    """
    재시도 사이 대기 시간 (max_retries개, max_delay 상한).

    예: initial_delay=1, base=2 → 1, 2, 4, 8, ...
    """
    delay = initial_delay
    for _ in range(max_retries):
        yield min(delay, max_delay)
        delay *= exponential_base


async def retry_with_exponential_backoff(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    label: str = "API call",
) -> T:
    """
    지수 백오프를 사용한 재시도.

    Args:
        func: 재시도할 비동기 함수 (인자 없음, 클로저로 감싸서 전달)
        max_retries: 최대 재시도 횟수 (총 시도 = max_retries + 1)
        initial_delay: 초기 대기 시간(초)
        max_delay: 최대 대기 시간(초)
        exponential_base: 지수 백오프 기수
        exceptions: 재시도할 예외 타입들 (그 외 예외는 즉시 전파)
        label: 로그에 표시할 호출 이름 (예: "anthropic claude-opus-4-5")

    Returns:
        func의 반환값

    Raises:
        마지막 시도에서 발생한 예외
    """
    attempts = max_retries + 1
    delays = backoff_delays(max_retries, initial_delay, max_delay, exponential_base)

    for attempt in range(1, attempts + 1):
        try:
            result = await func()
        except exceptions as e:
            delay = next(delays, None)
            if delay is None:
                logger.error(f"{label}: all {attempts} attempts failed. Last error: {e}")
                raise
            logger.warning(
                f"{label}: attempt {attempt}/{attempts} failed: {e}. Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)
            continue

        if attempt > 1:
            logger.info(f"{label}: succeeded on attempt {attempt}/{attempts}")
        return result

    msg = "Unexpected retry logic error"
    raise RuntimeError(msg)
