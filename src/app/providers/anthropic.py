"""
Anthropic (Claude) Provider.

- 스니펫 초안 생성 / 결합 모두 complete()로 처리
- model_requested + model_used 필수 기록
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

from src.utils.retry import retry_with_exponential_backoff

from .base import CompletionError, CompletionResult, LLMProvider, compute_hash

logger = logging.getLogger(__name__)


class ClaudeProvider(LLMProvider):
    """
    Claude API Provider.

    Usage:
        provider = ClaudeProvider(model="claude-opus-4-5-20251101")
        result = await provider.complete(prompt)
    """

    provider_name = "anthropic"

    def __init__(
        self,
        model: str = "claude-opus-4-5-20251101",
        api_key: str | None = None,
        max_tokens: int = 2000,
        temperature: float | None = 0.7,
        max_retries: int = 3,
    ):
        """
        Args:
            model: 모델 ID (config에서 주입)
            api_key: API 키 (환경변수 MY_ANTHROPIC_KEY 또는 ANTHROPIC_API_KEY 사용 가능)
            max_tokens: 기본 최대 토큰 수
            temperature: 기본 샘플링 온도 (None이면 API 기본값)
            max_retries: 재시도 가능한 오류의 최대 재시도 횟수

        Raises:
            CompletionError: API 키가 없을 때 (fail-fast)
        """
        self.model = model
        # API 키 결정: 인자 > MY_ANTHROPIC_KEY > ANTHROPIC_API_KEY
        self.api_key = (
            api_key
            or os.environ.get("MY_ANTHROPIC_KEY")
            or os.environ.get("ANTHROPIC_API_KEY")
        )

        if not self.api_key:
            raise CompletionError(
                "ANTHROPIC_KEY_MISSING",
                "Anthropic API key is missing. "
                "Set MY_ANTHROPIC_KEY or ANTHROPIC_API_KEY.",
            )

        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_retries = max_retries
        self._client: Any = None

    def _get_client(self) -> Any:
        """Anthropic 클라이언트 (lazy init)."""
        if self._client is None:
            import anthropic

            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def complete(
        self,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResult:
        """
        일반 완성 API.

        자동 재시도:
        - RateLimitError, APIConnectionError, APITimeoutError, InternalServerError
        - 지수 백오프
        """
        params: dict[str, Any] = {"max_tokens": max_tokens or self.max_tokens}
        effective_temperature = temperature if temperature is not None else self.temperature
        if effective_temperature is not None:
            params["temperature"] = effective_temperature

        try:
            response = await self._call_api_with_retry(prompt, params)
            text: str = response.content[0].text
        except CompletionError:
            raise
        except Exception as e:
            logger.error(f"Claude completion failed: {e}", exc_info=True)
            raise CompletionError(
                "COMPLETION_FAILED",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        return CompletionResult(
            text=text,
            provider=self.provider_name,
            model_requested=self.model,
            model_used=getattr(response, "model", None) or self.model,
            model_params=params,
            request_id=getattr(response, "id", None),
            prompt_hash=compute_hash(prompt),
            completed_at=datetime.now(UTC).isoformat(),
        )

    async def _call_api_with_retry(self, prompt: str, params: dict[str, Any]) -> Any:
        """재시도 로직이 적용된 API 호출."""
        import anthropic

        retryable_exceptions = (
            anthropic.RateLimitError,
            anthropic.APIConnectionError,
            anthropic.APITimeoutError,
            anthropic.InternalServerError,
        )

        async def _api_call() -> Any:
            client = self._get_client()
            return await client.messages.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                **params,
            )

        return await retry_with_exponential_backoff(
            _api_call,
            max_retries=self.max_retries,
            initial_delay=1.0,
            max_delay=30.0,
            exceptions=retryable_exceptions,
            label=f"{self.provider_name} {self.model}",
        )

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """사용자 친화적인 에러 메시지 생성."""
        import anthropic

        if isinstance(error, anthropic.APIConnectionError):
            return "Could not reach the Anthropic API. Check your network connection."
        elif isinstance(error, anthropic.RateLimitError):
            return "Anthropic rate limit exceeded. Try again shortly."
        elif isinstance(error, anthropic.AuthenticationError):
            return "Anthropic authentication failed. Check MY_ANTHROPIC_KEY."
        elif isinstance(error, anthropic.BadRequestError):
            return "Anthropic rejected the request. Check the prompt size and model name."

        error_str = str(error)
        if "timeout" in error_str.lower():
            return "The Anthropic request timed out. Try again."

        return f"Claude API call failed: {error_str}"
