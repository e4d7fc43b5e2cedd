"""
OpenRouter Provider.

OpenAI 호환 chat-completions API를 httpx로 직접 호출.
Grok 등 전용 SDK가 없는 모델을 같은 인터페이스로 사용.
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

import httpx

from src.utils.retry import retry_with_exponential_backoff

from .base import CompletionError, CompletionResult, LLMProvider, compute_hash

logger = logging.getLogger(__name__)

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_APP_URL = "http://localhost:8000"
APP_TITLE = "Prompt Builder"

# 재시도 대상 HTTP 상태 (레이트리밋 + 5xx)
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class OpenRouterRetryableError(Exception):
    """재시도 가능한 OpenRouter 응답."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"OpenRouter API error: {status_code} - {body}")


class OpenRouterProvider(LLMProvider):
    """
    OpenRouter Provider.

    Usage:
        provider = OpenRouterProvider(model="x-ai/grok-4")
        result = await provider.complete(prompt)
    """

    provider_name = "openrouter"

    def __init__(
        self,
        model: str = "x-ai/grok-4",
        api_key: str | None = None,
        max_tokens: int = 2000,
        temperature: float | None = 0.7,
        timeout: float = 120.0,
        max_retries: int = 2,
        api_url: str = OPENROUTER_API_URL,
    ):
        """
        Args:
            model: OpenRouter 모델 ID (예: x-ai/grok-4)
            api_key: API 키 (환경변수 OPENROUTER_API_KEY 사용 가능)
            max_tokens: 기본 최대 토큰 수
            temperature: 기본 샘플링 온도
            timeout: 요청 타임아웃(초)
            max_retries: 429/5xx 재시도 횟수
            api_url: chat-completions 엔드포인트

        Raises:
            CompletionError: API 키가 없을 때 (fail-fast)
        """
        self.model = model
        self.api_key = api_key or os.environ.get("OPENROUTER_API_KEY")

        if not self.api_key:
            raise CompletionError(
                "OPENROUTER_KEY_MISSING",
                "OPENROUTER_API_KEY is not configured",
            )

        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries
        self.api_url = api_url

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": os.environ.get("APP_URL", DEFAULT_APP_URL),
            "X-Title": APP_TITLE,
        }

    async def complete(
        self,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResult:
        """
        일반 완성 API.

        Raises:
            CompletionError: HTTP 오류, 빈 응답, 재시도 소진
        """
        params: dict[str, Any] = {"max_tokens": max_tokens or self.max_tokens}
        effective_temperature = temperature if temperature is not None else self.temperature
        if effective_temperature is not None:
            params["temperature"] = effective_temperature

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            **params,
        }

        async def _api_call() -> dict[str, Any]:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, json=payload, headers=self._headers())
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise OpenRouterRetryableError(response.status_code, response.text)
            if response.status_code >= 400:
                raise CompletionError(
                    "OPENROUTER_HTTP_ERROR",
                    f"OpenRouter API error: {response.status_code} - {response.text}",
                    status_code=response.status_code,
                    model=self.model,
                )
            data: dict[str, Any] = response.json()
            return data

        try:
            data = await retry_with_exponential_backoff(
                _api_call,
                max_retries=self.max_retries,
                initial_delay=1.0,
                max_delay=30.0,
                exceptions=(OpenRouterRetryableError, httpx.TransportError),
                label=f"{self.provider_name} {self.model}",
            )
        except CompletionError:
            raise
        except (OpenRouterRetryableError, httpx.HTTPError) as e:
            logger.error(f"OpenRouter completion failed: {e}")
            raise CompletionError(
                "COMPLETION_FAILED",
                f"OpenRouter API call failed: {e}",
                model=self.model,
            ) from e

        choices = data.get("choices") or []
        if not choices:
            raise CompletionError(
                "EMPTY_RESPONSE",
                "No response from OpenRouter",
                model=self.model,
            )

        # content-filter 등으로 content가 null일 수 있음
        text = (choices[0].get("message") or {}).get("content")
        if not text:
            raise CompletionError(
                "EMPTY_RESPONSE",
                "OpenRouter returned an empty message",
                model=self.model,
                finish_reason=choices[0].get("finish_reason"),
            )

        return CompletionResult(
            text=text,
            provider=self.provider_name,
            model_requested=self.model,
            model_used=data.get("model") or self.model,
            model_params=params,
            request_id=data.get("id"),
            prompt_hash=compute_hash(prompt),
            completed_at=datetime.now(UTC).isoformat(),
        )
