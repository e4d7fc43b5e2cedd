"""
Google Gemini Provider.

Fallback 예외 정책:
- FALLBACK_ERRORS: NotFound, ServiceUnavailable, ResourceExhausted → fallback 모델
- REJECT_IMMEDIATELY: InvalidArgument, PermissionDenied, Unauthenticated → 즉시 reject
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

from google.api_core.exceptions import (
    InvalidArgument,
    NotFound,
    PermissionDenied,
    ResourceExhausted,
    ServiceUnavailable,
    Unauthenticated,
)

from .base import CompletionError, CompletionResult, LLMProvider, compute_hash

logger = logging.getLogger(__name__)

# =============================================================================
# Exception Mapping
# =============================================================================

FALLBACK_ERRORS: tuple[type[Exception], ...] = (
    NotFound,            # 모델명 오류/미지원
    ServiceUnavailable,  # 5xx
    ResourceExhausted,   # 429 쿼터/레이트리밋
)

REJECT_IMMEDIATELY: tuple[type[Exception], ...] = (
    InvalidArgument,     # 입력 오류
    PermissionDenied,    # 인증 오류
    Unauthenticated,     # API 키 오류
)


class GeminiProvider(LLMProvider):
    """
    Gemini Provider.

    Usage:
        provider = GeminiProvider(model="gemini-2.5-pro", fallback="gemini-2.5-flash")
        result = await provider.complete(prompt)
    """

    provider_name = "gemini"

    def __init__(
        self,
        model: str = "gemini-2.5-pro",
        fallback: str | None = "gemini-2.5-flash",
        api_key: str | None = None,
        max_tokens: int = 2000,
        temperature: float | None = 0.7,
    ):
        """
        Args:
            model: 기본 모델 ID (config에서 주입)
            fallback: Fallback 모델 (None이면 재시도 없이 실패)
            api_key: API 키 (환경변수 GOOGLE_API_KEY 사용 가능)
            max_tokens: 기본 최대 출력 토큰 수
            temperature: 기본 샘플링 온도

        Raises:
            CompletionError: API 키가 없을 때 (fail-fast)
        """
        self.model = model
        self.fallback = fallback
        self.api_key = api_key or os.environ.get("GOOGLE_API_KEY")

        if not self.api_key:
            raise CompletionError(
                "GOOGLE_KEY_MISSING",
                "Google API key is missing. Set GOOGLE_API_KEY.",
            )

        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client: Any = None

    def _get_client(self) -> Any:
        """Gemini 클라이언트 (lazy init)."""
        if self._client is None:
            import google.generativeai as genai

            genai.configure(api_key=self.api_key)
            self._client = genai
        return self._client

    async def complete(
        self,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResult:
        """
        일반 완성 API.

        Fallback 정책:
        - FALLBACK_ERRORS → fallback 모델로 1회 재시도
        - REJECT_IMMEDIATELY → 즉시 에러
        """
        params: dict[str, Any] = {"max_output_tokens": max_tokens or self.max_tokens}
        effective_temperature = temperature if temperature is not None else self.temperature
        if effective_temperature is not None:
            params["temperature"] = effective_temperature

        try:
            text = await self._call_api(self.model, prompt, params)
            return self._build_result(text, prompt, params, self.model, fallback=False)

        except FALLBACK_ERRORS as e:
            logger.warning(
                f"Primary model ({self.model}) failed with fallback error: {e}. "
                f"Attempting fallback..."
            )

            if self.fallback is None:
                raise CompletionError(
                    "NO_FALLBACK",
                    self._get_user_friendly_error_message(e),
                    model=self.model,
                ) from e

            try:
                logger.info(f"Trying fallback model: {self.fallback}")
                text = await self._call_api(self.fallback, prompt, params)
                logger.info("Fallback model succeeded")
                return self._build_result(text, prompt, params, self.fallback, fallback=True)
            except Exception as fallback_error:
                logger.error(f"Fallback model also failed: {fallback_error}")
                raise CompletionError(
                    "FALLBACK_FAILED",
                    f"{self._get_user_friendly_error_message(fallback_error)} "
                    f"Both the primary and the fallback model failed.",
                    primary_model=self.model,
                    fallback_model=self.fallback,
                ) from fallback_error

        except REJECT_IMMEDIATELY as e:
            logger.error(f"Authentication or input error: {e}", exc_info=True)
            raise CompletionError(
                "AUTH_OR_INPUT_ERROR",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        except Exception as e:
            logger.error(f"Gemini completion failed with unexpected error: {e}", exc_info=True)
            raise CompletionError(
                "COMPLETION_FAILED",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

    def _build_result(
        self,
        text: str,
        prompt: str,
        params: dict[str, Any],
        model_used: str,
        fallback: bool,
    ) -> CompletionResult:
        return CompletionResult(
            text=text,
            provider=self.provider_name,
            model_requested=self.model,
            model_used=model_used,
            fallback_triggered=fallback,
            model_params=params,
            prompt_hash=compute_hash(prompt),
            completed_at=datetime.now(UTC).isoformat(),
        )

    async def _call_api(self, model: str, prompt: str, params: dict[str, Any]) -> str:
        """실제 Gemini API 호출. 예외는 상위로 전파 (fallback 정책 적용)."""
        genai = self._get_client()
        model_instance = genai.GenerativeModel(model)
        response = await model_instance.generate_content_async(
            prompt,
            generation_config=params,
        )
        return response.text if response.text else ""

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """사용자 친화적인 에러 메시지 생성."""
        if isinstance(error, Unauthenticated):
            return "Google API authentication failed. Check GOOGLE_API_KEY."
        elif isinstance(error, PermissionDenied):
            return "The Google API key lacks permission for this model."
        elif isinstance(error, ResourceExhausted):
            return "Google API quota exceeded. Try again shortly."
        elif isinstance(error, ServiceUnavailable):
            return "The Google API is temporarily unavailable. Try again shortly."
        elif isinstance(error, InvalidArgument):
            return "Google API rejected the request. Check the prompt size."

        error_str = str(error)
        lowered = error_str.lower()
        if "connection" in lowered:
            return "Network error while calling the Google API."
        elif "timeout" in lowered:
            return "The Google API request timed out. Try again."

        return f"Gemini API call failed: {error_str}"
