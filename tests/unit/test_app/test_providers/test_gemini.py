"""
test_gemini.py - Gemini Provider 테스트

Fallback 예외 정책 검증:
- FALLBACK_ERRORS: NotFound, ServiceUnavailable, ResourceExhausted → fallback
- REJECT_IMMEDIATELY: InvalidArgument, PermissionDenied, Unauthenticated → 즉시 reject
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from google.api_core.exceptions import (
    InvalidArgument,
    NotFound,
    PermissionDenied,
    ResourceExhausted,
    ServiceUnavailable,
    Unauthenticated,
)

from src.app.providers.base import CompletionError
from src.app.providers.gemini import (
    FALLBACK_ERRORS,
    REJECT_IMMEDIATELY,
    GeminiProvider,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def provider():
    """기본 Gemini provider."""
    return GeminiProvider(
        model="gemini-2.5-pro",
        fallback="gemini-2.5-flash",
        api_key="test-api-key",
    )


@pytest.fixture
def provider_no_fallback():
    """Fallback 없는 provider."""
    return GeminiProvider(
        model="gemini-2.5-pro",
        fallback=None,
        api_key="test-api-key",
    )


def make_genai(*outcomes) -> MagicMock:
    """
    genai 모듈 mock.

    outcomes: 호출 순서대로 응답 텍스트(str) 또는 예외
    """
    models = []
    for outcome in outcomes:
        model = MagicMock()
        if isinstance(outcome, Exception):
            model.generate_content_async = AsyncMock(side_effect=outcome)
        else:
            response = MagicMock()
            response.text = outcome
            model.generate_content_async = AsyncMock(return_value=response)
        models.append(model)

    genai = MagicMock()
    genai.GenerativeModel.side_effect = models
    genai.models = models
    return genai


# =============================================================================
# 초기화 테스트
# =============================================================================


class TestGeminiProviderInit:
    """GeminiProvider 초기화 테스트."""

    def test_init_with_defaults(self):
        """기본값으로 초기화."""
        provider = GeminiProvider(api_key="my-api-key")

        assert provider.model == "gemini-2.5-pro"
        assert provider.fallback == "gemini-2.5-flash"

    def test_init_uses_env_api_key(self, monkeypatch):
        """환경변수에서 API 키 로드."""
        monkeypatch.setenv("GOOGLE_API_KEY", "env-api-key")

        provider = GeminiProvider()

        assert provider.api_key == "env-api-key"

    def test_missing_key_fails_fast(self):
        with pytest.raises(CompletionError) as exc_info:
            GeminiProvider()

        assert exc_info.value.code == "GOOGLE_KEY_MISSING"

    def test_client_lazy_init(self, provider):
        assert provider._client is None


# =============================================================================
# Exception Mapping 테스트
# =============================================================================


class TestExceptionMapping:
    """예외 매핑 테스트."""

    def test_fallback_errors_include_correct_exceptions(self):
        assert NotFound in FALLBACK_ERRORS
        assert ServiceUnavailable in FALLBACK_ERRORS
        assert ResourceExhausted in FALLBACK_ERRORS

    def test_reject_immediately_include_correct_exceptions(self):
        assert InvalidArgument in REJECT_IMMEDIATELY
        assert PermissionDenied in REJECT_IMMEDIATELY
        assert Unauthenticated in REJECT_IMMEDIATELY

    def test_no_overlap(self):
        assert not set(FALLBACK_ERRORS) & set(REJECT_IMMEDIATELY)


# =============================================================================
# complete 테스트 (Mock)
# =============================================================================


class TestComplete:
    """complete 메서드 테스트."""

    @pytest.mark.asyncio
    async def test_successful_completion(self, provider):
        provider._client = make_genai("Japan market snippet")

        result = await provider.complete("prompt")

        assert result.text == "Japan market snippet"
        assert result.provider == "gemini"
        assert result.model_requested == "gemini-2.5-pro"
        assert result.model_used == "gemini-2.5-pro"
        assert result.fallback_triggered is False
        provider._client.GenerativeModel.assert_called_once_with("gemini-2.5-pro")

    @pytest.mark.asyncio
    async def test_generation_config(self, provider):
        """max_output_tokens / temperature 전달."""
        provider._client = make_genai("ok")

        result = await provider.complete("prompt", temperature=0.5, max_tokens=300)

        model = provider._client.models[0]
        call_kwargs = model.generate_content_async.call_args.kwargs
        assert call_kwargs["generation_config"] == {"max_output_tokens": 300, "temperature": 0.5}
        assert result.model_params == call_kwargs["generation_config"]

    @pytest.mark.asyncio
    async def test_empty_text_becomes_empty_string(self, provider):
        provider._client = make_genai(None)

        result = await provider.complete("prompt")

        assert result.text == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            NotFound("model missing"),
            ServiceUnavailable("down"),
            ResourceExhausted("quota"),
        ],
    )
    async def test_fallback_on_fallback_errors(self, provider, error):
        """FALLBACK_ERRORS → fallback 모델 사용."""
        provider._client = make_genai(error, "from fallback")

        result = await provider.complete("prompt")

        assert result.text == "from fallback"
        assert result.model_requested == "gemini-2.5-pro"
        assert result.model_used == "gemini-2.5-flash"
        assert result.fallback_triggered is True

    @pytest.mark.asyncio
    async def test_no_fallback_configured(self, provider_no_fallback):
        provider_no_fallback._client = make_genai(ServiceUnavailable("down"))

        with pytest.raises(CompletionError) as exc_info:
            await provider_no_fallback.complete("prompt")

        assert exc_info.value.code == "NO_FALLBACK"

    @pytest.mark.asyncio
    async def test_fallback_also_fails(self, provider):
        provider._client = make_genai(ServiceUnavailable("down"), ResourceExhausted("quota"))

        with pytest.raises(CompletionError) as exc_info:
            await provider.complete("prompt")

        assert exc_info.value.code == "FALLBACK_FAILED"
        assert exc_info.value.context["fallback_model"] == "gemini-2.5-flash"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            InvalidArgument("bad input"),
            PermissionDenied("denied"),
            Unauthenticated("bad key"),
        ],
    )
    async def test_reject_immediately(self, provider, error):
        """REJECT_IMMEDIATELY → fallback 없이 실패."""
        provider._client = make_genai(error, "never used")

        with pytest.raises(CompletionError) as exc_info:
            await provider.complete("prompt")

        assert exc_info.value.code == "AUTH_OR_INPUT_ERROR"
        assert provider._client.GenerativeModel.call_count == 1

    @pytest.mark.asyncio
    async def test_unexpected_error(self, provider):
        provider._client = make_genai(RuntimeError("connection reset"))

        with pytest.raises(CompletionError) as exc_info:
            await provider.complete("prompt")

        assert exc_info.value.code == "COMPLETION_FAILED"
        assert "Network error" in exc_info.value.message
