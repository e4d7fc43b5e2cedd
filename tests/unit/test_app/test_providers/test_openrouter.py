"""
test_openrouter.py - OpenRouter Provider 테스트

httpx.MockTransport로 HTTP 레이어만 대체:
- 요청 헤더/페이로드
- 429/5xx 재시도, 4xx 즉시 실패
- 빈 choices, null content → EMPTY_RESPONSE
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from src.app.providers import openrouter
from src.app.providers.base import CompletionError
from src.app.providers.openrouter import OPENROUTER_API_URL, OpenRouterProvider

RealAsyncClient = httpx.AsyncClient


def make_completion(content: str = "Grok says hi", model: str = "x-ai/grok-4") -> dict:
    return {
        "id": "gen-test-123",
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}}],
    }


@pytest.fixture
def provider():
    return OpenRouterProvider(api_key="test-api-key")


@pytest.fixture
def mock_http(monkeypatch):
    """
    응답 시퀀스를 등록하는 MockTransport.

    Returns:
        (responses 리스트, 수집된 requests 리스트)
    """
    responses: list[httpx.Response] = []
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return responses.pop(0)

    def client_factory(**kwargs):
        return RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(openrouter.httpx, "AsyncClient", client_factory)
    return responses, requests


@pytest.fixture
def no_sleep():
    """재시도 대기 생략."""
    with patch("src.utils.retry.asyncio.sleep", new=AsyncMock()) as mock_sleep:
        yield mock_sleep


class TestOpenRouterProviderInit:
    """초기화 테스트."""

    def test_defaults(self, provider):
        assert provider.model == "x-ai/grok-4"
        assert provider.api_url == OPENROUTER_API_URL

    def test_env_api_key(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "env-key")

        assert OpenRouterProvider().api_key == "env-key"

    def test_missing_key_fails_fast(self):
        with pytest.raises(CompletionError) as exc_info:
            OpenRouterProvider()

        assert exc_info.value.code == "OPENROUTER_KEY_MISSING"
        assert exc_info.value.message == "OPENROUTER_API_KEY is not configured"


class TestComplete:
    """complete 메서드 테스트."""

    @pytest.mark.asyncio
    async def test_successful_completion(self, provider, mock_http):
        responses, requests = mock_http
        responses.append(httpx.Response(200, json=make_completion()))

        result = await provider.complete("Write a snippet")

        assert result.text == "Grok says hi"
        assert result.provider == "openrouter"
        assert result.model_requested == "x-ai/grok-4"
        assert result.model_used == "x-ai/grok-4"
        assert result.request_id == "gen-test-123"
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_request_shape(self, provider, mock_http, monkeypatch):
        """헤더 + OpenAI 호환 페이로드."""
        monkeypatch.setenv("APP_URL", "https://builder.example.com")
        responses, requests = mock_http
        responses.append(httpx.Response(200, json=make_completion()))

        await provider.complete("Write a snippet", temperature=0.5, max_tokens=321)

        request = requests[0]
        assert str(request.url) == OPENROUTER_API_URL
        assert request.headers["Authorization"] == "Bearer test-api-key"
        assert request.headers["HTTP-Referer"] == "https://builder.example.com"
        assert request.headers["X-Title"] == "Prompt Builder"
        body = json.loads(request.content)
        assert body == {
            "model": "x-ai/grok-4",
            "messages": [{"role": "user", "content": "Write a snippet"}],
            "max_tokens": 321,
            "temperature": 0.5,
        }

    @pytest.mark.asyncio
    async def test_model_used_from_response(self, provider, mock_http):
        responses, _ = mock_http
        responses.append(httpx.Response(200, json=make_completion(model="x-ai/grok-4-0709")))

        result = await provider.complete("prompt")

        assert result.model_used == "x-ai/grok-4-0709"

    @pytest.mark.asyncio
    async def test_retries_on_rate_limit(self, provider, mock_http, no_sleep):
        """429 → 재시도 후 성공."""
        responses, requests = mock_http
        responses.extend([
            httpx.Response(429, text="slow down"),
            httpx.Response(503, text="unavailable"),
            httpx.Response(200, json=make_completion()),
        ])

        result = await provider.complete("prompt")

        assert result.text == "Grok says hi"
        assert len(requests) == 3
        assert no_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, provider, mock_http, no_sleep):
        responses, requests = mock_http
        responses.extend([httpx.Response(500, text="boom") for _ in range(3)])

        with pytest.raises(CompletionError) as exc_info:
            await provider.complete("prompt")

        assert exc_info.value.code == "COMPLETION_FAILED"
        assert len(requests) == 3

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, provider, mock_http, no_sleep):
        """4xx (429 제외) → 즉시 실패."""
        responses, requests = mock_http
        responses.append(httpx.Response(401, text="invalid key"))

        with pytest.raises(CompletionError) as exc_info:
            await provider.complete("prompt")

        assert exc_info.value.code == "OPENROUTER_HTTP_ERROR"
        assert exc_info.value.context["status_code"] == 401
        assert "401 - invalid key" in exc_info.value.message
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_empty_choices(self, provider, mock_http):
        responses, _ = mock_http
        responses.append(httpx.Response(200, json={"id": "gen-x", "choices": []}))

        with pytest.raises(CompletionError) as exc_info:
            await provider.complete("prompt")

        assert exc_info.value.code == "EMPTY_RESPONSE"

    @pytest.mark.asyncio
    async def test_null_content(self, provider, mock_http):
        """content-filter 응답 (content=null) → EMPTY_RESPONSE."""
        responses, _ = mock_http
        responses.append(
            httpx.Response(
                200,
                json={
                    "id": "gen-x",
                    "choices": [
                        {
                            "message": {"role": "assistant", "content": None},
                            "finish_reason": "content_filter",
                        }
                    ],
                },
            )
        )

        with pytest.raises(CompletionError) as exc_info:
            await provider.complete("prompt")

        assert exc_info.value.code == "EMPTY_RESPONSE"
        assert exc_info.value.context["finish_reason"] == "content_filter"
