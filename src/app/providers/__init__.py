"""
AI Provider Abstraction.

모델 교체 가능하게 설계.
모델명은 config만 SSOT.
"""

from typing import Any

from .anthropic import ClaudeProvider
from .base import (
    CompletionError,
    CompletionResult,
    LLMProvider,
    ProviderError,
    extract_json_object,
)
from .gemini import GeminiProvider
from .openrouter import OpenRouterProvider

PROVIDER_CLASSES: dict[str, type[LLMProvider]] = {
    "anthropic": ClaudeProvider,
    "gemini": GeminiProvider,
    "openrouter": OpenRouterProvider,
}


def build_provider(entry: dict[str, Any], **defaults: Any) -> LLMProvider:
    """
    config 항목으로 Provider 생성.

    Args:
        entry: {"provider": "anthropic", "model": "...", ...}
        **defaults: temperature, max_tokens 등 공통 기본값

    Returns:
        LLMProvider 인스턴스

    Raises:
        CompletionError: 알 수 없는 provider, API 키 누락
    """
    provider = entry.get("provider", "")
    provider_class = PROVIDER_CLASSES.get(provider)
    if provider_class is None:
        raise CompletionError(
            "UNKNOWN_PROVIDER",
            f"Unknown provider: {provider}",
            provider=provider,
        )

    kwargs: dict[str, Any] = {k: v for k, v in defaults.items() if v is not None}
    if entry.get("model"):
        kwargs["model"] = entry["model"]
    if provider == "gemini" and "fallback" in entry:
        kwargs["fallback"] = entry["fallback"]

    return provider_class(**kwargs)


__all__ = [
    "LLMProvider",
    "CompletionResult",
    "ProviderError",
    "CompletionError",
    "ClaudeProvider",
    "GeminiProvider",
    "OpenRouterProvider",
    "PROVIDER_CLASSES",
    "build_provider",
    "extract_json_object",
]
