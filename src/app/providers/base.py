"""
LLM Provider 추상 인터페이스.

- Provider 추상화로 모델 교체 가능 (모델명은 config만 SSOT)
- model_requested + model_used 필수 기록

재현성 메타데이터:
- provider, model_params, request_id, prompt_hash 기록
- "조건부 재현성": 동일 파라미터로 유사 결과 기대 가능
"""

import hashlib
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


def compute_hash(content: str) -> str:
    """SHA-256 해시 계산."""
    return f"sha256:{hashlib.sha256(content.encode()).hexdigest()[:16]}"


def extract_json_object(text: str) -> dict[str, Any]:
    """
    LLM 응답에서 JSON 객체 추출.

    ```json ... ``` 블록 우선, 없으면 첫 "{" ~ 마지막 "}".

    Raises:
        ValueError: JSON 객체가 없거나 파싱 실패 (JSONDecodeError 포함)
    """
    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        json_str = text[start:end if end != -1 else None].strip()
    elif "{" in text:
        json_str = text[text.find("{"):text.rfind("}") + 1]
    else:
        raise ValueError("No JSON found in response")

    data = json.loads(json_str)
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return data


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class CompletionResult:
    """
    LLM 완성 결과.

    필수 키:
    - model_requested: config에 설정된 모델
    - model_used: 실제 호출된 모델 (fallback 시 다를 수 있음)
    - fallback_triggered: fallback 발생 여부
    """
    text: str
    provider: str

    # 모델 추적
    model_requested: str | None = None
    model_used: str | None = None
    fallback_triggered: bool = False

    # 호출 파라미터 (재현성에 영향)
    model_params: dict[str, Any] = field(default_factory=dict)
    request_id: str | None = None
    prompt_hash: str | None = None
    completed_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {
            "text": self.text,
            "provider": self.provider,
            "model_requested": self.model_requested,
            "model_used": self.model_used,
            "fallback_triggered": self.fallback_triggered,
            "model_params": self.model_params,
            "request_id": self.request_id,
            "prompt_hash": self.prompt_hash,
            "completed_at": self.completed_at,
        }
        # None 값 제거 (용량 절약)
        return {k: v for k, v in result.items() if v is not None}


# =============================================================================
# Provider Exceptions
# =============================================================================

class ProviderError(Exception):
    """Provider 관련 에러."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")


class CompletionError(ProviderError):
    """LLM 호출 관련 에러."""
    pass


# =============================================================================
# Abstract Provider
# =============================================================================

class LLMProvider(ABC):
    """
    LLM Provider 추상 인터페이스.

    역할: 프롬프트 → 텍스트 (스니펫 초안 생성, 결합)
    """

    # 제공자 식별자 (anthropic, gemini, openrouter)
    provider_name: str = ""

    model: str

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResult:
        """
        일반 완성 API.

        Args:
            prompt: 프롬프트
            temperature: 샘플링 온도 (None이면 provider 기본값)
            max_tokens: 최대 토큰 수 (None이면 provider 기본값)

        Returns:
            CompletionResult

        Raises:
            CompletionError: 재시도/fallback 후에도 실패
        """
        ...
