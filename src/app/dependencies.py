"""
Route 공용 의존성: app.state 기반 저장소 접근 + 에러 → HTTP 변환.
"""

from pathlib import Path

from fastapi import HTTPException, Request

from src.app.providers import CompletionError
from src.app.services.feedback import FeedbackService
from src.app.services.generate import GenerationService
from src.app.services.recommend import RecommendationService
from src.core.store import ComposedPromptStore, SnippetStore
from src.domain.errors import ErrorCodes, SnippetError

# 에러 코드 → HTTP 상태 (그 외 400)
_STATUS_BY_CODE = {
    ErrorCodes.SNIPPET_NOT_FOUND: 404,
    ErrorCodes.PROMPT_NOT_FOUND: 404,
    ErrorCodes.SESSION_NOT_FOUND: 404,
    ErrorCodes.TAXONOMY_NOT_FOUND: 404,
    ErrorCodes.SNIPPET_EXISTS: 409,
    ErrorCodes.SNIPPET_LOCK_TIMEOUT: 503,
    ErrorCodes.SNIPPET_CORRUPT: 500,
    ErrorCodes.PROMPT_CORRUPT: 500,
    ErrorCodes.SESSION_CORRUPT: 500,
}

# 서버 설정 문제 (키 누락, 잘못된 provider) → 500, 그 외 LLM 호출 실패 → 502
_CONFIG_ERROR_CODES = frozenset({
    "ANTHROPIC_KEY_MISSING",
    "GOOGLE_KEY_MISSING",
    "OPENROUTER_KEY_MISSING",
    "UNKNOWN_PROVIDER",
})


def get_config(request: Request) -> dict:
    return request.app.state.config


def get_data_root(request: Request) -> Path:
    return request.app.state.data_root


def get_snippet_store(request: Request) -> SnippetStore:
    return SnippetStore(get_data_root(request))


def get_prompt_store(request: Request) -> ComposedPromptStore:
    return ComposedPromptStore(get_data_root(request))


def get_taxonomy_path(request: Request) -> Path:
    return request.app.state.taxonomy_path


def to_http_exception(error: SnippetError) -> HTTPException:
    """SnippetError → HTTPException(detail={code, message})."""
    status_code = _STATUS_BY_CODE.get(error.code, 400)
    return HTTPException(
        status_code=status_code,
        detail={"code": error.code, "message": error.message},
    )


def completion_http_exception(error: CompletionError, message: str) -> HTTPException:
    """CompletionError → HTTPException (원인은 detail.error에 기록)."""
    status_code = 500 if error.code in _CONFIG_ERROR_CODES else 502
    return HTTPException(
        status_code=status_code,
        detail={"code": error.code, "message": message, "error": error.message},
    )


def get_generation_service(request: Request) -> GenerationService:
    return GenerationService(get_config(request), data_root=get_data_root(request))


def get_recommendation_service(request: Request) -> RecommendationService:
    return RecommendationService(get_config(request))


def get_feedback_service(request: Request) -> FeedbackService:
    return FeedbackService(get_config(request))
