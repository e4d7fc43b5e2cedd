"""
Error definitions for the snippet builder.

규칙:
- 렌더/검증/순환/누락은 예외가 아니라 데이터 (errors 리스트)
- 저장소/업로드 등 경계 밖 실패만 SnippetError로 명시적 실패
"""

from typing import Any


class SnippetError(Exception):
    """
    스니펫 저장소/입력 처리 에러.

    호출 계층(route)에서 HTTP 상태로 변환:
    - SNIPPET_NOT_FOUND → 404
    - SNIPPET_EXISTS → 409
    - 그 외 → 400

    Usage:
        raise SnippetError("SNIPPET_NOT_FOUND", "Snippet not found", name="geo_asia")
    """

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Snippet Store ===
    INVALID_SNIPPET_NAME = "INVALID_SNIPPET_NAME"
    SNIPPET_EXISTS = "SNIPPET_EXISTS"
    SNIPPET_NOT_FOUND = "SNIPPET_NOT_FOUND"
    SNIPPET_LOCK_TIMEOUT = "SNIPPET_LOCK_TIMEOUT"
    SNIPPET_CORRUPT = "SNIPPET_CORRUPT"

    # === Composed Prompts ===
    PROMPT_NOT_FOUND = "PROMPT_NOT_FOUND"
    PROMPT_CORRUPT = "PROMPT_CORRUPT"

    # === Generation ===
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_CORRUPT = "SESSION_CORRUPT"

    # === Recommendations ===
    TAXONOMY_NOT_FOUND = "TAXONOMY_NOT_FOUND"

    # === Rubric Upload ===
    RUBRIC_PARSE_FAILED = "RUBRIC_PARSE_FAILED"
    RUBRIC_UNSUPPORTED_TYPE = "RUBRIC_UNSUPPORTED_TYPE"
