"""
ID 생성: snippet_id, prompt_id, session_id

규칙:
- snippet_id는 name에서 결정론적으로 생성 (코어는 name으로만 식별)
- prompt_id, session_id는 매번 새로 발급
"""

import hashlib
import uuid
from datetime import UTC, datetime

from src.domain.constants import PROMPT_ID_PREFIX, SESSION_ID_PREFIX


def generate_snippet_id(name: str) -> str:
    """
    Snippet ID 생성.

    결정론적: 동일 name → 동일 snippet_id
    포맷: SNIP-{name}-{hash[:8]}

    Args:
        name: 스니펫 이름

    Returns:
        snippet_id 문자열
    """
    hash_value = hashlib.sha256(name.encode()).hexdigest()[:8]
    return f"SNIP-{_sanitize_for_id(name)}-{hash_value}"


def _generate_unique_id(prefix: str) -> str:
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]
    return f"{prefix}{timestamp}-{unique}"


def generate_prompt_id() -> str:
    """
    Composed prompt ID 생성.

    포맷: PROMPT-{timestamp}-{uuid[:8]}
    """
    return _generate_unique_id(PROMPT_ID_PREFIX)


def generate_session_id() -> str:
    """
    Generation session ID 생성.

    포맷: GEN-{timestamp}-{uuid[:8]}
    """
    return _generate_unique_id(SESSION_ID_PREFIX)


def _sanitize_for_id(value: str) -> str:
    """
    ID에 사용할 수 있도록 문자열 정리.

    - 공백/하이픈 → 밑줄
    - 특수문자/비ASCII 제거
    - 최대 20자
    """
    sanitized = ""
    for c in value:
        if c.isascii() and c.isalnum():
            sanitized += c
        elif c in " _-":
            sanitized += "_"

    while "__" in sanitized:
        sanitized = sanitized.replace("__", "_")

    sanitized = sanitized.strip("_")

    return sanitized[:20] if sanitized else "UNKNOWN"
