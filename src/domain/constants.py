"""
Domain Constants: 스니펫 빌더 전역 상수.

참조 문법, 계층 이름 규칙, 저장소 경로 등 시스템 전반에서 사용되는 값들.
"""

# =============================================================================
# Reference Syntax (참조 문법)
# =============================================================================
# 템플릿 안의 참조: {{ snippet_name }}
# - 식별자 앞뒤 공백은 무시
# - 대소문자 구분, 스니펫 name과 그대로 비교

REFERENCE_OPEN = "{{"
REFERENCE_CLOSE = "}}"

# 재귀 렌더링 최대 깊이 (순환 참조 안전장치)
DEFAULT_MAX_DEPTH = 5

# 미리보기에서 스니펫 내용 최대 길이
PREVIEW_CONTENT_MAX_LENGTH = 50

# =============================================================================
# Hierarchy (계층 이름 규칙)
# =============================================================================
# 예: geo_asia_japan → [geo, asia, japan]

HIERARCHY_SEPARATOR = "_"
HIERARCHY_DISPLAY_SEPARATOR = " > "
UNCATEGORIZED_GROUP = "uncategorized"

DEFAULT_SIMILAR_LIMIT = 5

# 유사도 점수 가중치
SIMILARITY_PREFIX_WEIGHT = 100  # 공유 prefix 비율
SIMILARITY_DEPTH_WEIGHT = 20    # 깊이 유사 보너스
SIMILARITY_SIBLING_BONUS = 30   # 같은 부모 아래 형제

# =============================================================================
# Render/Dependency Messages (렌더 결과 에러 메시지)
# =============================================================================
# 예외가 아닌 데이터로 반환되는 메시지들

MSG_MISMATCHED_BRACKETS = "Mismatched brackets: ensure all {{ are closed with }}"
MSG_EMPTY_REFERENCES = "Empty snippet references found"
MSG_NESTED_BRACKETS = "Nested brackets are not supported"
MSG_MAX_DEPTH = "Maximum nesting depth reached"
MSG_NOT_FOUND = "Snippet not found: {name}"
MSG_LOAD_ERROR = "Error loading snippet {name}: {detail}"
MSG_CIRCULAR = "Circular dependency detected: {name}"

# =============================================================================
# Store Directory Structure (저장소 구조)
# =============================================================================
# data/
# ├── snippets/<name>.json
# ├── prompts/<prompt_id>.json
# ├── sessions/<session_id>.json
# └── .locks/

STORE_SNIPPETS_DIR = "snippets"
STORE_PROMPTS_DIR = "prompts"
STORE_SESSIONS_DIR = "sessions"
STORE_LOCKS_DIR = ".locks"

SNIPPET_NAME_MAX_LENGTH = 100

# =============================================================================
# ID Prefixes
# =============================================================================

PROMPT_ID_PREFIX = "PROMPT-"
SESSION_ID_PREFIX = "GEN-"

# =============================================================================
# Generation (다중 LLM 생성)
# =============================================================================

GENERATION_FAILED_CONTENT = "Failed to generate snippet"
GENERATION_ERROR_PREFIX = "Error generating with"

# 기본 모델 구성 (default.yaml에서 오버라이드 가능)
DEFAULT_GENERATORS = [
    {"name": "Claude", "provider": "anthropic", "model": "claude-opus-4-5-20251101"},
    {"name": "Gemini", "provider": "gemini", "model": "gemini-2.5-pro"},
    {"name": "Grok", "provider": "openrouter", "model": "x-ai/grok-4"},
]
DEFAULT_COMBINER = {"name": "Combiner", "provider": "anthropic", "model": "claude-opus-4-5-20251101"}

DOCX_MIME_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

# =============================================================================
# Recommendations / Feedback
# =============================================================================

DEFAULT_TAXONOMY_FILE = "taxonomy.md"
DEFAULT_BALANCED_LIMIT = 8

# 추천 결과가 비었을 때 마지막 후보
FALLBACK_RECOMMENDATION = "core_structure_chapter"

DEFAULT_RECOMMENDER = {
    "provider": "openrouter",
    "model": "moonshotai/moonshot-v1-8k",
    "temperature": 0.7,
    "max_tokens": 1000,
}
DEFAULT_FEEDBACK_REVIEWER = {
    "provider": "openrouter",
    "model": "google/gemini-2.5-pro",
    "temperature": 0.3,
    "max_tokens": 1000,
}

# 피드백 응답 형식: 좋은 점 2개, 개선점 3개
FEEDBACK_LIKES_COUNT = 2
FEEDBACK_IMPROVEMENTS_COUNT = 3
