"""
Data schemas for the snippet builder.

규칙:
- 스니펫 식별은 name 기준 (id는 저장소 메타데이터)
- 렌더/유사도 결과는 매 요청마다 새로 계산, 저장하지 않음
- to_dict()는 JSON 응답/파일 저장 공용
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# =============================================================================
# Snippet
# =============================================================================

@dataclass
class Snippet:
    """
    계층형 이름을 가진 재사용 텍스트 단위.

    name은 밑줄로 구분된 경로 (geo_asia_japan → geo > asia > japan).
    content 안에 {{other_name}} 참조를 포함할 수 있음.
    """
    name: str
    content: str
    description: str | None = None

    # 저장소 메타데이터 (코어 알고리즘은 사용하지 않음)
    id: str | None = None
    client_id: str | None = None
    is_general: bool = True
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "description": self.description,
            "client_id": self.client_id,
            "is_general": self.is_general,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snippet":
        return cls(
            name=data["name"],
            content=data.get("content", ""),
            description=data.get("description"),
            id=data.get("id"),
            client_id=data.get("client_id"),
            is_general=data.get("is_general", True),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


# =============================================================================
# Renderer Results
# =============================================================================

@dataclass
class ValidationResult:
    """템플릿 문법 검증 결과."""
    valid: bool
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": self.errors}


@dataclass
class RenderResult:
    """
    템플릿 렌더 결과.

    best-effort: errors가 있어도 부분 렌더 결과는 유효.
    """
    rendered: str
    used_snippets: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rendered": self.rendered,
            "used_snippets": self.used_snippets,
            "errors": self.errors,
        }


@dataclass
class DependencyResult:
    """의존성 그래프 탐색 결과."""
    dependencies: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"dependencies": self.dependencies, "errors": self.errors}


# =============================================================================
# Similarity
# =============================================================================

@dataclass
class SimilarityScore:
    """유사 스니펫 추천 항목 (저장하지 않음)."""
    snippet: Snippet
    score: int
    shared_path: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "snippet": self.snippet.to_dict(),
            "score": self.score,
            "shared_path": self.shared_path,
        }


# =============================================================================
# Composed Prompt
# =============================================================================

@dataclass
class ComposedPrompt:
    """스니펫 참조로 구성해 저장한 프롬프트."""
    id: str
    name: str
    template: str
    rendered_content: str | None = None
    used_snippets: list[str] = field(default_factory=list)
    client_id: str | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "template": self.template,
            "rendered_content": self.rendered_content,
            "used_snippets": self.used_snippets,
            "client_id": self.client_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComposedPrompt":
        return cls(
            id=data["id"],
            name=data["name"],
            template=data["template"],
            rendered_content=data.get("rendered_content"),
            used_snippets=list(data.get("used_snippets", [])),
            client_id=data.get("client_id"),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


# =============================================================================
# Generation Session
# =============================================================================

class GenerationStatus(str, Enum):
    """생성 세션 상태."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class GenerationRequest:
    """다중 LLM 스니펫 생성 요청."""
    snippet_name: str
    context: str
    similar_snippets: list[Snippet] = field(default_factory=list)
    rubric_content: str | None = None


@dataclass
class GenerationSession:
    """
    생성 세션 기록.

    요청 → 모델별 응답 → 최종 결합 결과까지 한 번의 생성 과정을 추적.
    """
    session_id: str
    snippet_name: str
    user_context: str
    started_at: str  # ISO 8601
    status: GenerationStatus = GenerationStatus.IN_PROGRESS
    similar_snippets: list[str] = field(default_factory=list)
    client_id: str | None = None
    llm_responses: dict[str, str] = field(default_factory=dict)
    final_combined: str | None = None
    finished_at: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "snippet_name": self.snippet_name,
            "user_context": self.user_context,
            "started_at": self.started_at,
            "status": self.status.value,
            "similar_snippets": self.similar_snippets,
            "client_id": self.client_id,
            "llm_responses": self.llm_responses,
            "final_combined": self.final_combined,
            "finished_at": self.finished_at,
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationSession":
        return cls(
            session_id=data["session_id"],
            snippet_name=data["snippet_name"],
            user_context=data.get("user_context", ""),
            started_at=data.get("started_at", ""),
            status=GenerationStatus(data.get("status", "in_progress")),
            similar_snippets=list(data.get("similar_snippets", [])),
            client_id=data.get("client_id"),
            llm_responses=dict(data.get("llm_responses", {})),
            final_combined=data.get("final_combined"),
            finished_at=data.get("finished_at"),
            error_message=data.get("error_message"),
        )
