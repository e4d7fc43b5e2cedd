"""
템플릿 렌더러: {{name}} 참조 → 스니펫 내용으로 재귀 치환.

규칙:
- 참조 문법: {{ identifier }} (앞뒤 공백 무시, 대소문자 구분)
- best-effort: 누락/조회 실패/깊이 초과는 errors로 수집, 예외로 중단하지 않음
- 깊이 제한(max_depth)이 유일한 기본 안전장치
  (순환 그래프는 max_depth만큼 돌고 멈춤 → detect_cycles로 조기 감지 가능)
- 의존성 탐색(get_snippet_dependencies)은 visited 집합으로 순환을 즉시 감지
- 저장소 조회는 lookup으로 주입 (전역 클라이언트 없음)
"""

import inspect
import logging
import re
from collections.abc import Awaitable, Callable, Iterable

from src.domain.constants import (
    DEFAULT_MAX_DEPTH,
    MSG_CIRCULAR,
    MSG_EMPTY_REFERENCES,
    MSG_LOAD_ERROR,
    MSG_MAX_DEPTH,
    MSG_MISMATCHED_BRACKETS,
    MSG_NESTED_BRACKETS,
    MSG_NOT_FOUND,
    PREVIEW_CONTENT_MAX_LENGTH,
    REFERENCE_CLOSE,
    REFERENCE_OPEN,
)
from src.domain.schemas import (
    DependencyResult,
    RenderResult,
    Snippet,
    ValidationResult,
)

logger = logging.getLogger(__name__)

# 스니펫 조회 함수: name → Snippet | None (동기/비동기 모두 허용)
# None = 존재하지 않음, 예외 = 조회 실패
SnippetLookup = Callable[[str], Awaitable[Snippet | None] | Snippet | None]

# =============================================================================
# Patterns
# =============================================================================

REFERENCE_PATTERN = re.compile(r"\{\{([^}]+)\}\}")
EMPTY_REFERENCE_PATTERN = re.compile(r"\{\{\s*\}\}")
NESTED_REFERENCE_PATTERN = re.compile(r"\{\{[^}]*\{\{")


def _reference_pattern(name: str) -> re.Pattern[str]:
    """특정 스니펫에 대한 참조 패턴 ({{ name }}, 공백 허용)."""
    return re.compile(r"\{\{\s*" + re.escape(name) + r"\s*\}\}")


def _dedupe(items: Iterable[str]) -> list[str]:
    """첫 등장 순서를 유지한 중복 제거."""
    return list(dict.fromkeys(items))


async def _lookup(lookup: SnippetLookup, name: str) -> Snippet | None:
    result = lookup(name)
    if inspect.isawaitable(result):
        return await result
    return result


# =============================================================================
# Validation / Extraction
# =============================================================================

def extract_snippet_references(template: str) -> list[str]:
    """
    템플릿에서 참조된 스니펫 이름 추출.

    예: "Hello {{world}} and {{ universe }}" → ["world", "universe"]

    Args:
        template: 템플릿 문자열

    Returns:
        공백 제거 + 중복 제거된 이름 목록 (첫 등장 순서)
    """
    return _dedupe(match.group(1).strip() for match in REFERENCE_PATTERN.finditer(template))


def validate_template(template: str) -> ValidationResult:
    """
    템플릿 문법 검증.

    검사 항목 (모두 수집, 중간에 멈추지 않음):
    1. {{ 개수 == }} 개수
    2. 빈 참조 ({{}}, {{  }}) 없음
    3. 닫히기 전 {{ 중첩 없음

    Args:
        template: 템플릿 문자열

    Returns:
        ValidationResult (errors 비어있으면 valid)
    """
    errors: list[str] = []

    if template.count(REFERENCE_OPEN) != template.count(REFERENCE_CLOSE):
        errors.append(MSG_MISMATCHED_BRACKETS)

    if EMPTY_REFERENCE_PATTERN.search(template):
        errors.append(MSG_EMPTY_REFERENCES)

    if NESTED_REFERENCE_PATTERN.search(template):
        errors.append(MSG_NESTED_BRACKETS)

    return ValidationResult(valid=not errors, errors=errors)


# =============================================================================
# Render
# =============================================================================

async def render_template(
    template: str,
    lookup: SnippetLookup,
    max_depth: int = DEFAULT_MAX_DEPTH,
    detect_cycles: bool = False,
) -> RenderResult:
    """
    템플릿의 모든 참조를 재귀적으로 치환.

    동작:
    - 참조마다 lookup 호출 (추출 순서대로 순차 처리)
    - 찾은 스니펫의 내용에 참조가 있으면 depth+1로 먼저 렌더
    - 같은 이름의 모든 참조를 한 번 계산한 치환 결과로 교체
    - 누락/조회 실패 참조는 원문 그대로 남김
    - depth >= max_depth면 해당 프레임은 원문 + 깊이 초과 에러

    Args:
        template: 템플릿 문자열
        lookup: 스니펫 조회 함수
        max_depth: 최대 재귀 깊이
        detect_cycles: True면 현재 확장 경로에 이미 있는 이름을
            순환으로 보고하고 확장하지 않음

    Returns:
        RenderResult (rendered, used_snippets, errors)
    """
    path: tuple[str, ...] | None = () if detect_cycles else None
    return await _render(template, lookup, max_depth, 0, path)


async def _render(
    template: str,
    lookup: SnippetLookup,
    max_depth: int,
    depth: int,
    path: tuple[str, ...] | None,
) -> RenderResult:
    if depth >= max_depth:
        return RenderResult(rendered=template, used_snippets=[], errors=[MSG_MAX_DEPTH])

    used: list[str] = []
    errors: list[str] = []
    rendered = template

    for name in extract_snippet_references(template):
        if path is not None and name in path:
            errors.append(MSG_CIRCULAR.format(name=name))
            continue

        try:
            snippet = await _lookup(lookup, name)
        except Exception as e:
            logger.warning(f"Snippet lookup failed for '{name}': {e}")
            errors.append(MSG_LOAD_ERROR.format(name=name, detail=e))
            continue

        if snippet is None:
            errors.append(MSG_NOT_FOUND.format(name=name))
            continue

        replacement = snippet.content
        if extract_snippet_references(snippet.content):
            nested = await _render(
                snippet.content,
                lookup,
                max_depth,
                depth + 1,
                None if path is None else (*path, name),
            )
            replacement = nested.rendered
            used.extend(nested.used_snippets)
            errors.extend(nested.errors)

        # 치환 문자열은 리터럴 (\1, \g<0> 등 해석 안 함)
        rendered = _reference_pattern(name).sub(lambda _match: replacement, rendered)
        used.append(name)

    return RenderResult(rendered=rendered, used_snippets=_dedupe(used), errors=errors)


def should_reject_render(template: str, result: RenderResult) -> bool:
    """
    렌더 결과를 실패로 처리할지 (호출 계층 정책).

    에러가 있고 아무것도 치환되지 않았으면 실패, 그 외에는 경고와 함께 반환.
    """
    return bool(result.errors) and result.rendered == template


# =============================================================================
# Dependency Graph
# =============================================================================

async def get_snippet_dependencies(
    name: str,
    lookup: SnippetLookup,
    visited: set[str] | None = None,
) -> DependencyResult:
    """
    스니펫의 (전이) 의존성 목록.

    render와 달리 현재 경로의 visited 집합으로 순환을 즉시 감지.
    순환은 해당 가지에서만 보고하고 형제 가지는 계속 탐색.

    Args:
        name: 시작 스니펫 이름
        lookup: 스니펫 조회 함수
        visited: 현재 경로에서 이미 방문한 이름들

    Returns:
        DependencyResult (dependencies 중복 제거, errors)
    """
    if visited is not None and name in visited:
        return DependencyResult(dependencies=[], errors=[MSG_CIRCULAR.format(name=name)])

    path = set(visited) if visited else set()
    path.add(name)

    dependencies: list[str] = []
    errors: list[str] = []

    try:
        snippet = await _lookup(lookup, name)
    except Exception as e:
        logger.warning(f"Snippet lookup failed for '{name}': {e}")
        return DependencyResult(
            dependencies=[], errors=[MSG_LOAD_ERROR.format(name=name, detail=e)]
        )

    if snippet is None:
        return DependencyResult(dependencies=[], errors=[MSG_NOT_FOUND.format(name=name)])

    for ref in extract_snippet_references(snippet.content):
        dependencies.append(ref)
        nested = await get_snippet_dependencies(ref, lookup, set(path))
        dependencies.extend(nested.dependencies)
        errors.extend(nested.errors)

    return DependencyResult(dependencies=_dedupe(dependencies), errors=errors)


# =============================================================================
# Preview
# =============================================================================

def get_template_preview(template: str, snippets: Iterable[Snippet]) -> str:
    """
    조회 없이 알려진 스니펫만 [내용 일부]로 바꾼 미리보기.

    중첩 참조는 확장하지 않음. 내용은 50자 초과 시 잘라서 "..." 추가.
    """
    preview = template
    for snippet in snippets:
        content = snippet.content
        if len(content) > PREVIEW_CONTENT_MAX_LENGTH:
            content = content[:PREVIEW_CONTENT_MAX_LENGTH] + "..."
        marker = f"[{content}]"
        preview = _reference_pattern(snippet.name).sub(lambda _match: marker, preview)
    return preview
