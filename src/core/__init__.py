"""
Core layer: 템플릿 렌더링 + 계층 유사도 (순수 알고리즘) + 저장소.

역할:
- renderer: {{참조}} 재귀 치환, 검증, 의존성 그래프
- hierarchy: 이름 prefix 기반 유사도, 그룹/조상 유틸
- store: 스니펫/구성 프롬프트 JSON 저장소
- sessions: 생성 세션 기록
- taxonomy: 분류 문서 파싱 + 커버리지 분석
"""

from .hierarchy import (
    calculate_similarity,
    find_similar_snippets,
    get_ancestor_paths,
    get_hierarchy_display,
    get_parent_path,
    group_by_top_level,
    is_ancestor,
    parse_hierarchy,
)
from .ids import generate_prompt_id, generate_session_id, generate_snippet_id
from .renderer import (
    extract_snippet_references,
    get_snippet_dependencies,
    get_template_preview,
    render_template,
    should_reject_render,
    validate_template,
)
from .sessions import (
    complete_generation_session,
    create_generation_session,
    list_generation_sessions,
    load_generation_session,
    save_generation_session,
)
from .store import ComposedPromptStore, SnippetStore, atomic_write_json
from .taxonomy import (
    analyze_coverage_gaps,
    get_balanced_suggestions,
    get_missing_taxonomy_items,
    load_taxonomy,
    parse_taxonomy,
)

__all__ = [
    # renderer
    "extract_snippet_references",
    "validate_template",
    "render_template",
    "should_reject_render",
    "get_snippet_dependencies",
    "get_template_preview",
    # hierarchy
    "parse_hierarchy",
    "calculate_similarity",
    "find_similar_snippets",
    "get_hierarchy_display",
    "get_parent_path",
    "get_ancestor_paths",
    "is_ancestor",
    "group_by_top_level",
    # ids
    "generate_snippet_id",
    "generate_prompt_id",
    "generate_session_id",
    # store
    "SnippetStore",
    "ComposedPromptStore",
    "atomic_write_json",
    # sessions
    "create_generation_session",
    "complete_generation_session",
    "save_generation_session",
    "load_generation_session",
    "list_generation_sessions",
    # taxonomy
    "parse_taxonomy",
    "load_taxonomy",
    "get_missing_taxonomy_items",
    "analyze_coverage_gaps",
    "get_balanced_suggestions",
]
