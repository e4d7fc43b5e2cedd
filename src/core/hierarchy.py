"""
계층 유사도: 밑줄 구분 이름의 공유 prefix 기반 스니펫 추천.

규칙:
- geo_asia_japan → [geo, asia, japan] (빈 세그먼트 제거)
- 공유 깊이는 루트부터 연속 일치하는 세그먼트 수 (중간 불일치 이후는 무시)
- 자기 자신, 공유 루트가 없는 이름은 점수 0 (추천 제외)
- 두 보너스가 모두 붙으면 100점 초과 가능 (의도된 특성)
"""

import math
from collections.abc import Iterable, Sequence

from src.domain.constants import (
    DEFAULT_SIMILAR_LIMIT,
    HIERARCHY_DISPLAY_SEPARATOR,
    HIERARCHY_SEPARATOR,
    SIMILARITY_DEPTH_WEIGHT,
    SIMILARITY_PREFIX_WEIGHT,
    SIMILARITY_SIBLING_BONUS,
    UNCATEGORIZED_GROUP,
)
from src.domain.schemas import SimilarityScore, Snippet


def parse_hierarchy(name: str) -> list[str]:
    """
    이름을 계층 세그먼트로 분해.

    예: "geo_asia_japan" → ["geo", "asia", "japan"]
        "_geo__asia_" → ["geo", "asia"]
    """
    return [part for part in name.split(HIERARCHY_SEPARATOR) if part]


def _shared_prefix(parts_a: Sequence[str], parts_b: Sequence[str]) -> list[str]:
    shared: list[str] = []
    for a, b in zip(parts_a, parts_b):
        if a != b:
            break
        shared.append(a)
    return shared


def calculate_similarity(name_a: str, name_b: str) -> tuple[int, list[str]]:
    """
    두 이름의 계층 유사도 점수.

    점수 = (공유 깊이 / 최대 깊이) * 100
         + (1 - 깊이 차 / 최대 깊이) * 20
         + 30 (둘 다 같은 부모 아래 형제일 때)
    반올림은 0.5 올림.

    예: ("geo_asia_japan", "geo_asia_china") → 117

    Args:
        name_a: 기준 이름
        name_b: 비교 대상 이름

    Returns:
        (score, shared_path)
    """
    parts_a = parse_hierarchy(name_a)
    parts_b = parse_hierarchy(name_b)
    shared_path = _shared_prefix(parts_a, parts_b)

    if name_a == name_b:
        return 0, shared_path

    # 공유 루트가 없으면 무관한 이름
    shared_depth = len(shared_path)
    if shared_depth == 0:
        return 0, shared_path

    max_depth = max(len(parts_a), len(parts_b))
    depth_difference = abs(len(parts_a) - len(parts_b))

    score = (shared_depth / max_depth) * SIMILARITY_PREFIX_WEIGHT
    score += (1 - depth_difference / max_depth) * SIMILARITY_DEPTH_WEIGHT

    # 같은 부모, 마지막 세그먼트만 다름
    if shared_depth == len(parts_a) - 1 and shared_depth == len(parts_b) - 1:
        score += SIMILARITY_SIBLING_BONUS

    return math.floor(score + 0.5), shared_path


def find_similar_snippets(
    target_name: str,
    snippets: Iterable[Snippet],
    limit: int = DEFAULT_SIMILAR_LIMIT,
) -> list[SimilarityScore]:
    """
    계층 이름 기준 유사 스니펫 순위.

    점수 0 이하(자기 자신, 무관한 이름)는 제외.
    동점은 입력 순서 유지 (stable sort).

    Args:
        target_name: 새로 만들 스니펫 이름
        snippets: 기존 스니펫 목록
        limit: 최대 반환 개수

    Returns:
        SimilarityScore 목록 (점수 내림차순)
    """
    scored = []
    for snippet in snippets:
        score, shared_path = calculate_similarity(target_name, snippet.name)
        if score > 0:
            scored.append(SimilarityScore(snippet=snippet, score=score, shared_path=shared_path))

    scored.sort(key=lambda item: item.score, reverse=True)
    return scored[: max(limit, 0)]


def get_hierarchy_display(name: str) -> str:
    """표시용 경로. 예: "geo_asia_japan" → "geo > asia > japan"."""
    return HIERARCHY_DISPLAY_SEPARATOR.join(parse_hierarchy(name))


def get_parent_path(name: str) -> str | None:
    """부모 경로. 예: "geo_asia_japan" → "geo_asia", 최상위면 None."""
    parts = parse_hierarchy(name)
    if len(parts) <= 1:
        return None
    return HIERARCHY_SEPARATOR.join(parts[:-1])


def get_ancestor_paths(name: str) -> list[str]:
    """모든 조상 경로 (루트부터). 예: "geo_asia_japan" → ["geo", "geo_asia"]."""
    parts = parse_hierarchy(name)
    return [HIERARCHY_SEPARATOR.join(parts[:i]) for i in range(1, len(parts))]


def is_ancestor(ancestor_name: str, descendant_name: str) -> bool:
    """ancestor_name의 세그먼트가 descendant_name 세그먼트의 진부분 prefix인지."""
    ancestor_parts = parse_hierarchy(ancestor_name)
    descendant_parts = parse_hierarchy(descendant_name)

    if not ancestor_parts or len(ancestor_parts) >= len(descendant_parts):
        return False

    return descendant_parts[: len(ancestor_parts)] == ancestor_parts


def group_by_top_level(snippets: Iterable[Snippet]) -> dict[str, list[Snippet]]:
    """
    최상위 세그먼트별 그룹.

    세그먼트가 없는 이름은 "uncategorized". 그룹 내 입력 순서 유지.
    """
    groups: dict[str, list[Snippet]] = {}
    for snippet in snippets:
        parts = parse_hierarchy(snippet.name)
        top_level = parts[0] if parts else UNCATEGORIZED_GROUP
        groups.setdefault(top_level, []).append(snippet)
    return groups
