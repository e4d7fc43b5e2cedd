"""
Similarity Routes: 계층 이름 기반 유사 스니펫 추천.

- GET /api/similarity?name=&limit= → 점수 내림차순 추천
- GET /api/similarity/hierarchy → 최상위 세그먼트별 그룹
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from src.app.dependencies import get_config, get_snippet_store
from src.core.hierarchy import (
    find_similar_snippets,
    get_hierarchy_display,
    get_parent_path,
    group_by_top_level,
)
from src.core.store import SnippetStore
from src.domain.constants import DEFAULT_SIMILAR_LIMIT

api_router = APIRouter()


@api_router.get("")
async def similar_snippets(
    name: str | None = None,
    limit: int | None = None,
    config: dict = Depends(get_config),
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """
    유사 스니펫 추천.

    Args:
        name: 새로 만들 스니펫 이름 (필수)
        limit: 최대 개수 (기본: similarity.limit 설정)
    """
    if not name:
        raise HTTPException(
            status_code=400,
            detail={"code": "MISSING_NAME", "message": "Name parameter is required"},
        )

    if limit is None:
        limit = (config.get("similarity", {}) or {}).get("limit", DEFAULT_SIMILAR_LIMIT)

    results = find_similar_snippets(name, store.list(), limit=limit)
    return {"similar_snippets": [r.to_dict() for r in results]}


@api_router.get("/hierarchy")
async def hierarchy(
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """최상위 세그먼트별 그룹 (표시 경로 + 부모 경로 포함)."""
    groups = group_by_top_level(store.list())
    return {
        "groups": {
            top: [
                {
                    "name": s.name,
                    "display": get_hierarchy_display(s.name),
                    "parent": get_parent_path(s.name),
                    "description": s.description,
                }
                for s in snippets
            ]
            for top, snippets in groups.items()
        }
    }
