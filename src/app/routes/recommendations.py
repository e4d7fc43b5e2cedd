"""
Recommendations Routes: 다음 스니펫 추천.

- POST /api/recommendations → 추천 모델 + 커버리지 분석
- GET /api/recommendations/coverage → 커버리지 분석만 (LLM 호출 없음)
"""

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.app.dependencies import (
    completion_http_exception,
    get_config,
    get_recommendation_service,
    get_snippet_store,
    get_taxonomy_path,
    to_http_exception,
)
from src.app.providers import CompletionError
from src.app.services.recommend import RecommendationService
from src.core.store import SnippetStore
from src.core.taxonomy import (
    TaxonomyStructure,
    analyze_coverage_gaps,
    get_balanced_suggestions,
    get_missing_taxonomy_items,
    load_taxonomy,
)
from src.domain.constants import DEFAULT_BALANCED_LIMIT
from src.domain.errors import SnippetError

logger = logging.getLogger(__name__)

api_router = APIRouter()


class RecommendationBody(BaseModel):
    current_snippet: str = ""


def _load(taxonomy_path: Path) -> TaxonomyStructure:
    try:
        return load_taxonomy(taxonomy_path)
    except SnippetError as e:
        raise to_http_exception(e) from e


@api_router.post("")
async def recommend_next(
    body: RecommendationBody,
    store: SnippetStore = Depends(get_snippet_store),
    taxonomy_path: Path = Depends(get_taxonomy_path),
    service: RecommendationService = Depends(get_recommendation_service),
) -> dict[str, Any]:
    """
    방금 만든 스니펫 다음에 만들 스니펫 추천.

    Returns:
        recommendation(recommended, reasoning, alternatives), context (+ note)
    """
    if not body.current_snippet:
        raise HTTPException(
            status_code=400,
            detail={"code": "MISSING_FIELDS", "message": "Current snippet name is required"},
        )

    taxonomy = _load(taxonomy_path)
    existing = [s.name for s in store.list()]

    try:
        return await service.recommend(body.current_snippet, taxonomy, existing)
    except CompletionError as e:
        logger.error(f"Error getting recommendations: {e}")
        raise completion_http_exception(e, "Failed to get recommendations") from e


@api_router.get("/coverage")
async def coverage(
    limit: int | None = None,
    config: dict = Depends(get_config),
    store: SnippetStore = Depends(get_snippet_store),
    taxonomy_path: Path = Depends(get_taxonomy_path),
) -> dict[str, Any]:
    """분류 문서 대비 커버리지 + 균형 후보."""
    if limit is None:
        limit = (config.get("recommendations", {}) or {}).get(
            "balanced_limit", DEFAULT_BALANCED_LIMIT
        )

    taxonomy = _load(taxonomy_path)
    existing = [s.name for s in store.list()]
    report = analyze_coverage_gaps(taxonomy, existing)

    return {
        **report.to_dict(),
        "missing": get_missing_taxonomy_items(taxonomy, existing),
        "balanced_suggestions": get_balanced_suggestions(taxonomy, existing, limit=limit),
    }
