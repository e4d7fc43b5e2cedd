"""
Render Routes: 템플릿 검증/렌더/미리보기.

- POST /api/render → 검증 → 렌더 (실패 정책: 에러 + 변화 없음 → 400)
- POST /api/render/validate
- POST /api/render/references
- POST /api/render/preview → 조회 없는 미리보기
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.app.dependencies import get_config, get_snippet_store
from src.core.renderer import (
    extract_snippet_references,
    get_template_preview,
    render_template,
    should_reject_render,
    validate_template,
)
from src.core.store import SnippetStore
from src.domain.constants import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

api_router = APIRouter()


class TemplateBody(BaseModel):
    template: str = ""


def _require_template(body: TemplateBody) -> str:
    if not body.template:
        raise HTTPException(
            status_code=400,
            detail={"code": "MISSING_TEMPLATE", "message": "Template is required"},
        )
    return body.template


@api_router.post("")
async def render(
    body: TemplateBody,
    config: dict = Depends(get_config),
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """
    템플릿 렌더링.

    - 문법 오류 → 400 (errors 포함)
    - 에러가 있고 아무것도 치환되지 않음 → 400
    - 그 외 → rendered + used_snippets + errors(경고)
    """
    template = _require_template(body)

    validation = validate_template(template)
    if not validation.valid:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "INVALID_TEMPLATE",
                "message": "Invalid template",
                "errors": validation.errors,
            },
        )

    render_config = config.get("render", {}) or {}
    result = await render_template(
        template,
        store.get_snippet,
        max_depth=render_config.get("max_depth", DEFAULT_MAX_DEPTH),
        detect_cycles=render_config.get("detect_cycles", False),
    )

    if should_reject_render(template, result):
        logger.info(f"Render rejected: {result.errors}")
        raise HTTPException(
            status_code=400,
            detail={
                "code": "RENDER_FAILED",
                "message": "Failed to render template",
                "errors": result.errors,
            },
        )

    return result.to_dict()


@api_router.post("/validate")
async def validate(body: TemplateBody) -> dict[str, Any]:
    """문법 검증 (빈 템플릿도 유효)."""
    return validate_template(body.template).to_dict()


@api_router.post("/references")
async def references(body: TemplateBody) -> dict[str, Any]:
    """참조 이름 목록 (첫 등장 순서, 중복 제거)."""
    return {"references": extract_snippet_references(body.template)}


@api_router.post("/preview")
async def preview(
    body: TemplateBody,
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """저장된 스니펫 기준 미리보기 (중첩 확장 없음)."""
    names = set(extract_snippet_references(body.template))
    known = [s for s in store.list() if s.name in names]
    return {"preview": get_template_preview(body.template, known)}
