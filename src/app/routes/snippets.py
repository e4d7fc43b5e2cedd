"""
Snippets Routes: 스니펫 CRUD + 의존성 조회.

- GET /api/snippets?search= → 목록 (최신순)
- POST /api/snippets → 생성
- GET/PUT/DELETE /api/snippets/{name}
- GET /api/snippets/{name}/dependencies → 전이 의존성
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.app.dependencies import get_snippet_store, to_http_exception
from src.core.hierarchy import get_hierarchy_display
from src.core.renderer import get_snippet_dependencies, validate_template
from src.core.store import SnippetStore
from src.domain.errors import SnippetError

logger = logging.getLogger(__name__)

api_router = APIRouter()


class SnippetCreate(BaseModel):
    name: str = ""
    content: str = ""
    description: str | None = None
    client_id: str | None = None
    is_general: bool | None = None


class SnippetUpdate(BaseModel):
    content: str | None = None
    description: str | None = None


def _snippet_payload(snippet: Any) -> dict[str, Any]:
    data: dict[str, Any] = snippet.to_dict()
    data["hierarchy"] = get_hierarchy_display(snippet.name)
    return data


# =============================================================================
# API Routes
# =============================================================================

@api_router.get("")
async def list_snippets(
    search: str | None = None,
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """스니펫 목록."""
    snippets = store.list(search=search)
    return {"snippets": [_snippet_payload(s) for s in snippets]}


@api_router.post("", status_code=201)
async def create_snippet(
    body: SnippetCreate,
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """
    스니펫 생성.

    본문의 {{참조}} 문법이 잘못됐으면 저장하지 않음.
    """
    if not body.name or not body.content:
        raise HTTPException(
            status_code=400,
            detail={"code": "MISSING_FIELDS", "message": "Name and content are required"},
        )

    validation = validate_template(body.content)
    if not validation.valid:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "INVALID_TEMPLATE",
                "message": "Invalid template",
                "errors": validation.errors,
            },
        )

    try:
        snippet = store.create(
            name=body.name,
            content=body.content,
            description=body.description,
            client_id=body.client_id or None,
            is_general=body.is_general,
        )
    except SnippetError as e:
        raise to_http_exception(e) from e

    return {"snippet": _snippet_payload(snippet)}


@api_router.get("/{name}")
async def get_snippet(
    name: str,
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """스니펫 상세."""
    try:
        snippet = store.get(name)
    except SnippetError as e:
        raise to_http_exception(e) from e
    return {"snippet": _snippet_payload(snippet)}


@api_router.put("/{name}")
async def update_snippet(
    name: str,
    body: SnippetUpdate,
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """스니펫 내용/설명 수정."""
    if body.content is not None:
        validation = validate_template(body.content)
        if not validation.valid:
            raise HTTPException(
                status_code=400,
                detail={
                    "code": "INVALID_TEMPLATE",
                    "message": "Invalid template",
                    "errors": validation.errors,
                },
            )

    try:
        snippet = store.update(name, content=body.content, description=body.description)
    except SnippetError as e:
        raise to_http_exception(e) from e
    return {"snippet": _snippet_payload(snippet)}


@api_router.delete("/{name}")
async def delete_snippet(
    name: str,
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """스니펫 삭제."""
    try:
        store.delete(name)
    except SnippetError as e:
        raise to_http_exception(e) from e
    return {"success": True, "name": name}


@api_router.get("/{name}/dependencies")
async def snippet_dependencies(
    name: str,
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """전이 의존성 + 순환/누락 에러."""
    if store.get_snippet(name) is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "SNIPPET_NOT_FOUND", "message": f"Snippet not found: {name}"},
        )

    result = await get_snippet_dependencies(name, store.get_snippet)
    return {"name": name, **result.to_dict()}
