"""
Prompts Routes: 스니펫으로 구성한 프롬프트 저장.

- GET /api/prompts → 목록 (최신순)
- POST /api/prompts → 저장 (rendered_content 없으면 서버에서 렌더)
- GET/PUT/DELETE /api/prompts/{prompt_id}
  (PUT: 보낸 필드만 수정, template만 바꾸면 서버에서 다시 렌더)
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.app.dependencies import (
    get_config,
    get_prompt_store,
    get_snippet_store,
    to_http_exception,
)
from src.core.renderer import render_template
from src.core.store import ComposedPromptStore, SnippetStore
from src.domain.constants import DEFAULT_MAX_DEPTH
from src.domain.errors import SnippetError

api_router = APIRouter()


class PromptCreate(BaseModel):
    name: str = ""
    template: str = ""
    rendered_content: str | None = None
    used_snippets: list[str] | None = None
    client_id: str | None = None


class PromptUpdate(BaseModel):
    name: str | None = None
    template: str | None = None
    rendered_content: str | None = None
    used_snippets: list[str] | None = None
    client_id: str | None = None


@api_router.get("")
async def list_prompts(
    prompts: ComposedPromptStore = Depends(get_prompt_store),
) -> dict[str, Any]:
    """구성 프롬프트 목록."""
    return {"prompts": [p.to_dict() for p in prompts.list()]}


@api_router.post("", status_code=201)
async def create_prompt(
    body: PromptCreate,
    config: dict = Depends(get_config),
    prompts: ComposedPromptStore = Depends(get_prompt_store),
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """구성 프롬프트 저장."""
    if not body.name or not body.template:
        raise HTTPException(
            status_code=400,
            detail={"code": "MISSING_FIELDS", "message": "Name and template are required"},
        )

    rendered_content = body.rendered_content
    used_snippets = body.used_snippets
    if rendered_content is None:
        max_depth = (config.get("render", {}) or {}).get("max_depth", DEFAULT_MAX_DEPTH)
        result = await render_template(body.template, store.get_snippet, max_depth=max_depth)
        rendered_content = result.rendered
        if used_snippets is None:
            used_snippets = result.used_snippets

    prompt = prompts.create(
        name=body.name,
        template=body.template,
        rendered_content=rendered_content,
        used_snippets=used_snippets,
        client_id=body.client_id or None,
    )
    return {"prompt": prompt.to_dict()}


@api_router.get("/{prompt_id}")
async def get_prompt(
    prompt_id: str,
    prompts: ComposedPromptStore = Depends(get_prompt_store),
) -> dict[str, Any]:
    """구성 프롬프트 상세."""
    try:
        return {"prompt": prompts.get(prompt_id).to_dict()}
    except SnippetError as e:
        raise to_http_exception(e) from e


@api_router.put("/{prompt_id}")
async def update_prompt(
    prompt_id: str,
    body: PromptUpdate,
    config: dict = Depends(get_config),
    prompts: ComposedPromptStore = Depends(get_prompt_store),
    store: SnippetStore = Depends(get_snippet_store),
) -> dict[str, Any]:
    """구성 프롬프트 수정."""
    changes = body.model_dump(exclude_unset=True)
    if "name" in changes and not changes["name"]:
        raise HTTPException(
            status_code=400,
            detail={"code": "MISSING_FIELDS", "message": "Name cannot be empty"},
        )
    if "template" in changes and not changes["template"]:
        raise HTTPException(
            status_code=400,
            detail={"code": "MISSING_FIELDS", "message": "Template cannot be empty"},
        )

    if "template" in changes and "rendered_content" not in changes:
        max_depth = (config.get("render", {}) or {}).get("max_depth", DEFAULT_MAX_DEPTH)
        result = await render_template(changes["template"], store.get_snippet, max_depth=max_depth)
        changes["rendered_content"] = result.rendered
        changes.setdefault("used_snippets", result.used_snippets)

    try:
        prompt = prompts.update(prompt_id, **changes)
    except SnippetError as e:
        raise to_http_exception(e) from e
    return {"prompt": prompt.to_dict()}


@api_router.delete("/{prompt_id}")
async def delete_prompt(
    prompt_id: str,
    prompts: ComposedPromptStore = Depends(get_prompt_store),
) -> dict[str, Any]:
    """구성 프롬프트 삭제."""
    try:
        prompts.delete(prompt_id)
    except SnippetError as e:
        raise to_http_exception(e) from e
    return {"success": True, "id": prompt_id}
