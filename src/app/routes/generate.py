"""
Generate Routes: 다중 LLM 스니펫 생성.

- POST /api/generate → 생성 + 결합 (세션 기록)
- POST /api/generate/rubric → .docx 루브릭 업로드 → 정리된 텍스트
- GET /api/generate/sessions → 세션 기록 목록 (snippet_name으로 필터)
- GET /api/generate/sessions/{session_id} → 세션 기록 조회

규칙:
- 세션은 성공/실패 모두 저장
- 유사 스니펫을 지정하지 않으면 계층 이름 기준으로 자동 선택
"""

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from src.app.dependencies import (
    get_config,
    get_data_root,
    get_generation_service,
    get_snippet_store,
    to_http_exception,
)
from src.app.services.generate import GenerationService
from src.app.services.rubric import (
    extract_text_from_docx,
    parse_rubric_structure,
    process_rubric_content,
)
from src.core.hierarchy import find_similar_snippets
from src.core.sessions import list_generation_sessions, load_generation_session
from src.core.store import SnippetStore
from src.domain.constants import DEFAULT_SIMILAR_LIMIT, DOCX_MIME_TYPE
from src.domain.errors import ErrorCodes, SnippetError
from src.domain.schemas import GenerationRequest, Snippet

logger = logging.getLogger(__name__)

api_router = APIRouter()


class GenerateBody(BaseModel):
    snippet_name: str = ""
    context: str = ""
    similar_snippets: list[str] | None = None
    rubric_content: str | None = None
    client_id: str | None = None


def _resolve_similar(
    body: GenerateBody,
    store: SnippetStore,
    limit: int,
) -> list[Snippet]:
    """요청에 지정된 이름은 그대로 조회, 없으면 유사도 순 자동 선택."""
    if body.similar_snippets is None:
        return [r.snippet for r in find_similar_snippets(body.snippet_name, store.list(), limit)]

    resolved = []
    for name in body.similar_snippets:
        snippet = store.get_snippet(name)
        if snippet is None:
            logger.warning(f"Similar snippet not found, skipped: {name}")
            continue
        resolved.append(snippet)
    return resolved


@api_router.post("")
async def generate_snippet(
    body: GenerateBody,
    config: dict = Depends(get_config),
    store: SnippetStore = Depends(get_snippet_store),
    service: GenerationService = Depends(get_generation_service),
) -> dict[str, Any]:
    """
    스니펫 초안 생성.

    Returns:
        session_id, final_content, responses(모델별), status
    """
    if not body.snippet_name or not body.context:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "MISSING_FIELDS",
                "message": "Snippet name and context are required",
            },
        )

    limit = (config.get("similarity", {}) or {}).get("limit", DEFAULT_SIMILAR_LIMIT)
    request = GenerationRequest(
        snippet_name=body.snippet_name,
        context=body.context,
        similar_snippets=_resolve_similar(body, store, limit),
        rubric_content=process_rubric_content(body.rubric_content) if body.rubric_content else None,
    )

    session, outcome = await service.run(
        request,
        client_id=body.client_id or None,
        on_progress=lambda step, progress: logger.info(f"{step} ({progress:.0f}%)"),
    )

    return {
        "session_id": session.session_id,
        "status": session.status.value,
        "final_content": outcome.final_content,
        "responses": outcome.responses,
        "failed_models": outcome.failed_models,
        "similar_snippets": session.similar_snippets,
    }


@api_router.post("/rubric")
async def upload_rubric(file: UploadFile = File(...)) -> dict[str, Any]:
    """
    Word 루브릭 업로드.

    .docx만 지원. 정리된 본문과 구조(제목/섹션/기준)를 반환.
    """
    filename = file.filename or ""
    if not filename.lower().endswith(".docx") and file.content_type != DOCX_MIME_TYPE:
        raise to_http_exception(
            SnippetError(
                ErrorCodes.RUBRIC_UNSUPPORTED_TYPE,
                "Only .docx rubric files are supported",
                filename=filename,
            )
        )

    file_bytes = await file.read()
    try:
        raw_text = extract_text_from_docx(file_bytes)
    except SnippetError as e:
        raise to_http_exception(e) from e

    content = process_rubric_content(raw_text)
    return {
        "filename": filename,
        "content": content,
        "structure": parse_rubric_structure(content).to_dict(),
    }


@api_router.get("/sessions")
async def list_sessions(
    snippet_name: str | None = None,
    data_root: Path = Depends(get_data_root),
) -> dict[str, Any]:
    """생성 세션 목록 (최근순)."""
    sessions = list_generation_sessions(data_root, snippet_name=snippet_name or None)
    return {"sessions": [s.to_dict() for s in sessions]}


@api_router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    data_root: Path = Depends(get_data_root),
) -> dict[str, Any]:
    """생성 세션 기록 조회."""
    try:
        session = load_generation_session(session_id, data_root)
    except SnippetError as e:
        raise to_http_exception(e) from e
    return session.to_dict()
