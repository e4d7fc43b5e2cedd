"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn src.app.main:app --reload
- 프로덕션: uvicorn src.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI

# Routes
from src.app.routes import (
    feedback,
    generate,
    prompts,
    recommendations,
    render,
    similarity,
    snippets,
)
from src.domain.constants import DEFAULT_TAXONOMY_FILE

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

# 로컬 개발용 .env (API 키). 이미 설정된 환경변수는 덮어쓰지 않음
load_dotenv(PROJECT_ROOT / ".env")

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def resolve_data_root(config: dict) -> Path:
    """paths.data_dir → 절대 경로 (상대 경로는 프로젝트 루트 기준)."""
    data_dir = Path((config.get("paths", {}) or {}).get("data_dir", "data"))
    if not data_dir.is_absolute():
        data_dir = PROJECT_ROOT / data_dir
    return data_dir


def resolve_taxonomy_path(config: dict) -> Path:
    """paths.taxonomy_file → 절대 경로 (상대 경로는 프로젝트 루트 기준)."""
    path = Path((config.get("paths", {}) or {}).get("taxonomy_file", DEFAULT_TAXONOMY_FILE))
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: 설정 로드, 데이터 루트/분류 문서 경로 결정
    """
    # Startup
    app.state.config = load_config()
    app.state.data_root = resolve_data_root(app.state.config)
    app.state.taxonomy_path = resolve_taxonomy_path(app.state.config)
    logger.info(f"Snippet data root: {app.state.data_root}")

    yield


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Prompt Snippet Builder",
    description="계층형 스니펫 → {{참조}} 조합 프롬프트 렌더링 + 다중 LLM 스니펫 생성",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Routes
# =============================================================================

app.include_router(snippets.api_router, prefix="/api/snippets", tags=["Snippets API"])
app.include_router(render.api_router, prefix="/api/render", tags=["Render API"])
app.include_router(similarity.api_router, prefix="/api/similarity", tags=["Similarity API"])
app.include_router(prompts.api_router, prefix="/api/prompts", tags=["Prompts API"])
app.include_router(generate.api_router, prefix="/api/generate", tags=["Generate API"])
app.include_router(
    recommendations.api_router, prefix="/api/recommendations", tags=["Recommendations API"]
)
app.include_router(feedback.api_router, prefix="/api/feedback", tags=["Feedback API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/")
async def root() -> dict[str, Any]:
    """API 안내."""
    return {
        "message": "Prompt Snippet Builder",
        "endpoints": {
            "snippets": "/api/snippets",
            "render": "/api/render",
            "similarity": "/api/similarity",
            "prompts": "/api/prompts",
            "generate": "/api/generate",
            "recommendations": "/api/recommendations",
            "feedback": "/api/feedback",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
