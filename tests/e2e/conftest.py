"""
E2E 테스트용 FastAPI 설정.

- TestClient는 lifespan을 실행한 뒤 data_root를 테스트별 tmp 경로로 교체
- 생성/추천/피드백 서비스는 고정 응답 provider로 대체 (외부 API 호출 없음)
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from src.app.dependencies import (
    get_feedback_service,
    get_generation_service,
    get_recommendation_service,
)
from src.app.main import app
from src.app.providers.base import CompletionError, CompletionResult, LLMProvider
from src.app.services.feedback import FeedbackService
from src.app.services.generate import GenerationService
from src.app.services.recommend import RecommendationService


class StaticProvider(LLMProvider):
    """고정 응답 provider (error가 있으면 예외)."""

    provider_name = "static"

    def __init__(self, text: str = "", error: bool = False):
        self.model = "static-model"
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    async def complete(self, prompt, temperature=None, max_tokens=None):
        self.prompts.append(prompt)
        if self.error:
            raise CompletionError("COMPLETION_FAILED", "static failure")
        return CompletionResult(text=self.text, provider=self.provider_name, model_used=self.model)


@pytest.fixture
def client(data_root: Path) -> Generator[TestClient, None, None]:
    """FastAPI TestClient (격리된 data_root)."""
    with TestClient(app) as client:
        client.app.state.data_root = data_root
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def use_generators(data_root: Path):
    """
    생성 서비스 provider 교체.

    Usage:
        providers = use_generators({"Claude": "text", "Gemini": None}, combiner="final")
        (None → 해당 모델 실패)
    """

    def _install(responses: dict[str, str | None], combiner: str | None = None):
        generators = [
            (name, StaticProvider(text or "", error=text is None))
            for name, text in responses.items()
        ]
        combiner_provider = StaticProvider(combiner or "", error=combiner is None)

        def _service(request: Request) -> GenerationService:
            return GenerationService(
                request.app.state.config,
                data_root=data_root,
                generators=generators,
                combiner=combiner_provider,
            )

        app.dependency_overrides[get_generation_service] = _service
        return generators, combiner_provider

    return _install


@pytest.fixture
def seed_snippets(client: TestClient):
    """API로 스니펫 생성."""

    def _seed(snippets: dict[str, str]) -> None:
        for name, content in snippets.items():
            response = client.post("/api/snippets", json={"name": name, "content": content})
            assert response.status_code == 201, response.text

    return _seed


@pytest.fixture
def use_recommender():
    """추천 서비스 provider 교체 (None → 호출 실패)."""

    def _install(text: str | None) -> StaticProvider:
        provider = StaticProvider(text or "", error=text is None)

        def _service(request: Request) -> RecommendationService:
            return RecommendationService(request.app.state.config, provider=provider)

        app.dependency_overrides[get_recommendation_service] = _service
        return provider

    return _install


@pytest.fixture
def use_reviewer():
    """피드백 서비스 provider 교체 (None → 호출 실패)."""

    def _install(text: str | None) -> StaticProvider:
        provider = StaticProvider(text or "", error=text is None)

        def _service(request: Request) -> FeedbackService:
            return FeedbackService(request.app.state.config, provider=provider)

        app.dependency_overrides[get_feedback_service] = _service
        return provider

    return _install


@pytest.fixture
def taxonomy_file(client: TestClient, tmp_path: Path) -> Path:
    """테스트용 분류 문서 (app.state.taxonomy_path 교체)."""
    path = tmp_path / "taxonomy.md"
    path.write_text(
        "core_\n"
        "├── core_role_expert\n"
        "└── core_structure_chapter\n"
        "geo_\n"
        "├── geo_asia_japan\n"
        "├── geo_asia_china\n"
        "└── geo_europe_uk\n",
        encoding="utf-8",
    )
    client.app.state.taxonomy_path = path
    return path
