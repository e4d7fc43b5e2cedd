"""
Pytest fixtures for the snippet builder tests.

구성:
- 경로/설정 fixture
- 스니펫 저장소 fixture (tmp_path 기반)
- 렌더러용 dict 기반 lookup fixture
- 네트워크 차단: API 키 환경변수 제거
"""

from pathlib import Path

import pytest
import yaml

from src.core.store import SnippetStore
from src.domain.schemas import Snippet

# =============================================================================
# Environment
# =============================================================================

API_KEY_ENV_VARS = (
    "MY_ANTHROPIC_KEY",
    "ANTHROPIC_API_KEY",
    "GOOGLE_API_KEY",
    "OPENROUTER_API_KEY",
)


@pytest.fixture(autouse=True)
def _clear_api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """로컬 API 키가 테스트 결과에 영향을 주지 않도록 제거."""
    for name in API_KEY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# Snippet Fixtures
# =============================================================================

@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """데이터 루트 (테스트마다 격리)."""
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def store(data_root: Path) -> SnippetStore:
    """빈 스니펫 저장소."""
    return SnippetStore(data_root)


def make_snippet(name: str, content: str = "", description: str | None = None) -> Snippet:
    """테스트용 Snippet (저장 없이)."""
    return Snippet(name=name, content=content or f"content of {name}", description=description)


class DictLookup:
    """
    dict 기반 스니펫 조회 (렌더러 lookup).

    calls: 조회된 이름 기록 (호출 순서 검증용)
    """

    def __init__(self, contents: dict[str, str]):
        self.snippets = {name: make_snippet(name, content) for name, content in contents.items()}
        self.calls: list[str] = []

    def __call__(self, name: str) -> Snippet | None:
        self.calls.append(name)
        return self.snippets.get(name)


@pytest.fixture
def lookup_factory():
    """{이름: 내용} → DictLookup."""
    return DictLookup
